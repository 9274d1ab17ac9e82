"""Checkpoint persistence for resumable runs."""

from .base import Checkpoint, CheckpointingFrequency, Snapshot
from .file import FileCheckpoint
from .memory import InMemoryCheckpoint
from .schema import CHECKPOINT_VERSION, checkpoint_schema, validate_checkpoint
from .serialization import checkpoint_to_json, decode, dumps, encode, json_to_checkpoint, loads

__all__ = [
    "CHECKPOINT_VERSION",
    "Checkpoint",
    "CheckpointingFrequency",
    "FileCheckpoint",
    "InMemoryCheckpoint",
    "Snapshot",
    "checkpoint_schema",
    "checkpoint_to_json",
    "decode",
    "dumps",
    "encode",
    "json_to_checkpoint",
    "loads",
    "validate_checkpoint",
]
