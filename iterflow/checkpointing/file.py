"""Checkpoints stored as JSON files."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Tuple, Union

from ..core.errors import CheckpointIOError
from ..logging import get_logger
from .base import Checkpoint, Snapshot
from .serialization import checkpoint_to_json, dumps, json_to_checkpoint

logger = get_logger(__name__)


class FileCheckpoint(Checkpoint):
    """
    Store each checkpoint as ``<directory>/<identifier>.json``.

    Files are written to a temporary file in the same directory and then
    renamed, so an interrupted write never leaves a truncated checkpoint.

    Parameters
    ----------
    directory : str or Path
        Directory holding the checkpoint files. Created on first save.
    """

    def __init__(self, directory: Union[str, Path] = ".checkpoints") -> None:
        self.directory = Path(directory)

    def path(self, identifier: str) -> Path:
        return self.directory / f"{identifier}.json"

    def save(self, identifier: str, solver_snapshot: Snapshot, state_snapshot: Snapshot) -> None:
        path = self.path(identifier)
        try:
            text = dumps(checkpoint_to_json(identifier, solver_snapshot, state_snapshot))
        except (TypeError, ValueError) as exc:
            raise CheckpointIOError(f"Checkpoint {identifier!r} is not serializable: {exc}") from exc
        tmp = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{identifier}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, path)
        except OSError as exc:
            if tmp is not None and os.path.exists(tmp):
                os.unlink(tmp)
            raise CheckpointIOError(f"Cannot write checkpoint {path}: {exc}") from exc
        logger.debug("Saved checkpoint %s", path)

    def load(self, identifier: str) -> Optional[Tuple[Snapshot, Snapshot]]:
        path = self.path(identifier)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                obj = json.load(f)
        except OSError as exc:
            raise CheckpointIOError(f"Cannot read checkpoint {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise CheckpointIOError(f"Invalid JSON in checkpoint {path}: {exc}") from exc
        try:
            return json_to_checkpoint(obj)
        except ValueError as exc:
            raise CheckpointIOError(f"Invalid checkpoint {path}: {exc}") from exc


__all__ = ["FileCheckpoint"]
