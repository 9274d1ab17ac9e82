"""Observers receiving per-iteration snapshots of a run."""

from .base import Observer, ObserverMode, Observers, ObserverSnapshot
from .file import ParamWriter
from .history import HistoryObserver
from .logger import LoggingObserver

__all__ = [
    "HistoryObserver",
    "LoggingObserver",
    "Observer",
    "ObserverMode",
    "ObserverSnapshot",
    "Observers",
    "ParamWriter",
]
