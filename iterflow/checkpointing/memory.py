"""Checkpoints kept in process memory."""

from __future__ import annotations

import copy
from typing import Dict, Optional, Tuple

from .base import Checkpoint, Snapshot


class InMemoryCheckpoint(Checkpoint):
    """Keep deep copies of the latest snapshots per identifier.

    Handy for tests and for restarting a run within one process.
    """

    def __init__(self) -> None:
        self._store: Dict[str, Tuple[Snapshot, Snapshot]] = {}
        self.saves = 0

    def save(self, identifier: str, solver_snapshot: Snapshot, state_snapshot: Snapshot) -> None:
        self._store[identifier] = (copy.deepcopy(solver_snapshot), copy.deepcopy(state_snapshot))
        self.saves += 1

    def load(self, identifier: str) -> Optional[Tuple[Snapshot, Snapshot]]:
        entry = self._store.get(identifier)
        if entry is None:
            return None
        solver_snapshot, state_snapshot = entry
        return copy.deepcopy(solver_snapshot), copy.deepcopy(state_snapshot)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._store


__all__ = ["InMemoryCheckpoint"]
