"""Checkpoint persistence contract and save cadence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

Snapshot = Dict[str, Any]


@dataclass(frozen=True)
class CheckpointingFrequency:
    """How often the executor saves a checkpoint.

    Use ``CheckpointingFrequency.ALWAYS``, ``CheckpointingFrequency.NEVER``
    or ``CheckpointingFrequency.every(n)``. Unless NEVER, the terminal
    iteration is always saved.
    """

    kind: str = "always"
    n: int = 1

    def __post_init__(self) -> None:
        if self.kind not in ("always", "every", "never"):
            raise ValueError(f"Unknown checkpointing frequency {self.kind!r}")
        if self.n < 1:
            raise ValueError("CheckpointingFrequency.every(n) requires n >= 1")

    @classmethod
    def every(cls, n: int) -> "CheckpointingFrequency":
        return cls("every", int(n))

    def should_save(self, iteration: int, final: bool) -> bool:
        if self.kind == "never":
            return False
        if self.kind == "always" or final:
            return True
        return iteration % self.n == 0


CheckpointingFrequency.ALWAYS = CheckpointingFrequency("always")  # type: ignore[attr-defined]
CheckpointingFrequency.NEVER = CheckpointingFrequency("never")  # type: ignore[attr-defined]


class Checkpoint(ABC):
    """Persistence backend for solver and state snapshots.

    Implementations store whatever :meth:`save` receives so that
    :meth:`load` returns structurally equal snapshots. Failures should raise
    :class:`~iterflow.core.errors.CheckpointIOError`.
    """

    @abstractmethod
    def save(self, identifier: str, solver_snapshot: Snapshot, state_snapshot: Snapshot) -> None:
        """Persist one checkpoint under ``identifier``, replacing any previous one."""

    @abstractmethod
    def load(self, identifier: str) -> Optional[Tuple[Snapshot, Snapshot]]:
        """Return ``(solver_snapshot, state_snapshot)`` or None if absent."""


__all__ = ["Checkpoint", "CheckpointingFrequency", "Snapshot"]
