"""Observer that reports progress through iterflow's logging."""

from __future__ import annotations

import logging
from typing import Optional

from ..core.kv import KV
from ..logging import get_logger
from .base import Observer, ObserverSnapshot


class LoggingObserver(Observer):
    """Log one line per observed iteration.

    Args:
        logger: Target logger. Defaults to the ``iterflow.observers`` logger.
        level: Level of the emitted records (default INFO).
    """

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        self.logger = logger if logger is not None else get_logger("iterflow.observers")
        self.level = level

    def observe_init(self, solver_name: str, kv: KV) -> None:
        extra = "".join(f", {k}: {v}" for k, v in kv.items())
        self.logger.log(self.level, "%s%s", solver_name, extra)

    def observe_iter(self, snapshot: ObserverSnapshot) -> None:
        parts = [
            f"iter: {snapshot.iteration}",
            f"cost: {snapshot.cost}",
            f"best_cost: {snapshot.best_cost}",
        ]
        if snapshot.elapsed is not None:
            parts.append(f"time: {snapshot.elapsed:.6f}")
        parts.extend(f"{k}: {v}" for k, v in snapshot.kv.items())
        if snapshot.termination_reason is not None:
            parts.append(f"termination: {snapshot.termination_reason}")
        self.logger.log(self.level, ", ".join(parts))


__all__ = ["LoggingObserver"]
