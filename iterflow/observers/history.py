"""In-memory record of observed iterations."""

from __future__ import annotations

from typing import List, Optional

from ..core.kv import KV
from .base import Observer, ObserverSnapshot


class HistoryObserver(Observer):
    """
    Accumulate observed snapshots over the course of a run.

    Useful for plotting convergence or asserting on a run's trajectory in
    tests. Parameters are stored by reference.

    Attributes:
        solver_name: Name reported in ``observe_init``.
        snapshots: Every snapshot received, in order.
    """

    def __init__(self) -> None:
        self.solver_name: Optional[str] = None
        self.snapshots: List[ObserverSnapshot] = []

    def observe_init(self, solver_name: str, kv: KV) -> None:
        self.solver_name = solver_name

    def observe_iter(self, snapshot: ObserverSnapshot) -> None:
        self.snapshots.append(snapshot)

    def costs(self) -> List[float]:
        return [s.cost for s in self.snapshots]

    def best_costs(self) -> List[float]:
        return [s.best_cost for s in self.snapshots]

    def best_cost(self) -> Optional[float]:
        """
        Get the best cost recorded.

        Returns:
            Best cost of the last snapshot, or None if nothing was recorded.
        """
        if not self.snapshots:
            return None
        return self.snapshots[-1].best_cost

    def final_cost(self) -> Optional[float]:
        """
        Get the current cost of the last recorded iteration.

        Returns:
            Final cost value, or None if nothing was recorded.
        """
        if not self.snapshots:
            return None
        return self.snapshots[-1].cost

    def num_iterations(self) -> int:
        return len(self.snapshots)


__all__ = ["HistoryObserver"]
