"""Final result of an executor run."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Any, Dict, Optional, Tuple

from ..numeric import costs_close, float_eps
from .errors import IterflowError
from .problem import Problem
from .state import IterState
from .termination import TerminationKind, TerminationReason


@total_ordering
@dataclass(frozen=True, eq=False)
class OptimizationResult:
    """Final problem wrapper and terminal state of a run.

    Results compare by best cost alone, within the cost tolerance of the
    run's floating type. Two runs that found different parameters with
    near-identical costs therefore compare equal.

    Attributes:
        problem: The problem wrapper, holding the final evaluation counts.
        state: The terminal iteration state.
        error: The error that aborted the run, if any.
        errors: Non-fatal observer and checkpoint errors reported during the run.
    """

    problem: Problem
    state: IterState
    error: Optional[IterflowError] = None
    errors: Tuple[IterflowError, ...] = field(default_factory=tuple)

    @property
    def best_param(self) -> Any:
        return self.state.best_param

    @property
    def best_cost(self) -> float:
        return self.state.best_cost

    @property
    def iterations(self) -> int:
        return self.state.iter

    @property
    def last_best_iter(self) -> int:
        return self.state.last_best_iter

    @property
    def termination_reason(self) -> TerminationReason:
        return self.state.termination_reason

    @property
    def elapsed(self) -> Optional[float]:
        return self.state.time

    @property
    def counts(self) -> Dict[str, int]:
        return self.problem.counts

    @property
    def success(self) -> bool:
        """True if the run ended without an error or an interrupt."""
        return self.error is None and self.termination_reason.kind not in (
            TerminationKind.ABORTED,
            TerminationKind.INTERRUPTED,
            TerminationKind.RUNNING,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OptimizationResult):
            return NotImplemented
        # the coarser floating type decides, so equality is symmetric
        dtype = max(self.state.float_dtype, other.state.float_dtype, key=float_eps)
        return costs_close(self.best_cost, other.best_cost, dtype)

    def __lt__(self, other: "OptimizationResult") -> bool:
        if not isinstance(other, OptimizationResult):
            return NotImplemented
        if self == other:
            return False
        return self.best_cost < other.best_cost

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        time = "" if self.elapsed is None else f"{self.elapsed:.6f}s"
        counts = ", ".join(f"{k}={v}" for k, v in self.counts.items() if v)
        lines = [
            "OptimizationResult:",
            f"    param (best):  {self.best_param!r}",
            f"    cost (best):   {self.best_cost}",
            f"    iters (best):  {self.last_best_iter}",
            f"    iters (total): {self.iterations}",
            f"    termination:   {self.termination_reason}",
            f"    time:          {time}",
            f"    evaluations:   {counts or 'none'}",
        ]
        return "\n".join(lines)


def best_result(results) -> OptimizationResult:
    """Return the result with the lowest best cost (first one on ties)."""
    results = list(results)
    if not results:
        raise ValueError("best_result requires at least one result.")
    return min(results)


__all__ = ["OptimizationResult", "best_result"]
