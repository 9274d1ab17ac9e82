"""Termination reasons and the termination policy.

The policy checks its conditions in a fixed precedence so that the reported
reason is deterministic when several hold at once:

1. external interrupt
2. target cost reached
3. maximum number of iterations
4. maximum elapsed time
5. no improvement within the window
6. convergence reported by the solver
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from .interrupt import InterruptFlag

if TYPE_CHECKING:
    from .state import IterState


class TerminationKind(Enum):
    RUNNING = "running"
    MAX_ITERATIONS = "max_iterations"
    MAX_TIME = "max_time"
    NO_IMPROVEMENT = "no_improvement"
    TARGET_COST = "target_cost"
    SOLVER_CONVERGED = "solver_converged"
    INTERRUPTED = "interrupted"
    ABORTED = "aborted"


@dataclass(frozen=True)
class TerminationReason:
    """Why a run stopped (or RUNNING while it has not).

    ``window`` is set for NO_IMPROVEMENT, ``message`` for SOLVER_CONVERGED
    and ABORTED.
    """

    kind: TerminationKind = TerminationKind.RUNNING
    window: Optional[int] = None
    message: Optional[str] = None

    @classmethod
    def running(cls) -> "TerminationReason":
        return cls(TerminationKind.RUNNING)

    @classmethod
    def max_iterations(cls) -> "TerminationReason":
        return cls(TerminationKind.MAX_ITERATIONS)

    @classmethod
    def max_time(cls) -> "TerminationReason":
        return cls(TerminationKind.MAX_TIME)

    @classmethod
    def no_improvement(cls, window: int) -> "TerminationReason":
        return cls(TerminationKind.NO_IMPROVEMENT, window=int(window))

    @classmethod
    def target_cost(cls) -> "TerminationReason":
        return cls(TerminationKind.TARGET_COST)

    @classmethod
    def solver_converged(cls, message: Optional[str] = None) -> "TerminationReason":
        return cls(TerminationKind.SOLVER_CONVERGED, message=message)

    @classmethod
    def interrupted(cls) -> "TerminationReason":
        return cls(TerminationKind.INTERRUPTED)

    @classmethod
    def aborted(cls, message: str) -> "TerminationReason":
        return cls(TerminationKind.ABORTED, message=message)

    @property
    def terminated(self) -> bool:
        return self.kind is not TerminationKind.RUNNING

    def __str__(self) -> str:
        kind = self.kind
        if kind is TerminationKind.RUNNING:
            return "Running"
        if kind is TerminationKind.MAX_ITERATIONS:
            return "Maximum number of iterations reached"
        if kind is TerminationKind.MAX_TIME:
            return "Maximum time exceeded"
        if kind is TerminationKind.NO_IMPROVEMENT:
            return f"No improvement in {self.window} iterations"
        if kind is TerminationKind.TARGET_COST:
            return "Target cost value reached"
        if kind is TerminationKind.SOLVER_CONVERGED:
            return f"Solver converged: {self.message}" if self.message else "Solver converged"
        if kind is TerminationKind.INTERRUPTED:
            return "Interrupted"
        return f"Aborted: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "window": self.window, "message": self.message}

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "TerminationReason":
        return cls(
            kind=TerminationKind(obj["kind"]),
            window=obj.get("window"),
            message=obj.get("message"),
        )


@dataclass(frozen=True)
class TerminationPolicy:
    """Configured stop conditions, evaluated against an iteration state.

    Args:
        max_iters: Stop once ``state.iter >= max_iters``.
        max_time: Stop once the elapsed time (seconds) reaches it.
        target_cost: Stop once the best cost is at or below it.
        max_no_improvement: Stop after this many consecutive iterations
            without an improvement of the best cost.
        interrupt: Flag set from outside the loop to request a stop.
    """

    max_iters: Optional[int] = None
    max_time: Optional[float] = None
    target_cost: Optional[float] = None
    max_no_improvement: Optional[int] = None
    interrupt: Optional[InterruptFlag] = None

    def evaluate(
        self,
        state: "IterState",
        solver_reason: Optional[TerminationReason] = None,
    ) -> TerminationReason:
        """Return the first matching reason in precedence order, else RUNNING."""
        if self.interrupt is not None and self.interrupt.is_set():
            return TerminationReason.interrupted()
        if self.target_cost is not None and not math.isnan(state.best_cost):
            if state.best_cost <= self.target_cost:
                return TerminationReason.target_cost()
        if self.max_iters is not None and state.iter >= self.max_iters:
            return TerminationReason.max_iterations()
        if self.max_time is not None and state.time is not None:
            if state.time >= self.max_time:
                return TerminationReason.max_time()
        if self.max_no_improvement is not None and state.iter > 0:
            if state.iterations_since_improvement >= self.max_no_improvement:
                return TerminationReason.no_improvement(self.max_no_improvement)
        if solver_reason is not None and solver_reason.terminated:
            return solver_reason
        return TerminationReason.running()


__all__ = ["TerminationKind", "TerminationPolicy", "TerminationReason"]
