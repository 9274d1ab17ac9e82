"""Observer contract and synchronous dispatch."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..core.errors import ObserverError
from ..core.kv import KV
from ..core.state import IterState
from ..core.termination import TerminationReason
from ..logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ObserverMode:
    """How often an observer receives snapshots.

    Use ``ObserverMode.ALWAYS``, ``ObserverMode.NEVER`` or
    ``ObserverMode.every(n)``. ``every(n)`` also delivers the terminal
    iteration regardless of ``n``.
    """

    kind: str = "always"
    n: int = 1

    def __post_init__(self) -> None:
        if self.kind not in ("always", "every", "never"):
            raise ValueError(f"Unknown observer mode {self.kind!r}")
        if self.n < 1:
            raise ValueError("ObserverMode.every(n) requires n >= 1")

    @classmethod
    def every(cls, n: int) -> "ObserverMode":
        return cls("every", int(n))

    def should_observe(self, iteration: int, final: bool) -> bool:
        if self.kind == "never":
            return False
        if self.kind == "always" or final:
            return True
        return iteration % self.n == 0


ObserverMode.ALWAYS = ObserverMode("always")  # type: ignore[misc]
ObserverMode.NEVER = ObserverMode("never")  # type: ignore[misc]


@dataclass(frozen=True)
class ObserverSnapshot:
    """Structured view of one iteration handed to observers.

    Attributes:
        iteration: Number of completed iterations.
        elapsed: Cumulative elapsed seconds, or None if timing is off.
        best_cost: Best cost so far.
        cost: Cost of the current iteration.
        termination_reason: Reason if the run has terminated, else None.
        kv: Auxiliary values reported by the solver and the executor.
        solver_name: Name of the solver producing the iteration.
        counts: Evaluation counts per capability.
        param: Current parameter.
        best_param: Best parameter so far.
    """

    iteration: int
    elapsed: Optional[float]
    best_cost: float
    cost: float
    termination_reason: Optional[TerminationReason]
    kv: KV
    solver_name: str = ""
    counts: Dict[str, int] = field(default_factory=dict)
    param: Any = None
    best_param: Any = None

    @classmethod
    def from_state(cls, state: IterState, kv: Optional[KV], solver_name: str) -> "ObserverSnapshot":
        return cls(
            iteration=state.iter,
            elapsed=state.time,
            best_cost=state.best_cost,
            cost=state.cost,
            termination_reason=state.termination_reason if state.terminated else None,
            kv=kv if kv is not None else KV(),
            solver_name=solver_name,
            counts=dict(state.counts),
            param=state.param,
            best_param=state.best_param,
        )

    @property
    def final(self) -> bool:
        return self.termination_reason is not None


class Observer(ABC):
    """A sink receiving per-iteration snapshots. Return values are ignored."""

    def observe_init(self, solver_name: str, kv: KV) -> None:
        """Called once before the first iteration of a fresh or resumed run."""

    @abstractmethod
    def observe_iter(self, snapshot: ObserverSnapshot) -> None:
        """Called for every iteration selected by the observer's mode."""


class Observers:
    """Registered observers, notified synchronously in registration order."""

    def __init__(self) -> None:
        self._entries: List[Tuple[Observer, ObserverMode, bool]] = []

    def add(self, observer: Observer, mode: ObserverMode = ObserverMode.ALWAYS, fatal: bool = False) -> None:
        self._entries.append((observer, mode, fatal))

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def _deliver(self, observer: Observer, fatal: bool, iteration: Optional[int], call) -> Optional[ObserverError]:
        try:
            call()
        except Exception as exc:
            error = ObserverError(
                f"{type(observer).__name__} failed: {exc}", iteration=iteration
            )
            error.__cause__ = exc
            if fatal:
                raise error from exc
            logger.warning("%s", error)
            return error
        return None

    def observe_init(self, solver_name: str, kv: KV) -> List[ObserverError]:
        errors = []
        for observer, mode, fatal in self._entries:
            if mode.kind == "never":
                continue
            error = self._deliver(
                observer, fatal, None, lambda o=observer: o.observe_init(solver_name, kv)
            )
            if error is not None:
                errors.append(error)
        return errors

    def dispatch(self, snapshot: ObserverSnapshot) -> List[ObserverError]:
        """Deliver ``snapshot`` to every matching observer.

        Returns:
            Errors of non-fatal observers that failed.

        Raises:
            ObserverError: If an observer registered as fatal fails.
        """
        errors = []
        for observer, mode, fatal in self._entries:
            if not mode.should_observe(snapshot.iteration, snapshot.final):
                continue
            error = self._deliver(
                observer, fatal, snapshot.iteration, lambda o=observer: o.observe_iter(snapshot)
            )
            if error is not None:
                errors.append(error)
        return errors


__all__ = ["Observer", "ObserverMode", "ObserverSnapshot", "Observers"]
