"""Solver plug-in contract.

A solver implements one outer iteration of an algorithm. Everything else
(evaluation counting, best tracking, termination, observation and
checkpointing) is handled by the :class:`~iterflow.core.executor.Executor`.

Example
-------
>>> class Landweber(Solver):
...     name = "Landweber"
...     requires = frozenset({Capability.GRADIENT})
...
...     def __init__(self, omega):
...         self.omega = omega
...
...     def next_iter(self, problem, state):
...         x = state.take_param()
...         return state.set_param(x - self.omega * problem.gradient(x)), None
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, FrozenSet, Optional, Tuple

from .capabilities import Capability
from .kv import KV
from .problem import Problem
from .state import IterState
from .termination import TerminationReason

StepResult = Tuple[IterState, Optional[KV]]

# Reserved key of every solver snapshot, holding the name of the solver that wrote it.
SOLVER_NAME_KEY = "__solver__"


class Solver(ABC):
    """Base class for all solvers.

    Subclasses set ``name`` and ``requires`` and implement :meth:`next_iter`.
    Private scratch data kept across iterations (momentum, curvature
    memory, trust radius, ...) is listed in ``state_attrs`` so that it is
    included in checkpoints; everything else on the instance is treated as
    configuration supplied again by the caller on resume. Snapshots also
    carry ``name`` under :data:`SOLVER_NAME_KEY` so a resumed run can refuse
    a checkpoint written by another solver.
    """

    name: ClassVar[str] = "Solver"
    requires: ClassVar[FrozenSet[Capability]] = frozenset()
    state_attrs: ClassVar[Tuple[str, ...]] = ()

    def init(self, problem: Problem, state: IterState) -> StepResult:
        """Prepare the first iteration; called once per fresh (non-resumed) run."""
        return state, None

    @abstractmethod
    def next_iter(self, problem: Problem, state: IterState) -> StepResult:
        """Perform one iteration and return the updated state and optional KV."""

    def terminate(self, state: IterState) -> Optional[TerminationReason]:
        """Return a SOLVER_CONVERGED reason when the algorithm has converged."""
        return None

    def state_dict(self) -> Dict[str, Any]:
        state = {name: getattr(self, name) for name in self.state_attrs}
        state[SOLVER_NAME_KEY] = self.name
        return state

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        for name in self.state_attrs:
            if name in state:
                setattr(self, name, state[name])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


__all__ = ["SOLVER_NAME_KEY", "Solver", "StepResult"]
