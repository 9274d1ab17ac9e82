"""Iteration state carried between solver calls.

The state holds the current, previous and best values of the trajectory
together with counters, timing and the termination reason. Setting a
current value moves the old one into the matching ``prev_*`` slot.

A solver may *take* the current parameter (or gradient, Hessian,
Jacobian) out of the state to avoid copying it. Taking leaves the
:data:`TAKEN` sentinel behind; the solver must set a new value before
returning the state, otherwise the executor raises :class:`StateError`.

Example
-------
>>> import numpy as np
>>> state = IterState(param=np.array([1.0]))
>>> x = state.take_param()
>>> state.param_taken
True
>>> state = state.set_param(x - 0.5).set_cost(0.25)
>>> state.update_best()
True
"""

from __future__ import annotations

import copy
import math
from typing import Any, Dict, Optional

import numpy as np

from ..numeric import DTypeLike, as_float_dtype, float_dtype_of, improves
from .errors import StateError
from .termination import TerminationReason


class _Taken:
    """Marker left in a slot whose value a solver has taken."""

    _instance: Optional["_Taken"] = None

    def __new__(cls) -> "_Taken":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "TAKEN"

    def __reduce__(self):
        return (_Taken, ())


TAKEN = _Taken()

_SNAPSHOT_FIELDS = (
    "param",
    "prev_param",
    "best_param",
    "prev_best_param",
    "cost",
    "prev_cost",
    "best_cost",
    "prev_best_cost",
    "grad",
    "prev_grad",
    "hessian",
    "prev_hessian",
    "jacobian",
    "prev_jacobian",
    "iter",
    "last_best_iter",
    "time",
)


class IterState:
    """Trajectory record of one optimization run.

    Args:
        param: Initial parameter, if any.
        cost: Initial cost, if already known.
        float_dtype: Floating type deciding the cost comparison tolerance.
            Inferred from ``param`` when omitted.
    """

    def __init__(
        self,
        param: Any = None,
        cost: float = math.inf,
        float_dtype: Optional[DTypeLike] = None,
    ) -> None:
        if float_dtype is None:
            float_dtype = float_dtype_of(param) if param is not None else np.float64
        self.float_dtype: np.dtype = as_float_dtype(float_dtype)

        self.param: Any = param
        self.prev_param: Any = None
        self.best_param: Any = None
        self.prev_best_param: Any = None

        self.cost: float = float(cost)
        self.prev_cost: float = math.inf
        self.best_cost: float = math.inf
        self.prev_best_cost: float = math.inf

        self.grad: Any = None
        self.prev_grad: Any = None
        self.hessian: Any = None
        self.prev_hessian: Any = None
        self.jacobian: Any = None
        self.prev_jacobian: Any = None

        self.iter: int = 0
        self.last_best_iter: int = 0
        self.termination_reason: TerminationReason = TerminationReason.running()
        self.time: Optional[float] = None
        self.counts: Dict[str, int] = {}

    def __repr__(self) -> str:
        return (
            f"IterState(iter={self.iter}, cost={self.cost}, best_cost={self.best_cost}, "
            f"termination_reason={str(self.termination_reason)!r})"
        )

    # -- parameter and derivative slots ---------------------------------

    def set_param(self, param: Any) -> "IterState":
        self.prev_param = self.param if self.param is not TAKEN else None
        self.param = param
        return self

    def take_param(self) -> Any:
        """Remove and return the current parameter, leaving the TAKEN sentinel.

        Returns None when no parameter is present.
        """
        param = self.param
        if param is None or param is TAKEN:
            return None
        self.param = TAKEN
        return param

    @property
    def param_taken(self) -> bool:
        return self.param is TAKEN

    def set_cost(self, cost: float) -> "IterState":
        self.prev_cost = self.cost
        self.cost = float(cost)
        return self

    def set_gradient(self, grad: Any) -> "IterState":
        self.prev_grad = self.grad if self.grad is not TAKEN else None
        self.grad = grad
        return self

    def take_gradient(self) -> Any:
        grad = self.grad
        if grad is None or grad is TAKEN:
            return None
        self.grad = TAKEN
        return grad

    def set_hessian(self, hessian: Any) -> "IterState":
        self.prev_hessian = self.hessian if self.hessian is not TAKEN else None
        self.hessian = hessian
        return self

    def take_hessian(self) -> Any:
        hessian = self.hessian
        if hessian is None or hessian is TAKEN:
            return None
        self.hessian = TAKEN
        return hessian

    def set_jacobian(self, jacobian: Any) -> "IterState":
        self.prev_jacobian = self.jacobian if self.jacobian is not TAKEN else None
        self.jacobian = jacobian
        return self

    def take_jacobian(self) -> Any:
        jacobian = self.jacobian
        if jacobian is None or jacobian is TAKEN:
            return None
        self.jacobian = TAKEN
        return jacobian

    def check_restored(self) -> None:
        """Raise StateError if the parameter was taken and not set again."""
        if self.param is TAKEN:
            raise StateError(
                "Current parameter was taken from the state and never restored.",
                iteration=self.iter,
            )

    # -- bookkeeping ----------------------------------------------------

    def update_best(self) -> bool:
        """Record the current parameter as best if its cost improves on the best.

        An improvement must exceed the tolerance of ``float_dtype``; ties are
        not improvements. When neither cost was ever computed (both infinite
        with the same sign) the current parameter is still recorded.

        Returns:
            True if the best values were replaced.
        """
        cost = self.cost
        best = self.best_cost
        both_infinite = (
            math.isinf(cost) and math.isinf(best) and (cost > 0) == (best > 0)
        )
        if not (improves(cost, best, self.float_dtype) or both_infinite):
            return False
        if self.param is None or self.param is TAKEN:
            return False
        self.prev_best_param = self.best_param
        self.best_param = self.param
        self.prev_best_cost = self.best_cost
        self.best_cost = cost
        self.last_best_iter = self.iter
        return True

    def increment_iter(self) -> "IterState":
        self.iter += 1
        return self

    @property
    def iterations_since_improvement(self) -> int:
        """Completed iterations after the one that produced the best cost."""
        return max(self.iter - self.last_best_iter, 0)

    def set_counts(self, counts: Dict[str, int]) -> "IterState":
        self.counts = dict(counts)
        return self

    def terminate_with(self, reason: TerminationReason) -> "IterState":
        """Set the termination reason; once terminal the state is left unchanged."""
        if not self.termination_reason.terminated:
            self.termination_reason = reason
        return self

    @property
    def terminated(self) -> bool:
        return self.termination_reason.terminated

    @property
    def elapsed(self) -> Optional[float]:
        """Cumulative elapsed time in seconds, or None when timing is off."""
        return self.time

    # -- snapshots ------------------------------------------------------

    def copy(self) -> "IterState":
        """Shallow copy: slots are shared, counters and reason are independent."""
        other = copy.copy(self)
        other.counts = dict(self.counts)
        return other

    def to_dict(self) -> Dict[str, Any]:
        """Structural snapshot of every field, used for checkpointing."""
        if self.param is TAKEN:
            raise StateError("Cannot snapshot a state whose parameter is taken.")
        obj: Dict[str, Any] = {
            name: (None if getattr(self, name) is TAKEN else getattr(self, name))
            for name in _SNAPSHOT_FIELDS
        }
        obj["float_dtype"] = self.float_dtype.name
        obj["counts"] = dict(self.counts)
        obj["termination_reason"] = self.termination_reason.to_dict()
        return obj

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "IterState":
        state = cls(float_dtype=obj["float_dtype"])
        for name in _SNAPSHOT_FIELDS:
            setattr(state, name, obj.get(name))
        for name in ("cost", "prev_cost", "best_cost", "prev_best_cost"):
            value = getattr(state, name)
            setattr(state, name, math.inf if value is None else float(value))
        state.iter = int(state.iter or 0)
        state.last_best_iter = int(state.last_best_iter or 0)
        if state.time is not None:
            state.time = float(state.time)
        state.counts = {str(k): int(v) for k, v in obj.get("counts", {}).items()}
        state.termination_reason = TerminationReason.from_dict(obj["termination_reason"])
        return state


__all__ = ["IterState", "TAKEN"]
