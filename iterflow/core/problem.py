"""Counting wrapper around a user problem.

Example
-------
>>> import numpy as np
>>> from iterflow.core import FunctionProblem, Problem
>>> problem = Problem(FunctionProblem(fun=lambda x: float(x @ x), grad=lambda x: 2 * x))
>>> problem.cost(np.array([1.0, 2.0]))
5.0
>>> problem.counts["cost"]
1
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .capabilities import Capability, implements
from .errors import CapabilityNotImplementedError

_FUNCTION_FIELDS = {
    "cost": "fun",
    "gradient": "grad",
    "hessian": "hess",
    "jacobian": "jac",
    "apply": "op",
}


@dataclass(frozen=True)
class FunctionProblem:
    """User problem assembled from plain callables.

    Only the callables that are given become capabilities: a
    ``FunctionProblem(fun=f)`` has a ``cost`` method but no ``gradient``.
    """

    fun: Optional[Callable[[Any], Any]] = None
    grad: Optional[Callable[[Any], Any]] = None
    hess: Optional[Callable[[Any], Any]] = None
    jac: Optional[Callable[[Any], Any]] = None
    op: Optional[Callable[[Any], Any]] = None
    dim: Optional[int] = None

    def __getattr__(self, name: str) -> Callable[[Any], Any]:
        field_name = _FUNCTION_FIELDS.get(name)
        if field_name is not None:
            func = object.__getattribute__(self, field_name)
            if func is not None:
                return func
        raise AttributeError(
            f"{type(self).__name__!s} object has no attribute {name!r}"
        )


class Problem:
    """Instrumented owner of a user problem.

    Every capability call increments its counter and then delegates to the
    wrapped problem. Counters only ever grow and are safe to update from
    the worker threads of the bulk methods.

    Args:
        problem: The user problem. It may implement any subset of
            ``cost``, ``gradient``, ``hessian``, ``jacobian`` and ``apply``,
            and optionally native ``bulk_*`` variants of them.
        parallel: Evaluate bulk calls on a thread pool when the problem has
            no native bulk method.
        max_workers: Thread pool size for parallel bulk calls.
    """

    def __init__(
        self,
        problem: Any,
        parallel: bool = False,
        max_workers: Optional[int] = None,
    ) -> None:
        if isinstance(problem, Problem):
            raise TypeError("Problem cannot wrap another Problem instance.")
        self._problem = problem
        self.parallel = parallel
        self.max_workers = max_workers
        self._counts: Dict[Capability, int] = {c: 0 for c in Capability}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        counts = ", ".join(f"{k}={v}" for k, v in self.counts.items())
        return f"Problem({type(self._problem).__name__}, {counts})"

    @property
    def problem(self) -> Any:
        """The wrapped user problem."""
        return self._problem

    @property
    def counts(self) -> Dict[str, int]:
        """Copy of the per-capability evaluation counters."""
        with self._lock:
            return {c.value: n for c, n in self._counts.items()}

    def count(self, capability: Capability) -> int:
        with self._lock:
            return self._counts[capability]

    def implements(self, capability: Capability) -> bool:
        return implements(self._problem, capability)

    def restore_counts(self, counts: Mapping[str, int]) -> None:
        """Seed counters from a restored state; counters never decrease."""
        with self._lock:
            for capability in Capability:
                restored = int(counts.get(capability.value, 0))
                if restored > self._counts[capability]:
                    self._counts[capability] = restored

    def _method(self, capability: Capability) -> Callable[[Any], Any]:
        method = getattr(self._problem, capability.method, None)
        if not callable(method):
            raise CapabilityNotImplementedError(
                capability.value, type(self._problem).__name__
            )
        return method

    def _increment(self, capability: Capability, amount: int = 1) -> None:
        with self._lock:
            self._counts[capability] += amount

    def _call(self, capability: Capability, param: Any) -> Any:
        method = self._method(capability)
        self._increment(capability)
        return method(param)

    def _bulk(self, capability: Capability, params: Sequence[Any]) -> List[Any]:
        params = list(params)
        native = getattr(self._problem, capability.bulk_method, None)
        if callable(native):
            self._increment(capability, len(params))
            return list(native(params))
        method = self._method(capability)

        def counted(param: Any) -> Any:
            self._increment(capability)
            return method(param)

        if self.parallel and len(params) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                return list(pool.map(counted, params))
        return [counted(p) for p in params]

    def cost(self, param: Any) -> Any:
        return self._call(Capability.COST, param)

    def gradient(self, param: Any) -> Any:
        return self._call(Capability.GRADIENT, param)

    def hessian(self, param: Any) -> Any:
        return self._call(Capability.HESSIAN, param)

    def jacobian(self, param: Any) -> Any:
        return self._call(Capability.JACOBIAN, param)

    def apply(self, param: Any) -> Any:
        return self._call(Capability.OPERATOR, param)

    def bulk_cost(self, params: Sequence[Any]) -> List[Any]:
        return self._bulk(Capability.COST, params)

    def bulk_gradient(self, params: Sequence[Any]) -> List[Any]:
        return self._bulk(Capability.GRADIENT, params)

    def bulk_hessian(self, params: Sequence[Any]) -> List[Any]:
        return self._bulk(Capability.HESSIAN, params)

    def bulk_jacobian(self, params: Sequence[Any]) -> List[Any]:
        return self._bulk(Capability.JACOBIAN, params)

    def bulk_apply(self, params: Sequence[Any]) -> List[Any]:
        return self._bulk(Capability.OPERATOR, params)


__all__ = ["FunctionProblem", "Problem"]
