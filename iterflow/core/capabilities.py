"""Capability contracts a user problem may implement.

A problem is any object; it supports a capability when it has the method
named in :attr:`Capability.method`. The protocols below document the
signatures and allow ``isinstance`` checks against them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, List, Protocol, runtime_checkable


class Capability(Enum):
    """Kinds of evaluation a problem can provide."""

    COST = "cost"
    GRADIENT = "gradient"
    HESSIAN = "hessian"
    JACOBIAN = "jacobian"
    OPERATOR = "operator"

    @property
    def method(self) -> str:
        """Name of the single-point method on the user problem."""
        return "apply" if self is Capability.OPERATOR else self.value

    @property
    def bulk_method(self) -> str:
        """Name of the optional native bulk method on the user problem."""
        return f"bulk_{self.method}"


@runtime_checkable
class CostFunction(Protocol):
    def cost(self, param: Any) -> Any:
        ...


@runtime_checkable
class Gradient(Protocol):
    def gradient(self, param: Any) -> Any:
        ...


@runtime_checkable
class Hessian(Protocol):
    def hessian(self, param: Any) -> Any:
        ...


@runtime_checkable
class Jacobian(Protocol):
    def jacobian(self, param: Any) -> Any:
        ...


@runtime_checkable
class Operator(Protocol):
    def apply(self, param: Any) -> Any:
        ...


def implements(problem: Any, capability: Capability) -> bool:
    """Return True if ``problem`` provides ``capability``."""
    return callable(getattr(problem, capability.method, None))


def missing_capabilities(
    problem: Any, required: Iterable[Capability]
) -> List[Capability]:
    """Return the capabilities in ``required`` that ``problem`` lacks, in enum order."""
    required = set(required)
    return [c for c in Capability if c in required and not implements(problem, c)]


__all__ = [
    "Capability",
    "CostFunction",
    "Gradient",
    "Hessian",
    "Jacobian",
    "Operator",
    "implements",
    "missing_capabilities",
]
