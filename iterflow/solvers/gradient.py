"""Gradient-based optimization algorithms."""

from __future__ import annotations

from typing import Any, Optional

from ..core.capabilities import Capability
from ..core.kv import KV
from ..core.problem import Problem
from ..core.solver import Solver, StepResult
from ..core.state import IterState
from ..core.termination import TerminationReason
from ..numeric import RTOL, ArrayOps, ops_for, to_scalar
from .utils import check_convergence


class GradientDescent(Solver):
    """Classic gradient descent with optional momentum and Nesterov update.

    Works on numpy arrays and torch tensors alike. Each iteration evaluates
    the gradient once and, unless ``evaluate_cost`` is False, the cost of the
    new parameter once.

    Args:
        lr: Step size.
        momentum: Use heavy-ball momentum.
        beta: Momentum coefficient.
        nesterov: Evaluate the gradient at the look-ahead point. Implies
            ``momentum``.
        tol: Gradient norm below which the solver reports convergence.
        evaluate_cost: Evaluate the cost of every new parameter. Without it
            the best parameter is simply the latest one.
    """

    name = "Gradient descent"
    state_attrs = ("velocity",)

    def __init__(
        self,
        lr: float = 1e-2,
        momentum: bool = False,
        beta: float = 0.9,
        nesterov: bool = False,
        tol: float = RTOL,
        evaluate_cost: bool = True,
    ) -> None:
        if lr <= 0:
            raise ValueError("Learning rate must be positive.")
        self.lr = lr
        self.momentum = momentum or nesterov
        self.beta = beta
        self.nesterov = nesterov
        self.tol = tol
        self.evaluate_cost = evaluate_cost
        self.requires = (
            frozenset({Capability.COST, Capability.GRADIENT})
            if evaluate_cost
            else frozenset({Capability.GRADIENT})
        )
        self.velocity: Any = None
        self._ops: Optional[ArrayOps] = None

    def init(self, problem: Problem, state: IterState) -> StepResult:
        if state.param is None:
            raise ValueError(f"{self.name} requires an initial parameter.")
        self._ops = ops_for(state.param)
        self.velocity = None
        return state, KV().push("lr", self.lr)

    def next_iter(self, problem: Problem, state: IterState) -> StepResult:
        x = state.take_param()
        if self._ops is None:
            self._ops = ops_for(x)
        ops = self._ops

        if self.momentum and self.velocity is None:
            self.velocity = ops.zeros_like(x)
        point = ops.axpy(self.beta, self.velocity, x) if self.nesterov else x
        grad = problem.gradient(point)

        if self.momentum:
            self.velocity = ops.sub(ops.scale(self.beta, self.velocity), ops.scale(self.lr, grad))
            x_new = ops.add(point if self.nesterov else x, self.velocity)
        else:
            x_new = ops.axpy(-self.lr, grad, x)

        state.set_param(x_new).set_gradient(grad)
        if self.evaluate_cost:
            state.set_cost(to_scalar(problem.cost(x_new)))
        return state, KV().push("grad_norm", ops.norm(grad))

    def terminate(self, state: IterState) -> Optional[TerminationReason]:
        if state.grad is None or self._ops is None:
            return None
        if check_convergence(self._ops.norm(state.grad), self.tol):
            return TerminationReason.solver_converged("Gradient tolerance satisfied.")
        return None


__all__ = ["GradientDescent"]
