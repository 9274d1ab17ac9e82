"""Quasi-Newton optimization algorithms (BFGS and L-BFGS)."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, Optional

import numpy as np

from ..core.capabilities import Capability
from ..core.kv import KV
from ..core.problem import Problem
from ..core.solver import Solver, StepResult
from ..core.state import IterState
from ..core.termination import TerminationReason
from ..numeric import RTOL, to_scalar
from .line_search import wolfe_line_search
from .utils import check_convergence, compute_gradient


class _QuasiNewton(Solver):
    """Shared setup of the quasi-Newton solvers: cost and gradient at x0."""

    def __init__(self, tol: float = RTOL, finite_difference: bool = False) -> None:
        self.tol = tol
        self.finite_difference = finite_difference
        self.requires = (
            frozenset({Capability.COST})
            if finite_difference
            else frozenset({Capability.COST, Capability.GRADIENT})
        )

    def _gradient(self, problem: Problem, x: np.ndarray) -> np.ndarray:
        return compute_gradient(problem, x, self.finite_difference)

    def init(self, problem: Problem, state: IterState) -> StepResult:
        if state.param is None:
            raise ValueError(f"{self.name} requires an initial parameter.")
        x = np.asarray(state.take_param(), dtype=float)
        state.set_param(x).set_cost(to_scalar(problem.cost(x)))
        state.set_gradient(self._gradient(problem, x))
        return state, None

    def _line_step(self, problem: Problem, state: IterState, direction: np.ndarray):
        """Strong Wolfe step from the current parameter along ``direction``."""
        x = state.take_param()
        grad = state.grad

        def gradient(point: np.ndarray) -> np.ndarray:
            return self._gradient(problem, point)

        alpha, fx_new = wolfe_line_search(
            problem.cost, gradient, x, direction, fx=state.cost, grad_fx=grad
        )
        s = alpha * direction
        x_new = x + s
        grad_new = self._gradient(problem, x_new)
        state.set_param(x_new).set_cost(fx_new).set_gradient(grad_new)
        return alpha, s, grad_new - grad

    def terminate(self, state: IterState) -> Optional[TerminationReason]:
        if state.grad is None:
            return None
        if check_convergence(float(np.linalg.norm(state.grad)), self.tol):
            return TerminationReason.solver_converged("Gradient tolerance satisfied.")
        return None


class BFGS(_QuasiNewton):
    """Full-memory BFGS with strong Wolfe line search."""

    name = "BFGS"
    state_attrs = ("inv_hessian",)

    def __init__(self, tol: float = RTOL, finite_difference: bool = False) -> None:
        super().__init__(tol, finite_difference)
        self.inv_hessian: Optional[np.ndarray] = None

    def init(self, problem: Problem, state: IterState) -> StepResult:
        state, kv = super().init(problem, state)
        self.inv_hessian = np.eye(state.param.size)
        return state, kv

    def next_iter(self, problem: Problem, state: IterState) -> StepResult:
        n = state.grad.size
        if self.inv_hessian is None:
            self.inv_hessian = np.eye(n)
        direction = -self.inv_hessian @ state.grad
        alpha, s, y = self._line_step(problem, state, direction)
        ys = float(np.dot(y, s))
        if ys <= 1e-12:
            self.inv_hessian = np.eye(n)
        else:
            rho = 1.0 / ys
            identity = np.eye(n)
            outer_sy = np.outer(s, y)
            self.inv_hessian = (
                (identity - rho * outer_sy)
                @ self.inv_hessian
                @ (identity - rho * outer_sy.T)
                + rho * np.outer(s, s)
            )
        return state, KV().push("alpha", alpha).push("grad_norm", float(np.linalg.norm(state.grad)))


class LBFGS(_QuasiNewton):
    """Limited-memory BFGS using two-loop recursion.

    Args:
        m: Number of curvature pairs kept.
        tol: Gradient norm below which the solver reports convergence.
        finite_difference: Approximate a missing gradient from the cost.
    """

    name = "L-BFGS"
    state_attrs = ("s_history", "y_history")

    def __init__(self, m: int = 10, tol: float = RTOL, finite_difference: bool = False) -> None:
        if m <= 0:
            raise ValueError("Memory parameter m must be positive.")
        super().__init__(tol, finite_difference)
        self.m = m
        self.s_history: Deque[np.ndarray] = deque(maxlen=m)
        self.y_history: Deque[np.ndarray] = deque(maxlen=m)

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        super().load_state_dict(state)
        self.s_history = deque(self.s_history, maxlen=self.m)
        self.y_history = deque(self.y_history, maxlen=self.m)

    def _two_loop(self, g: np.ndarray) -> np.ndarray:
        q = g.copy()
        alpha_vals = []
        for s, y in reversed(list(zip(self.s_history, self.y_history))):
            rho = 1.0 / float(np.dot(y, s))
            alpha_i = rho * float(np.dot(s, q))
            q = q - alpha_i * y
            alpha_vals.append((rho, alpha_i, s, y))
        if self.s_history:
            last_s = self.s_history[-1]
            last_y = self.y_history[-1]
            gamma = float(np.dot(last_s, last_y) / np.dot(last_y, last_y))
        else:
            gamma = 1.0
        r = gamma * q
        for rho, alpha_i, s, y in reversed(alpha_vals):
            beta = rho * float(np.dot(y, r))
            r = r + s * (alpha_i - beta)
        return -r

    def next_iter(self, problem: Problem, state: IterState) -> StepResult:
        direction = self._two_loop(state.grad)
        alpha, s, y = self._line_step(problem, state, direction)
        if float(np.dot(y, s)) > 1e-12:
            self.s_history.append(s)
            self.y_history.append(y)
        return state, KV().push("alpha", alpha).push("memory", len(self.s_history))


__all__ = ["BFGS", "LBFGS"]
