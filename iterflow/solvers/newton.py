"""Newton and damped Newton optimization routines."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..core.capabilities import Capability
from ..core.errors import SolverError
from ..core.kv import KV
from ..core.problem import Problem
from ..core.solver import Solver, StepResult
from ..core.state import IterState
from ..core.termination import TerminationReason
from ..numeric import RTOL, to_scalar
from .line_search import backtracking_armijo
from .utils import check_convergence, compute_gradient, compute_hessian, safe_solve


class Newton(Solver):
    """Newton's method with optional Armijo line search and damping.

    Args:
        tol: Gradient norm below which the solver reports convergence.
        use_line_search: Scale the Newton step with a backtracking Armijo
            search instead of taking the full step.
        lambda_reg: Levenberg-style damping added to the Hessian diagonal.
        finite_difference: Approximate missing gradients and Hessians by
            central differences of the cost. Without it the problem must
            provide both.

    The gradient and Hessian stored on the state belong to the point the
    iteration started from, and :meth:`terminate` judges convergence there.
    An iteration that finds its starting point stationary takes no step, so
    convergence is only reported once the stored gradient and the current
    parameter refer to the same point.
    """

    name = "Newton"

    def __init__(
        self,
        tol: float = RTOL,
        use_line_search: bool = False,
        lambda_reg: float = 0.0,
        finite_difference: bool = False,
    ) -> None:
        self.tol = tol
        self.use_line_search = use_line_search
        self.lambda_reg = max(lambda_reg, 0.0)
        self.finite_difference = finite_difference
        self.requires = (
            frozenset({Capability.COST})
            if finite_difference
            else frozenset({Capability.COST, Capability.GRADIENT, Capability.HESSIAN})
        )

    def init(self, problem: Problem, state: IterState) -> StepResult:
        if state.param is None:
            raise ValueError(f"{self.name} requires an initial parameter.")
        x = np.asarray(state.take_param(), dtype=float)
        state.set_param(x).set_cost(to_scalar(problem.cost(x)))
        return state, None

    def _step(self, hess: np.ndarray, grad: np.ndarray) -> np.ndarray:
        reg = self.lambda_reg
        eye = np.eye(grad.size)
        for _ in range(5):
            try:
                return np.linalg.solve(hess + reg * eye, -grad)
            except np.linalg.LinAlgError:
                reg = reg * 10 + 1e-8
        return safe_solve(hess + reg * eye, -grad)

    def next_iter(self, problem: Problem, state: IterState) -> StepResult:
        x = state.take_param()
        grad = compute_gradient(problem, x, self.finite_difference)
        grad_norm = float(np.linalg.norm(grad))
        if check_convergence(grad_norm, self.tol):
            # stationary point: no step to take
            state.set_param(x).set_cost(state.cost).set_gradient(grad)
            return state, KV().push("grad_norm", grad_norm).push("alpha", 0.0)

        hess = compute_hessian(problem, x, self.finite_difference)
        step = self._step(hess, grad)
        if not np.all(np.isfinite(step)):
            raise SolverError("Newton step is not finite.")

        if self.use_line_search:
            alpha, fx_new = backtracking_armijo(problem.cost, x, step, grad, fx=state.cost)
            x_new = x + alpha * step
        else:
            alpha = 1.0
            x_new = x + step
            fx_new = to_scalar(problem.cost(x_new))

        state.set_param(x_new).set_cost(fx_new).set_gradient(grad).set_hessian(hess)
        kv = KV().push("grad_norm", grad_norm).push("alpha", alpha)
        return state, kv

    def terminate(self, state: IterState) -> Optional[TerminationReason]:
        if state.grad is None:
            return None
        if check_convergence(float(np.linalg.norm(state.grad)), self.tol):
            return TerminationReason.solver_converged("Gradient tolerance satisfied.")
        return None


__all__ = ["Newton"]
