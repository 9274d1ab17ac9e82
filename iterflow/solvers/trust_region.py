"""Trust-region methods with dogleg and Cauchy point strategies."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..core.capabilities import Capability
from ..core.kv import KV
from ..core.problem import Problem
from ..core.solver import Solver, StepResult
from ..core.state import IterState
from ..core.termination import TerminationReason
from ..numeric import RTOL, to_scalar
from .utils import check_convergence, compute_gradient, compute_hessian, safe_solve


def _cauchy_point(grad: np.ndarray, hess: np.ndarray, delta: float) -> np.ndarray:
    grad_norm = np.linalg.norm(grad)
    if grad_norm == 0:
        return np.zeros_like(grad)
    gbg = float(grad @ (hess @ grad))
    if gbg <= 0:
        tau = 1.0
    else:
        tau = min((grad_norm**3) / (delta * gbg), 1.0)
    return -(tau * delta / grad_norm) * grad


def dogleg_step(grad: np.ndarray, hess: np.ndarray, delta: float) -> np.ndarray:
    """Compute dogleg step combining Cauchy point and Newton step."""
    p_u = _cauchy_point(grad, hess, delta)
    try:
        p_b = -np.linalg.solve(hess, grad)
    except np.linalg.LinAlgError:
        p_b = safe_solve(hess, -grad)
    if np.linalg.norm(p_b) <= delta:
        return p_b
    if np.linalg.norm(p_u) >= delta:
        return (delta / np.linalg.norm(p_u)) * p_u
    diff = p_b - p_u
    a = float(np.dot(diff, diff))
    if a <= 0:
        return (delta / np.linalg.norm(p_u)) * p_u
    b = 2.0 * float(np.dot(p_u, diff))
    c = float(np.dot(p_u, p_u)) - delta**2
    disc = max(b * b - 4 * a * c, 0.0)
    tau = (-b + np.sqrt(disc)) / (2 * a)
    return p_u + tau * diff


class TrustRegion(Solver):
    """Dogleg trust-region solver.

    Args:
        delta0: Initial trust radius.
        max_delta: Upper bound of the trust radius.
        eta: Minimum ratio of actual to predicted reduction to accept a step.
        tol: Gradient norm below which the solver reports convergence.
        min_delta: Trust radius below which the solver reports convergence.
        finite_difference: Approximate missing gradients and Hessians from
            the cost.
    """

    name = "Trust region (dogleg)"
    state_attrs = ("delta",)

    def __init__(
        self,
        delta0: float = 1.0,
        max_delta: float = 100.0,
        eta: float = 0.15,
        tol: float = RTOL,
        min_delta: float = 1e-12,
        finite_difference: bool = False,
    ) -> None:
        if not 0 < delta0 <= max_delta:
            raise ValueError("Require 0 < delta0 <= max_delta.")
        self.delta0 = delta0
        self.delta = delta0
        self.max_delta = max_delta
        self.eta = eta
        self.tol = tol
        self.min_delta = min_delta
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
        self.delta = self.delta0
        return state, None

    def next_iter(self, problem: Problem, state: IterState) -> StepResult:
        x = state.take_param()
        fx = state.cost
        grad = compute_gradient(problem, x, self.finite_difference)
        hess = compute_hessian(problem, x, self.finite_difference)
        step = dogleg_step(grad, hess, self.delta)
        x_candidate = x + step
        f_candidate = to_scalar(problem.cost(x_candidate))

        actual_red = fx - f_candidate
        predicted_red = -(float(np.dot(grad, step)) + 0.5 * float(step @ (hess @ step)))
        rho = actual_red / predicted_red if predicted_red > 0 else 0.0
        if rho < 0.25:
            self.delta *= 0.25
        elif rho > 0.75 and np.linalg.norm(step) >= 0.9 * self.delta:
            self.delta = min(2.0 * self.delta, self.max_delta)

        accepted = rho > self.eta and np.isfinite(f_candidate)
        if accepted:
            state.set_param(x_candidate).set_cost(f_candidate)
        else:
            state.set_param(x).set_cost(fx)
        state.set_gradient(grad).set_hessian(hess)
        kv = KV().push("delta", self.delta).push("rho", rho).push("accepted", bool(accepted))
        return state, kv

    def terminate(self, state: IterState) -> Optional[TerminationReason]:
        if state.grad is not None and check_convergence(float(np.linalg.norm(state.grad)), self.tol):
            return TerminationReason.solver_converged("Gradient tolerance satisfied.")
        if self.delta < self.min_delta:
            return TerminationReason.solver_converged("Trust radius below tolerance.")
        return None


__all__ = ["TrustRegion", "dogleg_step"]
