"""Utility helpers for finite differences and linear algebra routines.

The finite-difference helpers take a cost callable; solvers pass the counted
``Problem.cost`` so every evaluation shows up in the run's counters.
"""

from __future__ import annotations

from typing import Any, Callable

import numpy as np

from ..core.capabilities import Capability
from ..core.problem import Problem
from ..numeric import ATOL, to_scalar

Array = np.ndarray
Objective = Callable[[Array], Any]


def approx_grad(fun: Objective, x: Array, eps: float = 1e-6) -> Array:
    """Compute a central-difference gradient approximation.

    Parameters
    ----------
    fun:
        Objective function returning a scalar given x.
    x:
        Point where the gradient is approximated.
    eps:
        Perturbation size for finite differences.
    """
    if eps <= 0:
        raise ValueError("eps must be positive")
    x = np.asarray(x, dtype=float).copy()
    grad = np.zeros_like(x, dtype=float)
    for i in range(x.size):
        ei = np.zeros_like(x)
        ei.flat[i] = eps
        grad.flat[i] = (to_scalar(fun(x + ei)) - to_scalar(fun(x - ei))) / (2.0 * eps)
    return grad


def approx_hessian(fun: Objective, x: Array, eps: float = 1e-4) -> Array:
    """Approximate the Hessian using second-order central differences."""
    if eps <= 0:
        raise ValueError("eps must be positive")
    x = np.asarray(x, dtype=float)
    n = x.size

    def f(point: Array) -> float:
        return to_scalar(fun(point))

    hess = np.zeros((n, n), dtype=float)
    fx = f(x)
    for i in range(n):
        ei = np.zeros_like(x)
        ei[i] = eps
        hess[i, i] = (f(x + ei) - 2 * fx + f(x - ei)) / (eps**2)
        for j in range(i + 1, n):
            ej = np.zeros_like(x)
            ej[j] = eps
            value = (
                f(x + ei + ej) - f(x + ei - ej) - f(x - ei + ej) + f(x - ei - ej)
            ) / (4 * eps**2)
            hess[i, j] = value
            hess[j, i] = value
    return hess


def is_pos_def(mat: Array, tol: float = 1e-12) -> bool:
    """Check if a matrix is positive definite via eigenvalues."""
    sym = 0.5 * (mat + mat.T)
    eigvals = np.linalg.eigvalsh(sym)
    return bool(np.all(eigvals > tol))


def safe_solve(mat: Array, vec: Array, reg: float = 1e-12) -> Array:
    """Solve linear system with ridge fallback for singular matrices."""
    try:
        return np.linalg.solve(mat, vec)
    except np.linalg.LinAlgError:
        eye = np.eye(mat.shape[0], dtype=mat.dtype)
        return np.linalg.solve(mat + reg * eye, vec)


def compute_gradient(problem: Problem, x: Array, finite_difference: bool = False) -> Array:
    """Gradient from the problem, or central differences of its cost when allowed."""
    if finite_difference and not problem.implements(Capability.GRADIENT):
        return approx_grad(problem.cost, x)
    return np.asarray(problem.gradient(x), dtype=float)


def compute_hessian(problem: Problem, x: Array, finite_difference: bool = False) -> Array:
    """Hessian from the problem, or second differences of its cost when allowed."""
    if finite_difference and not problem.implements(Capability.HESSIAN):
        return approx_hessian(problem.cost, x)
    return np.asarray(problem.hessian(x), dtype=float)


def check_convergence(grad_norm: float, tol: float) -> bool:
    """Return True if gradient norm satisfies tolerance."""
    return grad_norm <= max(tol, ATOL)


__all__ = [
    "Array",
    "Objective",
    "approx_grad",
    "approx_hessian",
    "check_convergence",
    "compute_gradient",
    "compute_hessian",
    "is_pos_def",
    "safe_solve",
]
