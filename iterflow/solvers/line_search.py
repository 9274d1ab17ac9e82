"""Deterministic line-search routines following Nocedal & Wright.

Both searches return ``(alpha, f_alpha)``: the accepted step length and the
cost at ``x + alpha * p``, so the calling solver need not evaluate it again.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

import numpy as np

from ..core.errors import SolverError
from ..numeric import to_scalar
from .utils import Array, Objective

GradientFn = Callable[[Array], Array]


def backtracking_armijo(
    f: Objective,
    x: Array,
    p: Array,
    grad_fx: Array,
    fx: Optional[float] = None,
    alpha0: float = 1.0,
    rho: float = 0.5,
    c: float = 1e-4,
    max_iter: int = 50,
) -> tuple[float, float]:
    """Classic Armijo backtracking line search.

    Raises
    ------
    SolverError
        If ``p`` is not a descent direction.
    """
    if not (0 < c < 1):
        raise ValueError("Armijo constant c must lie in (0, 1)")
    if not (0 < rho < 1):
        raise ValueError("rho must lie in (0, 1)")
    grad_dot = float(np.dot(grad_fx, p))
    if grad_dot >= 0:
        raise SolverError("Search direction must be a descent direction.")
    alpha = float(alpha0)
    fx = to_scalar(f(x)) if fx is None else float(fx)
    f_new = fx
    for _ in range(max_iter):
        f_new = to_scalar(f(x + alpha * p))
        if f_new <= fx + c * alpha * grad_dot:
            return alpha, f_new
        alpha *= rho
    return alpha, to_scalar(f(x + alpha * p))


def wolfe_line_search(
    f: Objective,
    grad: GradientFn,
    x: Array,
    p: Array,
    fx: Optional[float] = None,
    grad_fx: Optional[Array] = None,
    alpha0: float = 1.0,
    c1: float = 1e-4,
    c2: float = 0.9,
    max_iter: int = 40,
) -> tuple[float, float]:
    """Perform a strong Wolfe line search using bracketing and zoom.

    Raises
    ------
    SolverError
        If ``p`` is not a descent direction.
    """
    if not (0 < c1 < c2 < 1):
        raise ValueError("Require 0 < c1 < c2 < 1 for Wolfe conditions.")

    values: Dict[float, float] = {}
    if fx is not None:
        values[0.0] = float(fx)

    def phi(alpha: float) -> float:
        if alpha not in values:
            values[alpha] = to_scalar(f(x + alpha * p))
        return values[alpha]

    def phi_prime(alpha: float) -> float:
        return float(np.dot(grad(x + alpha * p), p))

    alpha_prev = 0.0
    phi0 = phi(0.0)
    der0 = float(np.dot(grad_fx, p)) if grad_fx is not None else phi_prime(0.0)
    if der0 >= 0:
        raise SolverError("Search direction must be a descent direction.")
    alpha = float(alpha0)
    phi_prev = phi0

    for iteration in range(max_iter):
        phi_alpha = phi(alpha)
        if phi_alpha > phi0 + c1 * alpha * der0 or (
            iteration > 0 and phi_alpha >= phi_prev
        ):
            alpha = _zoom(phi, phi_prime, alpha_prev, alpha, phi0, der0, c1, c2)
            return alpha, phi(alpha)
        der_alpha = phi_prime(alpha)
        if abs(der_alpha) <= -c2 * der0:
            return alpha, phi_alpha
        if der_alpha >= 0:
            alpha = _zoom(phi, phi_prime, alpha, alpha_prev, phi0, der0, c1, c2)
            return alpha, phi(alpha)
        alpha_prev = alpha
        phi_prev = phi_alpha
        alpha *= 2.0
    return alpha, phi(alpha)


def _zoom(
    phi: Callable[[float], float],
    phi_prime: Callable[[float], float],
    alo: float,
    ahi: float,
    phi0: float,
    der0: float,
    c1: float,
    c2: float,
) -> float:
    """Zoom stage enforcing strong Wolfe conditions."""
    phi_alo = phi(alo)
    alpha = 0.5 * (alo + ahi)
    for _ in range(32):
        alpha = 0.5 * (alo + ahi)
        phi_alpha = phi(alpha)
        if phi_alpha > phi0 + c1 * alpha * der0 or phi_alpha >= phi_alo:
            ahi = alpha
        else:
            der_alpha = phi_prime(alpha)
            if abs(der_alpha) <= -c2 * der0:
                return alpha
            if der_alpha * (ahi - alo) > 0:
                ahi = alo
            alo = alpha
            phi_alo = phi_alpha
        if abs(ahi - alo) < 1e-12:
            break
    return alpha


__all__ = ["backtracking_armijo", "wolfe_line_search"]
