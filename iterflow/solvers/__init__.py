"""Bundled solvers built on the iterflow solver contract.

The numpy-based solvers (Newton, BFGS, L-BFGS, trust region) follow Nocedal &
Wright. :class:`GradientDescent` also accepts torch tensors.
"""

from .gradient import GradientDescent
from .line_search import backtracking_armijo, wolfe_line_search
from .newton import Newton
from .population import ParticleSwarm
from .quasi_newton import BFGS, LBFGS
from .trust_region import TrustRegion, dogleg_step
from .utils import (
    approx_grad,
    approx_hessian,
    check_convergence,
    compute_gradient,
    compute_hessian,
    is_pos_def,
    safe_solve,
)

__all__ = [
    "BFGS",
    "GradientDescent",
    "LBFGS",
    "Newton",
    "ParticleSwarm",
    "TrustRegion",
    "approx_grad",
    "approx_hessian",
    "backtracking_armijo",
    "check_convergence",
    "compute_gradient",
    "compute_hessian",
    "dogleg_step",
    "is_pos_def",
    "safe_solve",
    "wolfe_line_search",
]
