"""Pytest configuration and shared fixtures for iterflow tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- Small reference problems used across the test suite
"""

import os

import numpy as np
import pytest
import torch

from iterflow import FunctionProblem, Solver
from iterflow.diagnostics import set_debug_enabled


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    This ensures tests are reproducible while allowing override for debugging.

    Returns:
        A seeded numpy.random.Generator instance.
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function")
def torch_rng() -> torch.Generator:
    """Provide a deterministic torch RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).

    Returns:
        A seeded torch.Generator instance.
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    generator = torch.Generator()
    generator.manual_seed(seed)
    return generator


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds(rng: np.random.Generator, torch_rng: torch.Generator) -> None:
    """Auto-use fixture to set global random seeds for reproducibility."""
    np.random.seed(int(os.environ.get("TEST_RNG_SEED", "0")))
    torch.manual_seed(int(os.environ.get("TEST_RNG_SEED", "0")))


@pytest.fixture(scope="function", autouse=True)
def debug_off():
    """Run every test with debug mode off unless the test enables it."""
    set_debug_enabled(False)
    yield
    set_debug_enabled(False)


@pytest.fixture
def square_problem() -> FunctionProblem:
    """f(x) = sum(x^2) with its gradient."""
    return FunctionProblem(fun=lambda x: float(np.sum(x**2)), grad=lambda x: 2 * x)


@pytest.fixture
def quadratic():
    """Strictly convex quadratic 0.5 x'Ax - b'x as ``(problem, minimizer)``."""
    A = np.array([[3.0, 0.5], [0.5, 2.0]])
    b = np.array([1.0, -1.0])
    problem = FunctionProblem(
        fun=lambda x: float(0.5 * x @ (A @ x) - b @ x),
        grad=lambda x: A @ x - b,
        hess=lambda _: A,
    )
    return problem, np.linalg.solve(A, b)


class ConstantCost(Solver):
    """Keeps the parameter and reports the same cost every iteration."""

    name = "Constant"

    def __init__(self, value: float = 1.0) -> None:
        self.value = value

    def next_iter(self, problem, state):
        x = state.take_param()
        return state.set_param(x).set_cost(self.value), None


@pytest.fixture
def constant_solver() -> ConstantCost:
    return ConstantCost()
