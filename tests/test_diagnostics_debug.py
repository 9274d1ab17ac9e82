"""Tests for debug mode functionality."""

import numpy as np

from iterflow import Executor, ExecutorConfig, Solver, StateError
from iterflow.diagnostics import (
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
)
from iterflow.solvers import GradientDescent


def test_debug_mode_toggle_and_context() -> None:
    """Test debug mode toggling and context manager."""
    original = is_debug_enabled()

    try:
        set_debug_enabled(False)
        assert not is_debug_enabled()

        with debug_context(True):
            assert is_debug_enabled()

        # Back to previous (False in this block)
        assert not is_debug_enabled()

        set_debug_enabled(True)
        assert is_debug_enabled()

        with debug_context(False):
            assert not is_debug_enabled()

        # Back to True
        assert is_debug_enabled()
    finally:
        set_debug_enabled(original)


def test_debug_context_nested() -> None:
    """Test nested debug contexts."""
    original = is_debug_enabled()

    try:
        set_debug_enabled(False)
        assert not is_debug_enabled()

        with debug_context(True):
            assert is_debug_enabled()

            with debug_context(False):
                assert not is_debug_enabled()

            # Back to True
            assert is_debug_enabled()

        # Back to False
        assert not is_debug_enabled()
    finally:
        set_debug_enabled(original)


def test_well_behaved_solver_passes_checks_in_debug_mode(square_problem) -> None:
    """Test that a correct solver runs unchanged with the state checks on."""
    original = is_debug_enabled()

    try:
        set_debug_enabled(True)
        checked = Executor(
            square_problem, GradientDescent(lr=0.1), param=np.array([1.0]), config=ExecutorConfig(max_iters=10)
        ).run()
        assert checked.error is None

        set_debug_enabled(False)
        unchecked = Executor(
            square_problem, GradientDescent(lr=0.1), param=np.array([1.0]), config=ExecutorConfig(max_iters=10)
        ).run()
        assert checked.best_cost == unchecked.best_cost
    finally:
        set_debug_enabled(original)


def test_shape_change_caught_in_debug_mode(square_problem) -> None:
    """Test that a solver changing the parameter shape aborts in debug mode."""

    class Grows(Solver):
        name = "Grows"

        def next_iter(self, problem, state):
            x = state.take_param()
            x = np.append(x, 0.0)
            return state.set_param(x).set_cost(problem.cost(x)), None

    with debug_context(True):
        result = Executor(square_problem, Grows(), param=np.ones(1), config=ExecutorConfig(max_iters=3)).run()
    assert isinstance(result.error, StateError)
    assert "(1,)" in str(result.error)
    assert result.state.param.shape == (1,)
