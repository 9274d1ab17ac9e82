"""Tests for core diagnostic functions."""

import numpy as np
import pytest
import torch

from iterflow import IterState, StateError
from iterflow.diagnostics import (
    assert_best_monotone,
    assert_consistent_param,
    assert_param_present,
    check_state,
    param_signature,
)


def test_param_signature() -> None:
    """Test signatures of numpy, torch and opaque parameters."""
    assert param_signature(np.zeros((2, 3), dtype=np.float32)) == ("numpy", (2, 3), "float32")
    assert param_signature(torch.zeros(4, dtype=torch.float64)) == ("torch", (4,), "torch.float64")
    assert param_signature([1.0, 2.0]) is None


def test_assert_param_present() -> None:
    """Test that taken or missing parameters are reported."""
    state = IterState(param=np.ones(2))
    assert_param_present(state)

    state.take_param()
    with pytest.raises(StateError, match="taken"):
        assert_param_present(state)

    with pytest.raises(StateError, match="no current parameter"):
        assert_param_present(IterState())


def test_assert_consistent_param() -> None:
    """Test that kind, shape and dtype changes are detected."""
    x = np.ones(3)
    assert_consistent_param(x, x + 1.0)

    with pytest.raises(StateError, match="changed the parameter"):
        assert_consistent_param(x, np.ones(4))
    with pytest.raises(StateError):
        assert_consistent_param(x, x.astype(np.float32))
    with pytest.raises(StateError):
        assert_consistent_param(x, torch.ones(3, dtype=torch.float64))

    # opaque parameters are not checked
    assert_consistent_param([1.0], [1.0, 2.0])


def test_assert_best_monotone() -> None:
    """Test that an increasing best cost is flagged beyond tolerance only."""
    state = IterState(param=np.ones(1))
    state.best_cost = 1.0
    assert_best_monotone(2.0, state)
    assert_best_monotone(1.0 - 1e-12, state)

    with pytest.raises(StateError, match="increased"):
        assert_best_monotone(0.5, state)

    # nothing to compare against before the first cost
    assert_best_monotone(float("inf"), state)


def test_check_state_runs_all_checks() -> None:
    """Test check_state on a valid and an invalid step."""
    before = IterState(param=np.ones(2))
    before.best_cost = 3.0

    after = before.copy()
    after.set_param(np.zeros(2))
    after.best_cost = 2.0
    check_state(after, before)

    after.best_cost = 4.0
    with pytest.raises(StateError):
        check_state(after, before)
