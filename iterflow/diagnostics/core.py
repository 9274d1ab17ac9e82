"""Consistency checks for iteration states.

The executor runs these after every iteration when debug mode is enabled.
They are too costly (or too strict for exotic parameter types) to run on
every production run.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Tuple

import numpy as np
import torch

from ..core.errors import StateError
from ..core.state import TAKEN, IterState
from ..numeric import costs_close


def param_signature(param: Any) -> Optional[Tuple[str, Tuple[int, ...], str]]:
    """
    Return ``(kind, shape, dtype)`` for array-like parameters.

    Parameters that are neither numpy arrays nor torch tensors have no
    signature and are not checked.
    """
    if isinstance(param, torch.Tensor):
        return ("torch", tuple(param.shape), str(param.dtype))
    if isinstance(param, np.ndarray):
        return ("numpy", param.shape, param.dtype.name)
    return None


def assert_param_present(state: IterState) -> None:
    """
    Assert that the state carries a current parameter.

    Raises
    ------
    StateError
        If the parameter was taken or never set.
    """
    if state.param is TAKEN:
        raise StateError("Current parameter was taken and never restored.", iteration=state.iter)
    if state.param is None:
        raise StateError("State has no current parameter.", iteration=state.iter)


def assert_consistent_param(before: Any, after: Any, iteration: Optional[int] = None) -> None:
    """
    Assert that a solver step kept the parameter's kind, shape and dtype.

    Raises
    ------
    StateError
        If the signatures of ``before`` and ``after`` differ.
    """
    sig_before = param_signature(before)
    sig_after = param_signature(after)
    if sig_before is None or sig_after is None:
        return
    if sig_before != sig_after:
        raise StateError(
            f"Solver changed the parameter from {sig_before} to {sig_after}.",
            iteration=iteration,
        )


def assert_best_monotone(previous_best: float, state: IterState) -> None:
    """
    Assert that the best cost did not increase beyond tolerance.

    Raises
    ------
    StateError
        If ``state.best_cost`` is worse than ``previous_best``.
    """
    best = state.best_cost
    if math.isnan(previous_best) or math.isinf(previous_best):
        return
    if best > previous_best and not costs_close(best, previous_best, state.float_dtype):
        raise StateError(
            f"Best cost increased from {previous_best} to {best}.",
            iteration=state.iter,
        )


def check_state(state: IterState, before: IterState) -> None:
    """Run all consistency checks on ``state`` against the pre-step copy ``before``."""
    assert_param_present(state)
    if before.param is not None and before.param is not TAKEN:
        assert_consistent_param(before.param, state.param, iteration=state.iter)
    assert_best_monotone(before.best_cost, state)
