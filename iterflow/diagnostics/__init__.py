"""Diagnostics and debugging utilities for iterflow."""

from .core import (
    assert_best_monotone,
    assert_consistent_param,
    assert_param_present,
    check_state,
    param_signature,
)
from .debug_mode import (
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
)

__all__ = [
    "assert_best_monotone",
    "assert_consistent_param",
    "assert_param_present",
    "check_state",
    "param_signature",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
]
