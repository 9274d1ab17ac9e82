"""Numeric backend: floating types, tolerant comparisons and array arithmetic."""

from .core import (
    ATOL,
    RTOL,
    DTypeLike,
    as_float_dtype,
    costs_close,
    float_dtype_of,
    float_eps,
    improves,
    to_scalar,
    tolerances,
)
from .ops import NUMPY_OPS, TORCH_OPS, ArrayOps, NumpyOps, TorchOps, ops_for

__all__ = [
    "ATOL",
    "ArrayOps",
    "DTypeLike",
    "NUMPY_OPS",
    "NumpyOps",
    "RTOL",
    "TORCH_OPS",
    "TorchOps",
    "as_float_dtype",
    "costs_close",
    "float_dtype_of",
    "float_eps",
    "improves",
    "ops_for",
    "to_scalar",
    "tolerances",
]
