"""Floating-point types and tolerant comparisons shared by the engine.

All cost comparisons in iterflow go through :func:`costs_close` and
:func:`improves`. The tolerance is ``atol + rtol * max(|a|, |b|)`` where
``rtol`` is floored by the machine epsilon of the run's floating type and
``atol`` is that epsilon, so 32-bit runs are judged at 32-bit resolution and
costs far below one are still compared relative to their own scale.
"""

from __future__ import annotations

import math
from typing import Any, Union

import numpy as np
import torch

RTOL = 1e-8
# Absolute floor for gradient-norm convergence checks; costs use float_eps.
ATOL = 1e-10

DTypeLike = Union[np.dtype, type, str, torch.dtype]

_TORCH_TO_NUMPY = {
    torch.float16: np.dtype(np.float16),
    torch.float32: np.dtype(np.float32),
    torch.float64: np.dtype(np.float64),
}


def as_float_dtype(dtype: DTypeLike) -> np.dtype:
    """Normalize numpy/torch/python dtype specifications to a numpy float dtype."""
    if isinstance(dtype, torch.dtype):
        if dtype not in _TORCH_TO_NUMPY:
            raise ValueError(f"Unsupported torch floating type: {dtype}")
        return _TORCH_TO_NUMPY[dtype]
    np_dtype = np.dtype(dtype)
    if not np.issubdtype(np_dtype, np.floating):
        raise ValueError(f"Expected a floating-point dtype, got {np_dtype}")
    return np_dtype


def float_dtype_of(value: Any) -> np.dtype:
    """Infer the floating type of a parameter; non-float values map to float64."""
    if isinstance(value, torch.Tensor):
        return _TORCH_TO_NUMPY.get(value.dtype, np.dtype(np.float64))
    if isinstance(value, (np.ndarray, np.floating)):
        if np.issubdtype(value.dtype, np.floating):
            return np.dtype(value.dtype)
    return np.dtype(np.float64)


def float_eps(dtype: DTypeLike) -> float:
    """Machine epsilon of a floating type."""
    return float(np.finfo(as_float_dtype(dtype)).eps)


def tolerances(dtype: DTypeLike) -> tuple[float, float]:
    """Return ``(rtol, atol)`` used for cost comparisons at ``dtype``."""
    eps = float_eps(dtype)
    return max(RTOL, eps), eps


def costs_close(a: float, b: float, dtype: DTypeLike = np.float64) -> bool:
    """Return True if two costs are equal within the tolerance of ``dtype``."""
    a = float(a)
    b = float(b)
    if math.isnan(a) or math.isnan(b):
        return False
    if math.isinf(a) or math.isinf(b):
        return a == b
    rtol, atol = tolerances(dtype)
    return abs(a - b) <= atol + rtol * max(abs(a), abs(b))


def improves(candidate: float, best: float, dtype: DTypeLike = np.float64) -> bool:
    """Return True if ``candidate`` is strictly better than ``best`` beyond tolerance."""
    candidate = float(candidate)
    best = float(best)
    if math.isnan(candidate):
        return False
    if math.isnan(best):
        return True
    if candidate >= best:
        return False
    return not costs_close(candidate, best, dtype)


def to_scalar(value: Any) -> float:
    """Convert a cost returned by a user problem to a python float."""
    if isinstance(value, torch.Tensor):
        if value.numel() != 1:
            raise ValueError(
                f"Cost must be a scalar, got tensor with shape {tuple(value.shape)}"
            )
        return float(value.detach().cpu().item())
    arr = np.asarray(value)
    if arr.size != 1:
        raise ValueError(f"Cost must be a scalar, got array with shape {arr.shape}")
    return float(arr.reshape(()))


__all__ = [
    "ATOL",
    "DTypeLike",
    "RTOL",
    "as_float_dtype",
    "costs_close",
    "float_dtype_of",
    "float_eps",
    "improves",
    "to_scalar",
    "tolerances",
]
