"""Vector arithmetic backends for numpy arrays and torch tensors.

Solvers resolve an :class:`ArrayOps` implementation once per run with
:func:`ops_for` and keep it, so the per-iteration arithmetic calls the
backend directly instead of dispatching on the parameter type each time.
"""

from __future__ import annotations

from typing import Any, Protocol

import numpy as np
import torch


class ArrayOps(Protocol):
    """Arithmetic a solver may rely on for its parameter type."""

    def add(self, x: Any, y: Any) -> Any:
        ...

    def sub(self, x: Any, y: Any) -> Any:
        ...

    def scale(self, alpha: float, x: Any) -> Any:
        ...

    def axpy(self, alpha: float, x: Any, y: Any) -> Any:
        """Return ``alpha * x + y``."""
        ...

    def dot(self, x: Any, y: Any) -> float:
        ...

    def norm(self, x: Any) -> float:
        ...

    def zeros_like(self, x: Any) -> Any:
        ...

    def copy(self, x: Any) -> Any:
        ...


class NumpyOps:
    """ArrayOps for numpy arrays (and python scalars)."""

    name = "numpy"

    def add(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return x + y

    def sub(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return x - y

    def scale(self, alpha: float, x: np.ndarray) -> np.ndarray:
        return alpha * x

    def axpy(self, alpha: float, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return alpha * x + y

    def dot(self, x: np.ndarray, y: np.ndarray) -> float:
        return float(np.vdot(x, y))

    def norm(self, x: np.ndarray) -> float:
        return float(np.linalg.norm(x))

    def zeros_like(self, x: np.ndarray) -> np.ndarray:
        return np.zeros_like(x)

    def copy(self, x: np.ndarray) -> np.ndarray:
        return np.array(x, copy=True)


class TorchOps:
    """ArrayOps for torch tensors. Results keep the input dtype and device."""

    name = "torch"

    def add(self, x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        return x + y

    def sub(self, x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        return x - y

    def scale(self, alpha: float, x: torch.Tensor) -> torch.Tensor:
        return alpha * x

    def axpy(self, alpha: float, x: torch.Tensor, y: torch.Tensor) -> torch.Tensor:
        return torch.add(y, x, alpha=alpha)

    def dot(self, x: torch.Tensor, y: torch.Tensor) -> float:
        return float(torch.sum(x * y).item())

    def norm(self, x: torch.Tensor) -> float:
        return float(torch.linalg.vector_norm(x).item())

    def zeros_like(self, x: torch.Tensor) -> torch.Tensor:
        return torch.zeros_like(x)

    def copy(self, x: torch.Tensor) -> torch.Tensor:
        return x.detach().clone()


NUMPY_OPS = NumpyOps()
TORCH_OPS = TorchOps()


def ops_for(value: Any) -> ArrayOps:
    """Return the arithmetic backend matching a parameter value."""
    if isinstance(value, torch.Tensor):
        return TORCH_OPS
    return NUMPY_OPS


__all__ = ["ArrayOps", "NUMPY_OPS", "NumpyOps", "TORCH_OPS", "TorchOps", "ops_for"]
