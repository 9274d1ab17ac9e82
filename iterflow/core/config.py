"""Executor configuration."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..numeric import DTypeLike
from .errors import ConfigurationError
from .interrupt import InterruptFlag
from .termination import TerminationPolicy


@dataclass(frozen=True)
class ExecutorConfig:
    """
    Limits and switches of an optimization run.

    Every field is optional; a run without any stop condition stops only when
    the solver reports convergence or an interrupt arrives.

    Args:
        max_iters: Maximum number of completed iterations.
        max_time: Maximum elapsed wall time in seconds. Requires ``timer``.
        target_cost: Stop as soon as the best cost is at or below this value.
        max_no_improvement: Stop after this many iterations without an
            improvement of the best cost.
        timer: Measure elapsed time. Defaults to True.
        ctrlc: Route SIGINT to the run's interrupt flag while it runs.
            Defaults to False.
        strict_capabilities: Raise at construction when the problem lacks a
            capability the solver requires, instead of logging a warning and
            failing at first use. Defaults to False.
        float_dtype: Floating type used for the cost tolerance. Inferred from
            the initial parameter when None.

    Raises:
        ConfigurationError: If the limits are inconsistent.
    """

    max_iters: Optional[int] = None
    max_time: Optional[float] = None
    target_cost: Optional[float] = None
    max_no_improvement: Optional[int] = None
    timer: bool = True
    ctrlc: bool = False
    strict_capabilities: bool = False
    float_dtype: Optional[DTypeLike] = None

    def __post_init__(self) -> None:
        if self.max_iters is not None:
            if self.max_iters < 0:
                raise ConfigurationError(f"max_iters must be non-negative, got {self.max_iters}.")
            if self.max_iters == 0 and not self._has_other_stop_condition():
                raise ConfigurationError(
                    "max_iters=0 with no other stop condition would never run an iteration."
                )
        if self.max_time is not None:
            if not self.max_time > 0:
                raise ConfigurationError(f"max_time must be positive, got {self.max_time}.")
            if not self.timer:
                raise ConfigurationError("max_time requires timer=True.")
        if self.target_cost is not None and math.isnan(self.target_cost):
            raise ConfigurationError("target_cost must not be NaN.")
        if self.max_no_improvement is not None and self.max_no_improvement < 1:
            raise ConfigurationError(
                f"max_no_improvement must be at least 1, got {self.max_no_improvement}."
            )

    def _has_other_stop_condition(self) -> bool:
        return (
            self.max_time is not None
            or self.target_cost is not None
            or self.max_no_improvement is not None
        )

    def termination_policy(self, interrupt: Optional[InterruptFlag] = None) -> TerminationPolicy:
        return TerminationPolicy(
            max_iters=self.max_iters,
            max_time=self.max_time,
            target_cost=self.target_cost,
            max_no_improvement=self.max_no_improvement,
            interrupt=interrupt,
        )


__all__ = ["ExecutorConfig"]
