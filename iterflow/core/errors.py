"""Exception hierarchy for the optimization engine.

Every error carries the :class:`Stage` at which it happened so a failed run
can always be attributed to construction, initialization, a specific
iteration, observation or checkpointing.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Stage(Enum):
    """Phase of a run an error is attached to."""

    CONSTRUCTION = "construction"
    INITIALIZATION = "initialization"
    ITERATION = "iteration"
    OBSERVATION = "observation"
    CHECKPOINT = "checkpoint"


class IterflowError(Exception):
    """Base class for all engine errors."""

    default_stage = Stage.ITERATION

    def __init__(
        self,
        message: str,
        stage: Optional[Stage] = None,
        iteration: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage if stage is not None else self.default_stage
        self.iteration = iteration

    def __str__(self) -> str:
        where = self.stage.value
        if self.iteration is not None:
            where = f"{where} {self.iteration}"
        return f"[{where}] {self.message}"


class ConfigurationError(IterflowError, ValueError):
    """Invalid executor configuration, raised before any iteration runs."""

    default_stage = Stage.CONSTRUCTION


class CapabilityNotImplementedError(IterflowError, NotImplementedError):
    """The wrapped problem does not provide a capability a solver called."""

    def __init__(
        self,
        capability: str,
        problem_type: str,
        stage: Optional[Stage] = None,
        iteration: Optional[int] = None,
    ) -> None:
        self.capability = capability
        self.problem_type = problem_type
        super().__init__(
            f"Problem {problem_type!r} does not implement capability {capability!r}.",
            stage=stage,
            iteration=iteration,
        )


class SolverError(IterflowError, RuntimeError):
    """Numerical or domain failure inside a solver step."""


class StateError(IterflowError, RuntimeError):
    """Iteration state contract violation (e.g. a parameter taken and never restored)."""


class ObserverError(IterflowError):
    """An observer sink failed while receiving a snapshot."""

    default_stage = Stage.OBSERVATION


class CheckpointIOError(IterflowError):
    """A checkpoint could not be written or read."""

    default_stage = Stage.CHECKPOINT


__all__ = [
    "CapabilityNotImplementedError",
    "CheckpointIOError",
    "ConfigurationError",
    "IterflowError",
    "ObserverError",
    "SolverError",
    "Stage",
    "StateError",
]
