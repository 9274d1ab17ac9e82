"""Engine core: problem wrapper, iteration state, termination and the run loop."""

from .capabilities import (
    Capability,
    CostFunction,
    Gradient,
    Hessian,
    Jacobian,
    Operator,
    implements,
    missing_capabilities,
)
from .errors import (
    CapabilityNotImplementedError,
    CheckpointIOError,
    ConfigurationError,
    IterflowError,
    ObserverError,
    SolverError,
    Stage,
    StateError,
)
from .interrupt import InterruptFlag, sigint_sets
from .kv import KV
from .problem import FunctionProblem, Problem
from .state import TAKEN, IterState
from .termination import TerminationKind, TerminationPolicy, TerminationReason
from .solver import SOLVER_NAME_KEY, Solver, StepResult
from .result import OptimizationResult, best_result
from .config import ExecutorConfig
from .executor import Executor, run
from .multistart import run_multistart

__all__ = [
    "SOLVER_NAME_KEY",
    "Capability",
    "CapabilityNotImplementedError",
    "CheckpointIOError",
    "ConfigurationError",
    "CostFunction",
    "Executor",
    "ExecutorConfig",
    "FunctionProblem",
    "Gradient",
    "Hessian",
    "InterruptFlag",
    "IterState",
    "IterflowError",
    "Jacobian",
    "KV",
    "ObserverError",
    "Operator",
    "OptimizationResult",
    "Problem",
    "Solver",
    "SolverError",
    "Stage",
    "StateError",
    "StepResult",
    "TAKEN",
    "TerminationKind",
    "TerminationPolicy",
    "TerminationReason",
    "best_result",
    "implements",
    "missing_capabilities",
    "run",
    "run_multistart",
    "sigint_sets",
]
