"""iterflow - a generic execution engine for iterative optimization solvers."""

__version__ = "0.1.0"

# Engine core
from .core import (
    KV,
    TAKEN,
    Capability,
    CapabilityNotImplementedError,
    CheckpointIOError,
    ConfigurationError,
    Executor,
    ExecutorConfig,
    FunctionProblem,
    InterruptFlag,
    IterflowError,
    IterState,
    ObserverError,
    OptimizationResult,
    Problem,
    Solver,
    SolverError,
    Stage,
    StateError,
    TerminationKind,
    TerminationPolicy,
    TerminationReason,
    best_result,
    run,
    run_multistart,
)

# Persistence
from .checkpointing import (
    Checkpoint,
    CheckpointingFrequency,
    FileCheckpoint,
    InMemoryCheckpoint,
)

# Diagnostics
from .diagnostics import debug_context, is_debug_enabled, set_debug_enabled

# Logging
from .logging import configure_logging, get_logger, set_log_level

# Observers
from .observers import (
    HistoryObserver,
    LoggingObserver,
    Observer,
    ObserverMode,
    ObserverSnapshot,
    ParamWriter,
)

__all__ = [
    "Capability",
    "CapabilityNotImplementedError",
    "Checkpoint",
    "CheckpointIOError",
    "CheckpointingFrequency",
    "ConfigurationError",
    "Executor",
    "ExecutorConfig",
    "FileCheckpoint",
    "FunctionProblem",
    "HistoryObserver",
    "InMemoryCheckpoint",
    "InterruptFlag",
    "IterState",
    "IterflowError",
    "KV",
    "LoggingObserver",
    "Observer",
    "ObserverError",
    "ObserverMode",
    "ObserverSnapshot",
    "OptimizationResult",
    "ParamWriter",
    "Problem",
    "Solver",
    "SolverError",
    "Stage",
    "StateError",
    "TAKEN",
    "TerminationKind",
    "TerminationPolicy",
    "TerminationReason",
    "best_result",
    "configure_logging",
    "debug_context",
    "get_logger",
    "is_debug_enabled",
    "run",
    "run_multistart",
    "set_debug_enabled",
    "set_log_level",
]
