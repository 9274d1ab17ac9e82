"""Run loop driving a solver on a problem.

Example
-------
>>> import numpy as np
>>> from iterflow import Executor, ExecutorConfig, FunctionProblem
>>> from iterflow.solvers import GradientDescent
>>> problem = FunctionProblem(fun=lambda x: float(x @ x), grad=lambda x: 2 * x)
>>> result = Executor(
...     problem,
...     GradientDescent(lr=0.1),
...     param=np.array([10.0]),
...     config=ExecutorConfig(max_iters=50),
... ).run()
>>> result.best_cost < 1e-6
True
"""

from __future__ import annotations

import dataclasses
import time
from contextlib import nullcontext
from typing import Any, List, Optional

from ..checkpointing.base import Checkpoint, CheckpointingFrequency
from ..diagnostics import check_state, is_debug_enabled
from ..logging import get_logger
from ..observers.base import Observer, ObserverMode, Observers, ObserverSnapshot
from .capabilities import missing_capabilities
from .config import ExecutorConfig
from .errors import (
    CheckpointIOError,
    ConfigurationError,
    IterflowError,
    ObserverError,
    SolverError,
    Stage,
)
from .interrupt import InterruptFlag, sigint_sets
from .kv import KV
from .problem import Problem
from .result import OptimizationResult
from .solver import SOLVER_NAME_KEY, Solver
from .state import IterState
from .termination import TerminationKind, TerminationReason

logger = get_logger(__name__)

# Runs stopped by these reasons continue when resumed from a checkpoint.
_RESUMABLE = (TerminationKind.INTERRUPTED, TerminationKind.ABORTED)


class Executor:
    """
    Drive ``solver`` on ``problem`` until a termination condition holds.

    The executor owns the counting problem wrapper, the iteration state, the
    termination policy, the observers and the checkpoint backend. Solvers only
    implement single iterations.

    Args:
        problem: User problem (any subset of the capability methods) or an
            existing :class:`Problem` wrapper.
        solver: Solver instance.
        param: Initial parameter.
        config: Run limits and switches. Defaults to ``ExecutorConfig()``.
        parallel: Evaluate bulk calls on a thread pool.
        max_workers: Thread pool size for parallel bulk calls.
        interrupt: Flag that stops the run at the next iteration boundary.
            A fresh flag is created when omitted.

    Raises:
        ConfigurationError: If ``solver`` is not a :class:`Solver`, or if the
            problem lacks a required capability and ``strict_capabilities``
            is set.
    """

    def __init__(
        self,
        problem: Any,
        solver: Solver,
        param: Any = None,
        config: Optional[ExecutorConfig] = None,
        parallel: bool = False,
        max_workers: Optional[int] = None,
        interrupt: Optional[InterruptFlag] = None,
    ) -> None:
        if not isinstance(solver, Solver):
            raise ConfigurationError(f"Expected a Solver instance, got {type(solver).__name__}.")
        self.problem = problem if isinstance(problem, Problem) else Problem(
            problem, parallel=parallel, max_workers=max_workers
        )
        self.solver = solver
        self.param = param
        self.config = config if config is not None else ExecutorConfig()
        self.interrupt = interrupt if interrupt is not None else InterruptFlag()
        self.observers = Observers()

        self._checkpoint: Optional[Checkpoint] = None
        self._frequency = CheckpointingFrequency.NEVER
        self._identifier = "iterflow"
        self._resume = False
        self._mandatory = False
        self._started = 0.0
        self._offset = 0.0

        self._check_capabilities()

    def __repr__(self) -> str:
        return f"Executor(solver={self.solver!r}, problem={self.problem!r})"

    def _check_capabilities(self) -> None:
        missing = missing_capabilities(self.problem.problem, self.solver.requires)
        if not missing:
            return
        names = ", ".join(c.value for c in missing)
        message = (
            f"Solver {self.solver.name!r} requires capabilities the problem "
            f"{type(self.problem.problem).__name__!r} does not implement: {names}."
        )
        if self.config.strict_capabilities:
            raise ConfigurationError(message)
        logger.warning("%s The run will fail when they are first used.", message)

    # -- builder --------------------------------------------------------

    def configure(self, **changes: Any) -> "Executor":
        """Replace configuration fields, validating the new configuration."""
        try:
            self.config = dataclasses.replace(self.config, **changes)
        except TypeError as exc:
            raise ConfigurationError(f"Invalid configuration field: {exc}") from exc
        if "strict_capabilities" in changes:
            self._check_capabilities()
        return self

    def add_observer(
        self,
        observer: Observer,
        mode: ObserverMode = ObserverMode.ALWAYS,
        fatal: bool = False,
    ) -> "Executor":
        self.observers.add(observer, mode, fatal)
        return self

    def checkpointing(
        self,
        backend: Checkpoint,
        frequency: CheckpointingFrequency = CheckpointingFrequency.ALWAYS,
        identifier: str = "iterflow",
        resume: bool = False,
        mandatory: bool = False,
    ) -> "Executor":
        """
        Attach a checkpoint backend.

        Args:
            backend: Where snapshots are stored.
            frequency: Which iterations are saved. The terminal iteration is
                saved unless the frequency is NEVER.
            identifier: Name the snapshots are stored under.
            resume: Restore from ``identifier`` at the start of :meth:`run`
                when a snapshot exists.
            mandatory: Abort the run when a checkpoint cannot be read or
                written. Otherwise such failures are logged and reported on
                ``result.errors``.
        """
        self._checkpoint = backend
        self._frequency = frequency
        self._identifier = identifier
        self._resume = resume
        self._mandatory = mandatory
        return self

    # -- run ------------------------------------------------------------

    def run(self) -> OptimizationResult:
        """
        Run the optimization.

        Solver, observer and checkpoint failures never raise out of this
        method: the run ends with an ABORTED reason and the error is on
        ``result.error``. Non-fatal failures are collected on
        ``result.errors``.
        """
        guard = sigint_sets(self.interrupt) if self.config.ctrlc else nullcontext()
        with guard:
            return self._run()

    def _run(self) -> OptimizationResult:
        errors: List[IterflowError] = []
        policy = self.config.termination_policy(self.interrupt)
        solver_name = self.solver.name

        try:
            state = self._restore()
        except CheckpointIOError as exc:
            if self._mandatory:
                logger.error("Cannot resume run: %s", exc)
                state = self._fresh_state()
                state.terminate_with(TerminationReason.aborted(exc.message))
                return self._result(state, exc, errors)
            logger.warning("Cannot resume run, starting fresh: %s", exc)
            errors.append(exc)
            state = None

        self._started = time.perf_counter()
        if state is not None:
            self._offset = state.time or 0.0
            kv: Optional[KV] = None
            logger.info("Resuming %s at iteration %d", solver_name, state.iter)
        else:
            self._offset = 0.0
            state = self._fresh_state()
            self._update_time(state)
            logger.info("Starting %s", solver_name)
            try:
                state, kv = self.solver.init(self.problem, state)
                state.check_restored()
            except Exception as exc:
                error = self._wrap(exc, Stage.INITIALIZATION, None)
                logger.error("%s initialization failed: %s", solver_name, error)
                state = self._fresh_state()
                state.set_counts(self.problem.counts)
                self._update_time(state)
                state.terminate_with(TerminationReason.aborted(error.message))
                self._finish(state, KV(), errors)
                return self._result(state, error, errors)
            state.update_best()
            state.set_counts(self.problem.counts)
            self._update_time(state)

        try:
            errors.extend(self.observers.observe_init(solver_name, kv if kv is not None else KV()))
        except ObserverError as exc:
            logger.error("Observer failed at initialization: %s", exc)
            state.terminate_with(TerminationReason.aborted(exc.message))
            return self._result(state, exc, errors)

        state.terminate_with(policy.evaluate(state))
        if state.terminated:
            # stopped before the first iteration; the terminal snapshot is still delivered
            self._finish(state, kv if kv is not None else KV(), errors)

        while not state.terminated:
            before = state.copy()
            try:
                state, kv = self.solver.next_iter(self.problem, state)
                state.check_restored()
                kv = KV().merge(kv)
                state.increment_iter()
                state.update_best()
                state.set_counts(self.problem.counts)
                self._update_time(state)
                if is_debug_enabled():
                    check_state(state, before)
            except Exception as exc:
                error = self._wrap(exc, Stage.ITERATION, before.iter + 1)
                logger.error("%s aborted: %s", solver_name, error)
                state = before
                state.set_counts(self.problem.counts)
                self._update_time(state)
                state.terminate_with(TerminationReason.aborted(error.message))
                self._finish(state, KV(), errors)
                return self._result(state, error, errors)

            state.terminate_with(policy.evaluate(state, self.solver.terminate(state)))

            try:
                errors.extend(self.observers.dispatch(ObserverSnapshot.from_state(state, kv, solver_name)))
            except ObserverError as exc:
                logger.error("%s aborted by observer: %s", solver_name, exc)
                state.terminate_with(TerminationReason.aborted(exc.message))
                error = self._save(state, errors, final=True)
                if error is not None:
                    errors.append(error)
                return self._result(state, exc, errors)

            error = self._save(state, errors, final=state.terminated)
            if error is not None:
                state.terminate_with(TerminationReason.aborted(error.message))
                self._finish(state, KV(), errors, checkpoint=False)
                return self._result(state, error, errors)

        logger.info(
            "%s terminated after %d iterations: %s (best cost %s)",
            solver_name,
            state.iter,
            state.termination_reason,
            state.best_cost,
        )
        return self._result(state, None, errors)

    # -- helpers --------------------------------------------------------

    def _fresh_state(self) -> IterState:
        return IterState(param=self.param, float_dtype=self.config.float_dtype)

    def _update_time(self, state: IterState) -> None:
        if self.config.timer:
            state.time = self._offset + (time.perf_counter() - self._started)

    def _restore(self) -> Optional[IterState]:
        if self._checkpoint is None or not self._resume:
            return None
        try:
            loaded = self._checkpoint.load(self._identifier)
        except CheckpointIOError:
            raise
        except Exception as exc:
            raise CheckpointIOError(
                f"Cannot load checkpoint {self._identifier!r}: {exc}", stage=Stage.INITIALIZATION
            ) from exc
        if loaded is None:
            logger.info("No checkpoint %r found; starting fresh.", self._identifier)
            return None
        solver_snapshot, state_snapshot = loaded
        name = solver_snapshot.get(SOLVER_NAME_KEY) if isinstance(solver_snapshot, dict) else None
        if name != self.solver.name:
            raise CheckpointIOError(
                f"Checkpoint {self._identifier!r} was written by solver {name!r}, "
                f"not {self.solver.name!r}.",
                stage=Stage.INITIALIZATION,
            )
        try:
            state = IterState.from_dict(state_snapshot)
            self.solver.load_state_dict(solver_snapshot)
        except (KeyError, TypeError, ValueError) as exc:
            raise CheckpointIOError(
                f"Checkpoint {self._identifier!r} is malformed: {exc}", stage=Stage.INITIALIZATION
            ) from exc
        self.problem.restore_counts(state.counts)
        if state.termination_reason.kind in _RESUMABLE:
            state.termination_reason = TerminationReason.running()
        return state

    def _save(self, state: IterState, errors: List[IterflowError], final: bool) -> Optional[CheckpointIOError]:
        """Save a checkpoint if due. Returns the error when it must abort the run."""
        if self._checkpoint is None or not self._frequency.should_save(state.iter, final):
            return None
        try:
            self._checkpoint.save(self._identifier, self.solver.state_dict(), state.to_dict())
        except Exception as exc:
            if isinstance(exc, CheckpointIOError):
                error = exc
            else:
                error = CheckpointIOError(f"Cannot save checkpoint {self._identifier!r}: {exc}")
                error.__cause__ = exc
            error.iteration = state.iter
            if self._mandatory:
                logger.error("Mandatory checkpoint failed: %s", error)
                return error
            logger.warning("%s", error)
            errors.append(error)
        return None

    def _finish(self, state: IterState, kv: KV, errors: List[IterflowError], checkpoint: bool = True) -> None:
        """Emit the terminal observation (and checkpoint) of a run that ends outside the loop body."""
        try:
            errors.extend(self.observers.dispatch(ObserverSnapshot.from_state(state, kv, self.solver.name)))
        except ObserverError as exc:
            logger.warning("%s", exc)
            errors.append(exc)
        if checkpoint:
            error = self._save(state, errors, final=True)
            if error is not None:
                errors.append(error)

    @staticmethod
    def _wrap(exc: Exception, stage: Stage, iteration: Optional[int]) -> IterflowError:
        if isinstance(exc, IterflowError):
            if exc.iteration is None:
                exc.iteration = iteration
            if exc.stage is not stage and exc.stage is Stage.ITERATION:
                exc.stage = stage
            return exc
        error = SolverError(f"{type(exc).__name__}: {exc}", stage=stage, iteration=iteration)
        error.__cause__ = exc
        return error

    def _result(
        self, state: IterState, error: Optional[IterflowError], errors: List[IterflowError]
    ) -> OptimizationResult:
        return OptimizationResult(problem=self.problem, state=state, error=error, errors=tuple(errors))


def run(problem: Any, solver: Solver, param: Any = None, **config: Any) -> OptimizationResult:
    """Convenience wrapper: build an :class:`Executor` and run it once."""
    return Executor(problem, solver, param=param, config=ExecutorConfig(**config)).run()


__all__ = ["Executor", "run"]
