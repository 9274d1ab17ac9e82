"""Tests for observer modes, dispatch and the built-in observers."""

import json
import logging
from io import StringIO

import numpy as np
import pytest

from iterflow import (
    Executor,
    ExecutorConfig,
    HistoryObserver,
    LoggingObserver,
    Observer,
    ObserverError,
    ObserverMode,
    ParamWriter,
    TerminationKind,
)
from iterflow.solvers import GradientDescent


class Failing(Observer):
    def __init__(self, at):
        self.at = at

    def observe_iter(self, snapshot):
        if snapshot.iteration == self.at:
            raise RuntimeError("sink unavailable")


class Recording(HistoryObserver):
    def __init__(self):
        super().__init__()
        self.inits = 0

    def observe_init(self, solver_name, kv):
        super().observe_init(solver_name, kv)
        self.inits += 1


def make_executor(square_problem, max_iters=10):
    return Executor(
        square_problem, GradientDescent(lr=0.1), param=np.array([1.0]), config=ExecutorConfig(max_iters=max_iters)
    )


@pytest.mark.parametrize(
    "mode, expected",
    [
        (ObserverMode.ALWAYS, list(range(1, 11))),
        (ObserverMode.every(3), [3, 6, 9, 10]),
        (ObserverMode.every(5), [5, 10]),
        (ObserverMode.NEVER, []),
    ],
)
def test_observer_modes(square_problem, mode, expected):
    history = Recording()
    make_executor(square_problem).add_observer(history, mode).run()
    assert [s.iteration for s in history.snapshots] == expected
    assert history.inits == (0 if mode == ObserverMode.NEVER else 1)


def test_invalid_modes():
    with pytest.raises(ValueError, match="n >= 1"):
        ObserverMode.every(0)
    with pytest.raises(ValueError, match="Unknown observer mode"):
        ObserverMode("sometimes")


def test_observers_notified_in_registration_order(square_problem):
    calls = []

    class Named(Observer):
        def __init__(self, name):
            self.name = name

        def observe_iter(self, snapshot):
            calls.append((snapshot.iteration, self.name))

    make_executor(square_problem, max_iters=2).add_observer(Named("a")).add_observer(Named("b")).run()
    assert calls == [(1, "a"), (1, "b"), (2, "a"), (2, "b")]


def test_snapshot_contents(square_problem):
    history = HistoryObserver()
    make_executor(square_problem, max_iters=3).add_observer(history).run()
    first, last = history.snapshots[0], history.snapshots[-1]
    assert first.solver_name == "Gradient descent"
    assert first.termination_reason is None
    assert "grad_norm" in first.kv
    assert first.counts["gradient"] == 1
    assert np.allclose(first.param, [0.8])
    assert last.final
    assert last.termination_reason.kind is TerminationKind.MAX_ITERATIONS
    assert last.elapsed is not None


def test_non_fatal_failure_is_collected(square_problem):
    history = HistoryObserver()
    result = (
        make_executor(square_problem)
        .add_observer(Failing(at=4))
        .add_observer(history)
        .run()
    )
    assert result.error is None
    assert result.iterations == 10
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], ObserverError)
    assert result.errors[0].iteration == 4
    assert isinstance(result.errors[0].__cause__, RuntimeError)
    # later observers still see the failing iteration
    assert 4 in [s.iteration for s in history.snapshots]


def test_fatal_failure_aborts_run(square_problem):
    result = make_executor(square_problem).add_observer(Failing(at=4), fatal=True).run()
    assert isinstance(result.error, ObserverError)
    assert "sink unavailable" in str(result.error)
    assert result.iterations == 4
    assert result.termination_reason.kind is TerminationKind.ABORTED


def test_param_writer(tmp_path, square_problem):
    writer = ParamWriter(tmp_path / "params")
    make_executor(square_problem, max_iters=4).add_observer(writer, ObserverMode.every(2)).run()
    files = sorted(p.name for p in (tmp_path / "params").iterdir())
    assert files == ["param_2.json", "param_4.json"]
    with open(writer.path(2), encoding="utf-8") as f:
        payload = json.load(f)
    assert payload["iteration"] == 2
    assert payload["cost"] == pytest.approx(0.64**2)


def test_param_writer_best(tmp_path, square_problem, constant_solver):
    writer = ParamWriter(tmp_path, best=True, prefix="best")
    Executor(square_problem, constant_solver, param=np.array([3.0]), config=ExecutorConfig(max_iters=2)).add_observer(
        writer
    ).run()
    assert writer.path(1).exists()
    assert writer.path(2).exists()


def test_logging_observer(square_problem):
    stream = StringIO()
    logger = logging.getLogger("iterflow_tests.progress")
    logger.propagate = False
    handler = logging.StreamHandler(stream)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    try:
        make_executor(square_problem, max_iters=2).add_observer(LoggingObserver(logger=logger)).run()
    finally:
        logger.removeHandler(handler)
    lines = stream.getvalue().splitlines()
    assert lines[0].startswith("Gradient descent, lr: 0.1")
    assert lines[1].startswith("iter: 1, cost: ")
    assert "grad_norm" in lines[1]
    assert "termination: Maximum number of iterations reached" in lines[2]
    assert len(lines) == 3
