"""Tests for termination reasons and the termination policy precedence."""

import numpy as np
import pytest

from iterflow import InterruptFlag, IterState, TerminationKind, TerminationPolicy, TerminationReason


def make_state(iter=10, last_best_iter=0, best_cost=0.0, time=5.0):
    state = IterState(param=np.zeros(1))
    state.iter = iter
    state.last_best_iter = last_best_iter
    state.best_cost = best_cost
    state.time = time
    return state


def converged():
    return TerminationReason.solver_converged("done")


def flag_set():
    flag = InterruptFlag()
    flag.set()
    return flag


@pytest.mark.parametrize(
    "policy, solver_reason, expected",
    [
        # interrupt beats target cost
        (TerminationPolicy(target_cost=1.0, interrupt=flag_set()), None, TerminationKind.INTERRUPTED),
        # target cost beats max iterations
        (TerminationPolicy(target_cost=1.0, max_iters=10), None, TerminationKind.TARGET_COST),
        # max iterations beats max time
        (TerminationPolicy(max_iters=10, max_time=1.0), None, TerminationKind.MAX_ITERATIONS),
        # max time beats no improvement
        (TerminationPolicy(max_time=1.0, max_no_improvement=2), None, TerminationKind.MAX_TIME),
        # no improvement beats solver convergence
        (TerminationPolicy(max_no_improvement=2), converged(), TerminationKind.NO_IMPROVEMENT),
        # solver convergence when nothing else holds
        (TerminationPolicy(max_iters=100), converged(), TerminationKind.SOLVER_CONVERGED),
        # nothing holds
        (TerminationPolicy(max_iters=100), None, TerminationKind.RUNNING),
    ],
)
def test_policy_precedence(policy, solver_reason, expected):
    assert policy.evaluate(make_state(), solver_reason).kind is expected


def test_all_conditions_at_once_reports_interrupt():
    policy = TerminationPolicy(
        max_iters=1,
        max_time=1.0,
        target_cost=1.0,
        max_no_improvement=1,
        interrupt=flag_set(),
    )
    assert policy.evaluate(make_state(), converged()).kind is TerminationKind.INTERRUPTED


def test_target_cost_ignores_nan_best():
    policy = TerminationPolicy(target_cost=1.0)
    state = make_state(best_cost=float("nan"))
    assert not policy.evaluate(state).terminated


def test_no_improvement_window_payload():
    reason = TerminationPolicy(max_no_improvement=3).evaluate(make_state(iter=5, last_best_iter=1))
    assert reason == TerminationReason.no_improvement(3)
    assert str(reason) == "No improvement in 3 iterations"


def test_no_improvement_not_checked_before_first_iteration():
    policy = TerminationPolicy(max_no_improvement=1)
    assert not policy.evaluate(make_state(iter=0)).terminated


def test_max_time_ignored_without_timer():
    policy = TerminationPolicy(max_time=1.0)
    assert not policy.evaluate(make_state(time=None)).terminated


def test_reason_strings():
    assert str(TerminationReason.running()) == "Running"
    assert str(TerminationReason.max_iterations()) == "Maximum number of iterations reached"
    assert str(TerminationReason.max_time()) == "Maximum time exceeded"
    assert str(TerminationReason.target_cost()) == "Target cost value reached"
    assert str(TerminationReason.solver_converged("tol")) == "Solver converged: tol"
    assert str(TerminationReason.interrupted()) == "Interrupted"
    assert str(TerminationReason.aborted("boom")) == "Aborted: boom"


def test_reason_dict_roundtrip():
    for reason in (
        TerminationReason.running(),
        TerminationReason.no_improvement(7),
        TerminationReason.solver_converged("x"),
        TerminationReason.aborted("y"),
    ):
        assert TerminationReason.from_dict(reason.to_dict()) == reason


def test_running_is_not_terminated():
    assert not TerminationReason.running().terminated
    assert TerminationReason.max_time().terminated
