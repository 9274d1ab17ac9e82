import numpy as np
import pytest

from iterflow import Executor, ExecutorConfig, FunctionProblem, HistoryObserver, TerminationKind
from iterflow.solvers import Newton
from iterflow.solvers import newton as newton_module


def solve(problem, solver, x0, max_iters):
    return Executor(problem, solver, param=x0, config=ExecutorConfig(max_iters=max_iters)).run()


def test_newton_solves_quadratic_in_one_step(quadratic):
    problem, expected = quadratic
    res = solve(problem, Newton(), np.array([2.0, 2.0]), max_iters=5)
    # the step lands on the minimizer, the next gradient confirms it
    assert res.termination_reason.kind is TerminationKind.SOLVER_CONVERGED
    assert res.iterations == 2
    assert np.allclose(res.state.param, expected, atol=1e-10)
    # the converged iteration stops before evaluating the Hessian
    assert res.counts["hessian"] == 1


def test_convergence_judged_on_gradient_of_current_point(quadratic):
    problem, expected = quadratic
    history = HistoryObserver()
    res = (
        Executor(problem, Newton(), param=np.array([2.0, 2.0]), config=ExecutorConfig(max_iters=5))
        .add_observer(history)
        .run()
    )
    # the first step still carries the gradient of the starting point
    assert history.snapshots[0].termination_reason is None
    assert history.snapshots[0].kv["alpha"] == 1.0
    # convergence comes from the iteration that took no step
    final = history.snapshots[-1]
    assert final.kv["alpha"] == 0.0
    assert np.allclose(res.state.grad, problem.grad(res.state.param), atol=1e-12)
    assert np.allclose(res.state.param, expected, atol=1e-10)

def test_damped_newton_rosenbrock():
    def rosen(x: np.ndarray) -> float:
        return (1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2

    def rosen_grad(x: np.ndarray) -> np.ndarray:
        return np.array(
            [
                -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
                200 * (x[1] - x[0] ** 2),
            ]
        )

    def rosen_hess(x: np.ndarray) -> np.ndarray:
        return np.array(
            [
                [1200 * x[0] ** 2 - 400 * x[1] + 2, -400 * x[0]],
                [-400 * x[0], 200],
            ]
        )

    problem = FunctionProblem(fun=rosen, grad=rosen_grad, hess=rosen_hess, dim=2)
    res = solve(problem, Newton(lambda_reg=1e-3), np.array([-1.2, 1.0]), max_iters=50)
    assert res.error is None
    assert res.state.cost < 1e-8


def test_newton_finite_difference_gradient_and_hessian():
    def fun(x: np.ndarray) -> float:
        return float(np.sum((x - 1.0) ** 2))

    problem = FunctionProblem(fun=fun, dim=2)
    res = solve(problem, Newton(finite_difference=True), np.array([2.5, -3.0]), max_iters=20)
    assert res.error is None
    assert np.allclose(res.state.param, [1.0, 1.0], atol=1e-6)
    assert res.counts["gradient"] == 0
    assert res.counts["hessian"] == 0
    assert res.counts["cost"] > res.iterations


def test_newton_with_line_search_branch():
    def fun(x: np.ndarray) -> float:
        return float((x[0] - 2) ** 2 + 0.5 * (x[1] + 1) ** 2)

    def grad(x: np.ndarray) -> np.ndarray:
        return np.array([2 * (x[0] - 2), x[1] + 1])

    def hess(_: np.ndarray) -> np.ndarray:
        return np.array([[2.0, 0.0], [0.0, 0.5]])

    problem = FunctionProblem(fun=fun, grad=grad, hess=hess, dim=2)
    res = solve(problem, Newton(use_line_search=True), np.array([0.0, 0.0]), max_iters=100)
    assert res.termination_reason.kind is TerminationKind.SOLVER_CONVERGED
    assert res.iterations > 1
    assert np.allclose(res.best_param, [2.0, -1.0])


def test_newton_safe_solve_fallback(monkeypatch: pytest.MonkeyPatch):
    original_solve = newton_module.np.linalg.solve

    call_counter = {"count": 0}

    def flaky_solve(*args, **kwargs):
        call_counter["count"] += 1
        if call_counter["count"] <= 5:
            raise np.linalg.LinAlgError
        return original_solve(*args, **kwargs)

    monkeypatch.setattr(newton_module.np.linalg, "solve", flaky_solve)

    def fun(x: np.ndarray) -> float:
        return float(np.sum((x - 1.0) ** 2))

    def grad(x: np.ndarray) -> np.ndarray:
        return 2 * (x - 1.0)

    def hess(_: np.ndarray) -> np.ndarray:
        return 2 * np.eye(2)

    problem = FunctionProblem(fun=fun, grad=grad, hess=hess, dim=2)
    res = solve(problem, Newton(), np.array([3.0, -2.0]), max_iters=20)
    assert res.termination_reason.kind is TerminationKind.SOLVER_CONVERGED
    assert np.allclose(res.state.param, [1.0, 1.0], atol=1e-6)


def test_newton_at_minimum_converges_immediately():
    def fun(x: np.ndarray) -> float:
        return float(np.sum(x**2))

    def grad(x: np.ndarray) -> np.ndarray:
        return 2 * x

    def hess(_: np.ndarray) -> np.ndarray:
        return 2 * np.eye(2)

    problem = FunctionProblem(fun=fun, grad=grad, hess=hess, dim=2)
    res = solve(problem, Newton(), np.zeros(2), max_iters=10)
    assert res.termination_reason.kind is TerminationKind.SOLVER_CONVERGED
    assert res.iterations == 1


def test_newton_requires_initial_parameter(quadratic):
    problem, _ = quadratic
    res = solve(problem, Newton(), None, max_iters=3)
    assert res.error is not None
    assert "initial parameter" in str(res.error)
