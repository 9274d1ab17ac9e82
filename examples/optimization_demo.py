"""
Example: Running solvers with the iterflow executor

This example drives the bundled solvers on classic test functions and shows
the pieces around a run: termination conditions, observers, checkpointing
with resume, and multistart.
"""

import logging
import tempfile

import numpy as np

from iterflow import (
    Executor,
    ExecutorConfig,
    FileCheckpoint,
    HistoryObserver,
    InterruptFlag,
    LoggingObserver,
    Observer,
    ObserverMode,
    best_result,
    configure_logging,
    get_logger,
    run_multistart,
)
from iterflow.solvers import BFGS, GradientDescent, Newton, ParticleSwarm, TrustRegion


class Rosenbrock:
    """Rosenbrock function with analytic derivatives."""

    def cost(self, x: np.ndarray) -> float:
        return float((1 - x[0]) ** 2 + 100 * (x[1] - x[0] ** 2) ** 2)

    def gradient(self, x: np.ndarray) -> np.ndarray:
        return np.array(
            [
                -2 * (1 - x[0]) - 400 * x[0] * (x[1] - x[0] ** 2),
                200 * (x[1] - x[0] ** 2),
            ]
        )

    def hessian(self, x: np.ndarray) -> np.ndarray:
        return np.array(
            [
                [1200 * x[0] ** 2 - 400 * x[1] + 2, -400 * x[0]],
                [-400 * x[0], 200],
            ]
        )


def example_solver_comparison():
    """Example: Same problem, several solvers."""
    print("=" * 60)
    print("Example 1: Solver Comparison on the Rosenbrock Function")
    print("=" * 60)

    x0 = np.array([-1.2, 1.0])
    solvers = [
        GradientDescent(lr=1e-3, momentum=True),
        Newton(lambda_reg=1e-3),
        BFGS(),
        TrustRegion(),
    ]
    for solver in solvers:
        result = Executor(Rosenbrock(), solver, param=x0, config=ExecutorConfig(max_iters=500)).run()
        print(
            f"{solver.name:<24} cost={result.best_cost:.3e} "
            f"iters={result.iterations:<4} reason={result.termination_reason}"
        )
    print()


def example_observers():
    """Example: Watching a run with observers."""
    print("=" * 60)
    print("Example 2: Observers")
    print("=" * 60)

    history = HistoryObserver()
    logger = get_logger("examples")
    configure_logging(level=logging.INFO)
    result = (
        Executor(Rosenbrock(), BFGS(), param=np.array([-1.2, 1.0]), config=ExecutorConfig(max_iters=100))
        .add_observer(history)
        .add_observer(LoggingObserver(logger=logger), ObserverMode.every(10))
        .run()
    )
    configure_logging(level=logging.WARNING)
    print(f"Recorded {history.num_iterations()} iterations, best cost {history.best_cost():.3e}")
    print(result)
    print()


def example_checkpoint_resume():
    """Example: Interrupt a run and resume it from a checkpoint."""
    print("=" * 60)
    print("Example 3: Checkpointing and Resume")
    print("=" * 60)

    class StopAt(Observer):
        def __init__(self, flag: InterruptFlag, iteration: int) -> None:
            self.flag = flag
            self.iteration = iteration

        def observe_iter(self, snapshot) -> None:
            if snapshot.iteration == self.iteration:
                self.flag.set()

    bounds = (np.full(2, -2.0), np.full(2, 2.0))
    with tempfile.TemporaryDirectory() as directory:
        backend = FileCheckpoint(directory)
        flag = InterruptFlag()
        first = (
            Executor(
                Rosenbrock(),
                ParticleSwarm(bounds, num_particles=20, seed=0),
                config=ExecutorConfig(max_iters=60),
                interrupt=flag,
            )
            .add_observer(StopAt(flag, 20))
            .checkpointing(backend, identifier="pso")
            .run()
        )
        print(f"First run:   {first.termination_reason} after {first.iterations} iterations")

        resumed = (
            Executor(Rosenbrock(), ParticleSwarm(bounds, num_particles=20, seed=0), config=ExecutorConfig(max_iters=60))
            .checkpointing(backend, identifier="pso", resume=True)
            .run()
        )
        print(f"Resumed run: {resumed.termination_reason} after {resumed.iterations} iterations")
        print(f"Best cost {resumed.best_cost:.3e} using {resumed.counts['cost']} cost evaluations")
    print()


def example_multistart():
    """Example: Several starting points, keep the best."""
    print("=" * 60)
    print("Example 4: Multistart")
    print("=" * 60)

    rng = np.random.default_rng(0)
    executors = [
        Executor(Rosenbrock(), TrustRegion(), param=rng.uniform(-2, 2, size=2), config=ExecutorConfig(max_iters=100))
        for _ in range(4)
    ]
    results = run_multistart(executors)
    for i, result in enumerate(results):
        print(f"Start {i}: cost={result.best_cost:.3e} iters={result.iterations}")
    best = best_result(results)
    print(f"Best: {best.best_param} with cost {best.best_cost:.3e}")
    print()


if __name__ == "__main__":
    example_solver_comparison()
    example_observers()
    example_checkpoint_resume()
    example_multistart()
    print("All examples completed.")
