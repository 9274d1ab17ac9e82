"""Population-based optimization (particle swarm)."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import numpy as np

from ..core.capabilities import Capability
from ..core.kv import KV
from ..core.problem import Problem
from ..core.solver import Solver, StepResult
from ..core.state import IterState
from ..numeric import to_scalar


class ParticleSwarm(Solver):
    """
    Particle Swarm Optimization (PSO) within box bounds.

    Every iteration moves all particles once and evaluates them with a single
    ``Problem.bulk_cost`` call, so a problem with a native ``bulk_cost`` (or
    an executor built with ``parallel=True``) evaluates the swarm at once.
    The current parameter of the state is the global best position.

    Parameters
    ----------
    bounds : sequence of two arrays
        Lower and upper bounds, each of shape ``(n_params,)``.
    num_particles : int
        Swarm size.
    inertia_weight : float
        Inertia weight for velocity update.
    cognitive_coef : float
        Cognitive coefficient (personal best influence).
    social_coef : float
        Social coefficient (global best influence).
    seed : int, optional
        Seed of the swarm's random generator.
    """

    name = "Particle Swarm Optimization"
    requires = frozenset({Capability.COST})
    state_attrs = (
        "positions",
        "velocities",
        "pbest_pos",
        "pbest_val",
        "gbest_pos",
        "gbest_val",
    )

    def __init__(
        self,
        bounds: Sequence[Any],
        num_particles: int = 30,
        inertia_weight: float = 0.7,
        cognitive_coef: float = 1.5,
        social_coef: float = 1.5,
        seed: Optional[int] = None,
    ) -> None:
        lower, upper = bounds
        self.lower_bounds = np.asarray(lower, dtype=float)
        self.upper_bounds = np.asarray(upper, dtype=float)
        if self.lower_bounds.shape != self.upper_bounds.shape:
            raise ValueError("Lower and upper bounds must have the same shape.")
        if np.any(self.lower_bounds >= self.upper_bounds):
            raise ValueError("Lower bounds must be strictly below upper bounds.")
        if num_particles < 1:
            raise ValueError("num_particles must be at least 1.")
        self.num_particles = num_particles
        self.inertia_weight = inertia_weight
        self.cognitive_coef = cognitive_coef
        self.social_coef = social_coef
        self.rng = np.random.default_rng(seed)

        self.positions: Optional[np.ndarray] = None
        self.velocities: Optional[np.ndarray] = None
        self.pbest_pos: Optional[np.ndarray] = None
        self.pbest_val: Optional[np.ndarray] = None
        self.gbest_pos: Optional[np.ndarray] = None
        self.gbest_val: float = np.inf

    @property
    def n_params(self) -> int:
        return self.lower_bounds.size

    def state_dict(self) -> Dict[str, Any]:
        state = super().state_dict()
        state["rng_state"] = self.rng.bit_generator.state
        return state

    def load_state_dict(self, state: Dict[str, Any]) -> None:
        super().load_state_dict(state)
        if "rng_state" in state:
            self.rng.bit_generator.state = state["rng_state"]

    def _evaluate(self, problem: Problem, positions: np.ndarray) -> np.ndarray:
        costs = problem.bulk_cost([p.copy() for p in positions])
        return np.array([to_scalar(c) for c in costs], dtype=float)

    def init(self, problem: Problem, state: IterState) -> StepResult:
        param_range = self.upper_bounds - self.lower_bounds
        shape = (self.num_particles, self.n_params)
        self.positions = self.lower_bounds + self.rng.random(shape) * param_range
        if state.param is not None:
            x0 = np.asarray(state.param, dtype=float).reshape(-1)
            self.positions[0] = np.clip(x0, self.lower_bounds, self.upper_bounds)
        self.velocities = self.rng.uniform(-1, 1, shape) * param_range * 0.1

        values = self._evaluate(problem, self.positions)
        self.pbest_pos = self.positions.copy()
        self.pbest_val = values
        best = int(np.argmin(values))
        self.gbest_pos = self.positions[best].copy()
        self.gbest_val = float(values[best])

        state.set_param(self.gbest_pos.copy()).set_cost(self.gbest_val)
        return state, KV().push("num_particles", self.num_particles)

    def next_iter(self, problem: Problem, state: IterState) -> StepResult:
        param_range = self.upper_bounds - self.lower_bounds
        shape = self.positions.shape
        cognitive = self.cognitive_coef * self.rng.random(shape) * (self.pbest_pos - self.positions)
        social = self.social_coef * self.rng.random(shape) * (self.gbest_pos - self.positions)
        self.velocities = self.inertia_weight * self.velocities + cognitive + social
        # Limit velocity to prevent explosion
        self.velocities = np.clip(self.velocities, -param_range, param_range)
        self.positions = np.clip(self.positions + self.velocities, self.lower_bounds, self.upper_bounds)

        values = self._evaluate(problem, self.positions)
        improved = values < self.pbest_val
        self.pbest_pos[improved] = self.positions[improved]
        self.pbest_val[improved] = values[improved]
        best = int(np.argmin(self.pbest_val))
        if self.pbest_val[best] < self.gbest_val:
            self.gbest_pos = self.pbest_pos[best].copy()
            self.gbest_val = float(self.pbest_val[best])

        state.set_param(self.gbest_pos.copy()).set_cost(self.gbest_val)
        kv = KV().push("improved", int(np.count_nonzero(improved))).push(
            "spread", float(np.mean(np.std(self.positions, axis=0)))
        )
        return state, kv


__all__ = ["ParticleSwarm"]
