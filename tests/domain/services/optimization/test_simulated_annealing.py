"""Tests for SimulatedAnnealingSolver."""

import asyncio
import math
import random

import pytest

from team_balancer.config.settings import SimulatedAnnealingConfig
from team_balancer.domain.services.optimization import SimulatedAnnealingSolver
from team_balancer.domain.services.optimization.solution_utils import (
    conforms_to_composition,
)


@pytest.fixture
def context(context_factory, volleyball_roster, volleyball_composition):
    return context_factory(volleyball_roster, volleyball_composition, 2)


def run(solver, context):
    return asyncio.run(solver.solve(context))


class TestSimulatedAnnealing:
    def test_returns_conforming_solution(self, context, volleyball_composition):
        """Test that solve returns a solution fielding the composition."""
        solver = SimulatedAnnealingSolver(
            SimulatedAnnealingConfig(iterations=500), random.Random(1)
        )
        result = run(solver, context)
        assert conforms_to_composition(result, volleyball_composition, 2)

    def test_never_worse_than_best_start(self, context):
        """Test that the result is no worse than the best starting candidate."""
        start = min(context.evaluate(s) for s in context.initial_solutions)
        solver = SimulatedAnnealingSolver(
            SimulatedAnnealingConfig(iterations=500), random.Random(2)
        )
        assert context.evaluate(run(solver, context)) <= start

    def test_does_not_mutate_initial_pool(self, context):
        """Test that annealing leaves the initial pool unchanged."""
        before = [context.evaluate(s) for s in context.initial_solutions]
        run(SimulatedAnnealingSolver(SimulatedAnnealingConfig(iterations=300), random.Random(3)), context)
        assert [context.evaluate(s) for s in context.initial_solutions] == before

    def test_statistics(self, context):
        """Test iteration, temperature and best score statistics after a run."""
        solver = SimulatedAnnealingSolver(
            SimulatedAnnealingConfig(iterations=200, reheat_iterations=20), random.Random(4)
        )
        run(solver, context)
        stats = solver.statistics()
        assert stats["iterations"] == 200
        assert stats["temperature"] > 0
        assert stats["best_score"] is not None

    def test_same_seed_same_result(self, context):
        """Test that the same seed reproduces the same teams."""
        def ids(seed):
            solver = SimulatedAnnealingSolver(
                SimulatedAnnealingConfig(iterations=300), random.Random(seed)
            )
            return [[m.id for m in team] for team in run(solver, context)]

        assert ids(11) == ids(11)

    def test_adaptive_cooling_keeps_rate_in_bounds(self, context):
        """Test that adaptive cooling keeps the rate within its bounds."""
        cfg = SimulatedAnnealingConfig(
            iterations=1000,
            adaptive_cooling=True,
            equilibrium_iterations=50,
            min_cooling_rate=0.9,
            max_cooling_rate=0.999,
        )
        solver = SimulatedAnnealingSolver(cfg, random.Random(5))
        run(solver, context)
        assert 0.9 <= solver.statistics()["cooling_rate"] <= 0.999


class TestAcceptance:
    def test_improvement_always_accepted(self):
        """Test that an improving move is accepted even when cold."""
        solver = SimulatedAnnealingSolver(rng=random.Random(0))
        assert solver._accept(100.0, 50.0, 1e-9)

    def test_infinite_neighbor_rejected(self):
        """Test that a degenerate neighbor is never accepted."""
        solver = SimulatedAnnealingSolver(rng=random.Random(0))
        assert not solver._accept(100.0, math.inf, 1000.0)

    def test_leaving_infinite_current(self):
        """Test that any finite neighbor replaces a degenerate current solution."""
        solver = SimulatedAnnealingSolver(rng=random.Random(0))
        assert solver._accept(math.inf, 100.0, 1.0)

    def test_cold_temperature_rejects_worse(self):
        """Test that a near-zero temperature rejects worsening moves."""
        solver = SimulatedAnnealingSolver(rng=random.Random(0))
        assert not any(solver._accept(0.0, 100.0, 0.01) for _ in range(100))
