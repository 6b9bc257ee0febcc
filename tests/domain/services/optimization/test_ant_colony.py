"""Tests for AntColonySolver."""

import asyncio
import dataclasses
import random

import numpy as np
import pytest

from team_balancer.config.settings import AntColonyConfig
from team_balancer.domain.services.optimization import AntColonySolver
from team_balancer.domain.services.optimization.solution_utils import (
    conforms_to_composition,
    position_priority,
)


@pytest.fixture
def context(context_factory, volleyball_roster, volleyball_composition):
    return context_factory(volleyball_roster, volleyball_composition, 2)


def priority_of(context):
    return position_priority(
        context.composition, context.team_count, context.players_by_position
    )


class TestPheromones:
    def test_initial_matrix_per_player_and_team(self, context):
        """Test that every player starts with one uniform trail per team."""
        solver = AntColonySolver(AntColonyConfig(initial_pheromone=2.0), random.Random(0))
        matrix = solver.initial_pheromones(context)
        assert len(matrix) == 12
        assert all(trail.shape == (2,) for trail in matrix.values())
        assert all(np.all(trail == 2.0) for trail in matrix.values())

    def test_evaporation_and_deposit(self, player_factory, context_factory):
        """Test evaporation plus the ant and elitist deposits on the used cells."""
        players = [player_factory(1, ["OH"], 1500), player_factory(2, ["OH"], 1600)]
        context = context_factory(players, {"OH": 1}, 2)
        solver = AntColonySolver(
            AntColonyConfig(evaporation_rate=0.5, pheromone_deposit=10.0, elitist_weight=2.0),
            random.Random(0),
        )
        matrix = solver.initial_pheromones(context)
        first, second = context.players_by_position["OH"]
        solution = [[first.copy()], [second.copy()]]

        solver.update_pheromones(matrix, [(solution, 4.0)], solution, 4.0)

        # 1.0 * 0.5 + 10 / 5 + 10 * 2 / 5
        assert matrix[first.id][0] == pytest.approx(6.5)
        assert matrix[first.id][1] == pytest.approx(0.5)
        assert matrix[second.id][1] == pytest.approx(6.5)
        assert matrix[second.id][0] == pytest.approx(0.5)

    def test_no_best_no_elitist_deposit(self, context):
        """Test that only evaporation applies when there is no best solution."""
        solver = AntColonySolver(AntColonyConfig(evaporation_rate=0.1), random.Random(0))
        matrix = solver.initial_pheromones(context)
        solver.update_pheromones(matrix, [], None, float("inf"))
        assert all(np.allclose(trail, 0.9) for trail in matrix.values())


class TestConstruction:
    def test_construct_fills_composition(self, context, volleyball_composition):
        """Test that constructed solutions fill the composition without repeats."""
        solver = AntColonySolver(rng=random.Random(1))
        matrix = solver.initial_pheromones(context)
        for _ in range(10):
            solution = solver.construct(context, matrix, priority_of(context))
            assert conforms_to_composition(solution, volleyball_composition, 2)
            ids = [m.id for team in solution for m in team]
            assert len(ids) == len(set(ids))

    def test_construct_gives_up_on_short_pool(self, context):
        """Test that construction returns None when a position runs out of players."""
        solver = AntColonySolver(rng=random.Random(1))
        matrix = solver.initial_pheromones(context)
        greedy = dataclasses.replace(context, composition={"OH": 5})
        assert solver.construct(greedy, matrix, ["OH"]) is None

    def test_roulette_follows_weight(self):
        """Test that roulette selection never picks zero-weight entries."""
        solver = AntColonySolver(rng=random.Random(2))
        picks = {solver._roulette(np.array([0.0, 0.0, 5.0])) for _ in range(50)}
        assert picks == {2}

    def test_roulette_uniform_on_zero_weights(self):
        """Test that all-zero weights fall back to a uniform pick."""
        solver = AntColonySolver(rng=random.Random(3))
        picks = {solver._roulette(np.zeros(3)) for _ in range(200)}
        assert picks == {0, 1, 2}


class TestSolve:
    def test_returns_conforming_solution(self, context, volleyball_composition):
        """Test that solve returns a solution fielding the composition."""
        solver = AntColonySolver(AntColonyConfig(ant_count=4, iterations=5), random.Random(4))
        result = asyncio.run(solver.solve(context))
        assert conforms_to_composition(result, volleyball_composition, 2)

    def test_statistics(self, context):
        """Test iteration, ant and best score statistics after a run."""
        solver = AntColonySolver(AntColonyConfig(ant_count=3, iterations=4), random.Random(5))
        result = asyncio.run(solver.solve(context))
        stats = solver.statistics()
        assert stats["iterations"] == 4
        assert stats["ants"] == 12
        assert stats["improvements"] >= 1
        assert stats["best_score"] == pytest.approx(context.evaluate(result))
