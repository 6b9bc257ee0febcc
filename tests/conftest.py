"""Shared fixtures: player factories, small rosters and fast solver budgets."""

import random
from typing import Dict, List, Optional, Union

import pytest

from team_balancer.config.settings import TeamBalancerConfig
from team_balancer.domain.models import Player
from team_balancer.domain.services.optimization import (
    FitnessEvaluator,
    ProblemContext,
    SolutionGenerator,
)
from team_balancer.domain.services.optimization.solution_utils import group_by_position
from team_balancer.domain.services.rating_service import make_rating_lookup


def make_player(
    player_id: Union[int, str],
    positions: List[str],
    ratings: Optional[Union[float, Dict[str, float]]] = None,
    name: Optional[str] = None,
) -> Player:
    """Player with one rating for every position, or explicit per-position ratings."""
    if ratings is None:
        ratings = {}
    elif not isinstance(ratings, dict):
        ratings = {position: ratings for position in positions}
    return Player(
        id=player_id,
        name=name or f"Player{player_id}",
        positions=positions,
        ratings=ratings,
    )


@pytest.fixture
def player_factory():
    return make_player


@pytest.fixture
def volleyball_roster() -> List[Player]:
    """Enough players for two S1 OH2 MB2 teams, with a few spares and flex players."""
    return [
        make_player(1, ["S"], 1600),
        make_player(2, ["S"], 1450),
        make_player(3, ["S", "OH"], {"S": 1500, "OH": 1550}),
        make_player(4, ["OH"], 1700),
        make_player(5, ["OH"], 1500),
        make_player(6, ["OH"], 1400),
        make_player(7, ["OH", "MB"], {"OH": 1650, "MB": 1500}),
        make_player(8, ["MB"], 1550),
        make_player(9, ["MB"], 1480),
        make_player(10, ["MB"], 1620),
        make_player(11, ["MB"], 1390),
        make_player(12, ["OH"], 1520),
    ]


@pytest.fixture
def volleyball_composition() -> Dict[str, int]:
    return {"S": 1, "OH": 2, "MB": 2}


@pytest.fixture
def fast_config() -> TeamBalancerConfig:
    """Small budgets so the full portfolio runs in well under a second."""
    return TeamBalancerConfig(
        optimizer={"random_seed": 42, "adaptive_parameters": False},
        genetic_algorithm={
            "population_size": 8,
            "generation_count": 10,
            "elitism_count": 2,
            "tournament_size": 3,
            "max_stagnation": 5,
            "stagnation_mutation_threshold": 3,
        },
        tabu_search={
            "iterations": 40,
            "neighbor_count": 5,
            "multi_start_count": 2,
            "diversification_frequency": 15,
            "restart_stagnation": 10,
            "tabu_tenure": 20,
        },
        simulated_annealing={"iterations": 300, "reheat_iterations": 100},
        ant_colony={"ant_count": 4, "iterations": 5},
        constraint_programming={"max_backtracks": 2000},
        local_search={"iterations": 40, "neighborhood_size": 6},
    )


@pytest.fixture
def context_factory(fast_config):
    """Build a ProblemContext the way the optimizer does."""

    def build(
        players: List[Player],
        composition: Dict[str, int],
        team_count: int,
        seed: int = 7,
        balancer_config: Optional[TeamBalancerConfig] = None,
    ) -> ProblemContext:
        cfg = balancer_config or fast_config
        lookup = make_rating_lookup(cfg.balance.default_rating)
        players_by_position = group_by_position(players, lookup)
        generator = SolutionGenerator(
            composition, team_count, players_by_position, rng=random.Random(seed)
        )
        return ProblemContext(
            composition=composition,
            team_count=team_count,
            players_by_position=players_by_position,
            initial_solutions=generator.generate_pool(),
            evaluator=FitnessEvaluator(cfg.fitness),
            rating_lookup=lookup,
            swap_config=cfg.swap,
        )

    return build
