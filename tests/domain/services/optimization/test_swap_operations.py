"""Tests for SwapOperator neighbor moves."""

import random
from collections import Counter

import pytest

from team_balancer.config.settings import SwapConfig
from team_balancer.domain.models import AssignedPlayer
from team_balancer.domain.services.optimization import SwapOperator
from team_balancer.domain.services.optimization.solution_utils import (
    clone_solution,
    conforms_to_composition,
)
from team_balancer.domain.services.rating_service import make_rating_lookup

lookup = make_rating_lookup(1500.0)


def seat(player, position):
    return AssignedPlayer(player, position, lookup(player, position))


def operator(seed=0, **overrides):
    return SwapOperator(lookup, SwapConfig(**overrides), random.Random(seed))


def composition_of(solution):
    return [Counter(m.assigned_position for m in team) for team in solution]


class TestPlainSwap:
    def test_swaps_same_position_between_teams(self, player_factory):
        """Test that a plain swap exchanges same-position players across teams."""
        a = player_factory(1, ["OH"], 1600)
        b = player_factory(2, ["OH"], 1400)
        solution = [[seat(a, "OH")], [seat(b, "OH")]]
        assert operator().plain_swap(solution)
        assert [[m.id for m in team] for team in solution] == [["2"], ["1"]]

    def test_no_shared_position(self, player_factory):
        """Test that a plain swap fails when the teams share no position."""
        solution = [
            [seat(player_factory(1, ["S"]), "S")],
            [seat(player_factory(2, ["MB"]), "MB")],
        ]
        assert not operator().plain_swap(solution)

    def test_single_team_is_noop(self, player_factory):
        """Test that a plain swap needs at least two teams."""
        solution = [[seat(player_factory(1, ["S"]), "S")]]
        assert not operator().plain_swap(solution)


class TestAdaptiveSwap:
    def test_narrows_gap_when_possible(self, player_factory):
        """Weakest of the strong team (1600) swaps with the best of the weak team (1500)."""
        strong = [
            seat(player_factory(1, ["OH"], 1800), "OH"),
            seat(player_factory(2, ["OH"], 1600), "OH"),
        ]
        weak = [
            seat(player_factory(3, ["OH"], 1500), "OH"),
            seat(player_factory(4, ["OH"], 1300), "OH"),
        ]
        solution = [strong, weak]
        assert operator(strong_weak_swap_probability=1.0).adaptive_swap(solution)
        assert sorted(m.id for m in solution[0]) == ["1", "3"]
        assert sorted(m.id for m in solution[1]) == ["2", "4"]

    def test_falls_back_to_plain_swap(self, player_factory):
        """When the exchange would widen the gap a plain swap is made instead."""
        strong = [
            seat(player_factory(1, ["OH"], 1500), "OH"),
            seat(player_factory(2, ["OH"], 1500), "OH"),
        ]
        weak = [
            seat(player_factory(3, ["OH"], 1600), "OH"),
            seat(player_factory(4, ["OH"], 1000), "OH"),
        ]
        solution = [strong, weak]
        assert operator(strong_weak_swap_probability=1.0).adaptive_swap(solution)
        assert composition_of(solution) == [Counter({"OH": 2}), Counter({"OH": 2})]


class TestPositionCompatibleSwaps:
    def test_in_team_swap_exchanges_positions(self, player_factory):
        """Test that an in-team swap exchanges positions and refreshes ratings."""
        a = player_factory(1, ["S", "OH"], {"S": 1400, "OH": 1600})
        b = player_factory(2, ["OH", "S"], {"OH": 1500, "S": 1700})
        solution = [[seat(a, "S"), seat(b, "OH")]]
        assert operator().in_team_position_swap(solution)
        positions = {m.id: (m.assigned_position, m.position_rating) for m in solution[0]}
        assert positions == {"1": ("OH", 1600), "2": ("S", 1700)}

    def test_in_team_swap_requires_mutual_eligibility(self, player_factory):
        """Test that an in-team swap needs both players eligible for the other slot."""
        a = player_factory(1, ["S", "OH"])
        b = player_factory(2, ["OH"])
        solution = [[seat(a, "S"), seat(b, "OH")]]
        assert not operator().in_team_position_swap(solution)

    def test_cross_team_swap_keeps_team_composition(self, player_factory):
        """Test that a cross-team swap keeps each team's slot positions."""
        a = player_factory(1, ["S", "OH"], {"S": 1400, "OH": 1600})
        b = player_factory(2, ["OH", "S"], {"OH": 1500, "S": 1700})
        solution = [[seat(a, "S")], [seat(b, "OH")]]
        assert operator().cross_team_position_swap(solution)
        assert solution[0][0].id == "2" and solution[0][0].assigned_position == "S"
        assert solution[1][0].id == "1" and solution[1][0].assigned_position == "OH"
        assert solution[0][0].position_rating == 1700
        assert solution[1][0].position_rating == 1600


class TestUniversalSwap:
    @pytest.mark.parametrize("seed", range(10))
    def test_preserves_composition_and_ids(
        self, seed, context_factory, volleyball_roster, volleyball_composition
    ):
        """Test that repeated universal swaps keep the composition intact."""
        context = context_factory(volleyball_roster, volleyball_composition, 2)
        solution = clone_solution(context.initial_solutions[0])
        swaps = operator(seed)
        for _ in range(50):
            swaps.universal_swap(solution)
            assert conforms_to_composition(solution, volleyball_composition, 2)

    def test_assigned_positions_stay_eligible(
        self, context_factory, volleyball_roster, volleyball_composition
    ):
        """Test that perturbation only seats players at eligible positions."""
        context = context_factory(volleyball_roster, volleyball_composition, 2)
        solution = clone_solution(context.initial_solutions[0])
        operator(5).perturb(solution, 200)
        for team in solution:
            for member in team:
                assert member.player.can_play(member.assigned_position)
                assert member.position_rating == lookup(member.player, member.assigned_position)

    def test_weights_select_single_move(self, player_factory):
        """With only in-team weight and no compatible pair, a plain swap is used."""
        a = player_factory(1, ["OH"], 1600)
        b = player_factory(2, ["OH"], 1400)
        solution = [[seat(a, "OH")], [seat(b, "OH")]]
        swaps = operator(
            plain_swap_weight=0.0,
            adaptive_swap_weight=0.0,
            cross_team_position_swap_weight=0.0,
            in_team_position_swap_weight=1.0,
        )
        assert swaps.universal_swap(solution)
        assert solution[0][0].id == "2"
