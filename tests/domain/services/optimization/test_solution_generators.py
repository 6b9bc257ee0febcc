"""Tests for SolutionGenerator and grouping helpers."""

import random
from collections import Counter

import pytest

from team_balancer.domain.services.optimization import SolutionGenerator
from team_balancer.domain.services.optimization.solution_utils import (
    conforms_to_composition,
    group_by_position,
    position_priority,
)
from team_balancer.domain.services.rating_service import make_rating_lookup

lookup = make_rating_lookup(1500.0)


@pytest.fixture
def generator(volleyball_roster, volleyball_composition):
    groups = group_by_position(volleyball_roster, lookup)
    return SolutionGenerator(volleyball_composition, 2, groups, rng=random.Random(3))


def ids(solution):
    return [[member.id for member in team] for team in solution]


class TestGroupByPosition:
    def test_multi_position_player_in_every_bucket(self, volleyball_roster):
        """Test that a flex player appears in each of their position buckets."""
        groups = group_by_position(volleyball_roster, lookup)
        assert "3" in [m.id for m in groups["S"]]
        assert "3" in [m.id for m in groups["OH"]]

    def test_rating_snapshot_per_position(self, volleyball_roster):
        """Test that each bucket entry carries the rating for that position."""
        groups = group_by_position(volleyball_roster, lookup)
        flex = {m.assigned_position: m.position_rating for m in groups["OH"] + groups["MB"] if m.id == "7"}
        assert flex == {"OH": 1650, "MB": 1500}

    def test_unrated_position_uses_default(self, player_factory):
        """Test that bucket entries for unrated positions use the default rating."""
        player = player_factory(1, ["L"])
        groups = group_by_position([player], lookup)
        assert groups["L"][0].position_rating == 1500.0

    def test_grouping_is_idempotent(self, volleyball_roster):
        """Grouping the same roster twice gives identical bucket sizes and members."""
        first = group_by_position(volleyball_roster, lookup)
        second = group_by_position(volleyball_roster, lookup)
        assert first.keys() == second.keys()
        for position in first:
            assert sorted(m.id for m in first[position]) == sorted(
                m.id for m in second[position]
            )


class TestPositionPriority:
    def test_scarcest_first(self, volleyball_roster, volleyball_composition):
        """Test that positions are ordered by eligible players per slot."""
        groups = group_by_position(volleyball_roster, lookup)
        # MB: 5 eligible for 4 slots, S: 3 for 2, OH: 6 for 4 (ties keep composition order)
        assert position_priority(volleyball_composition, 2, groups) == ["MB", "S", "OH"]

    def test_fixed_order_first(self, volleyball_roster, volleyball_composition):
        """Test that a fixed order leads and unknown codes are skipped."""
        groups = group_by_position(volleyball_roster, lookup)
        order = position_priority(volleyball_composition, 2, groups, ["OH", "L"])
        assert order == ["OH", "MB", "S"]


class TestGenerators:
    @pytest.mark.parametrize(
        "method", ["balanced", "snake_draft", "randomized", "position_focused"]
    )
    def test_fills_composition_without_duplicates(
        self, generator, volleyball_composition, method
    ):
        """Test that every generator fills the composition."""
        solution = getattr(generator, method)()
        assert conforms_to_composition(solution, volleyball_composition, 2)

    def test_balanced_round_robin_order(self, player_factory):
        """Specialists first, then by rating, dealt 1..N."""
        players = [
            player_factory(1, ["OH"], 1400),
            player_factory(2, ["OH"], 1600),
            player_factory(3, ["OH", "MB"], 1700),
            player_factory(4, ["OH"], 1500),
        ]
        groups = group_by_position(players, lookup)
        generator = SolutionGenerator({"OH": 2}, 2, groups)
        assert ids(generator.balanced()) == [["2", "1"], ["4", "3"]]

    def test_snake_draft_reverses_every_other_round(self, player_factory):
        """Test that the snake draft alternates direction each round."""
        players = [player_factory(i, ["OH"], 2000 - i * 100) for i in range(1, 7)]
        groups = group_by_position(players, lookup)
        generator = SolutionGenerator({"OH": 3}, 2, groups)
        assert ids(generator.snake_draft()) == [["1", "4", "5"], ["2", "3", "6"]]

    def test_deterministic_generators_repeat(self, generator):
        """Test that the non-random generators repeat their output."""
        assert ids(generator.balanced()) == ids(generator.balanced())
        assert ids(generator.snake_draft()) == ids(generator.snake_draft())
        assert ids(generator.position_focused()) == ids(generator.position_focused())

    def test_position_focused_takes_best_specialist(self, player_factory):
        """Test that the position-focused generator prefers specialists by rating."""
        players = [
            player_factory(1, ["MB"], 1500),
            player_factory(2, ["MB", "OH"], 1900),
            player_factory(3, ["MB"], 1700),
        ]
        groups = group_by_position(players, lookup)
        generator = SolutionGenerator({"MB": 1}, 2, groups)
        assert ids(generator.position_focused()) == [["3"], ["1"]]

    def test_short_pool_leaves_slots_unfilled(self, player_factory):
        """A pool smaller than needed never exceeds quotas or reuses players."""
        players = [player_factory(1, ["MB"], 1500), player_factory(2, ["MB"], 1600)]
        groups = group_by_position(players, lookup)
        generator = SolutionGenerator({"MB": 1}, 3, groups)
        for solution in generator.generate_pool():
            placed = [m.id for team in solution for m in team]
            assert len(placed) == 2
            assert len(set(placed)) == 2
            assert all(len(team) <= 1 for team in solution)

    def test_pool_has_one_candidate_per_generator(self, generator):
        """Test that the initial pool holds one candidate per generator."""
        assert len(generator.generate_pool()) == 4

    def test_randomized_varies_between_calls(self, player_factory):
        """Test that the randomized generator does not repeat itself."""
        players = [player_factory(i, ["OH"], 1500 + i) for i in range(12)]
        groups = group_by_position(players, lookup)
        generator = SolutionGenerator({"OH": 3}, 4, groups, rng=random.Random(1))
        results = {tuple(map(tuple, ids(generator.randomized()))) for _ in range(10)}
        assert len(results) > 1

    def test_generators_copy_bucket_entries(self, volleyball_roster, volleyball_composition):
        """Test that generated teams never share objects with the buckets."""
        groups = group_by_position(volleyball_roster, lookup)
        generator = SolutionGenerator(volleyball_composition, 2, groups)
        solution = generator.balanced()
        bucket_objects = {id(m) for members in groups.values() for m in members}
        assert not any(id(m) in bucket_objects for team in solution for m in team)

    def test_each_team_gets_position_counts(self, generator):
        """Test that each balanced team gets the composition counts."""
        for team in generator.balanced():
            assert Counter(m.assigned_position for m in team) == {"S": 1, "OH": 2, "MB": 2}
