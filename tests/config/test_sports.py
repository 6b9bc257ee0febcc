"""Tests for sport presets."""

import pytest
from pydantic import ValidationError

from team_balancer.config.sports import SPORTS, SportConfig, get_sport_config, team_size


class TestPresets:
    @pytest.mark.parametrize("name,size", [("volleyball", 7), ("basketball", 5), ("football", 11)])
    def test_default_team_size(self, name, size):
        """Test the default team size of each preset."""
        assert get_sport_config(name).team_size == size

    def test_lookup_is_case_insensitive(self):
        """Test that sport lookup ignores case and whitespace."""
        assert get_sport_config(" Volleyball ") is SPORTS["volleyball"]

    def test_unknown_sport(self):
        """Test that an unknown sport name raises ValueError."""
        with pytest.raises(ValueError, match="Unknown sport 'curling'"):
            get_sport_config("curling")

    def test_standard_compositions_use_known_positions(self):
        """Test that every standard composition uses the sport's own positions."""
        for sport in SPORTS.values():
            for composition in sport.standard_compositions.values():
                assert set(composition) <= set(sport.positions)

    def test_labels(self):
        """Test position labels, with unknown codes returned unchanged."""
        volleyball = get_sport_config("volleyball")
        assert volleyball.label("MB") == "Middle Blocker"
        assert volleyball.label("XX") == "XX"


class TestSportConfig:
    def test_defaults_filled(self):
        """Test that weights and order default from the position table."""
        sport = SportConfig(name="Ultimate", positions={"H": "Handler", "C": "Cutter"})
        assert sport.position_weights == {"H": 1.0, "C": 1.0}
        assert sport.position_order == ["H", "C"]

    def test_unknown_composition_position_rejected(self):
        """Test that a default composition naming an unknown position is rejected."""
        with pytest.raises(ValidationError):
            SportConfig(name="Ultimate", positions={"H": "Handler"}, default_composition={"C": 2})

    def test_empty_positions_rejected(self):
        """Test that a sport without positions is rejected."""
        with pytest.raises(ValidationError):
            SportConfig(name="Nothing", positions={})


def test_team_size_ignores_non_positive_counts():
    """Test that zero and negative counts do not add to the team size."""
    assert team_size({"S": 1, "OH": 2, "L": 0, "MB": -1}) == 3
