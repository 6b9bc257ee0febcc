"""Tests for configuration utilities."""

import json

from loguru import logger

from team_balancer.config.settings import TeamBalancerConfig, _collect_env_overrides
from team_balancer.config.utils import (
    compare_configs,
    create_config_template,
    export_config_to_json,
    get_env_var_examples,
    print_config_summary,
    validate_config_file,
)


def test_export_round_trips_through_load(tmp_path):
    """Test that an exported config file loads back into an equal config."""
    path = tmp_path / "config.json"
    original = TeamBalancerConfig(optimizer={"random_seed": 3})
    export_config_to_json(original, path)

    data = json.loads(path.read_text())
    assert data["optimizer"]["random_seed"] == 3
    assert TeamBalancerConfig(**data) == original


def test_template_holds_defaults(tmp_path):
    """Test that the generated template holds the default configuration."""
    path = tmp_path / "template.json"
    create_config_template(path)
    assert TeamBalancerConfig(**json.loads(path.read_text())) == TeamBalancerConfig()


def test_validate_config_file_valid(tmp_path):
    """Test that a valid config file reports no issues."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"tabu_search": {"tabu_tenure": 10}}))
    assert validate_config_file(path) == []


def test_validate_config_file_reports_invalid_values(tmp_path):
    """Test that out-of-range values are reported with the field name."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"genetic_algorithm": {"mutation_rate": 2.0}}))
    issues = validate_config_file(path)
    assert len(issues) == 1
    assert "mutation_rate" in issues[0]


def test_validate_config_file_reports_unreadable(tmp_path):
    """Test that a missing config file is reported as unreadable."""
    issues = validate_config_file(tmp_path / "absent.json")
    assert issues[0].startswith("Could not read configuration file")


def test_compare_configs():
    """Test that only differing fields are listed, keyed by dotted path."""
    first = TeamBalancerConfig()
    second = TeamBalancerConfig(ant_colony={"ant_count": 7})
    assert compare_configs(first, second) == {
        "ant_colony.ant_count": {"config1": 20, "config2": 7}
    }
    assert compare_configs(first, first) == {}


def test_print_config_summary_logs():
    """Test that the summary logs only the enabled solvers."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="INFO")
    try:
        print_config_summary(TeamBalancerConfig(optimizer={"use_ant_colony": False}))
    finally:
        logger.remove(handler_id)

    solvers_line = next(m for m in messages if "Solvers:" in m)
    assert "ant_colony" not in solvers_line
    assert "genetic_algorithm" in solvers_line


def test_env_var_examples_parse():
    """Test that the documented environment examples parse into overrides."""
    examples = dict(line.split("=", 1) for line in get_env_var_examples())
    overrides = _collect_env_overrides(examples)
    assert overrides["optimizer"]["random_seed"] == 42
    assert overrides["genetic_algorithm"]["diversity_guard_enabled"] is False
