"""
Configuration Utilities

Helper functions for managing Team Balancer configuration including validation,
export, and debugging utilities.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger

from .settings import ENV_PREFIX, TeamBalancerConfig


def export_config_to_json(config: TeamBalancerConfig, output_path: Path) -> None:
    """
    Export configuration to JSON file

    Args:
        config: TeamBalancerConfig instance to export
        output_path: Path where to save the JSON file
    """
    with open(output_path, "w") as f:
        json.dump(config.model_dump(), f, indent=2, default=str)

    logger.info(f"✅ Configuration exported to {output_path}")


def validate_config_file(config_path: Path) -> List[str]:
    """
    Validate a configuration file and return any issues

    Unlike load_config this does not fall back to defaults, so every
    problem in the file is reported.

    Returns:
        List of validation messages (empty if valid)
    """
    try:
        with open(config_path, "r") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        return [f"Could not read configuration file: {e}"]

    try:
        TeamBalancerConfig(**data)
    except ValueError as e:
        return [f"Configuration validation failed: {e}"]

    return []


def compare_configs(
    config1: TeamBalancerConfig, config2: TeamBalancerConfig
) -> Dict[str, Any]:
    """
    Compare two configurations and return differences keyed by dotted path
    """
    differences = {}

    def compare_dicts(d1, d2, path=""):
        for key in sorted(set(d1.keys()) | set(d2.keys())):
            current_path = f"{path}.{key}" if path else key

            if key not in d1:
                differences[current_path] = {"config1": "<missing>", "config2": d2[key]}
            elif key not in d2:
                differences[current_path] = {"config1": d1[key], "config2": "<missing>"}
            elif isinstance(d1[key], dict) and isinstance(d2[key], dict):
                compare_dicts(d1[key], d2[key], current_path)
            elif d1[key] != d2[key]:
                differences[current_path] = {"config1": d1[key], "config2": d2[key]}

    compare_dicts(config1.model_dump(), config2.model_dump())
    return differences


def print_config_summary(config: TeamBalancerConfig) -> None:
    """Log the settings that most influence optimization results."""
    opt = config.optimizer
    enabled = [
        name
        for name, flag in [
            ("genetic_algorithm", opt.use_genetic_algorithm),
            ("tabu_search", opt.use_tabu_search),
            ("simulated_annealing", opt.use_simulated_annealing),
            ("ant_colony", opt.use_ant_colony),
            ("constraint_programming", opt.use_constraint_programming),
        ]
        if flag
    ]

    logger.info("🔧 Team Balancer Configuration Summary")
    logger.info(f"  Solvers: {', '.join(enabled) or 'none'}")
    logger.info(f"  Random seed: {opt.random_seed}")
    logger.info(f"  Adaptive parameters: {opt.adaptive_parameters}")
    logger.info(
        f"  Fitness weights: variance={config.fitness.variance_weight}, "
        f"position={config.fitness.position_balance_weight}"
    )
    logger.info(
        f"  GA: {config.genetic_algorithm.population_size} x "
        f"{config.genetic_algorithm.generation_count} generations"
    )
    logger.info(
        f"  Tabu: {config.tabu_search.iterations} iterations, "
        f"tenure {config.tabu_search.tabu_tenure}, "
        f"{config.tabu_search.multi_start_count} starts"
    )
    logger.info(
        f"  SA: {config.simulated_annealing.iterations} iterations, "
        f"T0={config.simulated_annealing.initial_temperature}, "
        f"cooling={config.simulated_annealing.cooling_rate}"
    )
    logger.info(
        f"  ACO: {config.ant_colony.ant_count} ants x {config.ant_colony.iterations} iterations"
    )
    logger.info(
        f"  CP: {config.constraint_programming.max_backtracks} backtracks max"
    )
    logger.info(f"  Balanced below: {config.balance.balanced_threshold}")


def create_config_template(output_path: Path) -> None:
    """Write the default configuration as an editable JSON template."""
    export_config_to_json(TeamBalancerConfig(), output_path)


def get_env_var_examples() -> List[str]:
    """Example environment overrides for the most commonly tuned values."""
    return [
        f"{ENV_PREFIX}OPTIMIZER_RANDOM_SEED=42",
        f"{ENV_PREFIX}OPTIMIZER_USE_ANT_COLONY=false",
        f"{ENV_PREFIX}FITNESS_VARIANCE_WEIGHT=0.5",
        f"{ENV_PREFIX}SIMULATED_ANNEALING_COOLING_RATE=0.99",
        f"{ENV_PREFIX}TABU_SEARCH_TABU_TENURE=50",
        f"{ENV_PREFIX}GENETIC_ALGORITHM_DIVERSITY_GUARD_ENABLED=false",
    ]
