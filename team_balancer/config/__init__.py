"""
Team Balancer Configuration Module

Provides centralized configuration management for the optimization engine.
Import the global config instance to access all configuration values.

Usage:
    from team_balancer.config import config

    # Fitness weights
    variance_weight = config.fitness.variance_weight

    # Solver budgets
    iterations = config.simulated_annealing.iterations
"""

from .settings import (
    AntColonyConfig,
    BalanceConfig,
    ConstraintProgrammingConfig,
    FitnessConfig,
    GeneticAlgorithmConfig,
    LocalSearchConfig,
    OptimizerConfig,
    SimulatedAnnealingConfig,
    SwapConfig,
    TabuSearchConfig,
    TeamBalancerConfig,
    config,
    load_config,
)
from .sports import SPORTS, SportConfig, get_sport_config, team_size

__all__ = [
    "TeamBalancerConfig",
    "FitnessConfig",
    "SwapConfig",
    "OptimizerConfig",
    "GeneticAlgorithmConfig",
    "TabuSearchConfig",
    "SimulatedAnnealingConfig",
    "AntColonyConfig",
    "ConstraintProgrammingConfig",
    "LocalSearchConfig",
    "BalanceConfig",
    "SportConfig",
    "SPORTS",
    "get_sport_config",
    "team_size",
    "config",
    "load_config",
]
