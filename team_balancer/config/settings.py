"""
Global Configuration System for Team Balancer

Centralized configuration for every tunable constant of the optimization engine:
fitness weights, the perturbation mixture, solver budgets and balance thresholds.
Provides type-safe configuration with validation and environment variable support.
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field, field_validator, model_validator

ENV_PREFIX = "TEAMBAL_"


class FitnessConfig(BaseModel):
    """Fitness Evaluator Configuration"""

    variance_weight: float = Field(
        default=0.5,
        description="Multiplier applied to the standard deviation of team strengths",
        ge=0.0,
        le=10.0,
    )
    position_balance_weight: float = Field(
        default=0.3,
        description="Multiplier applied to the summed per-position strength gaps",
        ge=0.0,
        le=10.0,
    )
    use_position_weights: bool = Field(
        default=False,
        description="Scale ratings by the sport's position weights when scoring. Off = plain rating sums.",
    )


class SwapConfig(BaseModel):
    """Perturbation Operator Configuration"""

    plain_swap_weight: float = Field(
        default=0.25, description="Share of same-position cross-team swaps", ge=0.0
    )
    adaptive_swap_weight: float = Field(
        default=0.25, description="Share of strength-biased swaps", ge=0.0
    )
    cross_team_position_swap_weight: float = Field(
        default=0.25,
        description="Share of position-compatible swaps between two teams",
        ge=0.0,
    )
    in_team_position_swap_weight: float = Field(
        default=0.25,
        description="Share of position-compatible swaps inside one team",
        ge=0.0,
    )
    adaptive_swap_enabled: bool = Field(
        default=True,
        description="When disabled, the adaptive share falls back to plain swaps",
    )
    strong_weak_swap_probability: float = Field(
        default=0.6,
        description="Probability that an adaptive swap targets the strongest and weakest teams",
        ge=0.0,
        le=1.0,
    )


class OptimizerConfig(BaseModel):
    """Orchestrator Configuration"""

    use_genetic_algorithm: bool = Field(default=True, description="Run the genetic algorithm")
    use_tabu_search: bool = Field(default=True, description="Run tabu search")
    use_simulated_annealing: bool = Field(
        default=True, description="Run simulated annealing"
    )
    use_ant_colony: bool = Field(default=True, description="Run ant colony optimization")
    use_constraint_programming: bool = Field(
        default=True, description="Run the constraint programming backtracker"
    )
    fallback_solvers: List[str] = Field(
        default=["genetic_algorithm", "tabu_search"],
        description="Solvers enabled for the single retry when no solver is enabled",
    )
    random_seed: Optional[int] = Field(
        default=None,
        description="Random seed for reproducibility (None = different results each run)",
    )
    position_priority: List[str] = Field(
        default=[],
        description="Fixed position order for generators and ants. Empty = scarcest position first.",
    )

    # Problem-size adaptation
    adaptive_parameters: bool = Field(
        default=True,
        description="Scale solver budgets with team_count x player_count",
    )
    small_problem_size: int = Field(
        default=60, description="Upper bound of the small preset", ge=1
    )
    medium_problem_size: int = Field(
        default=240, description="Upper bound of the medium preset", ge=1
    )
    small_problem_scale: float = Field(
        default=0.5, description="Budget factor for small problems", gt=0.0, le=1.0
    )
    large_problem_scale: float = Field(
        default=1.5, description="Budget factor for large problems", ge=1.0, le=5.0
    )

    @field_validator("fallback_solvers")
    @classmethod
    def validate_fallback_solvers(cls, v):
        known = {
            "genetic_algorithm",
            "tabu_search",
            "simulated_annealing",
            "ant_colony",
            "constraint_programming",
        }
        unknown = [name for name in v if name not in known]
        if unknown:
            raise ValueError(f"Unknown fallback solvers: {unknown}")
        if not v:
            raise ValueError("fallback_solvers must name at least one solver")
        return v

    @field_validator("position_priority")
    @classmethod
    def normalize_position_priority(cls, v):
        return [code.strip().upper() for code in v if code.strip()]


class GeneticAlgorithmConfig(BaseModel):
    """Genetic Algorithm Configuration"""

    population_size: int = Field(default=20, description="Population size", ge=2, le=500)
    generation_count: int = Field(
        default=100, description="Number of generations", ge=1, le=10000
    )
    mutation_rate: float = Field(
        default=0.2, description="Mutation probability for non-elite members", ge=0.0, le=1.0
    )
    crossover_rate: float = Field(
        default=0.7, description="Probability of breeding instead of cloning", ge=0.0, le=1.0
    )
    elitism_count: int = Field(
        default=2, description="Members carried forward unchanged", ge=0
    )
    tournament_size: int = Field(
        default=3, description="Contestants per tournament selection", ge=1
    )
    max_stagnation: int = Field(
        default=20,
        description="Generations without improvement before the worst half is replaced",
        ge=1,
    )
    stagnation_mutation_threshold: int = Field(
        default=10,
        description="Generations without improvement before the mutation rate doubles",
        ge=1,
    )
    max_mutation_rate: float = Field(
        default=0.5, description="Cap for the doubled mutation rate", ge=0.0, le=1.0
    )
    diversity_guard_enabled: bool = Field(
        default=True,
        description="Replace offspring that overlap too much with the population by random solutions",
    )
    diversity_threshold: float = Field(
        default=0.2,
        description="Minimum share of players placed on a different team than the closest sampled member",
        ge=0.0,
        le=1.0,
    )
    diversity_sample_size: int = Field(
        default=5, description="Population members sampled by the diversity guard", ge=1
    )
    yield_every: int = Field(
        default=5, description="Generations between cooperative yields", ge=1
    )


class TabuSearchConfig(BaseModel):
    """Tabu Search Configuration"""

    tabu_tenure: int = Field(
        default=100, description="Capacity of the FIFO tabu list", ge=1, le=100000
    )
    iterations: int = Field(
        default=500, description="Iterations per start", ge=1, le=1000000
    )
    neighbor_count: int = Field(
        default=15, description="Neighbors sampled per iteration", ge=1, le=1000
    )
    diversification_frequency: int = Field(
        default=150, description="Iterations between diversification jumps", ge=1
    )
    restart_stagnation: int = Field(
        default=200,
        description="Iterations without improvement before restarting from the best",
        ge=1,
    )
    restart_swaps: int = Field(
        default=5, description="Swaps applied to the best solution on restart", ge=1
    )
    multi_start_count: int = Field(
        default=3,
        description="Independent runs from different initial solutions (best is kept)",
        ge=1,
        le=20,
    )
    yield_every: int = Field(
        default=50, description="Iterations between cooperative yields", ge=1
    )


class SimulatedAnnealingConfig(BaseModel):
    """Simulated Annealing Configuration"""

    initial_temperature: float = Field(
        default=1000.0, description="Starting temperature", gt=0.0
    )
    cooling_rate: float = Field(
        default=0.995, description="Geometric cooling factor", gt=0.0, lt=1.0
    )
    min_temperature: float = Field(
        default=0.01, description="Temperature floor", gt=0.0
    )
    iterations: int = Field(
        default=8000, description="Number of iterations", ge=1, le=10000000
    )
    reheat_enabled: bool = Field(default=True, description="Reheat when stagnating")
    reheat_temperature: float = Field(
        default=500.0, description="Temperature after a reheat", gt=0.0
    )
    reheat_iterations: int = Field(
        default=1000,
        description="Iterations without improvement that trigger a reheat",
        ge=1,
    )
    adaptive_cooling: bool = Field(
        default=False,
        description="Cool once per equilibrium block and tune the rate from the acceptance ratio",
    )
    equilibrium_iterations: int = Field(
        default=100, description="Iterations per equilibrium block", ge=1
    )
    target_acceptance_high: float = Field(
        default=0.6,
        description="Acceptance ratio above which cooling speeds up",
        ge=0.0,
        le=1.0,
    )
    target_acceptance_low: float = Field(
        default=0.1,
        description="Acceptance ratio below which cooling slows down",
        ge=0.0,
        le=1.0,
    )
    cooling_adjustment: float = Field(
        default=0.005, description="Step applied to the cooling rate", gt=0.0, lt=1.0
    )
    min_cooling_rate: float = Field(
        default=0.8, description="Lower bound for the adaptive cooling rate", gt=0.0, lt=1.0
    )
    max_cooling_rate: float = Field(
        default=0.9999, description="Upper bound for the adaptive cooling rate", gt=0.0, lt=1.0
    )
    yield_every: int = Field(
        default=1000, description="Iterations between cooperative yields", ge=1
    )

    @model_validator(mode="after")
    def validate_bounds(self):
        if self.target_acceptance_low > self.target_acceptance_high:
            raise ValueError(
                "target_acceptance_low must not exceed target_acceptance_high"
            )
        if self.min_cooling_rate > self.max_cooling_rate:
            raise ValueError("min_cooling_rate must not exceed max_cooling_rate")
        return self


class AntColonyConfig(BaseModel):
    """Ant Colony Optimization Configuration"""

    ant_count: int = Field(default=20, description="Ants per iteration", ge=1, le=1000)
    iterations: int = Field(default=50, description="Number of iterations", ge=1, le=100000)
    alpha: float = Field(default=1.0, description="Pheromone exponent", ge=0.0)
    beta: float = Field(default=2.0, description="Rating heuristic exponent", ge=0.0)
    evaporation_rate: float = Field(
        default=0.1, description="Fraction of pheromone evaporated per iteration", ge=0.0, le=1.0
    )
    pheromone_deposit: float = Field(
        default=100.0, description="Deposit constant Q in Q / (1 + score)", gt=0.0
    )
    elitist_weight: float = Field(
        default=2.0, description="Extra deposit multiplier along the global best", ge=0.0
    )
    initial_pheromone: float = Field(
        default=1.0, description="Starting pheromone per player per team", gt=0.0
    )
    yield_every: int = Field(
        default=1, description="Iterations between cooperative yields", ge=1
    )


class ConstraintProgrammingConfig(BaseModel):
    """Constraint Programming Configuration"""

    max_backtracks: int = Field(
        default=10000, description="Backtrack budget before falling back", ge=0
    )
    variable_ordering: str = Field(
        default="most-constrained",
        description="'most-constrained' (smallest domain first) or 'sequential'",
    )
    value_ordering: str = Field(
        default="least-constraining",
        description="'least-constraining' or 'rating' (highest rating first)",
    )
    balance_preference: bool = Field(
        default=True,
        description="Break value-ordering ties towards the team strength average",
    )
    yield_every: int = Field(
        default=500, description="Search nodes between cooperative yields", ge=1
    )

    @field_validator("variable_ordering")
    @classmethod
    def validate_variable_ordering(cls, v):
        if v not in ["most-constrained", "sequential"]:
            raise ValueError(
                "variable_ordering must be either 'most-constrained' or 'sequential'"
            )
        return v

    @field_validator("value_ordering")
    @classmethod
    def validate_value_ordering(cls, v):
        if v not in ["least-constraining", "rating"]:
            raise ValueError(
                "value_ordering must be either 'least-constraining' or 'rating'"
            )
        return v


class LocalSearchConfig(BaseModel):
    """Local Search Refiner Configuration"""

    iterations: int = Field(default=1000, description="Iteration budget", ge=1)
    neighborhood_size: int = Field(
        default=10, description="Neighbors sampled per pass", ge=1, le=1000
    )
    perturbation_enabled: bool = Field(
        default=True, description="Perturb the best solution and continue when stuck"
    )
    max_perturbations: int = Field(
        default=3, description="Perturbations allowed per refinement", ge=0
    )
    perturbation_swaps: int = Field(
        default=3, description="Swaps applied by one perturbation", ge=1
    )
    yield_every: int = Field(
        default=100, description="Iterations between cooperative yields", ge=1
    )


class BalanceConfig(BaseModel):
    """Balance Reporting Configuration"""

    default_rating: float = Field(
        default=1500.0, description="Rating used for unrated positions", gt=0.0
    )
    balanced_threshold: float = Field(
        default=350.0,
        description="Teams count as balanced while the strength gap stays below this",
        ge=0.0,
    )
    excellent_threshold: float = Field(default=100.0, ge=0.0)
    good_threshold: float = Field(default=200.0, ge=0.0)
    fair_threshold: float = Field(default=300.0, ge=0.0)
    poor_threshold: float = Field(default=500.0, ge=0.0)


class TeamBalancerConfig(BaseModel):
    """Master Team Balancer Configuration Container"""

    fitness: FitnessConfig = Field(
        default_factory=FitnessConfig, description="Fitness Evaluator Configuration"
    )
    swap: SwapConfig = Field(
        default_factory=SwapConfig, description="Perturbation Operator Configuration"
    )
    optimizer: OptimizerConfig = Field(
        default_factory=OptimizerConfig, description="Orchestrator Configuration"
    )
    genetic_algorithm: GeneticAlgorithmConfig = Field(
        default_factory=GeneticAlgorithmConfig,
        description="Genetic Algorithm Configuration",
    )
    tabu_search: TabuSearchConfig = Field(
        default_factory=TabuSearchConfig, description="Tabu Search Configuration"
    )
    simulated_annealing: SimulatedAnnealingConfig = Field(
        default_factory=SimulatedAnnealingConfig,
        description="Simulated Annealing Configuration",
    )
    ant_colony: AntColonyConfig = Field(
        default_factory=AntColonyConfig, description="Ant Colony Configuration"
    )
    constraint_programming: ConstraintProgrammingConfig = Field(
        default_factory=ConstraintProgrammingConfig,
        description="Constraint Programming Configuration",
    )
    local_search: LocalSearchConfig = Field(
        default_factory=LocalSearchConfig, description="Local Search Configuration"
    )
    balance: BalanceConfig = Field(
        default_factory=BalanceConfig, description="Balance Reporting Configuration"
    )

    @model_validator(mode="after")
    def validate_config_consistency(self):
        """Validate cross-field consistency"""
        swap_total = (
            self.swap.plain_swap_weight
            + self.swap.adaptive_swap_weight
            + self.swap.cross_team_position_swap_weight
            + self.swap.in_team_position_swap_weight
        )
        if swap_total <= 0:
            raise ValueError("swap weights must sum to a positive value")

        ga = self.genetic_algorithm
        if ga.elitism_count >= ga.population_size:
            raise ValueError(
                "genetic_algorithm.elitism_count must be smaller than population_size"
            )
        if ga.tournament_size > ga.population_size:
            raise ValueError(
                "genetic_algorithm.tournament_size must not exceed population_size"
            )

        if self.optimizer.small_problem_size >= self.optimizer.medium_problem_size:
            raise ValueError(
                "optimizer.small_problem_size must be smaller than medium_problem_size"
            )

        thresholds = [
            self.balance.excellent_threshold,
            self.balance.good_threshold,
            self.balance.fair_threshold,
            self.balance.poor_threshold,
        ]
        if thresholds != sorted(thresholds):
            raise ValueError(
                "balance quality thresholds must be ordered excellent <= good <= fair <= poor"
            )

        return self


def _coerce_env_value(value: str):
    """Convert an environment string to bool, None, int, float or str."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("none", "null"):
        return None
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    if "," in value:
        return [item.strip() for item in value.split(",") if item.strip()]
    try:
        return float(value)
    except ValueError:
        return value


def _collect_env_overrides(environ: Dict[str, str]) -> Dict[str, Dict]:
    """Parse TEAMBAL_{SECTION}_{FIELD} variables into nested overrides."""
    # Longest first so "genetic_algorithm" wins over a shorter prefix
    sections = sorted(TeamBalancerConfig.model_fields.keys(), key=len, reverse=True)

    env_overrides: Dict[str, Dict] = {}
    for env_var, value in environ.items():
        if not env_var.startswith(ENV_PREFIX):
            continue
        remainder = env_var[len(ENV_PREFIX) :].lower()
        for section in sections:
            if remainder.startswith(section + "_"):
                field = remainder[len(section) + 1 :]
                if field:
                    env_overrides.setdefault(section, {})[field] = _coerce_env_value(
                        value
                    )
                break
        else:
            logger.debug(f"Ignoring unrecognised config variable {env_var}")

    return env_overrides


def load_config(
    config_path: Optional[Path] = None, config_data: Optional[Dict] = None
) -> TeamBalancerConfig:
    """
    Load configuration with environment variable overrides and optional config file

    Args:
        config_path: Optional path to a JSON configuration file
        config_data: Optional dictionary of configuration data

    Environment variables can override any config value using the pattern:
    TEAMBAL_{SECTION}_{FIELD} = value

    Example: TEAMBAL_SIMULATED_ANNEALING_COOLING_RATE=0.99
    """
    config_dict: Dict = {}

    if config_path and config_path.exists():
        try:
            with open(config_path, "r") as f:
                if config_path.suffix.lower() == ".json":
                    config_dict = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"⚠️ Failed to load config file {config_path}: {e}")

    if config_data:
        for section, values in config_data.items():
            if isinstance(values, dict) and isinstance(config_dict.get(section), dict):
                config_dict[section].update(values)
            else:
                config_dict[section] = values

    for section, fields in _collect_env_overrides(dict(os.environ)).items():
        if not isinstance(config_dict.get(section), dict):
            config_dict[section] = {}
        config_dict[section].update(fields)

    try:
        return TeamBalancerConfig(**config_dict)
    except ValueError as e:
        logger.warning(f"⚠️ Configuration validation failed: {e}")
        logger.warning("Using default configuration...")
        return TeamBalancerConfig()


# Global configuration instance
config = load_config()
