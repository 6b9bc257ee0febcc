"""Domain services for the team balancer."""

from .composition_service import (
    max_team_count,
    suggest_alternative_compositions,
    validate_composition,
)
from .rating_service import RatingLookup, RatingService, make_rating_lookup
from .team_optimizer_service import SOLVER_REGISTRY, TeamOptimizerService

__all__ = [
    "TeamOptimizerService",
    "SOLVER_REGISTRY",
    "RatingService",
    "RatingLookup",
    "make_rating_lookup",
    "validate_composition",
    "max_team_count",
    "suggest_alternative_compositions",
]
