"""Domain models for the team balancer."""

from .composition import (
    Composition,
    CompositionSuggestion,
    CompositionValidation,
    ValidationIssue,
    active_positions,
    normalize_composition,
)
from .player import DEFAULT_RATING, AssignedPlayer, Player, TeamMember
from .team import BalanceQuality, BalanceReport, TeamBalanceResult, TeamStrength

__all__ = [
    "DEFAULT_RATING",
    "Player",
    "AssignedPlayer",
    "TeamMember",
    "Composition",
    "CompositionSuggestion",
    "CompositionValidation",
    "ValidationIssue",
    "active_positions",
    "normalize_composition",
    "BalanceQuality",
    "BalanceReport",
    "TeamStrength",
    "TeamBalanceResult",
]
