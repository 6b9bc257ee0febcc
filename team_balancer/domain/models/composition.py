"""Composition models and feasibility validation results."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

Composition = Dict[str, int]


def normalize_composition(composition: Composition) -> Composition:
    """Upper-case position codes and drop positions with a zero count.

    Negative counts are kept so that validation can report them.
    """
    normalized: Composition = {}
    for code, count in composition.items():
        code = code.strip().upper()
        if count != 0:
            normalized[code] = normalized.get(code, 0) + int(count)
    return normalized


def active_positions(composition: Composition) -> List[str]:
    """Positions with a positive per-team count, in composition order."""
    return [code for code, count in composition.items() if count > 0]


class ValidationIssue(BaseModel):
    """One violated constraint or warning."""

    message: str = Field(..., min_length=1)
    position: Optional[str] = Field(None, description="Position code, if any")
    needed: Optional[int] = Field(None, ge=0)
    available: Optional[int] = Field(None, ge=0)


class CompositionValidation(BaseModel):
    """Feasibility check outcome, reported on success and failure alike."""

    is_valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    total_players_needed: int = Field(0, ge=0)
    total_available_players: int = Field(0, ge=0)
    unused_player_count: int = Field(0, ge=0)
    players_per_team: int = Field(0, ge=0)

    @property
    def error_messages(self) -> List[str]:
        return [issue.message for issue in self.errors]

    @property
    def warning_messages(self) -> List[str]:
        return [issue.message for issue in self.warnings]


class CompositionSuggestion(BaseModel):
    """A named composition and how many teams the roster can field with it."""

    name: str
    composition: Composition
    max_teams: int = Field(..., ge=0)
    players_per_team: int = Field(..., ge=0)
