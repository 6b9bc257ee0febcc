"""Team strength, balance report and optimization result models."""

from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, Field

from .composition import CompositionValidation
from .player import Player, TeamMember


class BalanceQuality(str, Enum):
    """Qualitative band of the strongest-weakest strength gap."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    UNBALANCED = "unbalanced"


class TeamStrength(BaseModel):
    """Aggregated strength of one team."""

    index: int = Field(0, ge=0, description="Team position in the evaluated list")
    total_rating: float = Field(..., description="Sum of assigned position ratings")
    weighted_rating: float = Field(
        ..., description="Sum of ratings scaled by position weights"
    )
    average_rating: float = Field(..., description="Mean assigned rating")
    player_count: int = Field(..., ge=0)
    strength_rank: Optional[int] = Field(
        None, ge=1, description="1 = strongest team"
    )


class BalanceReport(BaseModel):
    """Balance evaluation of a set of teams."""

    is_balanced: bool
    max_difference: float = Field(..., ge=0.0)
    average_strength: float = 0.0
    standard_deviation: float = Field(0.0, ge=0.0)
    quality: BalanceQuality = BalanceQuality.EXCELLENT
    teams: List[TeamStrength] = Field(default_factory=list)


class TeamBalanceResult(BaseModel):
    """Everything optimize() returns."""

    teams: List[List[TeamMember]]
    balance: BalanceReport
    unused_players: List[Player] = Field(default_factory=list)
    validation: CompositionValidation
    algorithm: str
    fitness: float = Field(..., description="Fitness of the returned assignment")
    statistics: Dict[str, Any] = Field(default_factory=dict)

    @property
    def team_count(self) -> int:
        return len(self.teams)

    def player_ids(self) -> List[str]:
        return [member.id for team in self.teams for member in team]

    def to_dataframe(self) -> pd.DataFrame:
        """One row per placed player, in team order."""
        rows = []
        for team_index, team in enumerate(self.teams):
            for member in team:
                rows.append(
                    {
                        "team": team_index + 1,
                        "player_id": member.id,
                        "name": member.name,
                        "position": member.assigned_position,
                        "rating": member.position_rating,
                    }
                )
        return pd.DataFrame(
            rows, columns=["team", "player_id", "name", "position", "rating"]
        )

    def summary_dataframe(self) -> pd.DataFrame:
        """Per-team strength summary."""
        return pd.DataFrame(
            [
                {
                    "team": strength.index + 1,
                    "total_rating": strength.total_rating,
                    "average_rating": strength.average_rating,
                    "players": strength.player_count,
                    "rank": strength.strength_rank,
                }
                for strength in self.balance.teams
            ],
            columns=["team", "total_rating", "average_rating", "players", "rank"],
        )
