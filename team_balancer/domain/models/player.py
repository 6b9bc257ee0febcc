"""Player domain models.

- Player: immutable roster entry with eligible positions and per-position ratings
- AssignedPlayer: lightweight working copy placed in a team slot during search
- TeamMember: output view of an assigned player
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RATING = 1500.0


class Player(BaseModel):
    """
    Roster entry consumed by the optimizer.

    Never mutated during optimization; solvers work on AssignedPlayer copies.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique player identifier")
    name: str = Field(..., min_length=1, description="Display name")
    positions: List[str] = Field(
        ..., min_length=1, description="Eligible position codes"
    )
    ratings: Dict[str, float] = Field(
        default_factory=dict, description="Position code to skill rating"
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Union[int, str]) -> str:
        """Numeric ids from JSON are accepted and stored as strings."""
        if isinstance(v, bool):
            raise ValueError("id must be a string or integer")
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        trimmed = v.strip()
        if not trimmed:
            raise ValueError("name must not be blank")
        return trimmed

    @field_validator("positions")
    @classmethod
    def normalize_positions(cls, v: List[str]) -> List[str]:
        """Upper-case, strip and de-duplicate while keeping order."""
        normalized: List[str] = []
        for code in v:
            code = code.strip().upper()
            if code and code not in normalized:
                normalized.append(code)
        if not normalized:
            raise ValueError("positions must contain at least one position code")
        return normalized

    @field_validator("ratings")
    @classmethod
    def validate_ratings(cls, v: Dict[str, float]) -> Dict[str, float]:
        normalized = {}
        for code, rating in v.items():
            if not math.isfinite(rating):
                raise ValueError(f"rating for {code} must be finite")
            normalized[code.strip().upper()] = float(rating)
        return normalized

    def rating_for(self, position: str, default: float = DEFAULT_RATING) -> float:
        """Rating at a position, or the default for unrated positions."""
        return self.ratings.get(position, default)

    def can_play(self, position: str) -> bool:
        return position in self.positions

    @property
    def is_specialist(self) -> bool:
        """True when the player is eligible for a single position."""
        return len(self.positions) == 1


@dataclass(slots=True)
class AssignedPlayer:
    """A player occupying one position slot of a team.

    Copied on every clone of a candidate solution, so it only carries a
    reference to the immutable Player plus the slot-specific fields.
    """

    player: Player
    assigned_position: str
    position_rating: float

    @property
    def id(self) -> str:
        return self.player.id

    def copy(self) -> "AssignedPlayer":
        return AssignedPlayer(self.player, self.assigned_position, self.position_rating)

    def reassign(self, position: str, rating: float) -> None:
        self.assigned_position = position
        self.position_rating = rating


class TeamMember(BaseModel):
    """Output view of a player placed in a team."""

    id: str
    name: str
    positions: List[str]
    ratings: Dict[str, float]
    assigned_position: str
    position_rating: float

    @classmethod
    def from_assigned(cls, assigned: AssignedPlayer) -> "TeamMember":
        player = assigned.player
        return cls(
            id=player.id,
            name=player.name,
            positions=list(player.positions),
            ratings=dict(player.ratings),
            assigned_position=assigned.assigned_position,
            position_rating=assigned.position_rating,
        )
