"""Sport presets.

Each preset names the positions of a sport, their display labels, the
position weights used by weighted strength, the canonical in-team display
order and a default composition plus named alternatives.
"""

from typing import Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator


class SportConfig(BaseModel):
    """Positions and compositions of one sport."""

    name: str = Field(..., min_length=1, description="Sport display name")
    positions: Dict[str, str] = Field(
        ..., description="Position code to display name"
    )
    position_weights: Dict[str, float] = Field(
        default_factory=dict, description="Position code to strength multiplier"
    )
    position_order: List[str] = Field(
        default_factory=list, description="Canonical order of positions inside a team"
    )
    default_composition: Dict[str, int] = Field(
        default_factory=dict, description="Players per position per team"
    )
    standard_compositions: Dict[str, Dict[str, int]] = Field(
        default_factory=dict, description="Named alternative compositions"
    )

    @field_validator("positions")
    @classmethod
    def validate_positions(cls, v):
        if not v:
            raise ValueError("positions must not be empty")
        return v

    @model_validator(mode="after")
    def fill_defaults(self):
        """Default missing weights to 1.0 and the order to the declared positions."""
        for code in self.positions:
            self.position_weights.setdefault(code, 1.0)
        if not self.position_order:
            self.position_order = list(self.positions)
        unknown = [code for code in self.default_composition if code not in self.positions]
        if unknown:
            raise ValueError(f"default_composition uses unknown positions: {unknown}")
        return self

    def label(self, position: str) -> str:
        """Display name for a position code, falling back to the code."""
        return self.positions.get(position, position)

    @property
    def team_size(self) -> int:
        return team_size(self.default_composition)


def team_size(composition: Dict[str, int]) -> int:
    """Number of players one team needs under a composition."""
    return sum(count for count in composition.values() if count > 0)


VOLLEYBALL = SportConfig(
    name="Volleyball",
    positions={
        "S": "Setter",
        "OPP": "Opposite",
        "OH": "Outside Hitter",
        "MB": "Middle Blocker",
        "L": "Libero",
    },
    position_weights={"S": 1.3, "OPP": 1.2, "OH": 1.15, "MB": 1.1, "L": 1.0},
    position_order=["S", "OPP", "OH", "MB", "L"],
    default_composition={"S": 1, "OPP": 1, "OH": 2, "MB": 2, "L": 1},
    standard_compositions={
        "traditional": {"S": 1, "OPP": 1, "OH": 2, "MB": 2, "L": 1},
        "no-libero": {"S": 1, "OPP": 1, "OH": 2, "MB": 2},
        "double-setter": {"S": 2, "OH": 2, "MB": 2},
        "beach": {"S": 1, "OH": 1},
    },
)

BASKETBALL = SportConfig(
    name="Basketball",
    positions={
        "PG": "Point Guard",
        "SG": "Shooting Guard",
        "SF": "Small Forward",
        "PF": "Power Forward",
        "C": "Center",
    },
    position_weights={"PG": 1.2, "SG": 1.15, "SF": 1.15, "PF": 1.1, "C": 1.2},
    position_order=["PG", "SG", "SF", "PF", "C"],
    default_composition={"PG": 1, "SG": 1, "SF": 1, "PF": 1, "C": 1},
    standard_compositions={
        "standard": {"PG": 1, "SG": 1, "SF": 1, "PF": 1, "C": 1},
        "three-on-three": {"PG": 1, "SF": 1, "C": 1},
    },
)

FOOTBALL = SportConfig(
    name="Football",
    positions={
        "GK": "Goalkeeper",
        "DEF": "Defender",
        "MID": "Midfielder",
        "FWD": "Forward",
    },
    position_weights={"GK": 1.3, "DEF": 1.1, "MID": 1.2, "FWD": 1.15},
    position_order=["GK", "DEF", "MID", "FWD"],
    default_composition={"GK": 1, "DEF": 4, "MID": 3, "FWD": 3},
    standard_compositions={
        "4-3-3": {"GK": 1, "DEF": 4, "MID": 3, "FWD": 3},
        "4-4-2": {"GK": 1, "DEF": 4, "MID": 4, "FWD": 2},
        "five-a-side": {"GK": 1, "DEF": 2, "MID": 1, "FWD": 1},
    },
)

SPORTS: Dict[str, SportConfig] = {
    "volleyball": VOLLEYBALL,
    "basketball": BASKETBALL,
    "football": FOOTBALL,
}


def get_sport_config(name: str) -> SportConfig:
    """Look up a sport preset by case-insensitive name."""
    key = name.strip().lower()
    if key not in SPORTS:
        raise ValueError(
            f"Unknown sport '{name}'. Available: {', '.join(sorted(SPORTS))}"
        )
    return SPORTS[key]
