"""Team strength and balance reporting.

The optimizer scores candidates with its own fast fitness sum during search and
calls this service once on the final assignment to build the balance report.
"""

from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from team_balancer.config import config
from team_balancer.config.settings import BalanceConfig
from team_balancer.domain.models import (
    AssignedPlayer,
    BalanceQuality,
    BalanceReport,
    Player,
    TeamStrength,
)

RatingLookup = Callable[[Player, str], float]


def make_rating_lookup(default_rating: float) -> RatingLookup:
    """Ratings lookup that falls back to ``default_rating`` for unrated positions."""

    def lookup(player: Player, position: str) -> float:
        return player.rating_for(position, default_rating)

    return lookup


class RatingService:
    """Computes per-team strength and the balance report."""

    def __init__(
        self,
        balance_config: Optional[BalanceConfig] = None,
        position_weights: Optional[Dict[str, float]] = None,
    ):
        self.balance_config = balance_config or config.balance
        self.position_weights = dict(position_weights or {})

    @property
    def default_rating(self) -> float:
        return self.balance_config.default_rating

    def rating_lookup(self) -> RatingLookup:
        return make_rating_lookup(self.default_rating)

    def team_strength(
        self, team: Sequence[AssignedPlayer], index: int = 0
    ) -> TeamStrength:
        """Total, weighted and average rating of one team."""
        total = 0.0
        weighted = 0.0
        for member in team:
            total += member.position_rating
            weighted += member.position_rating * self.position_weights.get(
                member.assigned_position, 1.0
            )

        count = len(team)
        return TeamStrength(
            index=index,
            total_rating=round(total),
            weighted_rating=round(weighted),
            average_rating=round(total / count) if count else 0,
            player_count=count,
        )

    def classify(self, max_difference: float) -> BalanceQuality:
        cfg = self.balance_config
        if max_difference <= cfg.excellent_threshold:
            return BalanceQuality.EXCELLENT
        if max_difference <= cfg.good_threshold:
            return BalanceQuality.GOOD
        if max_difference <= cfg.fair_threshold:
            return BalanceQuality.FAIR
        if max_difference <= cfg.poor_threshold:
            return BalanceQuality.POOR
        return BalanceQuality.UNBALANCED

    def evaluate_balance(
        self, teams: Sequence[Sequence[AssignedPlayer]]
    ) -> BalanceReport:
        """
        Evaluate how evenly strength is spread across teams.

        Fewer than two teams are trivially balanced and produce an empty team
        list. Otherwise the gap between the strongest and weakest total rating
        decides balance; teams are ranked with 1 as the strongest.
        """
        if len(teams) < 2:
            return BalanceReport(is_balanced=True, max_difference=0, teams=[])

        strengths: List[TeamStrength] = [
            self.team_strength(team, index) for index, team in enumerate(teams)
        ]
        totals = np.array([s.total_rating for s in strengths], dtype=float)

        ranking = sorted(
            range(len(strengths)), key=lambda i: strengths[i].total_rating, reverse=True
        )
        for rank, team_index in enumerate(ranking, start=1):
            strengths[team_index].strength_rank = rank

        max_difference = round(float(totals.max() - totals.min()))
        return BalanceReport(
            is_balanced=max_difference < self.balance_config.balanced_threshold,
            max_difference=max_difference,
            average_strength=round(float(totals.mean()), 2),
            standard_deviation=round(float(totals.std()), 2),
            quality=self.classify(max_difference),
            teams=strengths,
        )
