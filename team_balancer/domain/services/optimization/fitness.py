"""Fitness evaluation of candidate assignments.

Lower is better. ``math.inf`` marks a candidate that cannot be scored.
Every solver compares candidates only through ``FitnessEvaluator.evaluate``.
"""

import math
from typing import Dict, Optional, Sequence

import numpy as np

from team_balancer.config import config
from team_balancer.config.settings import FitnessConfig
from team_balancer.domain.models import AssignedPlayer


class FitnessEvaluator:
    """
    Scores an assignment from its team strengths.

    score = (max - min strength)
            + std(strengths) * variance_weight
            + sum over positions of (max - min positional strength) * position_balance_weight

    A position contributes to the imbalance term only when more than one
    team fields it with a nonzero rating sum.
    """

    def __init__(
        self,
        fitness_config: Optional[FitnessConfig] = None,
        position_weights: Optional[Dict[str, float]] = None,
    ):
        fitness_config = fitness_config or config.fitness
        self.variance_weight = fitness_config.variance_weight
        self.position_balance_weight = fitness_config.position_balance_weight
        self.position_weights = dict(position_weights or {})
        self.evaluations = 0

    def _weighted(self, member: AssignedPlayer) -> float:
        if not self.position_weights:
            return member.position_rating
        return member.position_rating * self.position_weights.get(
            member.assigned_position, 1.0
        )

    def team_strength(self, team: Sequence[AssignedPlayer]) -> float:
        return sum(self._weighted(member) for member in team)

    def evaluate(self, solution: Sequence[Sequence[AssignedPlayer]]) -> float:
        self.evaluations += 1
        if not solution:
            return math.inf

        team_count = len(solution)
        strengths = np.zeros(team_count)
        by_position: Dict[str, np.ndarray] = {}

        for index, team in enumerate(solution):
            if not isinstance(team, list) or not team:
                return math.inf
            for member in team:
                rating = self._weighted(member)
                strengths[index] += rating
                sums = by_position.get(member.assigned_position)
                if sums is None:
                    sums = by_position[member.assigned_position] = np.zeros(team_count)
                sums[index] += rating

        if not np.all(np.isfinite(strengths)):
            return math.inf

        balance = strengths.max() - strengths.min()
        spread = math.sqrt(strengths.var())

        position_imbalance = 0.0
        for position in sorted(by_position):
            sums = by_position[position]
            if np.count_nonzero(sums) > 1:
                position_imbalance += sums.max() - sums.min()

        score = float(
            balance
            + spread * self.variance_weight
            + position_imbalance * self.position_balance_weight
        )
        return score if math.isfinite(score) else math.inf

    __call__ = evaluate
