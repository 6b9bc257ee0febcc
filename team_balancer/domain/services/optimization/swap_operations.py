"""Neighbor-generating moves shared by every metaheuristic.

All operators mutate the solution passed in (callers clone first) and keep
each team's per-position counts unchanged. They return True when the
solution changed.
"""

import random
from typing import Callable, List, Optional, Sequence, Tuple

from team_balancer.config import config
from team_balancer.config.settings import SwapConfig
from team_balancer.domain.models import AssignedPlayer

from .solution_utils import Solution, Team, team_total


def _positions_of(team: Sequence[AssignedPlayer]) -> set:
    return {member.assigned_position for member in team}


def _indices_at(team: Sequence[AssignedPlayer], position: str) -> List[int]:
    return [i for i, member in enumerate(team) if member.assigned_position == position]


def _compatible(a: AssignedPlayer, b: AssignedPlayer) -> bool:
    """Each player can legally take the other's current slot."""
    return (
        a.assigned_position != b.assigned_position
        and a.player.can_play(b.assigned_position)
        and b.player.can_play(a.assigned_position)
    )


class SwapOperator:
    """Perturbation operators bound to one random generator and ratings lookup."""

    def __init__(
        self,
        rating_lookup: Callable,
        swap_config: Optional[SwapConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.swap_config = swap_config or config.swap
        self.rating_lookup = rating_lookup
        self.rng = rng or random.Random()

        cfg = self.swap_config
        adaptive = cfg.adaptive_swap_weight if cfg.adaptive_swap_enabled else 0.0
        plain = cfg.plain_swap_weight + (
            0.0 if cfg.adaptive_swap_enabled else cfg.adaptive_swap_weight
        )
        self._moves: List[Tuple[Callable[[Solution], bool], float]] = [
            (self.plain_swap, plain),
            (self.adaptive_swap, adaptive),
            (self.cross_team_position_swap, cfg.cross_team_position_swap_weight),
            (self.in_team_position_swap, cfg.in_team_position_swap_weight),
        ]

    def plain_swap(self, solution: Solution) -> bool:
        """Swap one player of a shared position between two random teams."""
        if len(solution) < 2:
            return False

        first, second = self.rng.sample(range(len(solution)), 2)
        team_a, team_b = solution[first], solution[second]
        shared = sorted(_positions_of(team_a) & _positions_of(team_b))
        if not shared:
            return False

        position = self.rng.choice(shared)
        i = self.rng.choice(_indices_at(team_a, position))
        j = self.rng.choice(_indices_at(team_b, position))
        team_a[i], team_b[j] = team_b[j], team_a[i]
        return True

    def adaptive_swap(self, solution: Solution) -> bool:
        """
        Trade between the strongest and the weakest team.

        The weakest-rated player of the strongest team is exchanged for the
        strongest-rated player of the weakest team at a shared position, but
        only when that narrows the gap. Otherwise a plain swap is made.
        """
        if len(solution) < 2:
            return False
        if self.rng.random() >= self.swap_config.strong_weak_swap_probability:
            return self.plain_swap(solution)

        ranked = sorted(range(len(solution)), key=lambda i: team_total(solution[i]))
        weak_team, strong_team = solution[ranked[0]], solution[ranked[-1]]
        shared = sorted(_positions_of(weak_team) & _positions_of(strong_team))
        if not shared:
            return self.plain_swap(solution)

        position = self.rng.choice(shared)
        strong_index = min(
            _indices_at(strong_team, position),
            key=lambda i: strong_team[i].position_rating,
        )
        weak_index = max(
            _indices_at(weak_team, position),
            key=lambda i: weak_team[i].position_rating,
        )

        if (
            weak_team[weak_index].position_rating
            < strong_team[strong_index].position_rating
        ):
            weak_team[weak_index], strong_team[strong_index] = (
                strong_team[strong_index],
                weak_team[weak_index],
            )
            return True

        return self.plain_swap(solution)

    def _reassign(self, member: AssignedPlayer, position: str) -> None:
        member.reassign(position, self.rating_lookup(member.player, position))

    def in_team_position_swap(self, solution: Solution) -> bool:
        """Exchange the assigned positions of two compatible teammates."""
        order = list(range(len(solution)))
        self.rng.shuffle(order)

        for team_index in order:
            team: Team = solution[team_index]
            pairs = [
                (i, j)
                for i in range(len(team))
                for j in range(i + 1, len(team))
                if _compatible(team[i], team[j])
            ]
            if not pairs:
                continue

            i, j = self.rng.choice(pairs)
            position_i = team[i].assigned_position
            position_j = team[j].assigned_position
            self._reassign(team[i], position_j)
            self._reassign(team[j], position_i)
            return True

        return False

    def cross_team_position_swap(self, solution: Solution) -> bool:
        """
        Move two compatible players between teams, each taking the other's slot.
        """
        if len(solution) < 2:
            return False

        first, second = self.rng.sample(range(len(solution)), 2)
        team_a, team_b = solution[first], solution[second]
        pairs = [
            (i, j)
            for i in range(len(team_a))
            for j in range(len(team_b))
            if _compatible(team_a[i], team_b[j])
        ]
        if not pairs:
            return False

        i, j = self.rng.choice(pairs)
        a, b = team_a[i], team_b[j]
        position_a, position_b = a.assigned_position, b.assigned_position
        self._reassign(a, position_b)
        self._reassign(b, position_a)
        team_a[i], team_b[j] = b, a
        return True

    def universal_swap(self, solution: Solution) -> bool:
        """Apply one randomly chosen move; no-op moves fall back to a plain swap."""
        moves, weights = zip(*self._moves)
        move = self.rng.choices(moves, weights=weights)[0]
        if move(solution):
            return True
        return move != self.plain_swap and self.plain_swap(solution)

    def perturb(self, solution: Solution, swaps: int) -> Solution:
        """Apply ``swaps`` universal swaps in place and return the solution."""
        for _ in range(swaps):
            self.universal_swap(solution)
        return solution
