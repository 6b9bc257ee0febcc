"""Initial candidate construction.

- balanced: specialists-first pool, round-robin across teams
- snake_draft: same pool, direction alternates every round
- randomized: shuffled pool, round-robin (the only stochastic generator)
- position_focused: one cross-team round per position, best remaining specialist first

All generators fill positions in priority order, respect per-position quotas
and never place a player twice. A pool that is too small leaves slots empty
and logs a warning.
"""

import random
from typing import List, Optional, Sequence, Set

from loguru import logger

from team_balancer.domain.models import AssignedPlayer, Composition

from .solution_utils import (
    PlayersByPosition,
    Solution,
    position_priority,
    specialist_first_key,
)


class SolutionGenerator:
    """Builds candidate solutions for one problem instance."""

    def __init__(
        self,
        composition: Composition,
        team_count: int,
        players_by_position: PlayersByPosition,
        rng: Optional[random.Random] = None,
        fixed_order: Optional[Sequence[str]] = None,
    ):
        self.composition = {code: n for code, n in composition.items() if n > 0}
        self.team_count = team_count
        self.players_by_position = players_by_position
        self.rng = rng or random.Random()
        self.priority = position_priority(
            self.composition, team_count, players_by_position, fixed_order
        )
        self._warned: Set[str] = set()

    def _available(self, position: str, used: Set[str]) -> List[AssignedPlayer]:
        return [
            member
            for member in self.players_by_position.get(position, [])
            if member.id not in used
        ]

    def _warn_short(self, position: str, needed: int, available: int) -> None:
        if position in self._warned:
            return
        self._warned.add(position)
        logger.warning(
            f"⚠️ Not enough players for {position}: need {needed}, have {available}. "
            f"Slots left unfilled."
        )

    def _empty(self) -> Solution:
        return [[] for _ in range(self.team_count)]

    def _deal(self, shuffle: bool = False, snake: bool = False) -> Solution:
        teams = self._empty()
        used: Set[str] = set()
        round_number = 0

        for position in self.priority:
            needed = self.composition[position] * self.team_count
            pool = self._available(position, used)
            if shuffle:
                self.rng.shuffle(pool)
            else:
                pool.sort(key=specialist_first_key)
            if len(pool) < needed:
                self._warn_short(position, needed, len(pool))

            for slot, member in enumerate(pool[:needed]):
                team_index = slot % self.team_count
                if snake and (round_number + slot // self.team_count) % 2 == 1:
                    team_index = self.team_count - 1 - team_index
                teams[team_index].append(member.copy())
                used.add(member.id)

            round_number += self.composition[position]

        return teams

    def balanced(self) -> Solution:
        return self._deal()

    def snake_draft(self) -> Solution:
        return self._deal(snake=True)

    def randomized(self) -> Solution:
        return self._deal(shuffle=True)

    def position_focused(self) -> Solution:
        teams = self._empty()
        used: Set[str] = set()

        for round_number in range(max(self.composition.values(), default=0)):
            for position in self.priority:
                if self.composition[position] <= round_number:
                    continue
                for team in teams:
                    candidates = self._available(position, used)
                    if not candidates:
                        self._warn_short(
                            position,
                            self.composition[position] * self.team_count,
                            len(self.players_by_position.get(position, [])),
                        )
                        break
                    best = min(candidates, key=specialist_first_key)
                    team.append(best.copy())
                    used.add(best.id)

        return teams

    def generate_pool(self) -> List[Solution]:
        """One candidate from every generator, deterministic ones first."""
        return [
            self.balanced(),
            self.snake_draft(),
            self.randomized(),
            self.position_focused(),
        ]
