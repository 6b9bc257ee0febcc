"""Constraint programming backtracker.

Every (team, position, slot) triple is a variable whose domain holds the
eligible players. The only hard constraint is that a player fills at most
one variable. Search is depth-first with forward checking: pick the
most-constrained variable, try least-constraining values first (ties broken
towards team balance), remove the chosen player from every other open
domain and backtrack on a wipe-out. Exhausting the backtrack budget falls
back to an initial candidate.

This is the only systematic solver of the portfolio; on feasible inputs it
always returns an assignment that fills the composition exactly.
"""

import random
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from loguru import logger

from team_balancer.config import config
from team_balancer.config.settings import ConstraintProgrammingConfig
from team_balancer.domain.models import AssignedPlayer

from .solution_utils import Solution, clone_solution
from .solver_base import ProblemContext, best_of, cooperative_yield, solver_errors

Domain = Dict[str, AssignedPlayer]


@dataclass(frozen=True)
class SlotVariable:
    team: int
    position: str
    slot: int

    @property
    def id(self) -> str:
        return f"team{self.team}_{self.position}_{self.slot}"


class ConstraintProgrammingSolver:
    name = "Constraint Programming"

    def __init__(
        self,
        cp_config: Optional[ConstraintProgrammingConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.cp_config = cp_config or config.constraint_programming
        self.rng = rng or random.Random()
        self._stats: Dict[str, Any] = {
            "iterations": 0,
            "improvements": 0,
            "backtracks": 0,
            "conflicts": 0,
            "variables": 0,
            "solved": False,
            "best_score": None,
        }

    def statistics(self) -> Dict[str, Any]:
        return dict(self._stats)

    def build_model(
        self, context: ProblemContext
    ) -> Tuple[List[SlotVariable], List[Domain]]:
        variables: List[SlotVariable] = []
        domains: List[Domain] = []
        for team in range(context.team_count):
            for position, count in context.composition.items():
                for slot in range(count):
                    variables.append(SlotVariable(team, position, slot))
                    domains.append(
                        {
                            member.id: member
                            for member in context.players_by_position.get(position, [])
                        }
                    )
        return variables, domains

    async def solve(self, context: ProblemContext) -> Solution:
        with solver_errors(self.name):
            variables, domains = self.build_model(context)
            self._stats["variables"] = len(variables)

            assignment = await self._search(variables, domains, context.team_count)
            if assignment is None:
                logger.warning(
                    f"⚠️ {self.name}: no assignment within {self._stats['backtracks']} "
                    f"backtracks, using an initial candidate"
                )
                fallback = best_of(context.initial_solutions, context.evaluate)
                if fallback is None:
                    fallback = context.generator(self.rng).balanced()
                solution = clone_solution(fallback)
            else:
                self._stats["solved"] = True
                self._stats["improvements"] = 1
                solution = [[] for _ in range(context.team_count)]
                for index, variable in enumerate(variables):
                    solution[variable.team].append(assignment[index].copy())

            self._stats["best_score"] = context.evaluate(solution)
            logger.debug(
                f"🧩 {self.name}: {self._stats['iterations']} nodes, "
                f"{self._stats['backtracks']} backtracks, solved={self._stats['solved']}"
            )
            return solution

    def _select_variable(self, open_vars: Set[int], domains: List[Domain]) -> int:
        if self.cp_config.variable_ordering == "sequential":
            return min(open_vars)
        return min(open_vars, key=lambda index: (len(domains[index]), index))

    def _order_values(
        self,
        index: int,
        variables: List[SlotVariable],
        open_vars: Set[int],
        domains: List[Domain],
        team_totals: List[float],
    ) -> List[AssignedPlayer]:
        values = list(domains[index].values())
        if self.cp_config.value_ordering == "rating":
            return sorted(values, key=lambda m: (-m.position_rating, m.id))

        # Number of other open variables each player could still fill
        demand = Counter(
            player_id
            for other in open_vars
            if other != index
            for player_id in domains[other]
        )

        team = variables[index].team
        weaker = team_totals[team] <= sum(team_totals) / len(team_totals)

        def key(member: AssignedPlayer):
            if not self.cp_config.balance_preference:
                balance = -member.position_rating
            else:
                balance = -member.position_rating if weaker else member.position_rating
            return (demand[member.id], balance, member.id)

        return sorted(values, key=key)

    def _propagate(
        self, index: int, player_id: str, open_vars: Set[int], domains: List[Domain]
    ) -> Optional[List[Tuple[int, AssignedPlayer]]]:
        """Remove a placed player from open domains; None (after undoing) on a wipe-out."""
        removed: List[Tuple[int, AssignedPlayer]] = []
        for other in open_vars:
            if other == index:
                continue
            member = domains[other].pop(player_id, None)
            if member is None:
                continue
            removed.append((other, member))
            if not domains[other]:
                self._restore(removed, domains)
                return None
        return removed

    @staticmethod
    def _restore(removed: List[Tuple[int, AssignedPlayer]], domains: List[Domain]) -> None:
        for other, member in removed:
            domains[other][member.id] = member

    async def _search(
        self, variables: List[SlotVariable], domains: List[Domain], team_count: int
    ) -> Optional[Dict[int, AssignedPlayer]]:
        """Iterative depth-first search with an explicit frame stack."""
        cfg = self.cp_config
        if not variables:
            return {}

        open_vars: Set[int] = set(range(len(variables)))
        assignment: Dict[int, AssignedPlayer] = {}
        placed_ids: Set[str] = set()
        team_totals = [0.0] * team_count

        def open_frame() -> List:
            index = self._select_variable(open_vars, domains)
            values = self._order_values(index, variables, open_vars, domains, team_totals)
            # [variable, ordered values, next value, removals of the current choice]
            return [index, values, 0, None]

        def undo(frame: List) -> None:
            index = frame[0]
            member = assignment.pop(index)
            placed_ids.discard(member.id)
            team_totals[variables[index].team] -= member.position_rating
            open_vars.add(index)
            self._restore(frame[3], domains)
            frame[3] = None

        stack = [open_frame()]
        while stack:
            frame = stack[-1]
            if frame[3] is not None:
                undo(frame)

            index, values = frame[0], frame[1]
            while frame[2] < len(values):
                member = values[frame[2]]
                frame[2] += 1
                if member.id in placed_ids:
                    self._stats["conflicts"] += 1
                    continue

                open_vars.discard(index)
                removed = self._propagate(index, member.id, open_vars, domains)
                if removed is None:
                    open_vars.add(index)
                    self._stats["conflicts"] += 1
                    continue

                assignment[index] = member
                placed_ids.add(member.id)
                team_totals[variables[index].team] += member.position_rating
                frame[3] = removed
                break

            if frame[3] is None:
                stack.pop()
                self._stats["backtracks"] += 1
                if self._stats["backtracks"] > cfg.max_backtracks:
                    return None
                continue

            if not open_vars:
                return assignment

            self._stats["iterations"] += 1
            if self._stats["iterations"] % cfg.yield_every == 0:
                await cooperative_yield()
            stack.append(open_frame())

        return None
