"""Ant colony optimization over team assignments.

Every player carries one pheromone weight per team. An ant fills positions
in priority order and, for each team slot, samples a remaining eligible
player with probability proportional to

    pheromone ** alpha * (rating / 1500) ** beta

After each iteration pheromones evaporate, every ant deposits
Q / (1 + score) along its assignments and the global best receives an extra
elitist deposit.
"""

import math
import random
from typing import Any, Dict, List, Optional, Set

import numpy as np
from loguru import logger

from team_balancer.config import config
from team_balancer.config.settings import AntColonyConfig
from team_balancer.domain.models import DEFAULT_RATING

from .solution_utils import Solution, clone_solution, position_priority
from .solver_base import ProblemContext, best_of, cooperative_yield, solver_errors

PheromoneMatrix = Dict[str, np.ndarray]


class AntColonySolver:
    name = "Ant Colony"

    def __init__(
        self,
        aco_config: Optional[AntColonyConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.aco_config = aco_config or config.ant_colony
        self.rng = rng or random.Random()
        self._stats: Dict[str, Any] = {
            "iterations": 0,
            "ants": 0,
            "improvements": 0,
            "incomplete_constructions": 0,
            "best_score": None,
        }

    def statistics(self) -> Dict[str, Any]:
        return dict(self._stats)

    def initial_pheromones(self, context: ProblemContext) -> PheromoneMatrix:
        matrix: PheromoneMatrix = {}
        for members in context.players_by_position.values():
            for member in members:
                if member.id not in matrix:
                    matrix[member.id] = np.full(
                        context.team_count, float(self.aco_config.initial_pheromone)
                    )
        return matrix

    async def solve(self, context: ProblemContext) -> Solution:
        with solver_errors(self.name):
            return await self._forage(context)

    async def _forage(self, context: ProblemContext) -> Solution:
        cfg = self.aco_config
        pheromones = self.initial_pheromones(context)
        priority = position_priority(
            context.composition,
            context.team_count,
            context.players_by_position,
            context.position_order,
        )

        best: Optional[Solution] = None
        best_score = math.inf

        for iteration in range(1, cfg.iterations + 1):
            colony = []
            for _ in range(cfg.ant_count):
                solution = self.construct(context, pheromones, priority)
                self._stats["ants"] += 1
                if solution is None:
                    self._stats["incomplete_constructions"] += 1
                    continue
                score = context.evaluate(solution)
                colony.append((solution, score))
                if best is None or score < best_score:
                    best, best_score = solution, score
                    self._stats["improvements"] += 1

            self.update_pheromones(pheromones, colony, best, best_score)

            self._stats["iterations"] = iteration
            if iteration % cfg.yield_every == 0:
                await cooperative_yield()

        if best is None:
            logger.warning(
                f"⚠️ {self.name}: no ant completed a solution, using an initial candidate"
            )
            fallback = best_of(context.initial_solutions, context.evaluate)
            if fallback is None:
                fallback = context.generator(self.rng).balanced()
            best = clone_solution(fallback)
            best_score = context.evaluate(best)

        self._stats["best_score"] = best_score
        logger.debug(
            f"🐜 {self.name}: best {best_score:.2f} after {self._stats['iterations']} iterations"
        )
        return best

    def construct(
        self,
        context: ProblemContext,
        pheromones: PheromoneMatrix,
        priority: List[str],
    ) -> Optional[Solution]:
        """One ant's complete solution, or None if a slot cannot be filled."""
        cfg = self.aco_config
        teams: Solution = [[] for _ in range(context.team_count)]
        used: Set[str] = set()

        for position in priority:
            for _ in range(context.composition[position]):
                for team_index in range(context.team_count):
                    candidates = [
                        m
                        for m in context.players_by_position.get(position, [])
                        if m.id not in used
                    ]
                    if not candidates:
                        return None

                    trail = np.array([pheromones[m.id][team_index] for m in candidates])
                    heuristic = np.maximum(
                        np.array([m.position_rating for m in candidates]) / DEFAULT_RATING,
                        1e-9,
                    )
                    weights = np.power(trail, cfg.alpha) * np.power(heuristic, cfg.beta)
                    chosen = candidates[self._roulette(weights)]

                    teams[team_index].append(chosen.copy())
                    used.add(chosen.id)

        return teams

    def _roulette(self, weights: np.ndarray) -> int:
        total = float(weights.sum())
        if not math.isfinite(total) or total <= 0:
            return self.rng.randrange(len(weights))
        threshold = self.rng.random() * total
        index = int(np.searchsorted(np.cumsum(weights), threshold, side="right"))
        return min(index, len(weights) - 1)

    def update_pheromones(
        self,
        pheromones: PheromoneMatrix,
        colony: List,
        best: Optional[Solution],
        best_score: float,
    ) -> None:
        """Evaporate, then deposit along every ant's and the global best's assignments."""
        cfg = self.aco_config
        retention = 1.0 - cfg.evaporation_rate
        for trail in pheromones.values():
            trail *= retention

        for solution, score in colony:
            amount = cfg.pheromone_deposit / (1.0 + score)
            for team_index, team in enumerate(solution):
                for member in team:
                    pheromones[member.id][team_index] += amount

        if best is not None:
            amount = cfg.pheromone_deposit * cfg.elitist_weight / (1.0 + best_score)
            for team_index, team in enumerate(best):
                for member in team:
                    pheromones[member.id][team_index] += amount
