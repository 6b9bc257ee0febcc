"""Simulated annealing over team assignments.

Starts from the best initial candidate, applies one universal swap per
iteration and accepts worsening moves with the Metropolis probability
exp(-delta / temperature). The temperature cools geometrically every
iteration, or once per equilibrium block when adaptive cooling is enabled,
and is reheated after a long stagnation.
"""

import math
import random
from typing import Any, Dict, Optional

from loguru import logger

from team_balancer.config import config
from team_balancer.config.settings import SimulatedAnnealingConfig

from .solution_utils import Solution, clone_solution
from .solver_base import ProblemContext, best_of, cooperative_yield, solver_errors


class SimulatedAnnealingSolver:
    name = "Simulated Annealing"

    def __init__(
        self,
        sa_config: Optional[SimulatedAnnealingConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.sa_config = sa_config or config.simulated_annealing
        self.rng = rng or random.Random()
        self._stats: Dict[str, Any] = {
            "iterations": 0,
            "improvements": 0,
            "accepted_worse": 0,
            "reheats": 0,
            "temperature": self.sa_config.initial_temperature,
            "cooling_rate": self.sa_config.cooling_rate,
            "best_score": None,
        }

    def statistics(self) -> Dict[str, Any]:
        return dict(self._stats)

    def _accept(self, current_score: float, neighbor_score: float, temperature: float) -> bool:
        """Metropolis criterion with guards for unscoreable candidates."""
        if math.isinf(neighbor_score):
            return math.isinf(current_score)
        delta = neighbor_score - current_score
        if delta < 0:
            return True
        accepted = self.rng.random() < math.exp(-delta / temperature)
        if accepted and delta > 0:
            self._stats["accepted_worse"] += 1
        return accepted

    def _adapt_cooling(self, cooling_rate: float, acceptance_ratio: float) -> float:
        cfg = self.sa_config
        if acceptance_ratio > cfg.target_acceptance_high:
            return max(cfg.min_cooling_rate, cooling_rate - cfg.cooling_adjustment)
        if acceptance_ratio < cfg.target_acceptance_low:
            return min(cfg.max_cooling_rate, cooling_rate + cfg.cooling_adjustment)
        return cooling_rate

    async def solve(self, context: ProblemContext) -> Solution:
        with solver_errors(self.name):
            return await self._anneal(context)

    async def _anneal(self, context: ProblemContext) -> Solution:
        cfg = self.sa_config
        swaps = context.swap_operator(self.rng)

        start = best_of(context.initial_solutions, context.evaluate)
        if start is None:
            start = context.generator(self.rng).randomized()

        current = clone_solution(start)
        current_score = context.evaluate(current)
        best, best_score = clone_solution(current), current_score

        temperature = cfg.initial_temperature
        cooling_rate = cfg.cooling_rate
        stagnation = 0
        accepted_in_block = 0

        for iteration in range(1, cfg.iterations + 1):
            neighbor = clone_solution(current)
            swaps.universal_swap(neighbor)
            neighbor_score = context.evaluate(neighbor)

            if self._accept(current_score, neighbor_score, temperature):
                current, current_score = neighbor, neighbor_score
                accepted_in_block += 1

            if current_score < best_score:
                best, best_score = clone_solution(current), current_score
                self._stats["improvements"] += 1
                stagnation = 0
            else:
                stagnation += 1

            if cfg.adaptive_cooling:
                if iteration % cfg.equilibrium_iterations == 0:
                    cooling_rate = self._adapt_cooling(
                        cooling_rate, accepted_in_block / cfg.equilibrium_iterations
                    )
                    temperature = max(cfg.min_temperature, temperature * cooling_rate)
                    accepted_in_block = 0
            else:
                temperature = max(cfg.min_temperature, temperature * cooling_rate)

            if cfg.reheat_enabled and stagnation >= cfg.reheat_iterations:
                temperature = cfg.reheat_temperature
                stagnation = 0
                self._stats["reheats"] += 1

            self._stats["iterations"] = iteration
            if iteration % cfg.yield_every == 0:
                await cooperative_yield()

        self._stats["temperature"] = temperature
        self._stats["cooling_rate"] = cooling_rate
        self._stats["best_score"] = best_score
        logger.debug(
            f"🔥 {self.name}: best {best_score:.2f} after {self._stats['iterations']} iterations "
            f"({self._stats['improvements']} improvements, {self._stats['reheats']} reheats)"
        )
        return best
