"""Best-improvement hill climbing used to polish the portfolio winner."""

import random
from typing import Any, Dict, Optional

from loguru import logger

from team_balancer.config import config
from team_balancer.config.settings import LocalSearchConfig

from .solution_utils import Solution, clone_solution
from .solver_base import ProblemContext, cooperative_yield, solver_errors


class LocalSearchRefiner:
    """
    Samples a neighborhood per pass and moves to its best neighbor when that
    strictly improves. A pass without improvement ends the search, unless
    perturbation is enabled and budget remains, in which case the best
    solution is perturbed and the climb continues from there.

    The returned solution never scores worse than the input.
    """

    name = "Local Search"

    def __init__(
        self,
        ls_config: Optional[LocalSearchConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.ls_config = ls_config or config.local_search
        self.rng = rng or random.Random()
        self._stats: Dict[str, Any] = {
            "iterations": 0,
            "improvements": 0,
            "perturbations": 0,
            "initial_score": None,
            "best_score": None,
        }

    def statistics(self) -> Dict[str, Any]:
        return dict(self._stats)

    async def refine(self, solution: Solution, context: ProblemContext) -> Solution:
        with solver_errors(self.name):
            return await self._climb(solution, context)

    async def _climb(self, solution: Solution, context: ProblemContext) -> Solution:
        cfg = self.ls_config
        swaps = context.swap_operator(self.rng)

        current = clone_solution(solution)
        current_score = context.evaluate(current)
        best, best_score = current, current_score
        self._stats["initial_score"] = current_score

        for iteration in range(1, cfg.iterations + 1):
            self._stats["iterations"] = iteration

            candidate, candidate_score = None, current_score
            for _ in range(cfg.neighborhood_size):
                neighbor = clone_solution(current)
                swaps.universal_swap(neighbor)
                score = context.evaluate(neighbor)
                if score < candidate_score:
                    candidate, candidate_score = neighbor, score

            if candidate is not None:
                current, current_score = candidate, candidate_score
                if current_score < best_score:
                    best, best_score = current, current_score
                    self._stats["improvements"] += 1
            elif (
                cfg.perturbation_enabled
                and self._stats["perturbations"] < cfg.max_perturbations
            ):
                current = swaps.perturb(clone_solution(best), cfg.perturbation_swaps)
                current_score = context.evaluate(current)
                self._stats["perturbations"] += 1
            else:
                break

            if iteration % cfg.yield_every == 0:
                await cooperative_yield()

        self._stats["best_score"] = best_score
        logger.debug(
            f"🔍 {self.name}: {self._stats['initial_score']:.2f} -> {best_score:.2f} "
            f"({self._stats['improvements']} improvements)"
        )
        return best
