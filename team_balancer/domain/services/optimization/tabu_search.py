"""Tabu search with aspiration, diversification and multi-start.

Each iteration samples ``neighbor_count`` universal swaps of the current
solution and moves to the best one that is not tabu. A tabu neighbor is
still taken when it beats the global best (aspiration), and when every
neighbor is tabu the best of them is taken anyway. Visited solutions are
remembered in a bounded FIFO list.
"""

import random
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Set, Tuple

from loguru import logger

from team_balancer.config import config
from team_balancer.config.settings import TabuSearchConfig
from team_balancer.config.sports import team_size

from .solution_utils import Solution, SolutionKey, clone_solution, solution_key
from .solver_base import ProblemContext, cooperative_yield, solver_errors


class TabuList:
    """FIFO of recently visited solution keys with O(1) membership."""

    def __init__(self, tenure: int):
        self.tenure = tenure
        self._queue: Deque[SolutionKey] = deque()
        self._members: Set[SolutionKey] = set()

    def __contains__(self, key: SolutionKey) -> bool:
        return key in self._members

    def __len__(self) -> int:
        return len(self._queue)

    def add(self, key: SolutionKey) -> None:
        if key in self._members:
            return
        self._queue.append(key)
        self._members.add(key)
        self.trim(self.tenure)

    def trim(self, size: int) -> None:
        """Evict oldest entries until at most ``size`` remain."""
        while len(self._queue) > size:
            self._members.discard(self._queue.popleft())


class TabuSearchSolver:
    name = "Tabu Search"

    def __init__(
        self,
        tabu_config: Optional[TabuSearchConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.tabu_config = tabu_config or config.tabu_search
        self.rng = rng or random.Random()
        self._stats: Dict[str, Any] = {
            "starts": 0,
            "iterations": 0,
            "improvements": 0,
            "aspirations": 0,
            "forced_tabu_moves": 0,
            "diversifications": 0,
            "restarts": 0,
            "best_score": None,
        }

    def statistics(self) -> Dict[str, Any]:
        return dict(self._stats)

    def _starting_points(self, context: ProblemContext) -> List[Solution]:
        count = self.tabu_config.multi_start_count
        pool = context.initial_solutions
        starts = self.rng.sample(pool, min(count, len(pool)))
        generator = context.generator(self.rng)
        while len(starts) < count:
            starts.append(generator.randomized())
        return starts

    async def solve(self, context: ProblemContext) -> Solution:
        with solver_errors(self.name):
            best: Optional[Solution] = None
            best_score = 0.0
            for start in self._starting_points(context):
                self._stats["starts"] += 1
                result, score = await self._search(context, start)
                if best is None or score < best_score:
                    best, best_score = result, score

            self._stats["best_score"] = best_score
            logger.debug(
                f"🚫 {self.name}: best {best_score:.2f} over {self._stats['starts']} starts"
            )
            return best

    async def _search(
        self, context: ProblemContext, start: Solution
    ) -> Tuple[Solution, float]:
        cfg = self.tabu_config
        swaps = context.swap_operator(self.rng)
        diversification_swaps = max(3, team_size(context.composition) // 2)

        # current is replaced, never mutated in place
        current = clone_solution(start)
        current_score = context.evaluate(current)
        best, best_score = current, current_score

        tabu = TabuList(cfg.tabu_tenure)
        tabu.add(solution_key(current))
        stagnation = 0

        for iteration in range(1, cfg.iterations + 1):
            allowed: Optional[Tuple[Solution, float, SolutionKey]] = None
            forbidden: Optional[Tuple[Solution, float, SolutionKey]] = None

            for _ in range(cfg.neighbor_count):
                neighbor = clone_solution(current)
                swaps.universal_swap(neighbor)
                score = context.evaluate(neighbor)
                key = solution_key(neighbor)

                if key in tabu and score >= best_score:
                    if forbidden is None or score < forbidden[1]:
                        forbidden = (neighbor, score, key)
                    continue
                if key in tabu:
                    self._stats["aspirations"] += 1
                if allowed is None or score < allowed[1]:
                    allowed = (neighbor, score, key)

            chosen = allowed
            if chosen is None:
                chosen = forbidden
                self._stats["forced_tabu_moves"] += 1

            current, current_score, key = chosen
            tabu.add(key)

            if current_score < best_score:
                best, best_score = current, current_score
                self._stats["improvements"] += 1
                stagnation = 0
            else:
                stagnation += 1

            if iteration % cfg.diversification_frequency == 0:
                current = swaps.perturb(clone_solution(best), diversification_swaps)
                current_score = context.evaluate(current)
                tabu.trim(cfg.tabu_tenure // 2)
                self._stats["diversifications"] += 1
            elif stagnation >= cfg.restart_stagnation:
                current = swaps.perturb(clone_solution(best), cfg.restart_swaps)
                current_score = context.evaluate(current)
                stagnation = 0
                self._stats["restarts"] += 1

            self._stats["iterations"] += 1
            if iteration % cfg.yield_every == 0:
                await cooperative_yield()

        return best, best_score
