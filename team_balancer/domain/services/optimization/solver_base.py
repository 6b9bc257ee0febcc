"""Problem context and the interface every solver implements.

Solvers are independent strategies: each exposes ``name``, an async
``solve(context)`` returning a candidate solution and ``statistics()``.
They share nothing but the read-only context.
"""

import asyncio
import random
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from loguru import logger

from team_balancer.config.settings import SwapConfig
from team_balancer.domain.models import Composition

from .fitness import FitnessEvaluator
from .solution_generators import SolutionGenerator
from .solution_utils import PlayersByPosition, Solution
from .swap_operations import SwapOperator


@dataclass(frozen=True)
class ProblemContext:
    """Read-only inputs shared by all solvers of one optimize() call."""

    composition: Composition
    team_count: int
    players_by_position: PlayersByPosition
    initial_solutions: List[Solution]
    evaluator: FitnessEvaluator
    rating_lookup: Callable
    swap_config: SwapConfig
    position_order: Sequence[str] = field(default_factory=list)

    def evaluate(self, solution: Solution) -> float:
        return self.evaluator.evaluate(solution)

    def generator(self, rng: random.Random) -> SolutionGenerator:
        return SolutionGenerator(
            self.composition,
            self.team_count,
            self.players_by_position,
            rng=rng,
            fixed_order=self.position_order,
        )

    def swap_operator(self, rng: random.Random) -> SwapOperator:
        return SwapOperator(self.rating_lookup, self.swap_config, rng)


@runtime_checkable
class Solver(Protocol):
    name: str

    async def solve(self, context: ProblemContext) -> Solution: ...

    def statistics(self) -> Dict[str, Any]: ...


async def cooperative_yield() -> None:
    """Hand control back to the event loop so sibling solvers make progress."""
    await asyncio.sleep(0)


@contextmanager
def solver_errors(name: str):
    """Log a solver fault with the solver's identity and re-raise it."""
    try:
        yield
    except Exception:
        logger.exception(f"❌ {name} failed")
        raise


def best_of(
    solutions: Sequence[Solution], evaluate: Callable[[Solution], float]
) -> Optional[Solution]:
    """Lowest-scoring solution, first one on ties."""
    best = None
    best_score = None
    for solution in solutions:
        score = evaluate(solution)
        if best is None or score < best_score:
            best, best_score = solution, score
    return best
