"""Team optimization service.

Facade over the optimization engine:
- Feasibility validation (every violation reported at once)
- Solver budget adaptation to problem size
- Initial candidate pool from every solution generator
- Concurrent solver portfolio with isolated failures
- Winner selection, local search refinement and the final balance report
"""

import asyncio
import math
import random
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from team_balancer.config import config
from team_balancer.config.settings import TeamBalancerConfig
from team_balancer.config.sports import SportConfig
from team_balancer.domain.common import (
    DomainError,
    InfeasibleCompositionError,
    OptimizationFailedError,
    Result,
)
from team_balancer.domain.models import (
    Composition,
    CompositionValidation,
    Player,
    TeamBalanceResult,
    TeamMember,
    ValidationIssue,
    normalize_composition,
)

from .composition_service import validate_composition
from .optimization import (
    AntColonySolver,
    ConstraintProgrammingSolver,
    FitnessEvaluator,
    GeneticAlgorithmSolver,
    LocalSearchRefiner,
    ProblemContext,
    SimulatedAnnealingSolver,
    SolutionGenerator,
    Solver,
    TabuSearchSolver,
)
from .optimization.solution_utils import (
    Solution,
    conforms_to_composition,
    group_by_position,
    sort_team_by_position,
    team_total,
    unused_players,
)
from .rating_service import RatingLookup, RatingService

# name -> (enable flag on OptimizerConfig, solver class); the name is also the config section
SOLVER_REGISTRY: Dict[str, Tuple[str, Callable[..., Solver]]] = {
    "genetic_algorithm": ("use_genetic_algorithm", GeneticAlgorithmSolver),
    "tabu_search": ("use_tabu_search", TabuSearchSolver),
    "simulated_annealing": ("use_simulated_annealing", SimulatedAnnealingSolver),
    "ant_colony": ("use_ant_colony", AntColonySolver),
    "constraint_programming": ("use_constraint_programming", ConstraintProgrammingSolver),
}


class TeamOptimizerService:
    """Balances players into teams that field a position composition.

    The ratings lookup and the rating service are injected; nothing here
    reads ratings from global state.
    """

    def __init__(
        self,
        balancer_config: Optional[TeamBalancerConfig] = None,
        sport: Optional[SportConfig] = None,
        rating_service: Optional[RatingService] = None,
        rating_lookup: Optional[RatingLookup] = None,
    ):
        """Initialize the optimizer.

        Args:
            balancer_config: Configuration override (defaults to the global config)
            sport: Sport preset supplying position labels, weights and display order
            rating_service: Strength/balance collaborator for the final report
            rating_lookup: Player/position rating function used during search
        """
        self.config = balancer_config or config
        self.sport = sport
        self.rating_service = rating_service or RatingService(
            self.config.balance, sport.position_weights if sport else None
        )
        self.rating_lookup = rating_lookup or self.rating_service.rating_lookup()
        self._statistics: Dict[str, Any] = {}

    def statistics(self) -> Dict[str, Any]:
        """Statistics of the most recent optimize() call."""
        return dict(self._statistics)

    def _label(self, position: str) -> str:
        return self.sport.label(position) if self.sport else position

    def validate(
        self, composition: Composition, team_count: int, players: Sequence[Player]
    ) -> CompositionValidation:
        return validate_composition(
            normalize_composition(composition), team_count, players, self._label
        )

    def adapt_parameters(
        self, team_count: int, player_count: int
    ) -> Tuple[TeamBalancerConfig, str]:
        """
        Scale solver budgets to the problem size (team_count x player_count).

        Returns the scaled configuration copy and the preset name.
        """
        opt = self.config.optimizer
        if not opt.adaptive_parameters:
            return self.config, "fixed"

        size = team_count * player_count
        if size <= opt.small_problem_size:
            preset, factor = "small", opt.small_problem_scale
        elif size <= opt.medium_problem_size:
            preset, factor = "medium", 1.0
        else:
            preset, factor = "large", opt.large_problem_scale

        def scale(value: int, floor: int = 1) -> int:
            return max(floor, int(round(value * factor)))

        ga = self.config.genetic_algorithm
        tabu = self.config.tabu_search
        sa = self.config.simulated_annealing
        aco = self.config.ant_colony
        cp = self.config.constraint_programming
        ls = self.config.local_search

        scaled = self.config.model_copy(
            update={
                "genetic_algorithm": ga.model_copy(
                    update={
                        "generation_count": scale(ga.generation_count),
                        "population_size": max(
                            scale(ga.population_size, 4),
                            ga.elitism_count + 2,
                            ga.tournament_size,
                        ),
                    }
                ),
                "tabu_search": tabu.model_copy(
                    update={"iterations": scale(tabu.iterations)}
                ),
                "simulated_annealing": sa.model_copy(
                    update={"iterations": scale(sa.iterations)}
                ),
                "ant_colony": aco.model_copy(
                    update={
                        "iterations": scale(aco.iterations),
                        "ant_count": scale(aco.ant_count),
                    }
                ),
                "constraint_programming": cp.model_copy(
                    update={"max_backtracks": scale(cp.max_backtracks, 0)}
                ),
                "local_search": ls.model_copy(update={"iterations": scale(ls.iterations)}),
            }
        )
        return scaled, preset

    def enabled_solvers(self, run_config: TeamBalancerConfig) -> List[str]:
        return [
            name
            for name, (flag, _) in SOLVER_REGISTRY.items()
            if getattr(run_config.optimizer, flag)
        ]

    async def _run_portfolio(
        self,
        names: List[str],
        run_config: TeamBalancerConfig,
        context: ProblemContext,
        master_rng: random.Random,
    ) -> Tuple[List[Tuple[str, Solution]], Dict[str, BaseException], Dict[str, Any]]:
        solvers = [
            SOLVER_REGISTRY[name][1](
                getattr(run_config, name), random.Random(master_rng.getrandbits(64))
            )
            for name in names
        ]
        outcomes = await asyncio.gather(
            *(solver.solve(context) for solver in solvers), return_exceptions=True
        )

        results: List[Tuple[str, Solution]] = []
        errors: Dict[str, BaseException] = {}
        statistics: Dict[str, Any] = {}
        for name, solver, outcome in zip(names, solvers, outcomes):
            statistics[name] = solver.statistics()
            if isinstance(outcome, BaseException):
                logger.error(f"❌ {solver.name} failed: {outcome!r}")
                errors[name] = outcome
            else:
                results.append((name, outcome))
        return results, errors, statistics

    def _select_best(
        self,
        results: List[Tuple[str, Solution]],
        context: ProblemContext,
    ) -> Tuple[str, Solution, float]:
        """
        Lowest fitness wins. Candidates that fill the composition exactly and
        score finitely beat all others; ties keep construction order.
        """
        ranked = []
        for order, (name, solution) in enumerate(results):
            score = context.evaluate(solution)
            complete = conforms_to_composition(
                solution, context.composition, context.team_count
            )
            finite = math.isfinite(score)
            ranked.append(
                ((not complete, not finite, score if finite else 0.0, order), name, solution, score)
            )

        key, name, solution, score = min(ranked, key=lambda item: item[0])
        if key[0]:
            logger.warning("⚠️ No candidate fills the composition exactly")
        if not math.isfinite(score):
            logger.warning("⚠️ Every candidate is degenerate, returning the first one")
        return name, solution, score

    async def optimize(
        self, composition: Composition, team_count: int, players: Sequence[Player]
    ) -> TeamBalanceResult:
        """
        Split ``players`` into ``team_count`` balanced teams fielding ``composition``.

        Raises:
            InfeasibleCompositionError: the roster cannot fill the composition
            OptimizationFailedError: no solver produced a result
        """
        players = list(players)
        composition = normalize_composition(composition)

        validation = validate_composition(composition, team_count, players, self._label)
        if not validation.is_valid:
            logger.warning(
                f"⚠️ Invalid composition: {'; '.join(validation.error_messages)}"
            )
            raise InfeasibleCompositionError(validation)
        for warning in validation.warning_messages:
            logger.info(f"ℹ️ {warning}")

        run_config, preset = self.adapt_parameters(team_count, len(players))
        logger.info(
            f"⚖️ Balancing {len(players)} players into {team_count} teams "
            f"({validation.players_per_team} per team, {preset} preset)"
        )

        players_by_position = group_by_position(players, self.rating_lookup)
        evaluator = FitnessEvaluator(
            run_config.fitness,
            self.sport.position_weights
            if self.sport and run_config.fitness.use_position_weights
            else None,
        )
        position_order = run_config.optimizer.position_priority
        master_rng = random.Random(run_config.optimizer.random_seed)

        generator = SolutionGenerator(
            composition,
            team_count,
            players_by_position,
            rng=random.Random(master_rng.getrandbits(64)),
            fixed_order=position_order,
        )
        context = ProblemContext(
            composition=composition,
            team_count=team_count,
            players_by_position=players_by_position,
            initial_solutions=generator.generate_pool(),
            evaluator=evaluator,
            rating_lookup=self.rating_lookup,
            swap_config=run_config.swap,
            position_order=position_order,
        )

        names = self.enabled_solvers(run_config)
        if not names:
            names = list(run_config.optimizer.fallback_solvers)
            logger.warning(f"⚠️ No solvers enabled, falling back to {', '.join(names)}")

        results, errors, statistics = await self._run_portfolio(
            names, run_config, context, master_rng
        )
        if not results:
            raise OptimizationFailedError(errors)

        winner, solution, score = self._select_best(results, context)
        if not conforms_to_composition(solution, composition, team_count):
            raise InfeasibleCompositionError(
                validation.model_copy(
                    update={
                        "is_valid": False,
                        "errors": validation.errors
                        + [ValidationIssue(message="No assignment fills the composition")],
                    }
                )
            )
        winner_label = SOLVER_REGISTRY[winner][1].name
        logger.info(f"🏆 {winner_label} won with fitness {score:.2f}")

        refiner = LocalSearchRefiner(
            run_config.local_search, random.Random(master_rng.getrandbits(64))
        )
        try:
            refined = await refiner.refine(solution, context)
        except Exception as e:
            logger.warning("⚠️ Local search failed, keeping the unrefined winner")
            errors["local_search"] = e
            refined = solution
        statistics["local_search"] = refiner.statistics()
        final_score = context.evaluate(refined)

        display_order = (
            self.sport.position_order if self.sport else list(composition.keys())
        )
        teams = sorted(refined, key=team_total, reverse=True)
        teams = [sort_team_by_position(team, display_order) for team in teams]

        balance = self.rating_service.evaluate_balance(teams)
        statistics.update(
            {
                "winner": winner,
                "scores": {name: context.evaluate(s) for name, s in results},
                "errors": {name: repr(error) for name, error in errors.items()},
                "parameters": preset,
                "evaluations": evaluator.evaluations,
            }
        )
        self._statistics = statistics

        logger.info(
            f"✅ Optimization complete: fitness {final_score:.2f}, "
            f"max difference {balance.max_difference:.0f}"
        )
        return TeamBalanceResult(
            teams=[[TeamMember.from_assigned(m) for m in team] for team in teams],
            balance=balance,
            unused_players=unused_players(players, teams),
            validation=validation,
            algorithm=f"{winner_label} + Local Search Refinement",
            fitness=final_score,
            statistics=statistics,
        )

    def optimize_sync(
        self, composition: Composition, team_count: int, players: Sequence[Player]
    ) -> TeamBalanceResult:
        """Blocking wrapper around optimize() for callers without an event loop."""
        return asyncio.run(self.optimize(composition, team_count, players))

    async def try_optimize(
        self, composition: Composition, team_count: int, players: Sequence[Player]
    ) -> Result[TeamBalanceResult]:
        """optimize() returning a Result instead of raising."""
        try:
            return Result.success(await self.optimize(composition, team_count, players))
        except InfeasibleCompositionError as e:
            return Result.failure(
                DomainError.validation_error(
                    str(e),
                    field_errors={
                        issue.position or "composition": issue.message
                        for issue in e.validation.errors
                    },
                    details={"validation": e.validation.model_dump()},
                )
            )
        except OptimizationFailedError as e:
            return Result.failure(
                DomainError.calculation_error(
                    str(e),
                    details={name: repr(error) for name, error in e.errors.items()},
                )
            )
