"""Genetic algorithm over team assignments.

Population seeded from the initial candidates and padded with random
solutions. Each generation keeps the elites, breeds the rest by tournament
selection and team-preserving crossover, mutates with universal swaps and
replaces the worst half after sustained stagnation. An optional diversity
guard swaps near-duplicate offspring for fresh random solutions.
"""

import random
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from team_balancer.config import config
from team_balancer.config.settings import GeneticAlgorithmConfig

from .solution_utils import Solution, assigned_ids, clone_solution
from .solver_base import ProblemContext, cooperative_yield, solver_errors

Ranked = List[Tuple[float, Solution]]


class GeneticAlgorithmSolver:
    name = "Genetic Algorithm"

    def __init__(
        self,
        ga_config: Optional[GeneticAlgorithmConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.ga_config = ga_config or config.genetic_algorithm
        self.rng = rng or random.Random()
        self._stats: Dict[str, Any] = {
            "generations": 0,
            "improvements": 0,
            "crossovers": 0,
            "mutations": 0,
            "diversity_rejections": 0,
            "incomplete_offspring": 0,
            "population_resets": 0,
            "best_score": None,
        }

    def statistics(self) -> Dict[str, Any]:
        return dict(self._stats)

    async def solve(self, context: ProblemContext) -> Solution:
        with solver_errors(self.name):
            return await self._evolve(context)

    def _rank(self, population: List[Solution], context: ProblemContext) -> Ranked:
        scored = [(context.evaluate(member), member) for member in population]
        scored.sort(key=lambda item: item[0])
        return scored

    def _tournament(self, ranked: Ranked) -> Solution:
        contestants = self.rng.sample(
            range(len(ranked)), min(self.ga_config.tournament_size, len(ranked))
        )
        # ranked is sorted, so the smallest index is the fittest contestant
        return ranked[min(contestants)][1]

    async def _evolve(self, context: ProblemContext) -> Solution:
        cfg = self.ga_config
        generator = context.generator(self.rng)
        swaps = context.swap_operator(self.rng)

        population = [
            clone_solution(s) for s in context.initial_solutions[: cfg.population_size]
        ]
        while len(population) < cfg.population_size:
            population.append(generator.randomized())

        ranked = self._rank(population, context)
        best_score, best = ranked[0][0], clone_solution(ranked[0][1])
        stagnation = 0

        for generation in range(1, cfg.generation_count + 1):
            if ranked[0][0] < best_score:
                best_score, best = ranked[0][0], clone_solution(ranked[0][1])
                self._stats["improvements"] += 1
                stagnation = 0
            else:
                stagnation += 1

            if stagnation >= cfg.max_stagnation:
                keep = ranked[: max(1, len(ranked) // 2)]
                fresh = [generator.randomized() for _ in range(len(ranked) - len(keep))]
                ranked = sorted(
                    keep + [(context.evaluate(s), s) for s in fresh],
                    key=lambda item: item[0],
                )
                stagnation = 0
                self._stats["population_resets"] += 1
                logger.debug(
                    f"🧬 {self.name}: stagnated at generation {generation}, "
                    f"replaced worst half"
                )

            stagnating = stagnation > cfg.stagnation_mutation_threshold
            mutation_rate = (
                min(cfg.max_mutation_rate, cfg.mutation_rate * 2)
                if stagnating
                else cfg.mutation_rate
            )
            mutation_swaps = 2 if stagnating else 1

            next_population = [member for _, member in ranked[: cfg.elitism_count]]
            while len(next_population) < cfg.population_size:
                parent1 = self._tournament(ranked)
                parent2 = self._tournament(ranked)

                child = None
                if self.rng.random() < cfg.crossover_rate:
                    child = self.crossover(parent1, parent2, context)
                    self._stats["crossovers"] += 1
                    if child is None:
                        self._stats["incomplete_offspring"] += 1
                        child = generator.randomized()
                else:
                    child = clone_solution(parent1)

                if self.rng.random() < mutation_rate:
                    swaps.perturb(child, mutation_swaps)
                    self._stats["mutations"] += 1

                if cfg.diversity_guard_enabled and not self.is_diverse(child, ranked):
                    self._stats["diversity_rejections"] += 1
                    child = generator.randomized()

                next_population.append(child)

            ranked = self._rank(next_population, context)
            self._stats["generations"] = generation
            if generation % cfg.yield_every == 0:
                await cooperative_yield()

        if ranked[0][0] < best_score:
            best_score, best = ranked[0][0], clone_solution(ranked[0][1])
            self._stats["improvements"] += 1

        self._stats["best_score"] = best_score
        logger.debug(
            f"🧬 {self.name}: best {best_score:.2f} after "
            f"{self._stats['generations']} generations"
        )
        return best

    def is_diverse(self, child: Solution, ranked: Ranked) -> bool:
        """
        True when the child differs enough from every sampled member.

        Difference is the number of the child's players that a member places
        on another team (or leaves out). The closest sampled member must
        differ in at least ``diversity_threshold`` of the child's players.
        """
        total = sum(len(team) for team in child)
        if total == 0 or not ranked:
            return True

        child_teams = {
            member.id: index for index, team in enumerate(child) for member in team
        }
        sample = self.rng.sample(
            ranked, min(self.ga_config.diversity_sample_size, len(ranked))
        )
        closest = total
        for _, other in sample:
            other_teams = {
                member.id: index for index, team in enumerate(other) for member in team
            }
            differing = sum(
                1
                for player_id, team_index in child_teams.items()
                if other_teams.get(player_id) != team_index
            )
            closest = min(closest, differing)

        return closest >= self.ga_config.diversity_threshold * total

    def crossover(
        self, parent1: Solution, parent2: Solution, context: ProblemContext
    ) -> Optional[Solution]:
        """
        Team-preserving crossover.

        Teams below a random split point are copied from parent 1. Parent 2's
        remaining players then go to the first child team that still needs
        their position; a player nobody needs at that position is seated at
        another eligible open position, smallest team first. Open slots left
        afterwards are filled from unused eligible players. Returns None when
        the child cannot be completed without exceeding a quota.
        """
        team_count = context.team_count
        if team_count < 2:
            return clone_solution(parent1)

        split = self.rng.randint(1, team_count - 1)
        child: Solution = [
            [member.copy() for member in parent1[index]] for index in range(split)
        ]
        child.extend([] for _ in range(split, team_count))
        used = assigned_ids(child)

        needs = {
            index: {code: n for code, n in context.composition.items() if n > 0}
            for index in range(split, team_count)
        }

        for team in parent2:
            for member in team:
                if member.id in used:
                    continue

                target = next(
                    (
                        index
                        for index in range(split, team_count)
                        if needs[index].get(member.assigned_position, 0) > 0
                    ),
                    None,
                )
                if target is not None:
                    placed = member.copy()
                else:
                    options = [
                        (len(child[index]), index, position)
                        for index in range(split, team_count)
                        for position in member.player.positions
                        if needs[index].get(position, 0) > 0
                    ]
                    if not options:
                        continue
                    _, target, position = min(options)
                    placed = member.copy()
                    placed.reassign(
                        position, context.rating_lookup(member.player, position)
                    )

                child[target].append(placed)
                needs[target][placed.assigned_position] -= 1
                used.add(placed.id)

        for index in range(split, team_count):
            for position, missing in needs[index].items():
                for _ in range(missing):
                    candidates = [
                        m
                        for m in context.players_by_position.get(position, [])
                        if m.id not in used
                    ]
                    if not candidates:
                        return None
                    chosen = self.rng.choice(candidates)
                    child[index].append(chosen.copy())
                    used.add(chosen.id)

        return child
