"""Optimization engine components.

- fitness: candidate scoring
- solution_generators: initial candidates
- swap_operations: neighbor moves
- solver_base: problem context and solver protocol
- genetic_algorithm, tabu_search, simulated_annealing, ant_colony,
  constraint_programming: the solver portfolio
- local_search: refinement of the portfolio winner
"""

from .ant_colony import AntColonySolver
from .constraint_programming import ConstraintProgrammingSolver
from .fitness import FitnessEvaluator
from .genetic_algorithm import GeneticAlgorithmSolver
from .local_search import LocalSearchRefiner
from .simulated_annealing import SimulatedAnnealingSolver
from .solution_generators import SolutionGenerator
from .solver_base import ProblemContext, Solver
from .swap_operations import SwapOperator
from .tabu_search import TabuSearchSolver

__all__ = [
    "FitnessEvaluator",
    "SolutionGenerator",
    "SwapOperator",
    "ProblemContext",
    "Solver",
    "GeneticAlgorithmSolver",
    "TabuSearchSolver",
    "SimulatedAnnealingSolver",
    "AntColonySolver",
    "ConstraintProgrammingSolver",
    "LocalSearchRefiner",
]
