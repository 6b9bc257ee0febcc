"""
Team Balancer Package

Splits a roster of players into teams of equal strength. Every player carries
per-position ratings and a set of eligible positions; each team must field an
exact position composition. A portfolio of metaheuristic solvers (genetic
algorithm, tabu search, simulated annealing, ant colony, constraint
programming) searches the assignment space concurrently and the best
candidate is polished by local search.
"""

__version__ = "1.0.0"
