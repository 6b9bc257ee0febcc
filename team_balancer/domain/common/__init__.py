"""Common domain types and utilities."""

from .exceptions import (
    InfeasibleCompositionError,
    OptimizationFailedError,
    TeamOptimizerError,
)
from .result import DomainError, ErrorType, Result

__all__ = [
    "Result",
    "DomainError",
    "ErrorType",
    "TeamOptimizerError",
    "InfeasibleCompositionError",
    "OptimizationFailedError",
]
