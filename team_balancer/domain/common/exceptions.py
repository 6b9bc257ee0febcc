"""Exceptions raised by the optimization engine."""

from typing import Dict, Optional


class TeamOptimizerError(Exception):
    """Base class for optimizer failures."""


class InfeasibleCompositionError(TeamOptimizerError):
    """The roster cannot fill the requested composition; no solver was run."""

    def __init__(self, validation):
        self.validation = validation
        messages = "; ".join(issue.message for issue in validation.errors)
        super().__init__(f"Infeasible composition: {messages}")


class OptimizationFailedError(TeamOptimizerError):
    """No enabled solver produced a usable result."""

    def __init__(self, errors: Optional[Dict[str, BaseException]] = None):
        self.errors = dict(errors or {})
        super().__init__("optimization failed")
