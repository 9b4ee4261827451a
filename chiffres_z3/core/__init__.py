"""
Core module containing the action set, result types and errors.

The Engine lives in chiffres_z3.core.engine.
"""

from .actions import Action, ActionKind, ADD, SUB, MUL, DIV
from .errors import ConfigurationError, EncodingInvariantError
from .state import CheckOutcome, SearchStatus, TraceStep, PhaseResult, SolveResult

__all__ = [
    "Action", "ActionKind", "ADD", "SUB", "MUL", "DIV",
    "ConfigurationError", "EncodingInvariantError",
    "CheckOutcome", "SearchStatus", "TraceStep", "PhaseResult", "SolveResult",
]
