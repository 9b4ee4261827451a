"""
Chiffres-Z3: Bounded Model Checking for the Numbers Puzzle

Decides whether a target can be computed from a multiset of numerals
with + - * / on a single stack, and otherwise finds the closest value:
- Symbolic encoding of the stack machine (TransitionEncoder)
- Exact incremental BMC with push/pop
- Approximate BMC by optimization when no exact solution exists
"""

from chiffres_z3.core.engine import Engine
from chiffres_z3.core.state import SearchStatus, SolveResult

__version__ = "0.1.0"

__all__ = ["Engine", "SearchStatus", "SolveResult"]
