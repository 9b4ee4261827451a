"""
State Management Module for Chiffres-Z3

Defines the result types passed between the search phases and handed
back to callers:
- CheckOutcome: the three-way answer of a single solver check
- TraceStep: one decoded action with the stack it produced
- PhaseResult: the outcome of one search phase (exact or approximate)
- SolveResult: the overall answer of Engine.solve()
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Any

import z3


class CheckOutcome(Enum):
    """
    Answer of a satisfiability or optimization check.

    SAT: A model exists at this depth
    UNSAT: No model at this depth (deepen)
    UNKNOWN: Indeterminate, usually a timeout (abort the phase)
    """
    SAT = "sat"
    UNSAT = "unsat"
    UNKNOWN = "unknown"

    @classmethod
    def from_z3(cls, result: z3.CheckSatResult) -> "CheckOutcome":
        if result == z3.sat:
            return cls.SAT
        if result == z3.unsat:
            return cls.UNSAT
        return cls.UNKNOWN


class SearchStatus(Enum):
    """Overall status reported by Engine.solve()."""
    FOUND_EXACT = "found-exact"
    FOUND_APPROXIMATE = "found-approximate"
    NOT_FOUND = "not-found"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class TraceStep:
    """
    One entry of a decoded trace.

    Attributes:
        label: Fired action ('push 5', 'add', ...) or 'init' for the
            initial snapshot
        stack: Occupied cells after the action, bottom first
        index: Top marker (number of occupied cells)
    """
    label: str
    stack: tuple[int, ...] = ()
    index: int = 0


@dataclass
class PhaseResult:
    """
    Outcome of one search phase.

    A phase stops at the first depth that is SAT or UNKNOWN; UNSAT means
    every depth up to the bound was refuted.

    Attributes:
        outcome: SAT (found), UNSAT (exhausted) or UNKNOWN (aborted)
        depth: Depth of the SAT/UNKNOWN check, None when exhausted
        model: The Z3 model on SAT
        trace: Decoded trace on SAT
        value: Value left on the bottom cell on SAT
        distance: |value - target| on SAT, computed without wrap-around
        depths_explored: Number of checks issued
    """
    outcome: CheckOutcome
    depth: Optional[int] = None
    model: Optional[z3.ModelRef] = None
    trace: list[TraceStep] = field(default_factory=list)
    value: Optional[int] = None
    distance: Optional[int] = None
    depths_explored: int = 0

    @property
    def found(self) -> bool:
        return self.outcome == CheckOutcome.SAT


@dataclass
class SolveResult:
    """
    Overall result of a solve.

    The trace, depth, value and distance are only populated on the two
    found statuses; no partial trace is kept otherwise.
    """
    numerals: list[int]
    target: int
    status: SearchStatus
    exact: PhaseResult
    approx: Optional[PhaseResult] = None

    @property
    def winning_phase(self) -> Optional[PhaseResult]:
        if self.status == SearchStatus.FOUND_EXACT:
            return self.exact
        if self.status == SearchStatus.FOUND_APPROXIMATE:
            return self.approx
        return None

    @property
    def trace(self) -> list[TraceStep]:
        phase = self.winning_phase
        return phase.trace if phase is not None else []

    @property
    def depth(self) -> Optional[int]:
        phase = self.winning_phase
        return phase.depth if phase is not None else None

    @property
    def value(self) -> Optional[int]:
        phase = self.winning_phase
        return phase.value if phase is not None else None

    @property
    def distance(self) -> Optional[int]:
        phase = self.winning_phase
        return phase.distance if phase is not None else None

    def to_summary_dict(self) -> dict[str, Any]:
        """
        Create a summary dictionary for logging/JSON output.

        Leaves out the Z3 model, which is not serializable.
        """
        summary = {
            "numerals": list(self.numerals),
            "target": self.target,
            "status": self.status.value,
            "exact_outcome": self.exact.outcome.value,
            "approx_outcome": self.approx.outcome.value if self.approx else None,
        }
        if self.winning_phase is not None:
            summary["depth"] = self.depth
            summary["value"] = self.value
            summary["distance"] = self.distance
            summary["trace"] = [
                {"action": s.label, "stack": list(s.stack), "index": s.index}
                for s in self.trace
            ]
        return summary
