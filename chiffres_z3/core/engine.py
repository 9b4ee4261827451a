"""
Engine Module - Bounded Model Checking for the Numbers Puzzle

Runs the two search phases over the formulas of a TransitionEncoder:

1. EXACT SEARCH (solve_exact):
   One long-lived Solver. The initial state is asserted once; at depth d
   transition(d) is added permanently, then final_state(d + 1) is added
   inside a push/pop scope and checked. UNSAT pops the goal and deepens,
   SAT is decoded, UNKNOWN aborts the phase.

2. APPROXIMATE SEARCH (solve_approx):
   Optimize has no push/pop, so every depth gets a fresh session that
   replays the accumulated transitions, excludes exact solutions and
   minimizes |stack[0] - target|. Same three-way handling per depth.

3. POLICY (solve):
   Exact first; any non-success (exhausted or indeterminate) falls back
   to the approximate phase, whose outcome is final.

State Machine:
    Exact(d) → SAT → FOUND_EXACT
    Exact(d) → UNSAT → Exact(d + 1) ... → exhausted → Approx(0)
    Exact(d) → UNKNOWN → Approx(0)
    Approx(d) → SAT → FOUND_APPROXIMATE
    Approx(d) → UNSAT → Approx(d + 1) ... → exhausted → NOT_FOUND
    Approx(d) → UNKNOWN → INDETERMINATE
"""

from typing import Callable, Optional, Sequence

import z3

from config import settings
from chiffres_z3.core.state import (
    CheckOutcome,
    PhaseResult,
    SearchStatus,
    SolveResult,
)
from chiffres_z3.memory.symbol_cache import SymbolCache
from chiffres_z3.tools.decoder import ModelDecoder, render_trace
from chiffres_z3.tools.encoder import TransitionEncoder
from chiffres_z3.utils.logger import get_logger, LogCategory

logger = get_logger(__name__)


class Engine:
    """
    Solver for one numbers puzzle instance.

    The encoder is built (and the numerals validated) in the constructor,
    so a ConfigurationError surfaces before any solver session exists.
    Each search phase owns its solver sessions; only the SymbolCache is
    shared between them.

    Attributes:
        numerals: Input numerals
        target: Value to reach
        bv_bits: Width of stack cells
        no_overflows: Strict numeral range check
        guard_intermediates: Forbid overflowing binary results
        timeout: Per-check timeout in ms, 0 for none
        encoder: Formula builder
        decoder: Model reader
        solver_factory: Builds the incremental session of the exact phase
        optimize_factory: Builds the per-depth sessions of the approximate phase
    """

    def __init__(
        self,
        numerals: Sequence[int],
        target: int,
        bv_bits: Optional[int] = None,
        no_overflows: Optional[bool] = None,
        timeout: Optional[int] = None,
        guard_intermediates: Optional[bool] = None,
        cache: Optional[SymbolCache] = None,
        solver_factory: Callable[[], z3.Solver] = z3.Solver,
        optimize_factory: Callable[[], z3.Optimize] = z3.Optimize
    ):
        """
        Initialize the Engine with configuration.

        Unset arguments fall back to the global settings.

        Args:
            numerals: Input numerals (order kept, duplicates allowed)
            target: Value to reach
            bv_bits: Override BV_BITS
            no_overflows: Override NO_OVERFLOWS
            timeout: Override Z3_TIMEOUT (ms, 0 = unlimited)
            guard_intermediates: Override GUARD_INTERMEDIATE_OVERFLOW
            cache: Symbol cache to reuse (must match bv_bits)
            solver_factory: Override the exact-phase session constructor
            optimize_factory: Override the approximate-phase session constructor

        Raises:
            ConfigurationError: if the parameters cannot be encoded
        """
        self.numerals = list(numerals)
        self.target = target
        self.bv_bits = bv_bits if bv_bits is not None else settings.BV_BITS
        self.no_overflows = (
            no_overflows if no_overflows is not None else settings.NO_OVERFLOWS
        )
        self.guard_intermediates = (
            guard_intermediates
            if guard_intermediates is not None
            else settings.GUARD_INTERMEDIATE_OVERFLOW
        )
        self.timeout = timeout if timeout is not None else settings.Z3_TIMEOUT
        self.solver_factory = solver_factory
        self.optimize_factory = optimize_factory

        self.encoder = TransitionEncoder(
            self.numerals,
            self.target,
            self.bv_bits,
            no_overflows=self.no_overflows,
            guard_intermediates=self.guard_intermediates,
            cache=cache
        )
        self.decoder = ModelDecoder(self.encoder)

        logger.info(
            f"Engine initialized: nums={self.numerals}, target={self.target}, "
            f"bv_bits={self.bv_bits}, no_overflows={self.no_overflows}, "
            f"guard_intermediates={self.guard_intermediates}, "
            f"timeout={self.timeout or 'none'}{'ms' if self.timeout else ''}, "
            f"max_steps={self.max_steps}",
            category=LogCategory.SYSTEM
        )

    @property
    def max_steps(self) -> int:
        return self.encoder.max_steps

    def _apply_timeout(self, session) -> None:
        if self.timeout > 0:
            session.set("timeout", self.timeout)

    def _found(self, model: z3.ModelRef, depth: int, explored: int, approximate: bool) -> PhaseResult:
        """Decode a SAT answer into a PhaseResult."""
        trace = self.decoder.decode(model, depth)
        value = self.decoder.cell_value(model, depth + 1, 0)
        if approximate:
            distance = self.decoder.distance_value(model, depth + 1)
        else:
            distance = 0

        for line in render_trace(trace):
            logger.debug(line, category=LogCategory.Z3)

        return PhaseResult(
            outcome=CheckOutcome.SAT,
            depth=depth,
            model=model,
            trace=trace,
            value=value,
            distance=distance,
            depths_explored=explored
        )

    def solve_exact(self) -> PhaseResult:
        """
        Exact bounded model checking.

        Unrolls the transition relation from the initial state for at most
        max_steps steps. At every depth the transition is added for good
        and the final-state goal is checked inside a push/pop scope.

        Returns:
            SAT with the decoded trace at the smallest depth reaching the
            target, UNKNOWN at the depth that timed out, or UNSAT when no
            depth within the bound works
        """
        solver = self.solver_factory()
        self._apply_timeout(solver)
        solver.add(self.encoder.initial_state())

        logger.info(
            f"Exact search started (timeout={self.timeout or 'none'})",
            category=LogCategory.SYSTEM
        )

        for depth in range(self.max_steps):
            solver.add(self.encoder.transition(depth))
            solver.push()
            solver.add(self.encoder.final_state(depth + 1))

            outcome = CheckOutcome.from_z3(solver.check())
            logger.info(
                f"Exact depth {depth}: {outcome.value}",
                category=LogCategory.Z3,
                extra={'extra_data': {'phase': 'exact', 'depth': depth, 'outcome': outcome.value}}
            )

            if outcome == CheckOutcome.SAT:
                logger.info(f"Solution found at depth {depth}", category=LogCategory.SYSTEM)
                return self._found(solver.model(), depth, depth + 1, approximate=False)

            if outcome == CheckOutcome.UNKNOWN:
                logger.warning(
                    f"Exact search indeterminate at depth {depth}",
                    category=LogCategory.SYSTEM
                )
                return PhaseResult(outcome=CheckOutcome.UNKNOWN, depth=depth, depths_explored=depth + 1)

            solver.pop()

        logger.info(
            f"No exact solution within {self.max_steps} steps",
            category=LogCategory.SYSTEM
        )
        return PhaseResult(outcome=CheckOutcome.UNSAT, depths_explored=self.max_steps)

    def solve_approx(self) -> PhaseResult:
        """
        Approximate bounded model checking by optimization.

        The Optimize session is not incremental, so a new one is built at
        every depth from the initial state and the transitions accumulated
        so far, plus the negated final state and the distance objective.

        Returns:
            SAT with the first minimal-distance trace at the smallest
            feasible depth, UNKNOWN at the depth that timed out, or UNSAT
            when every depth was infeasible
        """
        logger.info(
            f"Approximate search started (timeout={self.timeout or 'none'})",
            category=LogCategory.SYSTEM
        )

        transitions: tuple[z3.BoolRef, ...] = ()

        for depth in range(self.max_steps):
            transitions = transitions + (self.encoder.transition(depth),)

            optimizer = self.optimize_factory()
            self._apply_timeout(optimizer)
            optimizer.add(self.encoder.initial_state())
            for formula in transitions:
                optimizer.add(formula)
            optimizer.add(self.encoder.not_final_state(depth + 1))
            optimizer.minimize(self.encoder.distance(depth + 1))

            outcome = CheckOutcome.from_z3(optimizer.check())
            logger.info(
                f"Approximate depth {depth}: {outcome.value}",
                category=LogCategory.Z3,
                extra={'extra_data': {'phase': 'approx', 'depth': depth, 'outcome': outcome.value}}
            )

            if outcome == CheckOutcome.SAT:
                result = self._found(optimizer.model(), depth, depth + 1, approximate=True)
                logger.info(
                    f"Approximation found at depth {depth}: {result.value} "
                    f"(distance {result.distance})",
                    category=LogCategory.SYSTEM
                )
                return result

            if outcome == CheckOutcome.UNKNOWN:
                logger.warning(
                    f"Approximate search indeterminate at depth {depth}",
                    category=LogCategory.SYSTEM
                )
                return PhaseResult(outcome=CheckOutcome.UNKNOWN, depth=depth, depths_explored=depth + 1)

        logger.info(
            f"No approximation within {self.max_steps} steps",
            category=LogCategory.SYSTEM
        )
        return PhaseResult(outcome=CheckOutcome.UNSAT, depths_explored=self.max_steps)

    def solve(self) -> SolveResult:
        """
        Exact search, then the approximate search on any non-success.

        Returns:
            SolveResult carrying both phase results and the final status
        """
        exact = self.solve_exact()
        if exact.found:
            result = SolveResult(
                numerals=self.numerals,
                target=self.target,
                status=SearchStatus.FOUND_EXACT,
                exact=exact
            )
        else:
            approx = self.solve_approx()
            if approx.outcome == CheckOutcome.SAT:
                status = SearchStatus.FOUND_APPROXIMATE
            elif approx.outcome == CheckOutcome.UNSAT:
                status = SearchStatus.NOT_FOUND
            else:
                status = SearchStatus.INDETERMINATE
            result = SolveResult(
                numerals=self.numerals,
                target=self.target,
                status=status,
                exact=exact,
                approx=approx
            )

        logger.info(
            f"Final status: {result.status.value}",
            category=LogCategory.SYSTEM,
            extra={'extra_data': result.to_summary_dict()}
        )
        return result
