"""
Transition Encoder Module for Chiffres-Z3

Translates the stack machine into quantifier-free Z3 formulas over the
constants of a SymbolCache:

1. STATE:
   At step s the machine is (idx@s, stack@s). idx@s counts occupied
   cells; only cells below it are meaningful. idx@0 = 0.

2. ACTIONS:
   One boolean trigger per (step, action). transition(s) forces exactly
   one of them true and, for each action, states
   trigger => precondition and next-state equations.
   An action whose precondition is false at s simply leaves no model
   for that choice.

3. SINGLE USE:
   push(v) at step s also requires that push(v) fired at no earlier
   step. Use is keyed by value: duplicate numerals in the input collapse
   into one push action.

4. GOALS:
   final_state(s) asks for a single cell equal to the target;
   distance(s) is the signed absolute gap used by the approximate
   search objective.

Numerals are range-checked at construction time in strict mode, before
any constant is declared.
"""

from typing import Optional, Sequence

import z3

from chiffres_z3.core.actions import Action, ActionKind, BINARY_ACTIONS
from chiffres_z3.core.errors import ConfigurationError
from chiffres_z3.memory.symbol_cache import SymbolCache
from chiffres_z3.utils.logger import get_logger, LogCategory

logger = get_logger(__name__)


def signed_range(bv_bits: int) -> tuple[int, int]:
    """Inclusive bounds of a signed two's-complement value of bv_bits bits."""
    return -(2 ** (bv_bits - 1)), 2 ** (bv_bits - 1) - 1


def exactly_one(exprs: Sequence[z3.BoolRef]) -> z3.BoolRef:
    """Expression true iff exactly one of exprs is true."""
    return z3.And(z3.Or(*exprs), at_most_one(exprs))


def at_most_one(exprs: Sequence[z3.BoolRef]) -> z3.BoolRef:
    """Pairwise encoding: each expr excludes all the others."""
    conjuncts = []
    for i, expr in enumerate(exprs):
        others = [e for j, e in enumerate(exprs) if j != i]
        if others:
            conjuncts.append(z3.Implies(expr, z3.Not(z3.Or(*others))))
    if not conjuncts:
        return z3.BoolVal(True)
    return z3.And(*conjuncts)


class TransitionEncoder:
    """
    Builds the formulas of the numbers-puzzle stack machine.

    The encoder is stateless apart from its SymbolCache: every formula
    method can be called any number of times and returns equivalent
    formulas over the same constants.

    Attributes:
        numerals: Input numerals, in input order
        target: Value to reach
        bv_bits: Width of stack cells
        no_overflows: Strict numeral range check
        guard_intermediates: Forbid overflowing binary results
        max_steps: Bound of the search, 2 * len(numerals) - 1
        cache: Symbol arena shared by all formulas
    """

    def __init__(
        self,
        numerals: Sequence[int],
        target: int,
        bv_bits: int,
        no_overflows: bool = False,
        guard_intermediates: bool = False,
        cache: Optional[SymbolCache] = None
    ):
        """
        Validate the parameters and prepare the action set.

        Raises:
            ConfigurationError: empty numeral list, bad bit width, or a
                value outside the signed range in strict mode
        """
        if bv_bits < 2:
            raise ConfigurationError(f"Bit width must be at least 2, got {bv_bits}", bv_bits=bv_bits)
        if not numerals:
            raise ConfigurationError("At least one numeral is required", bv_bits=bv_bits)

        if no_overflows:
            low, high = signed_range(bv_bits)
            for num in list(numerals) + [target]:
                if not low <= num <= high:
                    raise ConfigurationError(
                        f"Numeral {num} exceeds the capacity of signed "
                        f"bit-vectors of width {bv_bits} [{low}, {high}]",
                        value=num,
                        bv_bits=bv_bits
                    )

        if cache is not None and cache.bv_bits != bv_bits:
            raise ConfigurationError(
                f"Symbol cache uses {cache.bv_bits} bits, encoder asked for {bv_bits}",
                bv_bits=bv_bits
            )

        self.numerals = list(numerals)
        self.target = target
        self.bv_bits = bv_bits
        self.no_overflows = no_overflows
        self.guard_intermediates = guard_intermediates
        self.max_steps = 2 * len(self.numerals) - 1
        self.cache = cache if cache is not None else SymbolCache(bv_bits)

        # One push per distinct value, in first-occurrence order
        distinct = list(dict.fromkeys(self.numerals))
        self._push_actions = [Action.push(v) for v in distinct]
        self._actions = self._push_actions + list(BINARY_ACTIONS)

        if len(distinct) < len(self.numerals):
            logger.warning(
                f"Duplicate numerals {self.numerals}: each value can be pushed once",
                category=LogCategory.SYSTEM
            )

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def actions(self) -> list[Action]:
        """All actions, pushes first."""
        return list(self._actions)

    def push_actions(self) -> list[Action]:
        return list(self._push_actions)

    def trigger(self, step: int, action: Action) -> z3.BoolRef:
        return self.cache.trigger(step, action)

    def triggers(self, step: int) -> list[z3.BoolRef]:
        """Triggers of every action at step, in actions() order."""
        return [self.cache.trigger(step, a) for a in self._actions]

    def index(self, step: int) -> z3.ArithRef:
        return self.cache.index(step)

    def stack(self, step: int) -> z3.ArrayRef:
        return self.cache.stack(step)

    def cell(self, step: int, position) -> z3.BitVecRef:
        """stack@step[position]; position may be an int or an Int expression."""
        return z3.Select(self.stack(step), position)

    def bv(self, value: int) -> z3.BitVecNumRef:
        """Bit-vector literal; wraps modulo 2**bv_bits outside strict mode."""
        return z3.BitVecVal(value, self.bv_bits)

    # ------------------------------------------------------------------
    # Action formulas
    # ------------------------------------------------------------------

    def push_formula(self, step: int, action: Action) -> z3.BoolRef:
        """
        trigger(step, push v) => idx grows by one, v stored on top, and
        push v never fired before step.
        """
        if action.kind != ActionKind.PUSH:
            raise ValueError(f"{action.label} is not a push")

        idx = self.index(step)
        stack = self.stack(step)

        effect = [
            self.index(step + 1) == idx + 1,
            self.stack(step + 1) == z3.Store(stack, idx, self.bv(action.value)),
        ]
        effect += [z3.Not(self.trigger(i, action)) for i in range(step)]

        return z3.Implies(self.trigger(step, action), z3.And(*effect))

    def binary_formula(self, step: int, action: Action) -> z3.BoolRef:
        """
        trigger(step, op) => (idx >= 2, op precondition, and the two top
        cells replaced by e1 op e2).

        Args:
            step: Step at which the action fires
            action: One of ADD, SUB, MUL, DIV

        Returns:
            The guarded effect formula
        """
        if not action.is_binary:
            raise ValueError(f"{action.label} is not a binary operator")

        idx = self.index(step)
        stack = self.stack(step)

        e1 = z3.Select(stack, idx - 1)
        e2 = z3.Select(stack, idx - 2)

        effect = z3.And(
            idx >= 2,
            action.precondition(e1, e2, guard_overflow=self.guard_intermediates),
            self.index(step + 1) == idx - 1,
            self.stack(step + 1) == z3.Store(stack, idx - 2, action.result(e1, e2)),
        )

        return z3.Implies(self.trigger(step, action), effect)

    def action_formula(self, step: int, action: Action) -> z3.BoolRef:
        if action.kind == ActionKind.PUSH:
            return self.push_formula(step, action)
        return self.binary_formula(step, action)

    def transition(self, step: int) -> z3.BoolRef:
        """Formula linking step and step + 1 by exactly one legal action."""
        formula = z3.And(
            exactly_one(self.triggers(step)),
            *[self.action_formula(step, a) for a in self._actions]
        )
        logger.debug("transition(%d) = %s", step, formula, category=LogCategory.ENCODER)
        return formula

    # ------------------------------------------------------------------
    # State formulas
    # ------------------------------------------------------------------

    def initial_state(self) -> z3.BoolRef:
        """Empty stack at step 0."""
        return self.index(0) == 0

    def final_state(self, step: int) -> z3.BoolRef:
        """A single cell holding the target at step."""
        return z3.And(
            self.index(step) == 1,
            self.cell(step, 0) == self.bv(self.target)
        )

    def not_final_state(self, step: int) -> z3.BoolRef:
        return z3.Not(self.final_state(step))

    def distance(self, step: int) -> z3.BitVecRef:
        """
        |stack@step[0] - target| over signed bit-vector arithmetic.

        Operands are sign-extended by one bit so the difference of two
        in-range values cannot wrap; the result is bv_bits + 1 wide.
        """
        diff = z3.SignExt(1, self.cell(step, 0)) - z3.SignExt(1, self.bv(self.target))
        return z3.If(diff >= 0, diff, -diff)
