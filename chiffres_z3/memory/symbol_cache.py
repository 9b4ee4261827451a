"""
Symbol Cache Module for Chiffres-Z3

Memoizes the Z3 constants of one encoding session:
- TRIGGER: boolean per (step, action), true iff the action fires at step
- INDEX: integer per step, number of occupied stack cells
- STACK: array Int -> BitVec per step, the stack contents

Transition formulas for step s and the single-use constraints for every
later step refer to the same constants, so each one must be declared
exactly once and handed back as the identical object afterwards. Keys
are structured tuples, never concatenated names, so two different keys
cannot collide.

The cache only grows. It holds declarations, not solver state, so the
exact and approximate sessions can share it.
"""

from enum import Enum
from typing import NamedTuple, Optional, TYPE_CHECKING

import z3

from chiffres_z3.utils.logger import get_logger, LogCategory

if TYPE_CHECKING:
    from chiffres_z3.core.actions import Action

logger = get_logger(__name__)


class SymbolKind(Enum):
    """Families of symbolic constants."""
    TRIGGER = "trigger"
    INDEX = "idx"
    STACK = "stack"


class SymbolKey(NamedTuple):
    """Structured cache key; action is only set for triggers."""
    kind: SymbolKind
    step: int
    action: Optional["Action"] = None


class SymbolCache:
    """
    Arena of Z3 constants for one encoding session.

    Attributes:
        bv_bits: Width of the stack cell bit-vectors
        bv_sort: Sort of a stack cell
        _symbols: Key -> declared constant
    """

    def __init__(self, bv_bits: int):
        self.bv_bits = bv_bits
        self.int_sort = z3.IntSort()
        self.bv_sort = z3.BitVecSort(bv_bits)
        self._symbols: dict[SymbolKey, z3.ExprRef] = {}

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, key: SymbolKey) -> bool:
        return key in self._symbols

    def get(self, kind: SymbolKind, step: int, action: Optional["Action"] = None) -> z3.ExprRef:
        """
        Return the constant for (kind, step, action), declaring it on first use.

        Args:
            kind: Symbol family
            step: Step the symbol belongs to
            action: Action whose trigger is wanted (TRIGGER only)

        Returns:
            The cached Z3 constant
        """
        if (kind == SymbolKind.TRIGGER) != (action is not None):
            raise ValueError(f"{kind.value} symbols take an action iff they are triggers")
        if step < 0:
            raise ValueError(f"Negative step {step}")

        key = SymbolKey(kind, step, action)
        symbol = self._symbols.get(key)
        if symbol is None:
            symbol = self._declare(key)
            self._symbols[key] = symbol
        return symbol

    def trigger(self, step: int, action: "Action") -> z3.BoolRef:
        return self.get(SymbolKind.TRIGGER, step, action)

    def index(self, step: int) -> z3.ArithRef:
        return self.get(SymbolKind.INDEX, step)

    def stack(self, step: int) -> z3.ArrayRef:
        return self.get(SymbolKind.STACK, step)

    def _declare(self, key: SymbolKey) -> z3.ExprRef:
        if key.kind == SymbolKind.TRIGGER:
            name = f"{key.action.symbol_name}@{key.step}"
            symbol = z3.Bool(name)
        elif key.kind == SymbolKind.INDEX:
            name = f"idx@{key.step}"
            symbol = z3.Int(name)
        elif key.kind == SymbolKind.STACK:
            name = f"stack@{key.step}"
            symbol = z3.Array(name, self.int_sort, self.bv_sort)
        else:
            raise ValueError(f"Unknown symbol kind {key.kind}")

        logger.debug(f"Declared {name}", category=LogCategory.ENCODER)
        return symbol
