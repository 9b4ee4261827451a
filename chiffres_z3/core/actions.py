"""
Stack machine actions.

The action set is closed: pushing one of the input numerals, or
combining the two topmost cells with one of the four operators. Each
action carries its own precondition and result so the encoder never
dispatches on anything but ActionKind.

Operand order follows the machine: e1 is the top cell (index - 1) and
e2 the cell below it (index - 2); binary results are e1 <op> e2.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import z3


class ActionKind(Enum):
    """Kinds of actions the stack machine can fire at a step."""
    PUSH = "push"
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"


@dataclass(frozen=True)
class Action:
    """
    One action of the stack machine.

    Instances are hashable and compare by value, so they double as
    symbol cache keys.

    Attributes:
        kind: Which action this is
        value: The pushed numeral (PUSH only)
    """
    kind: ActionKind
    value: Optional[int] = None

    def __post_init__(self):
        if (self.kind == ActionKind.PUSH) != (self.value is not None):
            raise ValueError(f"Only push actions carry a value: {self.kind.value} / {self.value}")

    @classmethod
    def push(cls, value: int) -> "Action":
        return cls(ActionKind.PUSH, value)

    @property
    def is_binary(self) -> bool:
        return self.kind != ActionKind.PUSH

    @property
    def label(self) -> str:
        """Human-readable label, e.g. 'push 5' or 'div'."""
        if self.kind == ActionKind.PUSH:
            return f"push {self.value}"
        return self.kind.value

    @property
    def symbol_name(self) -> str:
        """Stem used for the trigger's Z3 declaration name."""
        if self.kind == ActionKind.PUSH:
            return f"push_{self.value}"
        return self.kind.value

    def precondition(
        self,
        e1: z3.BitVecRef,
        e2: z3.BitVecRef,
        guard_overflow: bool = False
    ) -> z3.BoolRef:
        """
        Extra condition on the two topmost cells for a binary action.

        The 'index >= 2' requirement is shared by all binary actions and
        is added by the encoder, not here.

        Args:
            e1: Top of stack
            e2: Cell below the top
            guard_overflow: Also require the signed result to fit

        Returns:
            Z3 boolean expression
        """
        kind = self.kind
        conds = []
        if kind == ActionKind.ADD:
            if guard_overflow:
                conds = [z3.BVAddNoOverflow(e1, e2, True), z3.BVAddNoUnderflow(e1, e2)]
        elif kind == ActionKind.SUB:
            if guard_overflow:
                conds = [z3.BVSubNoOverflow(e1, e2), z3.BVSubNoUnderflow(e1, e2, True)]
        elif kind == ActionKind.MUL:
            if guard_overflow:
                conds = [z3.BVMulNoOverflow(e1, e2, True), z3.BVMulNoUnderflow(e1, e2)]
        elif kind == ActionKind.DIV:
            conds = [e2 != 0]
            if guard_overflow:
                conds.append(z3.BVSDivNoOverflow(e1, e2))
        else:
            raise ValueError(f"No precondition for {self.label}")

        if not conds:
            return z3.BoolVal(True)
        return z3.And(*conds)

    def result(self, e1: z3.BitVecRef, e2: z3.BitVecRef) -> z3.BitVecRef:
        """Value written in place of the two topmost cells."""
        kind = self.kind
        if kind == ActionKind.ADD:
            return e1 + e2
        if kind == ActionKind.SUB:
            return e1 - e2
        if kind == ActionKind.MUL:
            return e1 * e2
        if kind == ActionKind.DIV:
            # signed, truncating toward zero
            return e1 / e2
        raise ValueError(f"{self.label} has no binary result")


ADD = Action(ActionKind.ADD)
SUB = Action(ActionKind.SUB)
MUL = Action(ActionKind.MUL)
DIV = Action(ActionKind.DIV)

BINARY_ACTIONS = (ADD, SUB, MUL, DIV)
