"""
Error types for Chiffres-Z3.

Only two conditions are exceptional. Running out of time or proving a
depth unsatisfiable are ordinary search outcomes and are reported
through CheckOutcome instead.
"""

from typing import Optional


class ConfigurationError(ValueError):
    """
    Raised when the puzzle parameters cannot be encoded.

    Raised eagerly by the encoder constructor, before any symbol is
    declared or any solver session exists.

    Attributes:
        value: The offending numeral or target, if any
        bv_bits: Bit width in effect when the check failed
    """

    def __init__(self, message: str, value: Optional[int] = None, bv_bits: Optional[int] = None):
        super().__init__(message)
        self.value = value
        self.bv_bits = bv_bits


class EncodingInvariantError(RuntimeError):
    """
    Raised when a model violates an invariant the encoding guarantees.

    Seeing this means the transition formulas are wrong, not that the
    puzzle has no solution.

    Attributes:
        step: Step at which the violation was observed
        fired: Labels of the triggers found true at that step
    """

    def __init__(self, message: str, step: int, fired: Optional[list[str]] = None):
        super().__init__(message)
        self.step = step
        self.fired = fired or []
