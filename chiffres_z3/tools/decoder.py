"""
Model Decoder Module for Chiffres-Z3

Turns a Z3 model of the unrolled transition relation into the ordered
list of fired actions and the stacks they produced, and renders that
list as text.
"""

import z3

from chiffres_z3.core.errors import EncodingInvariantError
from chiffres_z3.core.state import TraceStep
from chiffres_z3.tools.encoder import TransitionEncoder
from chiffres_z3.utils.logger import get_logger, LogCategory

logger = get_logger(__name__)


class ModelDecoder:
    """
    Reads traces out of models produced for a given encoder.

    Exactly one trigger must be true at every decoded step. Anything else
    means the encoding is broken and raises EncodingInvariantError.
    """

    def __init__(self, encoder: TransitionEncoder):
        self.encoder = encoder

    def decode(self, model: z3.ModelRef, depth: int) -> list[TraceStep]:
        """
        Decode the actions of steps 0..depth.

        Args:
            model: Satisfying assignment of the search at this depth
            depth: Last step whose action is decoded

        Returns:
            The initial snapshot followed by one TraceStep per step

        Raises:
            EncodingInvariantError: if a step has zero or several true triggers
        """
        trace = [self.snapshot(model, 0, "init")]

        for step in range(depth + 1):
            fired = [
                action.label
                for action in self.encoder.actions()
                if z3.is_true(model.eval(self.encoder.trigger(step, action), model_completion=True))
            ]
            if len(fired) != 1:
                raise EncodingInvariantError(
                    f"Expected exactly one action at step {step}, found {fired or 'none'}",
                    step=step,
                    fired=fired
                )
            trace.append(self.snapshot(model, step + 1, fired[0]))

        logger.debug(
            f"Decoded {len(trace) - 1} actions: {[s.label for s in trace[1:]]}",
            category=LogCategory.Z3
        )
        return trace

    def snapshot(self, model: z3.ModelRef, step: int, label: str) -> TraceStep:
        """Occupied cells and top marker of the stack at step."""
        index = self.stack_index(model, step)
        cells = tuple(self.cell_value(model, step, i) for i in range(index))
        return TraceStep(label=label, stack=cells, index=index)

    def stack_index(self, model: z3.ModelRef, step: int) -> int:
        return model.eval(self.encoder.index(step), model_completion=True).as_long()

    def cell_value(self, model: z3.ModelRef, step: int, position: int) -> int:
        """Signed value of stack@step[position]."""
        value = model.eval(self.encoder.cell(step, position), model_completion=True)
        return value.as_signed_long()

    def distance_value(self, model: z3.ModelRef, step: int) -> int:
        """The approximate-search objective as evaluated in model."""
        return model.eval(self.encoder.distance(step), model_completion=True).as_long()


def render_stack(step: TraceStep) -> str:
    """'[2 | 3 <|]' style rendering; '<|' marks the top of the stack."""
    if not step.stack:
        return "[]"
    return "[" + " | ".join(str(v) for v in step.stack) + " <|]"


def render_trace(trace: list[TraceStep]) -> list[str]:
    """
    One line per trace entry, e.g.:

        init ~> []
        push 2 ~> [2 <|]
        push 3 ~> [2 | 3 <|]
        add ~> [5 <|]
    """
    return [f"{step.label} ~> {render_stack(step)}" for step in trace]
