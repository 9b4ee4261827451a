"""
Tool module for Z3 formula construction and model reading:
- TransitionEncoder: stack machine formulas over a SymbolCache
- ModelDecoder: models back to action/stack traces
"""

from .encoder import TransitionEncoder
from .decoder import ModelDecoder, render_trace

__all__ = ["TransitionEncoder", "ModelDecoder", "render_trace"]
