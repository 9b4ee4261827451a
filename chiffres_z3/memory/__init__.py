"""
Memory module for per-session storage:
- SymbolCache: arena of Z3 constants shared by all formulas of a session
"""

from .symbol_cache import SymbolCache, SymbolKey, SymbolKind

__all__ = ["SymbolCache", "SymbolKey", "SymbolKind"]
