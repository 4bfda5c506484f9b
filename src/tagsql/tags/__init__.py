"""Tag query tokenizer and its registries."""

from .parser import StrictChecks, TagQueryParser
from .registry import SpecialQuery, SpecialQueryRegistry, SymbolicInput, SymbolicInputRegistry

__all__ = (
    "TagQueryParser",
    "StrictChecks",
    "SpecialQuery",
    "SpecialQueryRegistry",
    "SymbolicInput",
    "SymbolicInputRegistry",
)
