"""Utility functions for tagsql.

Helpers for checking and converting `$n` placeholder SQL produced by the
compilers.
"""

import re
from typing import Any, List, Sequence, Tuple

from .exceptions import PlaceholderError

_PLACEHOLDER = re.compile(r"\$(\d+)")


# ===========================================================================
# Placeholders
# ===========================================================================


def find_placeholders(sql: str) -> List[int]:
    """Return placeholder indexes in order of occurrence, repeats included."""
    return [int(m.group(1)) for m in _PLACEHOLDER.finditer(sql)]


def validate_placeholders(sql: str, values: Sequence[Any]) -> None:
    """Check that `$n` placeholders line up with `values`.

    Every index must satisfy `1 <= n <= len(values)` and no index below the
    highest one may be missing.

    Raises:
        PlaceholderError: On an out-of-range index or a gap
    """
    indexes = find_placeholders(sql)
    for n in indexes:
        if n < 1 or n > len(values):
            raise PlaceholderError("Placeholder out of range", placeholder=f"${n}", values=len(values))
    if indexes:
        missing = sorted(set(range(1, max(indexes) + 1)) - set(indexes))
        if missing:
            raise PlaceholderError("Placeholder is missing", placeholder=f"${missing[0]}")


def convert_to_qmark(sql: str, values: Sequence[Any]) -> Tuple[str, List[Any]]:
    """Rewrite `$n` placeholders to `?` for drivers using the qmark style.

    Values are reordered, and repeated, to follow placeholder occurrence order.

    Example:
        >>> convert_to_qmark("a = $2 OR b = $1 OR c = $2", ["x", "y"])
        ('a = ? OR b = ? OR c = ?', ['y', 'x', 'y'])

    Raises:
        PlaceholderError: If a placeholder has no matching value
    """
    ordered: List[Any] = []

    def replace(match: "re.Match[str]") -> str:
        n = int(match.group(1))
        if n < 1 or n > len(values):
            raise PlaceholderError("Placeholder out of range", placeholder=match.group(0), values=len(values))
        ordered.append(values[n - 1])
        return "?"

    return _PLACEHOLDER.sub(replace, sql), ordered
