"""Compiler utility functions.

Provides helpers for normalizing condition input and escaping SQL literals.
"""

from typing import Any, Union

from ...exceptions import InvalidFieldError
from ...schema import Composite, Leaf


def normalize_where_input(where: Any) -> Union[Composite, Leaf, dict]:
    """Normalize Q objects and plain dicts into condition nodes.

    - objects exposing `to_node()` (e.g. `Q`) are converted first
    - a dict with `conditions` becomes a `Composite` (`group` or `logic` names the connector)
    - a dict with `column` becomes a `Leaf`
    - any other dict is returned as-is and compiled as a legacy flat map

    Raises:
        InvalidFieldError: If input is not a node, Q object or dict
    """
    if hasattr(where, "to_node") and callable(where.to_node):
        where = where.to_node()
    if isinstance(where, (Composite, Leaf)):
        return where
    if isinstance(where, dict):
        if "conditions" in where:
            conditions = where["conditions"]
            if not isinstance(conditions, list):
                raise InvalidFieldError(
                    "'conditions' must be a list", received=type(conditions).__name__
                )
            logic = where.get("group", where.get("logic", "AND"))
            return Composite(logic=logic if isinstance(logic, str) else "AND", conditions=conditions)
        if "column" in where:
            return Leaf.from_dict(where)
        return where
    raise InvalidFieldError(
        "Condition must be a Q object, Leaf, Composite or dict", received=type(where).__name__
    )


def escape_literal(value: Any) -> str:
    """Escape a value as a PostgreSQL string literal.

    Quotes are doubled. Text containing a backslash uses the `E''` form with
    doubled backslashes.
    """
    text = str(value)
    escaped = text.replace("'", "''")
    if "\\" in escaped:
        return "E'" + escaped.replace("\\", "\\\\") + "'"
    return "'" + escaped + "'"


def format_number(n: Union[int, float]) -> str:
    """Render a weight without a trailing `.0` for whole numbers."""
    if isinstance(n, float) and n.is_integer():
        return str(int(n))
    return str(n)
