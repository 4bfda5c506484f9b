"""Generic condition compiler.

Lowers condition trees into parameterized SQL. Composite nodes wrap each child
in parentheses and join them with their connector; leaves resolve their
operator through an `OperatorRegistry`; legacy flat maps
(`{"column": {...leaf body...}}`) compile as an implicit AND.

Example:

    >>> cache = PlaceholderCache()
    >>> condition_where.to_where(
    ...     {"group": "OR", "conditions": [
    ...         {"column": "status", "value": "active"},
    ...         {"column": "type", "value": "admin"},
    ...     ]},
    ...     cache,
    ... )
    '(status = $1) OR (type = $2)'
    >>> cache.values
    ['active', 'admin']

Column names and operators are trusted caller input and are emitted as given;
only values are bound.
"""

from typing import Any, Dict, List, Optional, Union

from ...exceptions import InvalidFieldError
from ...logger import get_logger
from ...schema import Composite, Leaf, PlaceholderCache
from ...types import Condition
from ..operators import OperatorRegistry, build_default_registry
from .base import BaseWhere
from .utils import normalize_where_input

__all__ = (
    "ConditionWhereCompiler",
    "condition_where",
)

logger = get_logger(__name__)


class ConditionWhereCompiler(BaseWhere):
    """Compile condition trees into SQL WHERE fragments."""

    DEFAULT_OPERATOR = "="

    def __init__(self, registry: Optional[OperatorRegistry] = None) -> None:
        self.registry = registry if registry is not None else build_default_registry()

    def to_where(self, where: Union[Condition, Any], cache: PlaceholderCache) -> str:
        """Compile a Q object, node or dict into SQL, binding values into `cache`.

        Args:
            where: `Q`, `Composite`, `Leaf`, nested dict or legacy flat map
            cache: Shared placeholder cache for the outer query

        Returns:
            SQL fragment without the `WHERE` keyword; empty for empty trees

        Raises:
            InvalidFieldError: If the input or a flat-map entry is malformed
            MissingFieldError: If a leaf has no column
        """
        if not isinstance(cache, PlaceholderCache):
            raise InvalidFieldError(
                "cache must be a PlaceholderCache", received=type(cache).__name__
            )
        bound_before = len(cache.values)
        sql = self._node_to_expr(normalize_where_input(where), cache)
        logger.debug("Compiled condition with %d bound value(s)", len(cache.values) - bound_before)
        return sql

    def _node_to_expr(self, node: Any, cache: PlaceholderCache) -> str:
        if isinstance(node, Composite):
            parts: List[str] = []
            for child in node.conditions:
                inner = self._node_to_expr(normalize_where_input(child), cache)
                if inner:
                    parts.append(f"({inner})")
            return f" {node.connector} ".join(parts)
        if isinstance(node, Leaf):
            return self._leaf_to_expr(node, cache)
        return self._flat_map_to_expr(node, cache)

    def _flat_map_to_expr(self, node: Dict[str, Any], cache: PlaceholderCache) -> str:
        # Map keys are the default column expressions
        parts: List[str] = []
        for column, body in node.items():
            if not isinstance(body, dict):
                raise InvalidFieldError(
                    "Flat-map condition entries must be dicts", column=column, received=type(body).__name__
                )
            leaf = Leaf.from_dict({**body, "column": column})
            parts.append(f"({self._leaf_to_expr(leaf, cache)})")
        return " AND ".join(parts)

    def _leaf_to_expr(self, leaf: Leaf, cache: PlaceholderCache) -> str:
        column = leaf.column
        operator = self.DEFAULT_OPERATOR
        value = leaf.value
        transform_key = leaf.value_type

        if isinstance(leaf.operator, str) and leaf.operator.strip():
            handler = self.registry.get(leaf.operator)
            if handler is None:
                # Unknown keys are used as the SQL operator itself
                operator = leaf.operator.strip()
            else:
                resolution = handler.resolve(leaf)
                if isinstance(resolution.operator, str):
                    operator = resolution.operator
                if isinstance(resolution.column, str):
                    column = resolution.column
                if isinstance(resolution.value_transform, str):
                    transform_key = resolution.value_transform
                if resolution.overrides_value:
                    value = resolution.value

        placeholder = cache.bind(value)
        transform = self.registry.get_transform(transform_key)
        if transform is not None:
            placeholder = transform(placeholder)
        return f"{column} {operator} {placeholder}"


condition_where = ConditionWhereCompiler()
