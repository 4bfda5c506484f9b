"""Query DSL core utilities.

This module defines the `Q` class used to compose condition trees with
Python operators. A `Q` node turns into `Leaf`/`Composite` nodes that the
condition compiler lowers into parameterized SQL.

Typical usage:

- Build filters: `Q(age__gte=18) & Q(age__lte=30)`
- Alternatives: `Q(status="active") | Q(type="admin")`
- Compile: `q.to_where(cache)` or `q.to_expr()` for `(sql, values)`
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

from ..schema import Composite, Leaf, PlaceholderCache
from .operators import DEFAULT_FUNCTIONS

if TYPE_CHECKING:
    from .compilers.condition import ConditionWhereCompiler


class Q:
    """Composable boolean condition node.

    A `Q` instance holds leaf-level filters (e.g., `field__lookup=value`) or
    boolean combinations of child `Q` nodes using `AND` / `OR` connectors.

    - Use `&` to combine with logical AND.
    - Use `|` to combine with logical OR.

    Lookups `eq`, `ne`, `gt`, `gte`, `lt`, `lte` and `like` map to comparison
    operators, and the name of any default function wrapper (`lower`, `round`,
    `date`, ...) selects that wrapper. Other double-underscore segments are
    path separators: `t__name="x"` filters on `t.name`.
    """

    _OP_MAP = {
        "eq": "=",
        "ne": "!=",
        "gt": ">",
        "gte": ">=",
        "lt": "<",
        "lte": "<=",
        "like": "LIKE",
    }

    def __init__(self, **filters: Any):
        self.filters: Dict[str, Any] = filters
        self.children: List["Q"] = []
        self.connector = "AND"

    def __and__(self, other: "Q") -> "Q":
        """Return a new node representing logical AND of two nodes."""
        node = Q()
        node.connector = "AND"
        node.children = [self, other]
        return node

    def __or__(self, other: "Q") -> "Q":
        """Return a new node representing logical OR of two nodes."""
        node = Q()
        node.connector = "OR"
        node.children = [self, other]
        return node

    def __repr__(self) -> str:
        return f"<Q: {self.to_node()!r}>"

    # -------------------
    # Condition nodes
    # -------------------
    @classmethod
    def _split_lookup(cls, key: str) -> Tuple[str, str]:
        if "__" in key:
            field, lookup = key.rsplit("__", 1)
            if lookup in cls._OP_MAP:
                return field.replace("__", "."), cls._OP_MAP[lookup]
            if lookup.upper() in DEFAULT_FUNCTIONS:
                return field.replace("__", "."), lookup.upper()
        # No valid lookup - whole key is the column with implicit equality
        return key.replace("__", "."), "="

    def _leaves(self) -> List[Leaf]:
        leaves = []
        for key, value in self.filters.items():
            column, operator = self._split_lookup(key)
            leaves.append(Leaf(column=column, operator=operator, value=value))
        return leaves

    def to_node(self) -> Union[Composite, Leaf]:
        """Return the condition node for this `Q`.

        - A single filter becomes a `Leaf`.
        - Several filters become an AND `Composite` of leaves.
        - Combined nodes become a `Composite` with the node's connector.
        """
        if self.children:
            return Composite(logic=self.connector, conditions=[child.to_node() for child in self.children])
        leaves = self._leaves()
        if len(leaves) == 1:
            return leaves[0]
        return Composite(logic="AND", conditions=leaves)

    # -------------------
    # Compilation
    # -------------------
    def to_where(
        self,
        cache: PlaceholderCache,
        compiler: Optional[ConditionWhereCompiler] = None,
    ) -> str:
        """Compile against a shared cache and return the SQL fragment."""
        if compiler is None:
            from .compilers.condition import condition_where

            compiler = condition_where
        return compiler.to_where(self, cache)

    def to_expr(self, compiler: Optional[ConditionWhereCompiler] = None) -> Tuple[str, list]:
        """Compile against a fresh cache and return `(sql, values)`."""
        cache = PlaceholderCache()
        return self.to_where(cache, compiler), cache.values
