"""Base compiler interface.

Defines the contract shared by the condition and tag compilers: both lower an
input structure into a SQL boolean fragment while binding values into a
caller-supplied `PlaceholderCache`.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from ...schema import PlaceholderCache

__all__ = ("BaseWhere",)


class BaseWhere(ABC):
    """Abstract base class for where clause compilers.

    Subclasses implement `to_where`, which appends bound values to `cache` and
    returns SQL text whose `$n` placeholders line up with them.
    """

    @abstractmethod
    def to_where(self, node: Any, cache: PlaceholderCache) -> str:
        """Compile `node` into SQL, binding its values into `cache`."""
        raise NotImplementedError

    def to_expr(self, node: Any, cache: Optional[PlaceholderCache] = None) -> Tuple[str, list]:
        """Compile against a fresh cache (or the one given) and return `(sql, values)`."""
        cache = cache if cache is not None else PlaceholderCache()
        sql = self.to_where(node, cache)
        return sql, cache.values
