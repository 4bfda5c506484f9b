"""Tag criteria compiler.

Transforms `TagCriteria` into `EXISTS` / `NOT EXISTS` sub-queries, either over
an array-unnesting function (nested mode, e.g. PostgreSQL
`json_array_elements_text(tags)`) or over a child table (flat mode).

Supports:
- Negation via a leading marker (`!tag` -> `NOT EXISTS`)
- Wildcards (`*` many, `?` one) translated to `LIKE` patterns when allowed
- OR-groups (nested lists) joined with `OR` inside one parenthesized fragment

Limitations:
- Identifiers (column, alias, unnest function) are emitted verbatim
- An empty include list compiles to `1` so callers can always AND the result
"""

from typing import Any, List, Optional, Tuple

from ...exceptions import ConfigurationError, InvalidFieldError, MissingFieldError
from ...logger import get_logger
from ...schema import PlaceholderCache, TagCriteria
from ...settings import settings as api_settings
from ...types import Criteria
from .base import BaseWhere

__all__ = (
    "TagWhereCompiler",
    "tag_where",
)

logger = get_logger(__name__)


class TagWhereCompiler(BaseWhere):
    """Compile tag criteria into SQL WHERE fragments.

    Capabilities:
    - USES_UNNEST: True for array/JSON columns, False for child tables
    - Wildcard and negation markers are configurable per instance
    """

    # Characters with special meaning inside LIKE patterns
    _LIKE_SPECIALS = ("%", "_")

    def __init__(
        self,
        column: Optional[str] = None,
        value_alias: Optional[str] = None,
        unnest_function: Optional[str] = None,
        use_unnest: Optional[bool] = None,
        wildcard_many: Optional[str] = None,
        wildcard_one: Optional[str] = None,
        negation_marker: Optional[str] = None,
    ) -> None:
        self.column = column if column is not None else api_settings.TAG_COLUMN
        self.value_alias = value_alias if value_alias is not None else api_settings.TAG_VALUE_ALIAS
        self.unnest_function = unnest_function if unnest_function is not None else api_settings.TAG_UNNEST_FUNCTION
        self.use_unnest = use_unnest if use_unnest is not None else api_settings.TAG_USE_UNNEST
        self.wildcard_many = wildcard_many if wildcard_many is not None else api_settings.TAG_WILDCARD_MANY
        self.wildcard_one = wildcard_one if wildcard_one is not None else api_settings.TAG_WILDCARD_ONE
        self.negation_marker = negation_marker if negation_marker is not None else api_settings.TAG_NEGATION_MARKER

        for option in ("column", "wildcard_many", "wildcard_one", "negation_marker"):
            value = getattr(self, option)
            if not isinstance(value, str) or not value:
                raise ConfigurationError("Tag compiler option must be a non-empty string", option=option, value=value)
        if self.use_unnest and not self.unnest_function:
            raise ConfigurationError("Nested mode requires an unnest function", option="unnest_function")

    def to_where(self, criteria: Criteria, cache: PlaceholderCache) -> str:
        """Compile tag criteria into SQL, binding one value per tag into `cache`.

        Args:
            criteria: `TagCriteria` or dict with at least `include`
            cache: Shared placeholder cache for the outer query

        Returns:
            `(<fragment> AND ...)`, or `1` when the include list is empty

        Raises:
            MissingFieldError: If `include` is missing or flat mode lacks a value alias
            InvalidFieldError: If a tag is not a string or is empty
        """
        if not isinstance(cache, PlaceholderCache):
            raise InvalidFieldError(
                "cache must be a PlaceholderCache", received=type(cache).__name__
            )
        group = TagCriteria.from_any(criteria)
        column = group.column or self.column
        value_alias = group.value_alias or self.value_alias
        if not self.use_unnest and not value_alias:
            raise MissingFieldError("Flat tag mode requires a value alias", field="value_alias", column=column)

        where: List[str] = []
        for clause in group.include:
            if isinstance(clause, list):
                ors = [
                    self._exists(column, value_alias, *self._bind_tag(tag, group.allow_wildcards, cache))
                    for tag in clause
                ]
                if ors:
                    where.append("(" + " OR ".join(ors) + ")")
            else:
                where.append(self._exists(column, value_alias, *self._bind_tag(clause, group.allow_wildcards, cache)))

        logger.debug("Compiled %d tag fragment(s) for column %s", len(where), column)
        if not where:
            return "1"
        return "(" + " AND ".join(where) + ")"

    def _bind_tag(self, tag: Any, allow_wildcards: bool, cache: PlaceholderCache) -> Tuple[str, bool, bool]:
        """Return `(placeholder, uses_like, negated)` after binding the tag value."""
        if not isinstance(tag, str):
            raise InvalidFieldError("Each tag must be a string", field="include", received=type(tag).__name__)

        negated = tag.startswith(self.negation_marker)
        clean = tag[len(self.negation_marker) :] if negated else tag
        if not clean:
            raise InvalidFieldError("Empty tag name after negation", field="include", value=tag)

        uses_like = allow_wildcards and (self.wildcard_many in clean or self.wildcard_one in clean)
        if uses_like:
            for ch in self._LIKE_SPECIALS:
                clean = clean.replace(ch, "\\" + ch)
            clean = clean.replace(self.wildcard_many, "%").replace(self.wildcard_one, "_")

        return cache.bind(clean), uses_like, negated

    def _exists(self, column: str, value_alias: Optional[str], param: str, uses_like: bool, negated: bool) -> str:
        op = "LIKE" if uses_like else "="
        prefix = "NOT EXISTS" if negated else "EXISTS"
        if self.use_unnest:
            source = f"{self.unnest_function}({column}) WHERE value {op} {param}"
        else:
            source = f"{column} WHERE {column}.{value_alias} {op} {param}"
        return f"{prefix} (SELECT 1 FROM {source})"


tag_where = TagWhereCompiler()
