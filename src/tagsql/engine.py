"""
Main engine for assembling filtered WHERE clauses.

This module provides the `FilterEngine`, a high-level class that bundles one
operator registry and condition compiler with per-column tag editors, and
compiles condition trees and tag criteria into a single parameterized clause.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from tagsql.querydsl.q import Q

from .exceptions import DuplicateKeyError, InvalidFieldError
from .logger import Logger
from .querydsl.compilers.condition import ConditionWhereCompiler
from .querydsl.compilers.ranking import RankingCompiler
from .querydsl.compilers.tags import TagWhereCompiler
from .querydsl.operators import OperatorRegistry, build_default_registry
from .schema import ParseResult, PlaceholderCache, TagCriteria
from .settings import settings
from .tags.parser import StrictChecks, TagQueryParser
from .utils import convert_to_qmark

TagInput = Union[TagCriteria, ParseResult, Dict[str, Any]]


class CompiledWhere(BaseModel):
    """WHERE fragment and the values its `$n` placeholders bind to."""

    sql: str = ""
    values: List[Any] = Field(default_factory=list)

    def clause(self) -> str:
        """Return `WHERE <sql>`, or an empty string when there is nothing to filter."""
        return f"WHERE {self.sql}" if self.sql else ""

    def to_qmark(self) -> Tuple[str, List[Any]]:
        """Return `(sql, values)` rewritten for `?` placeholders."""
        return convert_to_qmark(self.sql, self.values)


class TagColumn:
    """Tokenizer and compiler pair for one tag column."""

    def __init__(self, column: str, parser: TagQueryParser, compiler: TagWhereCompiler) -> None:
        self.column = column
        self.parser = parser
        self.compiler = compiler

    def parse(
        self,
        text: str,
        safe: bool = False,
        strict: bool = False,
        checks: Optional[Union[StrictChecks, Dict[str, bool]]] = None,
    ) -> ParseResult:
        if safe:
            return self.parser.safe_parse(text, strict=strict, checks=checks)
        return self.parser.parse(text, strict=strict, checks=checks)

    def to_where(self, criteria: TagInput, cache: PlaceholderCache) -> str:
        if isinstance(criteria, ParseResult):
            criteria = criteria.to_criteria()
        return self.compiler.to_where(criteria, cache)

    def __repr__(self) -> str:
        return f"<TagColumn: {self.column}>"


class FilterEngine:
    """High-level orchestrator for condition and tag filtering.

    Key Features:
        - One operator registry shared by every condition compiled through the engine
        - Lazily created tag editors, one per tag column
        - Condition trees and tag criteria compiled against one placeholder cache

    Attributes:
        registry: Operator registry used by the condition compiler
        conditions: Condition compiler
        ranking: Ranking compiler for select lists
    """

    CONNECTORS = ("AND", "OR")

    def __init__(
        self,
        registry: Optional[OperatorRegistry] = None,
        ranking: Optional[RankingCompiler] = None,
        tag_column: str = settings.TAG_COLUMN,
    ) -> None:
        """Initialize FilterEngine.

        Args:
            registry: Operator registry (a default registry when omitted)
            ranking: Ranking compiler (default settings when omitted)
            tag_column: Column used when parsing or compiling without an explicit one
        """
        self.registry = registry if registry is not None else build_default_registry()
        self.conditions = ConditionWhereCompiler(self.registry)
        self.ranking = ranking if ranking is not None else RankingCompiler()
        self.tag_column = tag_column
        self._tag_columns: Dict[str, TagColumn] = {}
        self.logger = Logger(self.__class__.__name__)
        self.logger.message(
            "FilterEngine initialized: operators=%d tag_column=%s",
            len(self.registry.keys()),
            tag_column,
        )

    # ------------------------------------------------------------------
    # Tag editors
    # ------------------------------------------------------------------
    def add_tag_column(
        self,
        column: str,
        parser: Optional[TagQueryParser] = None,
        compiler: Optional[TagWhereCompiler] = None,
    ) -> TagColumn:
        """Register a tag column with a custom parser and/or compiler.

        Raises:
            InvalidFieldError: If the column is empty
            DuplicateKeyError: If the column already has an editor
        """
        if not isinstance(column, str) or not column:
            raise InvalidFieldError("Tag column must be a non-empty string", field="column", value=column)
        if column in self._tag_columns:
            raise DuplicateKeyError("Tag column already exists", column=column)
        editor = TagColumn(
            column,
            parser if parser is not None else TagQueryParser(column=column),
            compiler if compiler is not None else TagWhereCompiler(column=column),
        )
        self._tag_columns[column] = editor
        self.logger.debug("Added tag column %s", column)
        return editor

    def tag_editor(self, column: Optional[str] = None) -> TagColumn:
        """Return the editor for `column`, creating one with defaults on first use."""
        column = column or self.tag_column
        editor = self._tag_columns.get(column)
        if editor is None:
            editor = self.add_tag_column(column)
        return editor

    def has_tag_column(self, column: str) -> bool:
        return column in self._tag_columns

    # ------------------------------------------------------------------
    # Parsing and compiling
    # ------------------------------------------------------------------
    def parse(
        self,
        text: str,
        column: Optional[str] = None,
        safe: bool = False,
        strict: bool = False,
        checks: Optional[Union[StrictChecks, Dict[str, bool]]] = None,
    ) -> ParseResult:
        """Tokenize tag search text with the column's parser."""
        return self.tag_editor(column).parse(text, safe=safe, strict=strict, checks=checks)

    def compile(
        self,
        q: Optional[Union["Q", Dict[str, Any], Any]] = None,
        tags: Optional[Union[TagInput, Sequence[TagInput]]] = None,
        tag_ops: Optional[Sequence[str]] = None,
        cache: Optional[PlaceholderCache] = None,
    ) -> CompiledWhere:
        """Compile a condition tree and tag criteria into one WHERE fragment.

        The condition comes first and is joined to the tag fragments with `AND`.
        Tag fragment `i` is joined to fragment `i - 1` with `tag_ops[i - 1]`,
        or `AND` when that entry is missing.

        Args:
            q: Condition tree (`Q`, node or dict)
            tags: One tag criteria or a list of them (`TagCriteria`, `ParseResult` or dict)
            tag_ops: Connectors (`AND`/`OR`) between adjacent tag fragments
            cache: Placeholder cache to continue numbering from

        Returns:
            CompiledWhere with `sql == ""` when nothing was given

        Raises:
            InvalidFieldError: On a bad connector or malformed input
        """
        cache = cache if cache is not None else PlaceholderCache()
        if tags is None:
            tags = []
        elif isinstance(tags, (TagCriteria, ParseResult, dict)):
            tags = [tags]

        sql = ""
        if q is not None:
            sql = self.conditions.to_where(q, cache)

        parts: List[str] = []
        for i, criteria in enumerate(tags):
            column = self._criteria_column(criteria)
            fragment = self.tag_editor(column).to_where(criteria, cache)
            if i > 0:
                parts.append(self._connector(tag_ops, i - 1))
            parts.append(fragment)

        if parts:
            tag_sql = " ".join(parts)
            if sql:
                # Several tag fragments stay grouped against the condition
                sql = f"({sql}) AND " + (f"({tag_sql})" if len(parts) > 1 else tag_sql)
            else:
                sql = tag_sql

        self.logger.message("Compiled WHERE fragment with %d bound value(s)", len(cache.values))
        return CompiledWhere(sql=sql, values=list(cache.values))

    def _criteria_column(self, criteria: TagInput) -> Optional[str]:
        if isinstance(criteria, (TagCriteria, ParseResult)):
            return criteria.column
        if isinstance(criteria, dict):
            return criteria.get("column")
        raise InvalidFieldError(
            "Tag criteria must be a TagCriteria, ParseResult or dict", received=type(criteria).__name__
        )

    def _connector(self, tag_ops: Optional[Sequence[str]], i: int) -> str:
        if not tag_ops or i >= len(tag_ops) or tag_ops[i] is None:
            return "AND"
        op = tag_ops[i].upper() if isinstance(tag_ops[i], str) else tag_ops[i]
        if op not in self.CONNECTORS:
            raise InvalidFieldError("Tag connector must be AND or OR", field="tag_ops", value=tag_ops[i])
        return op

    def select(
        self,
        values: Optional[Sequence[str]] = None,
        aliases: Optional[Dict[str, str]] = None,
        rank: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Build a select list through the ranking compiler."""
        return self.ranking.to_select(values=values, aliases=aliases, rank=rank)
