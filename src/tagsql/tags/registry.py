"""Registries driving the tag query tokenizer.

- Special queries handle `title:value` terms (e.g. `source:ponybooru`).
- Symbolic inputs handle `term<symbol><number>` modifiers (e.g. `applejack^2`).

Both are write-once per key and meant to be configured before parsing starts.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from ..exceptions import DuplicateKeyError, InvalidRegistrationError, MissingConfigError
from ..logger import get_logger
from ..types import SpecialParser

__all__ = (
    "SpecialQuery",
    "SymbolicInput",
    "SpecialQueryRegistry",
    "SymbolicInputRegistry",
    "RESERVED_LIST_NAMES",
)

logger = get_logger(__name__)

# Keys already used by the parse result itself
RESERVED_LIST_NAMES = frozenset({"include", "column", "specials"})


class SpecialQuery(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    title: str
    parser: Optional[SpecialParser] = None

    def parse(self, raw: str) -> Any:
        return self.parser(raw) if self.parser is not None else raw


class SymbolicInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    list_name: str
    value_key: str


class SpecialQueryRegistry:
    """Special queries keyed by title, matched exactly."""

    def __init__(self) -> None:
        self._queries: Dict[str, SpecialQuery] = {}

    def add(self, title: str, parser: Optional[SpecialParser] = None) -> SpecialQuery:
        """Register a special query.

        Raises:
            InvalidRegistrationError: If the title is empty or contains ':', or the parser is not callable
            DuplicateKeyError: If the title is already registered
        """
        if not isinstance(title, str) or not title.strip() or ":" in title:
            raise InvalidRegistrationError("Special query title must be a non-empty string without ':'", title=title)
        if parser is not None and not callable(parser):
            raise InvalidRegistrationError("Special query parser must be callable", title=title)
        if title in self._queries:
            raise DuplicateKeyError("Special query already exists", title=title)
        query = SpecialQuery(title=title, parser=parser)
        self._queries[title] = query
        logger.debug("Registered special query %s", title)
        return query

    def has(self, title: str) -> bool:
        return isinstance(title, str) and title in self._queries

    def find(self, title: str) -> Optional[SpecialQuery]:
        return self._queries.get(title)

    def get(self, title: str) -> SpecialQuery:
        query = self.find(title)
        if query is None:
            raise MissingConfigError("Special query not found", title=title)
        return query

    def remove(self, title: str) -> None:
        if title not in self._queries:
            raise MissingConfigError("Special query not found", title=title)
        del self._queries[title]

    def titles(self) -> List[str]:
        return list(self._queries.keys())


class SymbolicInputRegistry:
    """Modifier symbols mapped to the output list that collects their values.

    Symbols are tested in registration order; the first one found in a term wins.
    """

    DEFAULTS = (
        ("^", "boosts", "boost"),
        ("~", "fuzzies", "fuzzy"),
    )

    def __init__(self, seed_defaults: bool = True) -> None:
        self._inputs: Dict[str, SymbolicInput] = {}
        if seed_defaults:
            for symbol, list_name, value_key in self.DEFAULTS:
                self.add(symbol, list_name, value_key)

    def add(self, symbol: str, list_name: str, value_key: str) -> SymbolicInput:
        """Register a modifier symbol.

        Raises:
            InvalidRegistrationError: If a field is empty, the symbol holds whitespace
                or ':', or the list name is reserved
            DuplicateKeyError: If the symbol or list name is already registered
        """
        for field, value in (("symbol", symbol), ("list_name", list_name), ("value_key", value_key)):
            if not isinstance(value, str) or not value.strip():
                raise InvalidRegistrationError("Symbolic input fields must be non-empty strings", field=field)
        if any(ch.isspace() for ch in symbol) or ":" in symbol:
            raise InvalidRegistrationError("Symbol must not contain whitespace or ':'", symbol=symbol)
        if list_name in RESERVED_LIST_NAMES:
            raise InvalidRegistrationError("List name is reserved", list_name=list_name)
        if value_key == "term":
            raise InvalidRegistrationError("Value key 'term' is reserved", value_key=value_key)
        if symbol in self._inputs:
            raise DuplicateKeyError("Symbolic input already exists", symbol=symbol)
        if any(item.list_name == list_name for item in self._inputs.values()):
            raise DuplicateKeyError("List name already in use", list_name=list_name)

        item = SymbolicInput(symbol=symbol, list_name=list_name, value_key=value_key)
        self._inputs[symbol] = item
        logger.debug("Registered symbolic input %s -> %s.%s", symbol, list_name, value_key)
        return item

    def has(self, symbol: str) -> bool:
        return isinstance(symbol, str) and symbol in self._inputs

    def get(self, symbol: str) -> SymbolicInput:
        if symbol not in self._inputs:
            raise MissingConfigError("Symbolic input not found", symbol=symbol)
        return self._inputs[symbol]

    def remove(self, symbol: str) -> None:
        if symbol not in self._inputs:
            raise MissingConfigError("Symbolic input not found", symbol=symbol)
        del self._inputs[symbol]

    def all(self) -> List[SymbolicInput]:
        return list(self._inputs.values())

    def match(self, term: str) -> Optional[SymbolicInput]:
        for item in self._inputs.values():
            if item.symbol in term:
                return item
        return None
