"""Tag query tokenizer.

Parses free-text tag searches such as

    applejack^2 AND "rainbow dash" AND (solo OR duo) AND source:ponybooru

into an include list of bare terms and OR-groups, plus the values pulled out by
symbolic modifiers (`^2`) and special queries (`source:`):

    include  = ['applejack', 'rainbow dash', ['solo', 'duo']]
    boosts   = [{'term': 'applejack', 'boost': 2.0}]
    specials = [{'key': 'source', 'value': 'ponybooru'}]

Grammar, in a single left-to-right pass:

- `'...'` / `"..."` copy verbatim, keywords are not recognized inside
- `(` opens an OR-group, `)` closes it
- ` AND ` ends the current chunk
- `OR ` at the start of a term separates terms of the same chunk
"""

import re
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, StrictBool, ValidationError

from ..exceptions import (
    EmptyInputError,
    EmptyTagError,
    InvalidFieldError,
    ParseLimitExceededError,
    UnbalancedParenthesesError,
    UnterminatedQuoteError,
)
from ..logger import get_logger
from ..schema import ParseResult
from ..settings import settings as api_settings
from ..types import Chunks
from .registry import SpecialQueryRegistry, SymbolicInputRegistry

__all__ = (
    "StrictChecks",
    "TagQueryParser",
)

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")
# Leading numeric prefix, read the way parseFloat-style parsers do
_NUMBER_PREFIX = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_QUOTES = ("'", '"')


class StrictChecks(BaseModel):
    """Strict-mode checks, each independently toggleable."""

    model_config = ConfigDict(extra="forbid")

    empty_input: StrictBool = True
    parse_limit: StrictBool = True
    open_parens: StrictBool = True
    quote_char: StrictBool = True
    empty_tag: StrictBool = True


class _TermBuffer:
    """Mutable state for one tokenize call."""

    def __init__(self, parser: "TagQueryParser", strict: bool, checks: StrictChecks) -> None:
        self.parser = parser
        self.strict = strict
        self.checks = checks
        self.chunks: Chunks = []
        self.group: List[str] = []
        self.chars: List[str] = []
        self.in_group = False
        self.seen: Set[str] = set()
        self.count = 0

    def flush_term(self) -> None:
        value = "".join(self.chars).strip()
        self.chars = []
        if not value:
            return
        if self.strict and self.checks.empty_tag and value == self.parser.negation_marker:
            raise EmptyTagError("Empty tag name after negation", term=value)

        limit = self.parser.parse_limit
        if 0 <= limit <= self.count:
            if self.strict and self.checks.parse_limit:
                raise ParseLimitExceededError("Exceeded tag parse limit", limit=limit)
            return

        if self.parser.can_repeat or self.in_group or value not in self.seen:
            self.group.append(value)
            if not self.in_group:
                self.seen.add(value)
            self.count += 1

    def flush_chunk(self) -> None:
        if len(self.group) == 1:
            self.chunks.append(self.group[0])
        elif len(self.group) > 1:
            self.chunks.append(list(self.group))
        self.group = []


class TagQueryParser:
    """Tokenize tag search text for one tag column.

    Args:
        column: Column name reported in the parse result
        can_repeat: When False, repeated bare terms outside OR-groups are dropped
        parse_limit: Maximum number of accepted terms, negative for no limit
        negation_marker: Prefix negating a tag; inside modifier values it means minus
        specials: Special query registry (a fresh empty one by default)
        symbols: Symbolic input registry (seeded with `^` boosts and `~` fuzzies by default)
    """

    def __init__(
        self,
        column: Optional[str] = None,
        can_repeat: Optional[bool] = None,
        parse_limit: Optional[int] = None,
        negation_marker: Optional[str] = None,
        specials: Optional[SpecialQueryRegistry] = None,
        symbols: Optional[SymbolicInputRegistry] = None,
    ) -> None:
        self.column = column if column is not None else api_settings.TAG_COLUMN
        self.can_repeat = can_repeat if can_repeat is not None else api_settings.TAG_CAN_REPEAT
        self.parse_limit = parse_limit if parse_limit is not None else api_settings.TAG_PARSE_LIMIT
        self.negation_marker = negation_marker if negation_marker is not None else api_settings.TAG_NEGATION_MARKER
        self.specials = specials if specials is not None else SpecialQueryRegistry()
        self.symbols = symbols if symbols is not None else SymbolicInputRegistry()

    # -------------------
    # Public API
    # -------------------
    def parse(
        self,
        text: str,
        strict: bool = False,
        checks: Optional[Union[StrictChecks, Dict[str, bool]]] = None,
    ) -> ParseResult:
        """Tokenize `text` and extract specials and modifier values.

        Raises:
            InvalidFieldError: If `text` is not a string
            TagParseError: In strict mode, for the enabled grammar checks
        """
        chunks = self.tokenize(text, strict=strict, checks=checks)
        include, specials, lists = self.extract_specials(chunks)
        logger.debug("Parsed %d chunk(s), %d special(s) for column %s", len(include), len(specials), self.column)
        return ParseResult(column=self.column, include=include, specials=specials, **lists)

    def safe_parse(
        self,
        text: str,
        strict: bool = False,
        checks: Optional[Union[StrictChecks, Dict[str, bool]]] = None,
    ) -> ParseResult:
        """Parse friendlier input: commas and `&&` mean AND, `||` means OR,
        and a leading `-` or `NOT ` negates a term.

        Example:
            safe_parse("applejack, -source, rarity || twilight")
            # same as parse("applejack AND !source AND rarity OR twilight")
        """
        if not isinstance(text, str):
            raise InvalidFieldError("Tag query must be a string", received=type(text).__name__)
        normalized = " AND ".join(part.strip() for part in text.split(","))
        normalized = normalized.replace("&&", "AND").replace("||", "OR")
        normalized = re.sub(
            r"(^|[\s(])(?:-|NOT\s+)(?=\S)",
            lambda m: m.group(1) + self.negation_marker,
            normalized,
        )
        return self.parse(normalized, strict=strict, checks=checks)

    # -------------------
    # Tokenizer
    # -------------------
    def tokenize(
        self,
        text: str,
        strict: bool = False,
        checks: Optional[Union[StrictChecks, Dict[str, bool]]] = None,
    ) -> Chunks:
        """Split `text` into chunks: bare terms and OR-groups (lists of terms)."""
        if not isinstance(text, str):
            raise InvalidFieldError("Tag query must be a string", received=type(text).__name__)
        checks = self._strict_checks(checks)

        text = _WHITESPACE.sub(" ", text).strip()
        if strict and checks.empty_input and not text:
            raise EmptyInputError("Input string is empty after trimming")

        buf = _TermBuffer(self, strict, checks)
        quote: Optional[str] = None
        quote_start = -1
        open_parens = 0
        i = 0
        while i < len(text):
            c = text[i]

            if quote is not None:
                if c == quote:
                    quote = None
                else:
                    buf.chars.append(c)
                i += 1
                continue

            if c in _QUOTES:
                quote, quote_start = c, i
                i += 1
                continue

            if c == "(":
                # Nested groups are flattened into the enclosing OR-group
                buf.flush_term()
                if open_parens <= 0:
                    buf.flush_chunk()
                    buf.in_group = True
                open_parens += 1
                i += 1
                continue

            if c == ")":
                if strict and checks.open_parens and open_parens <= 0:
                    raise UnbalancedParenthesesError("Unexpected closing parenthesis", position=i)
                open_parens -= 1
                buf.flush_term()
                if open_parens <= 0:
                    buf.flush_chunk()
                    buf.in_group = False
                i += 1
                continue

            if self._is_and(text, i):
                buf.flush_term()
                buf.flush_chunk()
                i += 4
                continue

            if self._is_or(text, i):
                buf.flush_term()
                i += 3
                continue

            buf.chars.append(c)
            i += 1

        if strict:
            if checks.quote_char and quote is not None:
                raise UnterminatedQuoteError("Unclosed quote", quote=quote, position=quote_start)
            if checks.open_parens and open_parens > 0:
                raise UnbalancedParenthesesError("Unclosed parenthesis", expected=open_parens)

        buf.flush_term()
        buf.flush_chunk()
        return buf.chunks

    @staticmethod
    def _strict_checks(checks: Optional[Union[StrictChecks, Dict[str, bool]]]) -> StrictChecks:
        if isinstance(checks, StrictChecks):
            return checks
        if checks is not None and not isinstance(checks, dict):
            raise InvalidFieldError("Strict checks must be a mapping", field="checks", received=type(checks).__name__)
        try:
            return StrictChecks(**(checks or {}))
        except ValidationError as e:
            raise InvalidFieldError("Invalid strict checks", field="checks", errors=e.errors(include_url=False)) from e

    @staticmethod
    def _is_and(text: str, i: int) -> bool:
        # " AND" followed by a boundary
        if text[i] != " " or text[i + 1 : i + 4].upper() != "AND":
            return False
        return i + 4 == len(text) or text[i + 4] in " ()"

    @staticmethod
    def _is_or(text: str, i: int) -> bool:
        # "OR " at the start of a term
        if text[i : i + 3].upper() != "OR ":
            return False
        return i == 0 or text[i - 1] in " ("

    # -------------------
    # Specials extraction
    # -------------------
    def extract_specials(self, chunks: Chunks) -> Tuple[Chunks, List[Dict[str, Any]], Dict[str, List[Dict[str, Any]]]]:
        """Pull modifier values and special queries out of `chunks`.

        Returns:
            `(include, specials, lists)` where `lists` maps each symbolic input's
            list name to its extracted `{"term": ..., <value_key>: ...}` entries.
            `chunks` itself is left untouched.
        """
        specials: List[Dict[str, Any]] = []
        lists: Dict[str, List[Dict[str, Any]]] = {item.list_name: [] for item in self.symbols.all()}
        listed: Dict[str, Set[str]] = {name: set() for name in lists}
        seen: Set[str] = set()
        include: Chunks = []

        for chunk in chunks:
            is_group = isinstance(chunk, list)
            remaining: List[str] = []

            for term in chunk if is_group else [chunk]:
                symbol = self.symbols.match(term)
                if symbol is not None:
                    base, _, raw = term.partition(symbol.symbol)
                    base = base.strip()
                    if not base:
                        continue
                    if base not in listed[symbol.list_name]:
                        lists[symbol.list_name].append({"term": base, symbol.value_key: self._parse_modifier(raw)})
                        listed[symbol.list_name].add(base)
                    self._keep(base, is_group, seen, remaining)
                    continue

                if ":" in term:
                    key, _, rest = term.partition(":")
                    special = self.specials.find(key)
                    if special is not None:
                        specials.append({"key": key, "value": special.parse(rest)})
                    else:
                        remaining.append(term)
                    continue

                self._keep(term, is_group, seen, remaining)

            if len(remaining) == 1:
                include.append(remaining[0])
            elif remaining:
                include.append(remaining)

        return include, specials, lists

    def _keep(self, term: str, is_group: bool, seen: Set[str], remaining: List[str]) -> None:
        if self.can_repeat or is_group or term not in seen:
            remaining.append(term)
            if not is_group:
                seen.add(term)

    def _parse_modifier(self, raw: str) -> float:
        match = _NUMBER_PREFIX.match(raw.replace(self.negation_marker, "-"))
        if match is None:
            return 1.0
        return float(match.group(0))
