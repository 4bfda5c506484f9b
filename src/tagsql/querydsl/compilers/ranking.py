"""Ranking compiler.

Turns weighted match rules into a scored CASE expression for a SELECT list:

    CASE WHEN tags LIKE '%deep%' THEN 3 WHEN tags LIKE '%cute%' THEN 2 ELSE 0 END AS rank

Values are escaped into the SQL text instead of bound, so rules must come from
static, operator-authored configuration and never from end-user input.
"""

from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from ...exceptions import InvalidFieldError
from ...logger import get_logger
from ...schema import RankRule
from ...settings import settings as api_settings
from .utils import escape_literal, format_number

__all__ = (
    "RankingCompiler",
    "ranking",
)

logger = get_logger(__name__)

RuleInput = Union[RankRule, Dict[str, Any]]


class RankingCompiler:
    """Compile rank rules into `CASE ... END AS <alias>` expressions."""

    _PATTERN_OPS = {"LIKE", "ILIKE"}

    def __init__(self, default_operator: Optional[str] = None) -> None:
        self.default_operator = default_operator or api_settings.RANK_DEFAULT_OPERATOR

    def to_case(self, rules: Sequence[RuleInput], alias: str) -> str:
        """Build the CASE expression.

        Args:
            rules: Rank rules, as `RankRule` or dicts
            alias: Column alias for the score

        Raises:
            InvalidFieldError: If the alias or a rule is malformed
        """
        if not isinstance(alias, str) or not alias:
            raise InvalidFieldError("Rank alias must be a non-empty string", field="alias", value=alias)
        if not isinstance(rules, (list, tuple)):
            raise InvalidFieldError("Rank rules must be a list", received=type(rules).__name__)

        cases = [self._rule_to_case(self._coerce(rule)) for rule in rules]
        logger.debug("Compiled %d rank rule(s) into %s", len(cases), alias)
        return f"CASE {' '.join(cases)} ELSE 0 END AS {alias}" if cases else f"0 AS {alias}"

    def to_select(
        self,
        values: Optional[Sequence[str]] = None,
        aliases: Optional[Dict[str, str]] = None,
        rank: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Build a select list from aliased columns, plain columns and a rank.

        `rank` is `{"alias": str, "rules": [...]}`. Returns `*` when nothing is
        requested.
        """
        parts: List[str] = []
        for column, alias in (aliases or {}).items():
            parts.append(f"{column} AS {alias}")
        parts.extend(values or [])
        if rank:
            parts.append(self.to_case(rank.get("rules") or [], rank.get("alias")))
        return ", ".join(parts) or "*"

    def _coerce(self, rule: RuleInput) -> RankRule:
        if isinstance(rule, RankRule):
            return rule
        if not isinstance(rule, dict):
            raise InvalidFieldError("Rank rule must be a RankRule or dict", received=type(rule).__name__)
        try:
            return RankRule(**rule)
        except ValidationError as e:
            raise InvalidFieldError("Invalid rank rule", errors=e.errors()) from e

    def _rule_to_case(self, rule: RankRule) -> str:
        weight = format_number(rule.weight)

        if not rule.columns:
            if not isinstance(rule.value, str):
                raise InvalidFieldError("Rank rule without columns needs a raw SQL condition", value=rule.value)
            return f"WHEN {rule.value} THEN {weight}"

        operator = (rule.operator or self.default_operator).upper()
        if operator == "IN":
            if not isinstance(rule.value, list):
                raise InvalidFieldError("IN rank rule requires a list value", value=rule.value)
            in_list = ", ".join(escape_literal(v) for v in rule.value)
            conditions = [f"{col} IN ({in_list})" for col in rule.columns]
        else:
            if not isinstance(rule.value, str):
                raise InvalidFieldError(f"{operator} rank rule requires a string value", value=rule.value)
            literal = escape_literal(f"%{rule.value}%" if operator in self._PATTERN_OPS else rule.value)
            conditions = [f"{col} {operator} {literal}" for col in rule.columns]
        return f"WHEN {' OR '.join(conditions)} THEN {weight}"


ranking = RankingCompiler()
