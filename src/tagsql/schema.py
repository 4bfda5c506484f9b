"""Pydantic schemas for condition trees, tag criteria and placeholder state."""

import math
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import InvalidFieldError, MissingFieldError, PlaceholderError
from .settings import settings


class PlaceholderCache(BaseModel):
    """Shared `$n` counter and bound values for one outer query.

    Every compiler that receives the same cache appends to `values` and advances
    `index` by exactly one per bound value, so fragments compiled separately still
    number their placeholders contiguously.
    """

    index: int = Field(default_factory=lambda: settings.PLACEHOLDER_START, ge=1)
    values: List[Any] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_prefilled_values(self) -> "PlaceholderCache":
        # Pre-filled values must already occupy $START..$(index - 1)
        if self.values and len(self.values) != self.index - settings.PLACEHOLDER_START:
            raise PlaceholderError(
                "Placeholder index does not follow the pre-filled values",
                index=self.index,
                values=len(self.values),
                start=settings.PLACEHOLDER_START,
            )
        return self

    def bind(self, value: Any) -> str:
        """Push `value` and return the placeholder text it binds to."""
        placeholder = f"${self.index}"
        self.values.append(value)
        self.index += 1
        return placeholder


class Leaf(BaseModel):
    """Single comparison: `<column> <operator> <placeholder>`.

    `function_override` is tri-state: leave it unset to use the operator's default
    parameter transform, set it to None to disable the transform, or name another
    registered transform key.
    """

    model_config = ConfigDict(extra="ignore")

    column: str
    operator: Optional[str] = None
    value: Any = None
    value_type: Optional[str] = None
    function_override: Optional[str] = None
    operator_override: Optional[str] = None
    wildcard_side: Optional[str] = None

    @property
    def has_function_override(self) -> bool:
        return "function_override" in self.model_fields_set

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Leaf":
        """Build a leaf from a plain dict.

        Raises:
            MissingFieldError: If no column is available
            InvalidFieldError: If a field has the wrong type
        """
        payload = dict(data)
        if not payload.get("column"):
            raise MissingFieldError("Leaf condition requires a column", field="column")
        try:
            return cls(**payload)
        except ValidationError as e:
            raise InvalidFieldError("Invalid leaf condition", column=payload.get("column"), errors=e.errors()) from e


class Composite(BaseModel):
    """Boolean combination of child nodes.

    Children may be `Leaf`, `Composite`, legacy flat maps or plain dicts; they are
    normalized when compiled.
    """

    logic: str = "AND"
    conditions: List[Any] = Field(default_factory=list)

    @property
    def connector(self) -> str:
        """Return `OR` for an OR group and `AND` for anything else."""
        return "OR" if isinstance(self.logic, str) and self.logic.upper() == "OR" else "AND"


ConditionNode = Union[Composite, Leaf, Dict[str, Any]]


class TagCriteria(BaseModel):
    """Tag filter for one column: bare tags are ANDed, nested lists are OR-groups."""

    model_config = ConfigDict(extra="ignore")

    column: Optional[str] = None
    value_alias: Optional[str] = None
    allow_wildcards: bool = False
    include: List[Union[str, List[str]]]

    @classmethod
    def from_any(cls, criteria: Union["TagCriteria", Dict[str, Any]]) -> "TagCriteria":
        """Normalize a `TagCriteria` or dict into a validated model.

        Raises:
            MissingFieldError: If the include list is missing
            InvalidFieldError: If the input is not a mapping or holds non-string tags
        """
        if isinstance(criteria, TagCriteria):
            return criteria
        if not isinstance(criteria, dict):
            raise InvalidFieldError(
                "Tag criteria must be a TagCriteria or dict", received=type(criteria).__name__
            )
        if not isinstance(criteria.get("include"), list):
            raise MissingFieldError(
                "Tag criteria requires an 'include' list of tags or tag groups", field="include"
            )
        try:
            return cls(**criteria)
        except ValidationError as e:
            raise InvalidFieldError("Invalid tag criteria", column=criteria.get("column"), errors=e.errors()) from e


class ParseResult(BaseModel):
    """Tokenizer output.

    Besides `column`, `include` and `specials`, one extra attribute holds each
    symbolic-input list (e.g. `boosts`, `fuzzies`).
    """

    model_config = ConfigDict(extra="allow")

    column: str
    include: List[Union[str, List[str]]] = Field(default_factory=list)
    specials: List[Dict[str, Any]] = Field(default_factory=list)

    def to_criteria(self, allow_wildcards: bool = False, value_alias: Optional[str] = None) -> TagCriteria:
        return TagCriteria(
            column=self.column,
            value_alias=value_alias,
            allow_wildcards=allow_wildcards,
            include=[list(chunk) if isinstance(chunk, list) else chunk for chunk in self.include],
        )


class RankRule(BaseModel):
    """Weighted match rule for ranking expressions.

    Without `columns`, `value` is a raw SQL condition written by the operator.
    """

    columns: Optional[List[str]] = None
    operator: Optional[str] = None
    value: Union[str, List[Any]]
    weight: Union[StrictInt, StrictFloat] = 1

    @field_validator("columns", mode="before")
    @classmethod
    def wrap_single_column(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("weight")
    @classmethod
    def finite_weight(cls, v: Union[int, float]) -> Union[int, float]:
        if isinstance(v, float) and math.isnan(v):
            raise ValueError("weight must be a valid number")
        return v
