"""Operator registry used by the condition compiler.

An operator key (looked up case-insensitively) maps to one of three handler
variants:

- `Verbatim`: compile the leaf with a fixed SQL operator.
- `Template`: apply a fixed resolution (operator plus optional column, value or
  value-transform key).
- `Resolver`: call a function with the leaf and apply the `Resolution` it returns.

A value transform may be registered under the same key. When a leaf resolves to
that key, the transform wraps the placeholder text, e.g. `LOWER($1)`.

Typical usage:

    registry = build_default_registry()
    registry.register("ILIKE", Verbatim(operator="ILIKE"))
    registry.register_function("SOUNDEX", apply_to_param=True)
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..exceptions import DuplicateKeyError, InvalidFieldError, InvalidRegistrationError
from ..logger import get_logger
from ..schema import Leaf
from ..types import ValueTransform

__all__ = (
    "Resolution",
    "Verbatim",
    "Template",
    "Resolver",
    "OperatorHandler",
    "OperatorRegistry",
    "build_default_registry",
    "DEFAULT_FUNCTIONS",
)

logger = get_logger(__name__)


def _non_empty(v: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("operator must be a non-empty string")
    return v


class Resolution(BaseModel):
    """Overrides produced for one leaf.

    Only string `operator`, `column` and `value_transform` override the leaf;
    `value` overrides it whenever it was explicitly set, even to None.
    """

    operator: Optional[str] = None
    column: Optional[str] = None
    value: Any = None
    value_transform: Optional[str] = None

    @property
    def overrides_value(self) -> bool:
        return "value" in self.model_fields_set


class _Handler(BaseModel):
    """Handler model whose constructor reports bad fields as registration errors."""

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidRegistrationError(
                f"Invalid {type(self).__name__} operator handler", errors=e.errors(include_url=False)
            ) from e


class Verbatim(_Handler):
    model_config = ConfigDict(frozen=True)

    operator: str

    @field_validator("operator")
    @classmethod
    def check_operator(cls, v: str) -> str:
        return _non_empty(v)

    def resolve(self, leaf: Leaf) -> Resolution:
        return Resolution(operator=self.operator)


class Template(_Handler):
    model_config = ConfigDict(frozen=True)

    operator: str
    column: Optional[str] = None
    value: Any = None
    value_transform: Optional[str] = None

    @field_validator("operator")
    @classmethod
    def check_operator(cls, v: str) -> str:
        return _non_empty(v)

    def resolve(self, leaf: Leaf) -> Resolution:
        # Fresh copy per use, carrying only the fields the template set
        return Resolution(**self.model_dump(exclude_unset=True))


class Resolver(_Handler):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    fn: Callable[[Leaf], Union[Resolution, Dict[str, Any]]]

    def resolve(self, leaf: Leaf) -> Resolution:
        result = self.fn(leaf)
        if isinstance(result, Resolution):
            return result
        if isinstance(result, dict):
            try:
                return Resolution(**result)
            except ValidationError as e:
                raise InvalidFieldError(
                    "Operator resolver returned an invalid resolution",
                    column=leaf.column,
                    errors=e.errors(include_url=False),
                ) from e
        raise InvalidFieldError(
            "Operator resolver must return a Resolution or dict",
            column=leaf.column,
            received=type(result).__name__,
        )


OperatorHandler = Union[Verbatim, Template, Resolver]


class OperatorRegistry:
    """Write-once registry of operator handlers and value transforms."""

    def __init__(self) -> None:
        self._handlers: Dict[str, OperatorHandler] = {}
        self._transforms: Dict[str, ValueTransform] = {}

    @staticmethod
    def normalize_key(key: Any) -> str:
        if not isinstance(key, str) or not key.strip():
            raise InvalidRegistrationError("Operator key must be a non-empty string", key=key)
        return key.strip().upper()

    # -- registration --------------------------------------------------------

    def register(
        self,
        key: str,
        handler: OperatorHandler,
        transform: Optional[ValueTransform] = None,
    ) -> None:
        """Register a handler, and optionally a value transform, under `key`.

        Raises:
            InvalidRegistrationError: If the key is empty, the handler is not a
                `Verbatim`/`Template`/`Resolver`, or the transform is not callable
            DuplicateKeyError: If the key is already registered
        """
        name = self.normalize_key(key)
        if name in self._handlers or name in self._transforms:
            raise DuplicateKeyError("Operator key already exists", key=name)
        if not isinstance(handler, (Verbatim, Template, Resolver)):
            raise InvalidRegistrationError(
                "Operator handler must be Verbatim, Template or Resolver",
                key=name,
                received=type(handler).__name__,
            )
        if transform is not None and not callable(transform):
            raise InvalidRegistrationError("Value transform must be callable", key=name)

        self._handlers[name] = handler
        if transform is not None:
            self._transforms[name] = transform
        logger.debug("Registered operator %s (%s)", name, type(handler).__name__)

    def register_function(self, func_name: str, apply_to_param: bool = False, operator: str = "=") -> None:
        """Register a SQL scalar function wrapper.

        The column compiles as `FUNC(column)`. When `apply_to_param` is true the
        placeholder becomes `FUNC($n)` too. At compile time a leaf's
        `operator_override` replaces `operator`, and `function_override` names a
        different transform key or, when None, disables the parameter transform.
        """
        if not isinstance(func_name, str) or not func_name.strip():
            raise InvalidRegistrationError("Function name must be a non-empty string", key=func_name)
        if not isinstance(apply_to_param, bool):
            raise InvalidRegistrationError("apply_to_param must be a boolean", key=func_name)
        if not isinstance(operator, str) or not operator.strip():
            raise InvalidRegistrationError("Default operator must be a non-empty string", key=func_name)

        def resolve(leaf: Leaf) -> Resolution:
            if leaf.has_function_override:
                transform = leaf.function_override
            else:
                transform = func_name if apply_to_param else None
            return Resolution(
                operator=leaf.operator_override if isinstance(leaf.operator_override, str) else operator,
                column=f"{func_name}({leaf.column})",
                value_transform=transform,
            )

        self.register(func_name, Resolver(fn=resolve), lambda param: f"{func_name}({param})")

    def unregister(self, key: str) -> None:
        """Remove a handler and its transform. Missing keys are ignored."""
        name = self.normalize_key(key)
        self._handlers.pop(name, None)
        self._transforms.pop(name, None)

    # -- look-up -------------------------------------------------------------

    def get(self, key: str) -> Optional[OperatorHandler]:
        if not isinstance(key, str):
            return None
        return self._handlers.get(key.strip().upper())

    def get_transform(self, key: Optional[str]) -> Optional[ValueTransform]:
        if not isinstance(key, str):
            return None
        return self._transforms.get(key.strip().upper())

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def keys(self) -> List[str]:
        return list(self._handlers.keys())

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)


def _like(leaf: Leaf) -> Resolution:
    side = leaf.wildcard_side.lower() if isinstance(leaf.wildcard_side, str) else None
    if side not in (None, "both", "left", "right"):
        raise InvalidFieldError(
            "wildcard_side must be 'left', 'right' or 'both'", column=leaf.column, value=leaf.wildcard_side
        )
    prefix = "%" if side in (None, "both", "left") else ""
    suffix = "%" if side in (None, "both", "right") else ""
    return Resolution(operator="LIKE", value=f"{prefix}{leaf.value}{suffix}")


# name -> (apply_to_param, default operator)
DEFAULT_FUNCTIONS = {
    "SOUNDEX": (True, "="),
    "LOWER": (False, "="),
    "UPPER": (False, "="),
    "TRIM": (False, "="),
    "LTRIM": (False, "="),
    "RTRIM": (False, "="),
    "LENGTH": (False, "="),
    "ABS": (False, "="),
    "ROUND": (False, "="),
    "CEIL": (False, ">="),
    "FLOOR": (False, "<="),
    "COALESCE": (False, "="),
    "HEX": (False, "="),
    "QUOTE": (False, "="),
    "UNICODE": (False, "="),
    "CHAR": (False, "="),
    "TYPEOF": (False, "="),
    "DATE": (False, "="),
    "TIME": (False, "="),
    "DATETIME": (False, "="),
    "JULIANDAY": (False, "="),
}


def build_default_registry() -> OperatorRegistry:
    """Create a registry seeded with comparisons, LIKE and function wrappers."""
    registry = OperatorRegistry()
    registry.register("LIKE", Resolver(fn=_like))
    registry.register("NOT", Verbatim(operator="!="))
    for op in ("=", "!=", ">=", "<=", ">", "<"):
        registry.register(op, Verbatim(operator=op))
    for name, (apply_to_param, operator) in DEFAULT_FUNCTIONS.items():
        registry.register_function(name, apply_to_param, operator)
    return registry
