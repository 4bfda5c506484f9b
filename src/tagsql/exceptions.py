"""Custom exceptions for tagsql.

Every error raised by the registries, tokenizer and compilers derives from
`TagSqlError`, carrying a message plus keyword details for context.
"""

from typing import Any, Dict


# Base exception
class TagSqlError(Exception):
    """Base exception for all tagsql errors.

    Attributes:
        message: Error message
        details: Additional error context as key-value pairs
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        """Initialize exception with message and additional details.

        Args:
            message: Human-readable error message
            **kwargs: Additional context (e.g., key, column, position)
        """
        self.message = message
        self.details: Dict[str, Any] = kwargs
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the complete error message with details."""
        if not self.details:
            return self.message

        details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        if self.message:
            return f"{self.message} ({details_str})"
        return details_str

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# Configuration exceptions
class ConfigurationError(TagSqlError):
    """Raised when a registry entry or compiler option is invalid.

    Example:
        >>> raise ConfigurationError("Invalid wildcard", option="wildcard_many", value="")
    """


class DuplicateKeyError(ConfigurationError):
    """Raised when registering a key that already exists in a write-once registry.

    Example:
        >>> raise DuplicateKeyError("Operator already registered", key="LIKE")
    """


class InvalidRegistrationError(ConfigurationError):
    """Raised when a registration has an empty key or a handler of the wrong shape.

    Example:
        >>> raise InvalidRegistrationError("Transform must be callable", key="LOWER")
    """


class MissingConfigError(ConfigurationError):
    """Raised when a lookup targets a registry key that does not exist.

    Example:
        >>> raise MissingConfigError("Special query not found", title="source")
    """


# Validation exceptions
class ValidationError(TagSqlError):
    """Raised when a condition tree or tag criteria is structurally invalid."""


class MissingFieldError(ValidationError):
    """Raised when a required field is missing.

    Example:
        >>> raise MissingFieldError("Leaf condition requires a column", field="column")
    """


class InvalidFieldError(ValidationError):
    """Raised when a field has an invalid value or type.

    Example:
        >>> raise InvalidFieldError("Tag must be a string", field="include", value=3)
    """


# Tag query grammar exceptions (strict mode only)
class TagParseError(TagSqlError):
    """Base class for tag query grammar errors."""


class EmptyInputError(TagParseError):
    """Raised when the query is empty after trimming."""


class ParseLimitExceededError(TagParseError):
    """Raised when the query holds more terms than the configured parse limit.

    Example:
        >>> raise ParseLimitExceededError("Exceeded tag parse limit", limit=5)
    """


class UnbalancedParenthesesError(TagParseError):
    """Raised on a stray closing parenthesis or an unclosed group.

    Example:
        >>> raise UnbalancedParenthesesError("Unexpected closing parenthesis", position=7)
    """


class UnterminatedQuoteError(TagParseError):
    """Raised when a quoted segment is never closed.

    Example:
        >>> raise UnterminatedQuoteError("Unclosed quote", quote='"')
    """


class EmptyTagError(TagParseError):
    """Raised when a term holds nothing but the negation marker."""


# Placeholder exceptions
class PlaceholderError(TagSqlError):
    """Raised when SQL placeholders do not line up with the bound values.

    Example:
        >>> raise PlaceholderError("Placeholder is missing", placeholder="$2")
    """
