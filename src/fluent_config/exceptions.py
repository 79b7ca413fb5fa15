"""Hard-failure exceptions for fluent-config.

Expected failures (missing keys, bad values, failed rules) travel as
``Result`` values. The exceptions below are reserved for contract
violations by the caller, such as passing ``None`` where a source or a
function is required.
"""

from typing import Any, Dict, Optional


class FluentConfigError(Exception):
    """Base exception for all fluent-config contract violations."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}'"
            f")"
        )


class InvalidArgumentError(FluentConfigError, ValueError):
    """Raised when a required argument is missing or malformed."""

    def __init__(
        self,
        message: str,
        argument: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, "INVALID_ARGUMENT", details)
        self.argument = argument
        if argument:
            self.details["argument"] = argument


class ResultAccessError(FluentConfigError):
    """Raised when the value of a failed Result or an empty Option is read."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message, "RESULT_ACCESS_ERROR")
        self.errors = list(errors or [])
        if self.errors:
            self.details["errors"] = [str(error) for error in self.errors]


def require_argument(value: Any, name: str) -> Any:
    """Return ``value`` or raise InvalidArgumentError when it is None."""
    if value is None:
        raise InvalidArgumentError(f"Argument '{name}' must not be None", argument=name)
    return value


def require_key(key: Any, name: str = "key") -> str:
    """Validate a configuration key argument."""
    if not isinstance(key, str) or not key.strip():
        raise InvalidArgumentError(
            f"Argument '{name}' must be a non-empty string", argument=name
        )
    return key
