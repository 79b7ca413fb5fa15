"""Structured configuration errors.

Every expected failure in the pipeline is represented by one of the records
below. They carry the category, the location and the facts of the failure;
turning them into text is a separate step (``render``) so callers can assert
on the category instead of matching substrings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterable, List, Tuple, Union


class ErrorKind(str, Enum):
    """Failure categories surfaced by the pipeline."""

    SOURCE_LOAD = "source_load"
    MISSING_REQUIRED_KEY = "missing_required_key"
    TRANSFORM = "transform"
    DECLARATION_VALIDATION = "declaration_validation"
    CONSTRUCTION = "construction"
    CONVERSION = "conversion"
    PROPERTY_VALIDATION = "property_validation"
    UNSUPPORTED_SHAPE = "unsupported_shape"


@dataclass(frozen=True)
class ConfigError:
    """A single failure with an optional location inside the bound graph.

    ``path`` is colon-joined; an empty path marks a type-level error.
    """

    message: str
    path: str = ""

    kind: ClassVar[ErrorKind]

    def render(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class SourceLoadError(ConfigError):
    source_name: str = ""

    kind: ClassVar[ErrorKind] = ErrorKind.SOURCE_LOAD

    @classmethod
    def create(cls, source_name: str, reason: str) -> "SourceLoadError":
        return cls(
            message=f"Source '{source_name}' failed to load: {reason}",
            source_name=source_name,
        )


@dataclass(frozen=True)
class MissingRequiredKey(ConfigError):
    key: str = ""

    kind: ClassVar[ErrorKind] = ErrorKind.MISSING_REQUIRED_KEY

    @classmethod
    def for_key(cls, key: str) -> "MissingRequiredKey":
        return cls(message=f"Required key '{key}' was not found", key=key)

    @classmethod
    def for_member(cls, path: str) -> "MissingRequiredKey":
        return cls(
            message="Required value was not found in configuration",
            path=path,
            key=path,
        )


@dataclass(frozen=True)
class TransformError(ConfigError):
    key: str = ""

    kind: ClassVar[ErrorKind] = ErrorKind.TRANSFORM

    @classmethod
    def create(cls, key: str, reason: str) -> "TransformError":
        return cls(message=f"Transform of key '{key}' failed: {reason}", key=key)

    @classmethod
    def for_map(cls, reason: str) -> "TransformError":
        return cls(message=f"Configuration transform failed: {reason}")


@dataclass(frozen=True)
class DeclarationValidationError(ConfigError):
    key: str = ""

    kind: ClassVar[ErrorKind] = ErrorKind.DECLARATION_VALIDATION

    @classmethod
    def create(cls, key: str, reason: str) -> "DeclarationValidationError":
        return cls(message=f"Validation of key '{key}' failed: {reason}", key=key)

    @classmethod
    def for_map(cls, reason: str) -> "DeclarationValidationError":
        return cls(message=f"Configuration validation failed: {reason}")


@dataclass(frozen=True)
class ConstructionError(ConfigError):
    type_name: str = ""
    signatures: Tuple[str, ...] = field(default_factory=tuple)

    kind: ClassVar[ErrorKind] = ErrorKind.CONSTRUCTION

    @classmethod
    def no_satisfiable_constructor(
        cls, type_name: str, signatures: Tuple[str, ...], path: str = ""
    ) -> "ConstructionError":
        attempted = "; ".join(signatures) if signatures else "none"
        return cls(
            message=(
                f"Cannot construct '{type_name}': no satisfiable constructor. "
                f"Attempted: {attempted}"
            ),
            path=path,
            type_name=type_name,
            signatures=tuple(signatures),
        )

    @classmethod
    def constructor_raised(
        cls, type_name: str, signature: str, reason: str, path: str = ""
    ) -> "ConstructionError":
        return cls(
            message=f"Cannot construct '{type_name}' via {signature}: {reason}",
            path=path,
            type_name=type_name,
            signatures=(signature,),
        )


@dataclass(frozen=True)
class ConversionError(ConfigError):
    raw_value: str = ""
    target: str = ""

    kind: ClassVar[ErrorKind] = ErrorKind.CONVERSION

    @classmethod
    def create(
        cls, path: str, raw_value: str, target: str, reason: str
    ) -> "ConversionError":
        return cls(
            message=f"Cannot convert '{raw_value}' to {target}: {reason}",
            path=path,
            raw_value=raw_value,
            target=target,
        )


@dataclass(frozen=True)
class PropertyValidationError(ConfigError):
    rule: str = ""

    kind: ClassVar[ErrorKind] = ErrorKind.PROPERTY_VALIDATION


@dataclass(frozen=True)
class UnsupportedShapeError(ConfigError):
    type_name: str = ""

    kind: ClassVar[ErrorKind] = ErrorKind.UNSUPPORTED_SHAPE

    @classmethod
    def create(
        cls, type_name: str, reason: str, path: str = ""
    ) -> "UnsupportedShapeError":
        return cls(
            message=f"Type '{type_name}' cannot be bound: {reason}",
            path=path,
            type_name=type_name,
        )


ErrorItem = Union[str, ConfigError]


def render_errors(errors: Iterable[ErrorItem]) -> List[str]:
    """Render a sequence of errors (records or plain strings) to text."""
    return [str(error) for error in errors]


def errors_of_kind(errors, kind: ErrorKind) -> list:
    return [e for e in errors if isinstance(e, ConfigError) and e.kind is kind]
