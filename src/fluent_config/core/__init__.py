"""Core value types shared by the pipeline and the binder."""

from .configuration_map import ConfigurationMap
from .errors import (
    ConfigError,
    ConstructionError,
    ConversionError,
    DeclarationValidationError,
    ErrorKind,
    MissingRequiredKey,
    PropertyValidationError,
    SourceLoadError,
    TransformError,
    UnsupportedShapeError,
)
from .keys import ALTERNATE_SEPARATOR, KEY_SEPARATOR, normalize_key, split_key
from .option import NOTHING, Nothing, Option, Some
from .result import Failure, Result, Success

__all__ = [
    "ALTERNATE_SEPARATOR",
    "KEY_SEPARATOR",
    "NOTHING",
    "ConfigError",
    "ConfigurationMap",
    "ConstructionError",
    "ConversionError",
    "DeclarationValidationError",
    "ErrorKind",
    "Failure",
    "MissingRequiredKey",
    "Nothing",
    "Option",
    "PropertyValidationError",
    "Result",
    "Some",
    "SourceLoadError",
    "Success",
    "TransformError",
    "UnsupportedShapeError",
    "normalize_key",
    "split_key",
]
