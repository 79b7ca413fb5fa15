"""
fluent-config: prioritized configuration merging and typed binding.

Sources are merged by priority into one flat map, Required / Optional /
Transform / Validate declarations run against it with every error
collected, and the result is bound to dataclasses, NamedTuples, pydantic
models or plain annotated classes.
"""

__version__ = "0.1.0"

from .core import (
    ConfigError,
    ConfigurationMap,
    ErrorKind,
    Failure,
    Option,
    Result,
    Success,
)
from .pipeline import ConfigurationBuilder, SourceErrorPolicy
from .binding import (
    Binder,
    BindingOptions,
    Required,
    StructuredBinder,
    bind,
    bind_structured,
    binding_constructor,
    flatten,
)
from .sources import (
    CachedSource,
    ConfigurationSource,
    EnvironmentSource,
    FileSource,
    InMemorySource,
    SecretCache,
)

__all__ = [
    "Binder",
    "BindingOptions",
    "CachedSource",
    "ConfigError",
    "ConfigurationBuilder",
    "ConfigurationMap",
    "ConfigurationSource",
    "EnvironmentSource",
    "ErrorKind",
    "Failure",
    "FileSource",
    "InMemorySource",
    "Option",
    "Required",
    "Result",
    "SecretCache",
    "SourceErrorPolicy",
    "StructuredBinder",
    "Success",
    "bind",
    "bind_structured",
    "binding_constructor",
    "flatten",
]
