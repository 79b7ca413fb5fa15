"""Configuration sources."""

from .base import ConfigurationChangedEvent, ConfigurationSource
from .cache import CachedSource, SecretCache
from .environment import EnvironmentSource
from .file import FileSource, flatten_document
from .memory import InMemorySource

__all__ = [
    "CachedSource",
    "ConfigurationChangedEvent",
    "ConfigurationSource",
    "EnvironmentSource",
    "FileSource",
    "InMemorySource",
    "SecretCache",
    "flatten_document",
]
