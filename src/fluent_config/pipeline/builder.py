"""Fluent builder: register sources and declarations, build, then bind."""

import asyncio
from pathlib import Path
from typing import Any, List, Mapping, Optional, Type, TypeVar, Union

from fluent_config.binding.binder import Binder, BindingOptions
from fluent_config.binding.shapes import ShapeRegistry, default_registry
from fluent_config.binding.structured import StructuredBinder
from fluent_config.core.configuration_map import ConfigurationMap
from fluent_config.core.errors import ConfigError
from fluent_config.core.result import Result
from fluent_config.exceptions import InvalidArgumentError, require_argument, require_key
from fluent_config.logging import get_logger
from fluent_config.pipeline.declarations import (
    Declaration,
    DeclarationEngine,
    MapTransformDeclaration,
    MapTransformFn,
    MapValidateDeclaration,
    MapValidateFn,
    OptionalDeclaration,
    RequiredDeclaration,
    TransformDeclaration,
    TransformFn,
    ValidateDeclaration,
    ValidateFn,
)
from fluent_config.pipeline.merge import MergeEngine, SourceErrorPolicy, SourceRegistration
from fluent_config.settings import PipelineSettings, get_settings
from fluent_config.sources.base import ConfigurationSource
from fluent_config.sources.cache import CachedSource, SecretCache
from fluent_config.sources.environment import EnvironmentSource
from fluent_config.sources.file import FileSource
from fluent_config.sources.memory import InMemorySource

logger = get_logger(__name__)

T = TypeVar("T")


class ConfigurationBuilder:
    """Collects sources and declarations and runs the pipeline.

    Example::

        result = await (
            ConfigurationBuilder()
            .from_file("appsettings.json", optional=True)
            .from_environment()
            .required("Database:Host")
            .optional("Database:Port", 5432)
            .build_as(AppSettings)
        )
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        policy: Optional[SourceErrorPolicy] = None,
        binding_options: Optional[BindingOptions] = None,
        registry: Optional[ShapeRegistry] = None,
    ):
        self.settings = settings if settings is not None else get_settings()
        self.policy = policy if policy is not None else self.settings.source_error_policy
        self.binding_options = binding_options if binding_options is not None else BindingOptions(
            enable_validation=self.settings.enable_validation
        )
        self.registry = registry if registry is not None else default_registry
        self._registrations: List[SourceRegistration] = []
        self._declarations: List[Declaration] = []

    @property
    def sources(self) -> List[ConfigurationSource]:
        return [registration.source for registration in self._registrations]

    @property
    def declarations(self) -> List[Declaration]:
        return list(self._declarations)

    def add_source(self, source: ConfigurationSource, priority: Optional[int] = None) -> "ConfigurationBuilder":
        """Register a source; ``priority`` overrides the source's own."""
        require_argument(source, "source")
        if not isinstance(source, ConfigurationSource):
            raise InvalidArgumentError(
                f"Expected a ConfigurationSource, got {type(source).__name__}", argument="source"
            )
        effective = source.priority if priority is None else priority
        self._registrations.append(
            SourceRegistration(source=source, priority=effective, order=len(self._registrations))
        )
        logger.debug("Registered configuration source", source=source.name, priority=effective)
        return self

    def from_environment(
        self,
        prefix: Optional[str] = None,
        priority: int = 100,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ConfigurationBuilder":
        return self.add_source(EnvironmentSource(priority=priority, prefix=prefix, environ=environ))

    def from_file(
        self, path: Union[str, Path], priority: int = 50, optional: bool = False
    ) -> "ConfigurationBuilder":
        require_argument(path, "path")
        return self.add_source(FileSource(path, priority=priority, optional=optional))

    def from_memory(
        self, values: Mapping[str, Any], priority: int = 0, name: str = "InMemory"
    ) -> "ConfigurationBuilder":
        require_argument(values, "values")
        return self.add_source(InMemorySource(values, priority=priority, name=name))

    def from_cached(
        self,
        source: ConfigurationSource,
        ttl_seconds: Optional[float] = None,
        priority: Optional[int] = None,
    ) -> "ConfigurationBuilder":
        """Register ``source`` behind a TTL cache."""
        require_argument(source, "source")
        ttl = self.settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        cache = SecretCache(
            default_ttl_seconds=ttl,
            sweep_interval_seconds=self.settings.cache_sweep_interval_seconds,
        )
        return self.add_source(CachedSource(source, ttl_seconds=ttl, cache=cache), priority)

    def required(self, key: str) -> "ConfigurationBuilder":
        self._declarations.append(RequiredDeclaration(require_key(key)))
        return self

    def optional(self, key: str, default: Any) -> "ConfigurationBuilder":
        self._declarations.append(OptionalDeclaration(require_key(key), default))
        return self

    def transform(self, key: str, fn: TransformFn) -> "ConfigurationBuilder":
        require_argument(fn, "fn")
        self._declarations.append(TransformDeclaration(require_key(key), fn))
        return self

    def validate(self, key: str, fn: ValidateFn) -> "ConfigurationBuilder":
        require_argument(fn, "fn")
        self._declarations.append(ValidateDeclaration(require_key(key), fn))
        return self

    def transform_map(self, fn: MapTransformFn) -> "ConfigurationBuilder":
        """Rewrite the whole map; ``fn`` returns the new map or a failed Result."""
        require_argument(fn, "fn")
        self._declarations.append(MapTransformDeclaration(fn))
        return self

    def validate_map(self, fn: MapValidateFn) -> "ConfigurationBuilder":
        """Check the whole map, e.g. for keys that depend on each other."""
        require_argument(fn, "fn")
        self._declarations.append(MapValidateDeclaration(fn))
        return self

    async def build(self, cancellation: Optional[asyncio.Event] = None) -> Result[ConfigurationMap]:
        """Merge all sources, then apply declarations in registration order."""
        merged = await MergeEngine(self.policy).merge(self._registrations, cancellation)
        errors: List[ConfigError] = list(merged.errors)

        if errors and self.policy is SourceErrorPolicy.FAIL_FAST:
            logger.warning("Stopping build after source failures", errors=len(errors))
            return Result.failure(errors)

        state = merged.configuration
        errors.extend(DeclarationEngine().run(self._declarations, state))

        if errors:
            return Result.failure(errors)
        logger.info("Configuration built", keys=len(state))
        return Result.success(state)

    async def build_as(self, cls: Type[T], cancellation: Optional[asyncio.Event] = None) -> Result[T]:
        """Build, then bind the map to ``cls``."""
        built = await self.build(cancellation)
        return built.bind(lambda configuration: self.bind(cls, configuration))

    def bind(self, cls: Type[T], configuration: Mapping[str, str]) -> Result[T]:
        return Binder(self.binding_options, self.registry).bind(cls, configuration)

    def bind_structured(self, cls: Type[T], configuration: Mapping[str, str]) -> Result[T]:
        return StructuredBinder(self.binding_options, self.registry).bind(cls, configuration)
