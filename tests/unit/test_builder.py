"""Tests for ConfigurationBuilder."""

from typing import Mapping

import pytest

from fluent_config.core.errors import (
    ErrorKind,
    MissingRequiredKey,
    SourceLoadError,
    TransformError,
)
from fluent_config.core.result import Result
from fluent_config.exceptions import InvalidArgumentError
from fluent_config.pipeline.builder import ConfigurationBuilder
from fluent_config.pipeline.merge import SourceErrorPolicy
from fluent_config.sources.base import ConfigurationSource
from fluent_config.sources.cache import CachedSource
from fluent_config.sources.memory import InMemorySource
from tests.sample_types import AppSettings, DatabaseSettings


class BrokenSource(ConfigurationSource):
    def __init__(self):
        super().__init__("Broken", 10)

    async def load(self) -> Result[Mapping[str, str]]:
        return Result.failure("backend offline")


class CountingSource(ConfigurationSource):
    def __init__(self, values):
        super().__init__("Counting", 20)
        self.values = values
        self.loads = 0

    async def load(self) -> Result[Mapping[str, str]]:
        self.loads += 1
        return Result.success(dict(self.values))


class TestBuilderContract:
    """Test cases for argument validation."""

    def test_empty_keys_are_rejected(self, builder):
        """Declarations need a non-empty key."""
        with pytest.raises(InvalidArgumentError):
            builder.required("")
        with pytest.raises(InvalidArgumentError):
            builder.optional("   ", "x")

    def test_null_arguments_are_rejected(self, builder):
        """Sources and callbacks may not be None."""
        with pytest.raises(InvalidArgumentError):
            builder.add_source(None)
        with pytest.raises(InvalidArgumentError):
            builder.transform("Key", None)
        with pytest.raises(InvalidArgumentError):
            builder.validate("Key", None)
        with pytest.raises(InvalidArgumentError):
            builder.transform_map(None)
        with pytest.raises(InvalidArgumentError):
            builder.validate_map(None)

    def test_non_source_is_rejected(self, builder):
        """Only ConfigurationSource instances can be registered."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            builder.add_source({"A": "1"})

        assert exc_info.value.argument == "source"

    def test_methods_chain(self, builder):
        """Every registration method returns the builder."""
        chained = builder.from_memory({"A": "1"}).required("A").optional("B", 2)

        assert chained is builder
        assert len(builder.sources) == 1
        assert len(builder.declarations) == 2


class TestBuild:
    """Test cases for build()."""

    @pytest.mark.asyncio
    async def test_success_returns_merged_map(self, builder):
        """Sources merge by priority and defaults fill the gaps."""
        result = await (
            builder.from_memory({"Database:Host": "low"}, priority=1)
            .from_memory({"DATABASE__HOST": "high"}, priority=2)
            .optional("Database:Port", 5432)
            .required("Database:Host")
            .build()
        )

        assert result.is_success
        assert result.value["database:host"] == "high"
        assert result.value["Database:Port"] == "5432"

    @pytest.mark.asyncio
    async def test_errors_accumulate_in_order(self, builder):
        """Source errors come first, then declaration errors in order."""
        result = await (
            builder.add_source(BrokenSource())
            .from_memory({"Port": "abc"})
            .required("Host")
            .transform("Port", lambda v: Result.failure("not a number"))
            .build()
        )

        assert result.is_failure
        kinds = [type(error) for error in result.errors]
        assert kinds == [SourceLoadError, MissingRequiredKey, TransformError]

    @pytest.mark.asyncio
    async def test_fail_fast_skips_declarations(self, pipeline_settings):
        """FAIL_FAST returns the source errors without running declarations."""
        builder = ConfigurationBuilder(settings=pipeline_settings, policy=SourceErrorPolicy.FAIL_FAST)

        result = await builder.add_source(BrokenSource()).required("Missing").build()

        assert [e.kind for e in result.errors] == [ErrorKind.SOURCE_LOAD]

    @pytest.mark.asyncio
    async def test_ignore_policy_keeps_partial_configuration(self, pipeline_settings):
        """IGNORE drops source failures and still runs declarations."""
        builder = ConfigurationBuilder(settings=pipeline_settings, policy=SourceErrorPolicy.IGNORE)

        result = await builder.add_source(BrokenSource()).from_memory({"A": "1"}).required("A").build()

        assert result.is_success

    @pytest.mark.asyncio
    async def test_map_declarations_run_in_order(self, builder):
        """Whole-map transforms and validations interleave with key declarations."""

        def split_url(values):
            host, port = values.pop("DbUrl").split(":")
            values.update({"Database:Host": host, "Database:Port": port})
            return values

        def port_differs_from_app(values):
            if values.get("Database:Port") == values.get("App:Port"):
                return "database and app share a port"
            return None

        result = await (
            builder.from_memory({"DbUrl": "db:8080", "App:Port": "8080"})
            .transform_map(split_url)
            .required("Database:Host")
            .validate_map(port_differs_from_app)
            .build()
        )

        assert result.messages == ["Configuration validation failed: database and app share a port"]

    @pytest.mark.asyncio
    async def test_priority_override_on_registration(self, builder):
        """An explicit priority replaces the source's own."""
        builder.add_source(InMemorySource({"K": "strong"}, priority=1), priority=500)
        builder.add_source(InMemorySource({"K": "weak"}, priority=100))

        result = await builder.build()

        assert result.value["K"] == "strong"

    @pytest.mark.asyncio
    async def test_build_is_repeatable(self, builder):
        """Building twice re-reads sources and gives equal maps."""
        builder.from_memory({"A": "1"})

        first = await builder.build()
        second = await builder.build()

        assert first.value == second.value
        assert first.value is not second.value


class TestBuildAs:
    """Test cases for build_as() and the binding shortcuts."""

    @pytest.mark.asyncio
    async def test_build_as_binds_object(self, builder):
        """The built map is bound to the requested type."""
        result = await (
            builder.from_memory({"Name": "svc", "Database:Port": "6543", "Database:UseSsl": "true"})
            .build_as(AppSettings)
        )

        assert result.is_success
        settings = result.value
        assert settings.name == "svc"
        assert settings.database == DatabaseSettings(port=6543, use_ssl=True)

    @pytest.mark.asyncio
    async def test_build_errors_skip_binding(self, builder):
        """Binding never runs when the build failed."""
        result = await builder.required("Name").build_as(AppSettings)

        assert result.messages == ["Required key 'Name' was not found"]

    def test_bind_and_bind_structured_agree(self, builder):
        """Both binding modes produce equal objects."""
        configuration = {"Database:Host": "db", "Tags:env": "prod"}

        reflective = builder.bind(AppSettings, configuration)
        structured = builder.bind_structured(AppSettings, configuration)

        assert reflective.value == structured.value


class TestCachedRegistration:
    """Test cases for from_cached()."""

    @pytest.mark.asyncio
    async def test_cached_source_loads_once(self, builder):
        """A cached delegate is hit once across builds."""
        delegate = CountingSource({"Secret": "s3cr3t"})
        builder.from_cached(delegate, ttl_seconds=60)

        await builder.build()
        result = await builder.build()

        assert delegate.loads == 1
        assert result.value["Secret"] == "s3cr3t"
        assert isinstance(builder.sources[0], CachedSource)
        assert builder.sources[0].priority == 20

    def test_cache_uses_settings_intervals(self, pipeline_settings):
        """The fresh, empty cache keeps the configured sweep interval."""
        settings = pipeline_settings.model_copy(update={"cache_sweep_interval_seconds": 7.0})
        builder = ConfigurationBuilder(settings=settings)

        builder.from_cached(CountingSource({"A": "1"}), ttl_seconds=60)

        cache = builder.sources[0].cache
        assert cache.sweep_interval_seconds == 7.0
        assert cache.default_ttl_seconds == 60

    def test_injected_collaborators_are_kept(self, pipeline_settings, registry):
        """An empty registry passed in is used, not swapped for the shared one."""
        builder = ConfigurationBuilder(settings=pipeline_settings, registry=registry)

        assert len(registry) == 0
        assert builder.registry is registry
