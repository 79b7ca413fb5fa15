"""Merge engine: concurrent source loading and priority resolution."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from fluent_config.core.configuration_map import ConfigurationMap
from fluent_config.core.errors import ConfigError, SourceLoadError
from fluent_config.core.result import Result
from fluent_config.logging import get_logger
from fluent_config.sources.base import ConfigurationSource

logger = get_logger(__name__)


class SourceErrorPolicy(str, Enum):
    """Effect of a source load failure on the build."""

    ACCUMULATE = "accumulate"
    FAIL_FAST = "fail_fast"
    IGNORE = "ignore"


@dataclass(frozen=True)
class SourceRegistration:
    source: ConfigurationSource
    priority: int
    order: int


@dataclass(frozen=True)
class LoadedLayer:
    """The outcome of loading one registered source."""

    registration: SourceRegistration
    values: Mapping[str, str] = field(default_factory=dict)
    errors: Tuple[ConfigError, ...] = ()

    @property
    def priority(self) -> int:
        return self.registration.priority

    @property
    def order(self) -> int:
        return self.registration.order


@dataclass
class MergeResult:
    configuration: ConfigurationMap
    errors: List[ConfigError] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.errors

    def to_result(self) -> Result[ConfigurationMap]:
        if self.errors:
            return Result.failure(list(self.errors))
        return Result.success(self.configuration)


def merge_layers(layers: Iterable[LoadedLayer]) -> ConfigurationMap:
    """Write layers lowest priority first; the last write wins.

    Equal priorities keep registration order, so the later registration
    overwrites the earlier one.
    """
    merged = ConfigurationMap()
    for layer in sorted(layers, key=lambda item: (item.priority, item.order)):
        for key, value in layer.values.items():
            merged[key] = value
    return merged


class MergeEngine:
    """Loads every registered source concurrently and merges the results."""

    def __init__(self, policy: SourceErrorPolicy = SourceErrorPolicy.ACCUMULATE):
        self.policy = policy

    async def merge(
        self,
        registrations: Sequence[SourceRegistration],
        cancellation: Optional[asyncio.Event] = None,
    ) -> MergeResult:
        layers = await self.load_all(registrations, cancellation)
        errors = [error for layer in layers for error in layer.errors]
        configuration = merge_layers(layers)

        if errors and self.policy is SourceErrorPolicy.IGNORE:
            for error in errors:
                logger.warning("Ignoring source load failure", error=error.render())
            errors = []

        logger.info(
            "Merged configuration sources",
            sources=len(layers),
            keys=len(configuration),
            errors=len(errors),
        )
        return MergeResult(configuration=configuration, errors=errors)

    async def load_all(
        self,
        registrations: Sequence[SourceRegistration],
        cancellation: Optional[asyncio.Event] = None,
    ) -> List[LoadedLayer]:
        """Load every source; a failing load never cancels its siblings.

        Setting ``cancellation`` aborts all in-flight loads and raises
        ``asyncio.CancelledError``.
        """
        tasks = [asyncio.ensure_future(self._load_one(r)) for r in registrations]
        if not tasks:
            return []

        gathered = asyncio.gather(*tasks)
        if cancellation is None:
            return list(await gathered)

        watcher = asyncio.ensure_future(cancellation.wait())
        try:
            done, _ = await asyncio.wait(
                {gathered, watcher}, return_when=asyncio.FIRST_COMPLETED
            )
            if gathered in done:
                return list(gathered.result())
            logger.info("Source loading cancelled", pending=sum(not t.done() for t in tasks))
            gathered.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise asyncio.CancelledError("configuration source loading was cancelled")
        finally:
            watcher.cancel()
            if not gathered.done():
                gathered.cancel()

    async def _load_one(self, registration: SourceRegistration) -> LoadedLayer:
        source = registration.source
        try:
            result = await source.load()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                "Configuration source raised during load",
                source=source.name,
                error_type=type(e).__name__,
            )
            return LoadedLayer(
                registration=registration,
                errors=(SourceLoadError.create(source.name, str(e) or type(e).__name__),),
            )

        if result.is_failure:
            logger.warning(
                "Configuration source reported failure",
                source=source.name,
                error_count=len(result.errors),
            )
            return LoadedLayer(
                registration=registration,
                errors=tuple(SourceLoadError.create(source.name, m) for m in result.messages),
            )

        values = dict(result.value)
        logger.debug(
            "Loaded configuration source",
            source=source.name,
            priority=registration.priority,
            key_count=len(values),
        )
        return LoadedLayer(registration=registration, values=values)
