"""In-memory source, mostly for defaults and tests."""

from typing import Mapping, Optional

from fluent_config.core.result import Result
from fluent_config.sources.base import ConfigurationSource


class InMemorySource(ConfigurationSource):
    supports_hot_reload = True

    def __init__(
        self,
        values: Optional[Mapping[str, str]] = None,
        priority: int = 0,
        name: str = "InMemory",
    ):
        super().__init__(name, priority)
        self._values = {key: str(value) for key, value in (values or {}).items()}

    async def load(self) -> Result[Mapping[str, str]]:
        return Result.success(dict(self._values))

    def update(self, values: Mapping[str, str]) -> None:
        """Replace the entries and notify subscribers."""
        previous = dict(self._values)
        self._values = {key: str(value) for key, value in values.items()}
        if previous != self._values:
            self._notify_changed(previous, dict(self._values))
