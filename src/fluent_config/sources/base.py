"""Source contract consumed by the merge engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

from fluent_config.core.configuration_map import ConfigurationMap
from fluent_config.core.result import Result
from fluent_config.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConfigurationChangedEvent:
    """Notification raised by a hot-reloading source."""

    source: str
    previous: Mapping[str, str] = field(default_factory=dict)
    new: Mapping[str, str] = field(default_factory=dict)

    def changed_keys(self) -> List[str]:
        previous = ConfigurationMap(self.previous)
        new = ConfigurationMap(self.new)
        changed = [key for key in new if previous.get(key) != new[key]]
        changed.extend(key for key in previous if key not in new)
        return changed


ChangeCallback = Callable[[ConfigurationChangedEvent], None]


class ConfigurationSource(ABC):
    """A provider of flat configuration entries.

    Implementations own their retry, backoff and timeout behaviour; the
    merge engine only aggregates what ``load`` reports.
    """

    supports_hot_reload: bool = False

    def __init__(self, name: str, priority: int = 0):
        self.name = name
        self.priority = priority
        self._values: Dict[str, str] = {}
        self._subscribers: List[ChangeCallback] = []

    @abstractmethod
    async def load(self) -> Result[Mapping[str, str]]:
        """Load every entry this source provides."""

    def contains_key(self, key: str) -> bool:
        return key in ConfigurationMap(self._values)

    def get_value(self, key: str) -> Optional[str]:
        return ConfigurationMap(self._values).get(key)

    async def reload(self) -> Result[Mapping[str, str]]:
        previous = dict(self._values)
        result = await self.load()
        if result.is_success and self.supports_hot_reload and previous != dict(result.value):
            self._notify_changed(previous, dict(result.value))
        return result

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register a change callback; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify_changed(self, previous: Mapping[str, str], new: Mapping[str, str]) -> None:
        event = ConfigurationChangedEvent(source=self.name, previous=previous, new=new)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error(
                    "Configuration change callback failed",
                    source=self.name,
                    error_type=type(e).__name__,
                )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, priority={self.priority})"
