"""Flat configuration map with normalized key lookup."""

from typing import (
    Callable,
    Dict,
    Iterator,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

from fluent_config.binding.conversion import ConversionFailure, convert_scalar
from fluent_config.binding.shapes import type_label
from fluent_config.core.errors import ConversionError, MissingRequiredKey
from fluent_config.core.keys import normalize_key
from fluent_config.core.option import Option
from fluent_config.core.result import Result
from fluent_config.exceptions import InvalidArgumentError, require_key

T = TypeVar("T")


class ConfigurationMap(MutableMapping[str, str]):
    """Single-level string map representing a configuration tree.

    Lookup is case-insensitive and accepts either separator form. Iteration
    yields the key as spelled by its most recent writer, in order of first
    insertion.
    """

    __slots__ = ("_entries",)

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._entries: Dict[str, Tuple[str, str]] = {}
        if values:
            for key, value in values.items():
                self[key] = value

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "ConfigurationMap":
        if isinstance(values, ConfigurationMap):
            return values.copy()
        return cls(values)

    def __getitem__(self, key: str) -> str:
        return self._entries[normalize_key(key)][1]

    def __setitem__(self, key: str, value: str) -> None:
        require_key(key)
        self._entries[normalize_key(key)] = (key, "" if value is None else str(value))

    def __delitem__(self, key: str) -> None:
        del self._entries[normalize_key(key)]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_key(key) in self._entries

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ConfigurationMap):
            return {k: v[1] for k, v in self._entries.items()} == {
                k: v[1] for k, v in other._entries.items()
            }
        if isinstance(other, Mapping):
            return self == ConfigurationMap(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ConfigurationMap({self.to_dict()!r})"

    def get_required(self, key: str, target: Type[T] = str) -> Result[T]:
        """The value at ``key`` converted to ``target``, or why it is unavailable."""
        require_key(key)
        if not isinstance(target, type):
            raise InvalidArgumentError(f"Expected a scalar type, got {target!r}", argument="target")
        if key not in self:
            return Result.failure(MissingRequiredKey.for_key(key))
        raw = self[key]
        try:
            return Result.success(convert_scalar(raw, target))
        except ConversionFailure as e:
            return Result.failure(ConversionError.create(key, raw, type_label(target), e.reason))

    def get_option(self, key: str, target: Type[T] = str) -> Option[T]:
        """``Some`` when the key is present and converts, otherwise ``Nothing``."""
        return self.get_required(key, target).to_option()

    def get_or_default(
        self, key: str, default: Union[T, Callable[[], T]], target: Optional[Type[T]] = None
    ) -> T:
        """Converted value, or ``default`` (called if it is a factory).

        ``target`` defaults to the type of ``default``.
        """
        if target is None:
            target = str if default is None or callable(default) else type(default)
        return self.get_option(key, target).get_or_default(default)

    def copy(self) -> "ConfigurationMap":
        clone = ConfigurationMap()
        clone._entries = dict(self._entries)
        return clone

    def to_dict(self) -> Dict[str, str]:
        return {original: value for original, value in self._entries.values()}
