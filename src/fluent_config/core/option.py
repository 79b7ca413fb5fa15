"""Option container: a value that may be absent."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Iterator, List, Optional, TypeVar, Union

from fluent_config.core.result import Failure, Result, Success
from fluent_config.exceptions import ResultAccessError

T = TypeVar("T")
U = TypeVar("U")


class Option(ABC, Generic[T]):
    """Presence or absence of a value, without using ``None`` as a sentinel."""

    __slots__ = ()

    @staticmethod
    def some(value: T) -> "Option[T]":
        return Some(value)

    @staticmethod
    def none() -> "Option[Any]":
        return NOTHING

    @staticmethod
    def from_nullable(value: Optional[T]) -> "Option[T]":
        return NOTHING if value is None else Some(value)

    @staticmethod
    def first_some(*options: "Option[T]") -> "Option[T]":
        for option in options:
            if option.is_some:
                return option
        return NOTHING

    @staticmethod
    def collect(options: Iterable["Option[T]"]) -> "Option[List[T]]":
        """All values when every option is present, otherwise nothing."""
        values: List[T] = []
        for option in options:
            if option.is_none:
                return NOTHING
            values.append(option.value)
        return Some(values)

    @property
    @abstractmethod
    def is_some(self) -> bool: ...

    @property
    def is_none(self) -> bool:
        return not self.is_some

    @property
    @abstractmethod
    def value(self) -> T: ...

    def map(self, fn: Callable[[T], U]) -> "Option[U]":
        return Some(fn(self.value)) if self.is_some else NOTHING

    def bind(self, fn: Callable[[T], "Option[U]"]) -> "Option[U]":
        return fn(self.value) if self.is_some else NOTHING

    def filter(self, predicate: Callable[[T], bool]) -> "Option[T]":
        if self.is_some and predicate(self.value):
            return self
        return NOTHING

    def or_else(self, alternative: Union["Option[T]", Callable[[], "Option[T]"]]) -> "Option[T]":
        if self.is_some:
            return self
        return alternative() if callable(alternative) else alternative

    def get_or_default(self, default: Union[T, Callable[[], T]]) -> T:
        if self.is_some:
            return self.value
        return default() if callable(default) else default

    def match(self, on_some: Callable[[T], U], on_none: Callable[[], U]) -> U:
        return on_some(self.value) if self.is_some else on_none()

    def do(self, action: Callable[[T], Any]) -> "Option[T]":
        if self.is_some:
            action(self.value)
        return self

    def to_result(self, error: Any = "Value was not present") -> Result[T]:
        return Success(self.value) if self.is_some else Failure((error,))

    def to_nullable(self) -> Optional[T]:
        return self.value if self.is_some else None

    def __iter__(self) -> Iterator[T]:
        if self.is_some:
            yield self.value


@dataclass(frozen=True)
class Some(Option[T]):
    _value: T

    @property
    def is_some(self) -> bool:
        return True

    @property
    def value(self) -> T:
        return self._value

    def __repr__(self) -> str:
        return f"Some({self._value!r})"


@dataclass(frozen=True)
class Nothing(Option[Any]):
    @property
    def is_some(self) -> bool:
        return False

    @property
    def value(self) -> Any:
        raise ResultAccessError("Cannot read the value of an empty Option")

    def __repr__(self) -> str:
        return "Nothing()"


NOTHING: Option[Any] = Nothing()
