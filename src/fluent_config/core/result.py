"""Result container: a value or an ordered list of accumulated errors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Generic,
    Iterable,
    List,
    Tuple,
    TypeVar,
    Union,
)

from fluent_config.core.errors import ErrorItem, render_errors
from fluent_config.exceptions import InvalidArgumentError, ResultAccessError

if TYPE_CHECKING:
    from fluent_config.core.option import Option

T = TypeVar("T")
U = TypeVar("U")
V = TypeVar("V")


class Result(ABC, Generic[T]):
    """Outcome of an operation that either produced a value or failed.

    A failure carries every error it accumulated, in the order they were
    produced. Errors are ``ConfigError`` records or plain strings;
    ``messages`` renders both to text.
    """

    __slots__ = ()

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Success(value)

    @staticmethod
    def failure(*errors: Union[ErrorItem, Iterable[ErrorItem]]) -> "Result[Any]":
        flat: List[ErrorItem] = []
        for error in errors:
            if isinstance(error, (list, tuple)):
                flat.extend(error)
            else:
                flat.append(error)
        if not flat:
            raise InvalidArgumentError(
                "A failed Result needs at least one error", argument="errors"
            )
        return Failure(tuple(flat))

    @staticmethod
    def collect(results: Iterable["Result[T]"]) -> "Result[List[T]]":
        """Combine results into one: every value, or every error."""
        values: List[T] = []
        errors: List[ErrorItem] = []
        for result in results:
            if result.is_success:
                values.append(result.value)
            else:
                errors.extend(result.errors)
        if errors:
            return Failure(tuple(errors))
        return Success(values)

    @property
    @abstractmethod
    def is_success(self) -> bool: ...

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    @abstractmethod
    def value(self) -> T: ...

    @property
    @abstractmethod
    def errors(self) -> Tuple[ErrorItem, ...]: ...

    @property
    def messages(self) -> List[str]:
        return render_errors(self.errors)

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if self.is_success:
            return Success(fn(self.value))
        return self  # type: ignore[return-value]

    def bind(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        if self.is_success:
            return fn(self.value)
        return self  # type: ignore[return-value]

    def match(
        self,
        on_success: Callable[[T], U],
        on_failure: Callable[[Tuple[ErrorItem, ...]], U],
    ) -> U:
        if self.is_success:
            return on_success(self.value)
        return on_failure(self.errors)

    def combine(
        self, other: "Result[U]", fn: Callable[[T, U], V]
    ) -> "Result[V]":
        """Join two results; errors from both sides are kept."""
        if self.is_success and other.is_success:
            return Success(fn(self.value, other.value))
        return Failure(tuple(self.errors) + tuple(other.errors))

    def unwrap_or(self, default: T) -> T:
        return self.value if self.is_success else default

    def to_option(self) -> "Option[T]":
        from fluent_config.core.option import Option

        if self.is_success:
            return Option.some(self.value)
        return Option.none()


@dataclass(frozen=True)
class Success(Result[T]):
    _value: T

    @property
    def is_success(self) -> bool:
        return True

    @property
    def value(self) -> T:
        return self._value

    @property
    def errors(self) -> Tuple[ErrorItem, ...]:
        return ()

    def __repr__(self) -> str:
        return f"Success({self._value!r})"


@dataclass(frozen=True)
class Failure(Result[Any]):
    _errors: Tuple[ErrorItem, ...]

    @property
    def is_success(self) -> bool:
        return False

    @property
    def value(self) -> Any:
        raise ResultAccessError(
            "Cannot read the value of a failed Result", errors=list(self._errors)
        )

    @property
    def errors(self) -> Tuple[ErrorItem, ...]:
        return self._errors

    def __repr__(self) -> str:
        return f"Failure({list(self._errors)!r})"
