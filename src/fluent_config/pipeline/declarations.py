"""Declarations applied, in order, to the merged configuration map."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Sequence, Union

from fluent_config.core.configuration_map import ConfigurationMap
from fluent_config.core.errors import (
    ConfigError,
    DeclarationValidationError,
    MissingRequiredKey,
    TransformError,
)
from fluent_config.core.result import Result
from fluent_config.logging import get_logger

logger = get_logger(__name__)

TransformFn = Callable[[str], Union[Result[str], str]]
ValidateFn = Callable[[str], Union[Result[Any], str, bool, None]]
MapTransformFn = Callable[[Dict[str, str]], Union[Result[Mapping[str, Any]], Mapping[str, Any]]]
MapValidateFn = Callable[[Mapping[str, str]], Union[Result[Any], str, bool, None]]


def render_default(value: Any) -> str:
    """Render an optional default the way sources render values."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _messages_of(result: Result[Any]) -> List[str]:
    return result.messages or ["unknown error"]


def _rejections(outcome: Any) -> List[str]:
    """Failure messages of a validate callback's return value."""
    if isinstance(outcome, Result):
        return _messages_of(outcome) if outcome.is_failure else []
    if outcome is False:
        return ["value was rejected"]
    if isinstance(outcome, str):
        return [outcome]
    return []


class Declaration(ABC):
    """Base for the declaration kinds."""

    @abstractmethod
    def apply(self, state: ConfigurationMap, errors: List[ConfigError]) -> None:
        """Check or rewrite ``state``, appending failures to ``errors``."""


@dataclass(frozen=True)
class RequiredDeclaration(Declaration):
    key: str

    def apply(self, state: ConfigurationMap, errors: List[ConfigError]) -> None:
        if self.key not in state:
            errors.append(MissingRequiredKey.for_key(self.key))


@dataclass(frozen=True)
class OptionalDeclaration(Declaration):
    key: str
    default: Any

    def apply(self, state: ConfigurationMap, errors: List[ConfigError]) -> None:
        if self.key not in state:
            state[self.key] = render_default(self.default)


@dataclass(frozen=True)
class TransformDeclaration(Declaration):
    """Rewrites a value; on failure the previous value stays in place."""

    key: str
    fn: TransformFn

    def apply(self, state: ConfigurationMap, errors: List[ConfigError]) -> None:
        if self.key not in state:
            return
        current = state[self.key]
        try:
            outcome = self.fn(current)
        except Exception as e:
            logger.debug("Transform raised", key=self.key, error_type=type(e).__name__)
            errors.append(TransformError.create(self.key, str(e) or type(e).__name__))
            return

        if isinstance(outcome, Result):
            if outcome.is_failure:
                errors.extend(TransformError.create(self.key, m) for m in _messages_of(outcome))
                return
            outcome = outcome.value
        state[self.key] = render_default(outcome)


@dataclass(frozen=True)
class ValidateDeclaration(Declaration):
    """Checks a value without modifying the map."""

    key: str
    fn: ValidateFn

    def apply(self, state: ConfigurationMap, errors: List[ConfigError]) -> None:
        if self.key not in state:
            return
        try:
            outcome = self.fn(state[self.key])
        except Exception as e:
            errors.append(
                DeclarationValidationError.create(self.key, str(e) or type(e).__name__)
            )
            return
        errors.extend(DeclarationValidationError.create(self.key, m) for m in _rejections(outcome))


@dataclass(frozen=True)
class MapTransformDeclaration(Declaration):
    """Replaces the whole map with the callback's output.

    The callback gets a plain ``dict`` copy. When it fails the map is left
    untouched.
    """

    fn: MapTransformFn

    def apply(self, state: ConfigurationMap, errors: List[ConfigError]) -> None:
        try:
            outcome = self.fn(state.to_dict())
        except Exception as e:
            logger.debug("Map transform raised", error_type=type(e).__name__)
            errors.append(TransformError.for_map(str(e) or type(e).__name__))
            return

        if isinstance(outcome, Result):
            if outcome.is_failure:
                errors.extend(TransformError.for_map(m) for m in _messages_of(outcome))
                return
            outcome = outcome.value
        if not isinstance(outcome, Mapping):
            errors.append(TransformError.for_map(f"expected a mapping, got {type(outcome).__name__}"))
            return

        state.clear()
        for key, value in outcome.items():
            state[key] = render_default(value)


@dataclass(frozen=True)
class MapValidateDeclaration(Declaration):
    """Checks relationships between keys without modifying the map."""

    fn: MapValidateFn

    def apply(self, state: ConfigurationMap, errors: List[ConfigError]) -> None:
        try:
            outcome = self.fn(state.copy())
        except Exception as e:
            errors.append(DeclarationValidationError.for_map(str(e) or type(e).__name__))
            return
        errors.extend(DeclarationValidationError.for_map(m) for m in _rejections(outcome))


class DeclarationEngine:
    """Runs declarations strictly in registration order.

    Each declaration observes the mutations of the ones before it, and every
    declaration runs even after an earlier one failed.
    """

    def run(
        self, declarations: Sequence[Declaration], state: ConfigurationMap
    ) -> List[ConfigError]:
        errors: List[ConfigError] = []
        for declaration in declarations:
            declaration.apply(state, errors)
        if errors:
            logger.info(
                "Configuration declarations reported errors",
                declarations=len(declarations),
                errors=len(errors),
            )
        return errors
