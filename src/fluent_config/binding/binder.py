"""Reflective binding of a flat configuration map into typed objects.

Binding runs in three steps:

1. Construction. ``COMPLEX`` types are created without arguments;
   ``CONSTRUCTOR`` types are built by the first satisfiable constructor,
   most parameters first.
2. Member binding for ``COMPLEX`` instances: scalars are converted,
   collections are gathered from integer-indexed keys, nested objects are
   bound recursively with ``parent:member`` paths.
3. Validation of the finished graph.

Every step keeps going after a failure, so one call reports every problem.
"""

import inspect
from typing import Any, List, Mapping, Optional, Set, Type, TypeVar

from pydantic import BaseModel, ConfigDict

from fluent_config.binding.conversion import ConversionFailure, convert_for_shape, describe_target, zero_value
from fluent_config.binding.shapes import (
    BindingShape,
    ConstructorInfo,
    MemberInfo,
    ShapeKind,
    ShapeRegistry,
    default_registry,
)
from fluent_config.binding.tree import KeyNode, KeyTree
from fluent_config.binding.validation import ConstraintValidator, ObjectValidator
from fluent_config.core.errors import (
    ConfigError,
    ConstructionError,
    ConversionError,
    MissingRequiredKey,
    PropertyValidationError,
    UnsupportedShapeError,
)
from fluent_config.core.keys import join_key
from fluent_config.core.result import Result
from fluent_config.exceptions import require_argument
from fluent_config.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_UNSET = object()
_FAILED = object()


class BindingOptions(BaseModel):
    """Options shared by both binding modes."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    enable_validation: bool = True
    validator: Optional[Any] = None
    prefix: str = ""


class BindingContext:
    """Errors and bookkeeping for one bind call."""

    def __init__(self, enable_validation: bool):
        self.enable_validation = enable_validation
        self.errors: List[ConfigError] = []
        self.missing_paths: Set[str] = set()

    def add(self, error: ConfigError) -> None:
        if error not in self.errors:
            self.errors.append(error)

    def extend(self, errors: List[ConfigError]) -> None:
        for error in errors:
            self.add(error)

    def reported_paths(self) -> Set[str]:
        return {error.path for error in self.errors if error.path} | self.missing_paths


def has_content(node: Optional[KeyNode]) -> bool:
    return node is not None and (node.has_value or node.has_children)


def collect_violations(
    instance: Any,
    validator: ObjectValidator,
    context: BindingContext,
) -> None:
    """Turn validator violations into errors, skipping already reported paths."""
    reported = context.reported_paths()
    for violation in validator.validate(instance):
        if violation.path in reported:
            continue
        context.add(
            PropertyValidationError(message=violation.message, path=violation.path, rule=violation.rule)
        )


class Binder:
    """Binds flat maps to ``COMPLEX`` and ``CONSTRUCTOR`` shaped types."""

    def __init__(self, options: Optional[BindingOptions] = None, registry: Optional[ShapeRegistry] = None):
        self.options = options if options is not None else BindingOptions()
        self.registry = registry if registry is not None else default_registry
        self.validator: ObjectValidator = self.options.validator or ConstraintValidator(self.registry)

    def bind(self, cls: Type[T], configuration: Mapping[str, str]) -> Result[T]:
        require_argument(cls, "cls")
        require_argument(configuration, "configuration")

        tree = KeyTree(configuration)
        root = tree.find(self.options.prefix) or KeyNode()
        shape = self.registry.shape_of(cls)
        context = BindingContext(self.options.enable_validation)

        instance: Any = _FAILED
        if shape.kind is ShapeKind.COMPLEX:
            instance = self._instantiate(shape, "", context)
            if instance is not _FAILED:
                self._bind_members(instance, shape, root, "", context)
        elif shape.kind is ShapeKind.CONSTRUCTOR:
            instance = self._construct(shape, root, "", context)
        else:
            reason = shape.reason or f"{shape.kind.value} types cannot be bound as a root object"
            context.add(UnsupportedShapeError.create(shape.type_name, reason))

        if instance is not _FAILED and self.options.enable_validation:
            collect_violations(instance, self.validator, context)

        if context.errors:
            logger.debug("Binding failed", target=shape.type_name, errors=len(context.errors))
            return Result.failure(list(context.errors))
        return Result.success(instance)

    def _instantiate(self, shape: BindingShape, path: str, context: BindingContext) -> Any:
        constructor = shape.constructors[0] if shape.constructors else None
        factory = constructor.factory if constructor else shape.target
        try:
            return factory()
        except (TypeError, ValueError) as e:
            signature = constructor.signature if constructor else f"{shape.type_name}()"
            context.add(ConstructionError.constructor_raised(shape.type_name, signature, str(e), path))
            return _FAILED

    def _bind_members(self, instance: Any, shape: BindingShape, node: Optional[KeyNode], path: str, context: BindingContext) -> None:
        for member in shape.members:
            member_path = join_key(path, member.name)
            child = node.child(member.name) if node is not None else None
            current = getattr(instance, member.name, _UNSET)
            shared = current is not _UNSET and inspect.getattr_static(type(instance), member.name, _UNSET) is current
            value = self._bind_member(member, child, member_path, current, context, shared)
            if value is _UNSET:
                continue
            try:
                setattr(instance, member.name, value)
            except (AttributeError, TypeError, ValueError) as e:
                context.add(
                    UnsupportedShapeError.create(
                        shape.type_name, f"member '{member.name}' cannot be assigned: {e}", member_path
                    )
                )

    def _bind_member(
        self,
        member: MemberInfo,
        node: Optional[KeyNode],
        path: str,
        current: Any,
        context: BindingContext,
        shared: bool = False,
    ) -> Any:
        """Value to assign to a member, or ``_UNSET`` to leave it as is.

        ``shared`` marks a current value that is the class attribute itself;
        such objects are replaced by a fresh instance, never bound in place.
        """
        shape = self.registry.shape_of(member.annotation)

        if not has_content(node) or (
            shape.kind is ShapeKind.COLLECTION and not node.indexed_children()
        ) or (shape.kind is ShapeKind.MAPPING and not node.has_children):
            return self._absent_member(member, shape, path, current, context)

        if shape.kind is ShapeKind.COMPLEX and current is not _UNSET and current is not None and not shared:
            self._bind_members(current, shape, node, path, context)
            return _UNSET

        value = self._bind_value(shape, node, path, context)
        if value is _FAILED:
            return zero_value(shape) if current is _UNSET else _UNSET
        return value

    def _absent_member(
        self,
        member: MemberInfo,
        shape: BindingShape,
        path: str,
        current: Any,
        context: BindingContext,
    ) -> Any:
        if shape.kind is ShapeKind.SIMPLE:
            if member.required and context.enable_validation:
                context.add(MissingRequiredKey.for_member(path))
                context.missing_paths.add(path)
            return zero_value(shape) if current is _UNSET else _UNSET

        if shape.kind in (ShapeKind.COLLECTION, ShapeKind.MAPPING):
            if current is _UNSET or current is None:
                return shape.empty_container()
            return _UNSET

        if current is not _UNSET:
            return _UNSET
        if shape.nullable:
            return None
        if shape.kind is ShapeKind.COMPLEX:
            instance = self._instantiate(shape, path, context)
            if instance is _FAILED:
                return _UNSET
            self._bind_members(instance, shape, None, path, context)
            return instance
        if shape.kind is ShapeKind.CONSTRUCTOR:
            value = self._construct(shape, None, path, context)
            return _UNSET if value is _FAILED else value
        context.add(UnsupportedShapeError.create(shape.type_name, shape.reason, path))
        return _UNSET

    def _bind_value(self, shape: BindingShape, node: KeyNode, path: str, context: BindingContext) -> Any:
        """Bind one configured value of any shape; ``_FAILED`` on error."""
        if shape.kind is ShapeKind.SIMPLE:
            if not node.has_value:
                context.add(
                    ConversionError.create(path, "", describe_target(shape), "expected a single value, found nested keys")
                )
                return _FAILED
            try:
                return convert_for_shape(node.value, shape)
            except ConversionFailure as e:
                context.add(ConversionError.create(path, node.value, describe_target(shape), e.reason))
                return _FAILED

        if shape.kind is ShapeKind.COLLECTION:
            return self._bind_collection(shape, node, path, context)

        if shape.kind is ShapeKind.MAPPING:
            element = self.registry.shape_of(shape.element)
            entries = {}
            for child in node.children():
                value = self._bind_value(element, child, join_key(path, child.segment), context)
                if value is not _FAILED:
                    entries[child.segment] = value
            return entries

        if shape.kind is ShapeKind.COMPLEX:
            instance = self._instantiate(shape, path, context)
            if instance is _FAILED:
                return _FAILED
            self._bind_members(instance, shape, node, path, context)
            return instance

        if shape.kind is ShapeKind.CONSTRUCTOR:
            return self._construct(shape, node, path, context)

        context.add(UnsupportedShapeError.create(shape.type_name, shape.reason, path))
        return _FAILED

    def _bind_collection(self, shape: BindingShape, node: KeyNode, path: str, context: BindingContext) -> Any:
        element = self.registry.shape_of(shape.element)
        items = []
        for index, child in node.indexed_children():
            value = self._bind_value(element, child, join_key(path, str(index)), context)
            if value is not _FAILED:
                items.append(value)
        return shape.container(items) if shape.container is not list else items

    def _construct(
        self,
        shape: BindingShape,
        node: Optional[KeyNode],
        path: str,
        context: BindingContext,
    ) -> Any:
        """Build a constructor-bound type; ``_FAILED`` when nothing fits."""
        attempt_errors: List[ConfigError] = []
        signatures = []
        for constructor in shape.constructors:
            signatures.append(constructor.signature)
            instance = self._try_constructor(shape, constructor, node, path, context, attempt_errors)
            if instance is not _FAILED:
                return instance

        context.extend(attempt_errors)
        context.add(ConstructionError.no_satisfiable_constructor(shape.type_name, tuple(signatures), path))
        return _FAILED

    def _try_constructor(
        self,
        shape: BindingShape,
        constructor: ConstructorInfo,
        node: Optional[KeyNode],
        path: str,
        context: BindingContext,
        attempt_errors: List[ConfigError],
    ) -> Any:
        args: List[Any] = []
        kwargs = {}
        satisfiable = True
        attempt = BindingContext(context.enable_validation)

        for param in constructor.parameters:
            param_shape = self.registry.shape_of(param.annotation)
            param_path = join_key(path, param.name)
            child = node.child(param.name) if node is not None else None

            if has_content(child):
                value = self._bind_value(param_shape, child, param_path, attempt)
                if value is _FAILED:
                    satisfiable = False
                    continue
            elif param.has_default:
                if param.required and param_shape.kind is ShapeKind.SIMPLE and attempt.enable_validation:
                    attempt.add(MissingRequiredKey.for_member(param_path))
                    attempt.missing_paths.add(param_path)
                if not param.positional_only:
                    continue
                value = param.default_value()
            elif param_shape.kind in (ShapeKind.COLLECTION, ShapeKind.MAPPING):
                value = param_shape.empty_container()
            elif param_shape.nullable:
                value = None
            else:
                satisfiable = False
                continue

            if param.positional_only:
                args.append(value)
            else:
                kwargs[param.name] = value

        if not satisfiable:
            for error in attempt.errors:
                if error not in attempt_errors:
                    attempt_errors.append(error)
            return _FAILED

        try:
            instance = constructor.factory(*args, **kwargs)
        except (TypeError, ValueError) as e:
            attempt_errors.append(
                ConstructionError.constructor_raised(shape.type_name, constructor.signature, str(e), path)
            )
            return _FAILED

        context.extend(attempt.errors)
        context.missing_paths |= attempt.missing_paths
        return instance


def bind(cls: Type[T], configuration: Mapping[str, str], options: Optional[BindingOptions] = None) -> Result[T]:
    """Bind ``configuration`` to ``cls`` with the reflective binder."""
    return Binder(options).bind(cls, configuration)
