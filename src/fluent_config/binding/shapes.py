"""Binding shapes: per-type descriptors computed once and cached.

A shape tells the binder how a target annotation is populated from the flat
map. Classes are classified declaratively:

* ``SIMPLE``: parsed from a single string value.
* ``COLLECTION`` / ``MAPPING``: homogeneous containers keyed by index or name.
* ``COMPLEX``: instantiated without arguments, then members are assigned.
* ``CONSTRUCTOR``: immutable or argument-requiring types, built only through
  a constructor (``__init__`` or a ``@binding_constructor`` classmethod).
* ``UNSUPPORTED``: anything else, with the reason.
"""

import collections.abc as cabc
import dataclasses
import inspect
import types
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import (
    Annotated,
    Any,
    Callable,
    ClassVar,
    Dict,
    ForwardRef,
    Iterator,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)
from uuid import UUID

import annotated_types
from pydantic import AnyUrl, BaseModel
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

from fluent_config.binding.markers import Required, is_binding_constructor
from fluent_config.logging import get_logger

logger = get_logger(__name__)

_NO_ATTRIBUTE = object()

SIMPLE_TYPES = (
    str,
    bool,
    int,
    float,
    Decimal,
    datetime,
    date,
    time,
    timedelta,
    UUID,
    PurePath,
    AnyUrl,
    Enum,
)

COLLECTION_ORIGINS: Dict[Any, type] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    cabc.Sequence: list,
    cabc.MutableSequence: list,
    cabc.Collection: list,
    cabc.Iterable: list,
    cabc.Set: frozenset,
    cabc.MutableSet: set,
}

MAPPING_ORIGINS: Dict[Any, type] = {
    dict: dict,
    cabc.Mapping: dict,
    cabc.MutableMapping: dict,
}


class ShapeKind(str, Enum):
    SIMPLE = "simple"
    COLLECTION = "collection"
    MAPPING = "mapping"
    COMPLEX = "complex"
    CONSTRUCTOR = "constructor"
    UNSUPPORTED = "unsupported"


def type_label(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__name__
    return repr(annotation).replace("typing.", "")


def _expand_metadata(item: Any) -> Iterator[Any]:
    if isinstance(item, FieldInfo):
        for nested in item.metadata:
            yield from _expand_metadata(nested)
    elif isinstance(item, annotated_types.GroupedMetadata):
        yield from item
    else:
        yield item


def unwrap_annotation(annotation: Any) -> Tuple[Any, bool, Tuple[Any, ...]]:
    """Strip ``Annotated`` and ``Optional`` wrappers.

    Returns the bare target, whether ``None`` is allowed, and the collected
    ``Annotated`` constraints.
    """
    constraints: List[Any] = []
    nullable = False
    while True:
        origin = get_origin(annotation)
        if origin is Annotated:
            annotation, *metadata = get_args(annotation)
            for item in metadata:
                constraints.extend(_expand_metadata(item))
            continue
        if origin is Union or origin is types.UnionType:
            args = get_args(annotation)
            remaining = tuple(arg for arg in args if arg is not type(None))
            if len(remaining) < len(args):
                nullable = True
                if len(remaining) == 1:
                    annotation = remaining[0]
                    continue
                annotation = Union[remaining]
        break
    return annotation, nullable, tuple(constraints)


@dataclass(frozen=True, eq=False)
class MemberInfo:
    """A bindable member or constructor parameter."""

    name: str
    annotation: Any
    has_default: bool = False
    default: Any = None
    default_factory: Optional[Callable[[], Any]] = None
    constraints: Tuple[Any, ...] = ()
    positional_only: bool = False

    @property
    def required(self) -> bool:
        return any(isinstance(c, Required) for c in self.constraints)

    def default_value(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default


@dataclass(frozen=True, eq=False)
class ConstructorInfo:
    factory: Callable[..., Any]
    parameters: Tuple[MemberInfo, ...]
    name: str

    @property
    def signature(self) -> str:
        params = ", ".join(f"{p.name}: {type_label(p.annotation)}" for p in self.parameters)
        return f"{self.name}({params})"


@dataclass(frozen=True, eq=False)
class BindingShape:
    kind: ShapeKind
    annotation: Any
    target: Any
    nullable: bool = False
    constraints: Tuple[Any, ...] = ()
    element: Any = None
    container: Optional[type] = None
    members: Tuple[MemberInfo, ...] = ()
    constructors: Tuple[ConstructorInfo, ...] = ()
    reason: str = ""

    @property
    def type_name(self) -> str:
        return type_label(self.target)

    @property
    def is_object(self) -> bool:
        return self.kind in (ShapeKind.COMPLEX, ShapeKind.CONSTRUCTOR)

    def empty_container(self) -> Any:
        return self.container() if self.container is not None else None


def _type_hints(obj: Any) -> Dict[str, Any]:
    try:
        return get_type_hints(obj, include_extras=True)
    except (NameError, TypeError) as e:
        logger.debug("Could not resolve type hints", owner=getattr(obj, "__qualname__", repr(obj)), error=str(e))
        return dict(getattr(obj, "__annotations__", {}) or {})


def _member(
    name: str,
    annotation: Any,
    has_default: bool = False,
    default: Any = None,
    default_factory: Optional[Callable[[], Any]] = None,
    extra_constraints: Tuple[Any, ...] = (),
    positional_only: bool = False,
) -> MemberInfo:
    _, _, constraints = unwrap_annotation(annotation)
    expanded: List[Any] = list(constraints)
    for item in extra_constraints:
        expanded.extend(_expand_metadata(item))
    return MemberInfo(
        name=name,
        annotation=annotation,
        has_default=has_default,
        default=default,
        default_factory=default_factory,
        constraints=tuple(expanded),
        positional_only=positional_only,
    )


def is_namedtuple(cls: type) -> bool:
    return isinstance(cls, type) and issubclass(cls, tuple) and hasattr(cls, "_fields")


def _is_frozen(cls: type) -> bool:
    if is_namedtuple(cls):
        return True
    if dataclasses.is_dataclass(cls):
        return cls.__dataclass_params__.frozen  # type: ignore[attr-defined]
    if issubclass(cls, BaseModel):
        return bool(cls.model_config.get("frozen"))
    return False


def _members_of(cls: type) -> Tuple[MemberInfo, ...]:
    hints = _type_hints(cls)
    members: List[MemberInfo] = []

    if dataclasses.is_dataclass(cls):
        for f in dataclasses.fields(cls):
            has_factory = f.default_factory is not dataclasses.MISSING
            has_value = f.default is not dataclasses.MISSING
            members.append(
                _member(
                    f.name,
                    hints.get(f.name, f.type),
                    has_default=has_factory or has_value,
                    default=f.default if has_value else None,
                    default_factory=f.default_factory if has_factory else None,
                )
            )
    elif is_namedtuple(cls):
        defaults = getattr(cls, "_field_defaults", {})
        for name in cls._fields:  # type: ignore[attr-defined]
            members.append(
                _member(
                    name,
                    hints.get(name, Any),
                    has_default=name in defaults,
                    default=defaults.get(name),
                )
            )
    elif issubclass(cls, BaseModel):
        for name, info in cls.model_fields.items():
            has_value = info.default is not PydanticUndefined
            factory = info.default_factory
            members.append(
                _member(
                    name,
                    hints.get(name, info.annotation),
                    has_default=not info.is_required(),
                    default=info.default if has_value else None,
                    default_factory=factory,  # type: ignore[arg-type]
                    extra_constraints=tuple(info.metadata),
                )
            )
    else:
        for name, annotation in hints.items():
            if name.startswith("_"):
                continue
            if annotation is ClassVar or get_origin(annotation) is ClassVar:
                continue
            attribute = inspect.getattr_static(cls, name, _NO_ATTRIBUTE)
            if isinstance(attribute, property):
                continue
            has_default = attribute is not _NO_ATTRIBUTE
            members.append(
                _member(
                    name,
                    annotation,
                    has_default=has_default,
                    default=attribute if has_default else None,
                )
            )
    return tuple(members)


def _parameters(signature: inspect.Signature, hints: Dict[str, Any]) -> Tuple[MemberInfo, ...]:
    parameters: List[MemberInfo] = []
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation = hints.get(param.name)
        if annotation is None:
            annotation = Any if param.annotation is param.empty else param.annotation
        has_default = param.default is not param.empty
        parameters.append(
            _member(
                param.name,
                annotation,
                has_default=has_default,
                default=param.default if has_default else None,
                positional_only=param.kind is param.POSITIONAL_ONLY,
            )
        )
    return tuple(parameters)


def _primary_constructor(cls: type) -> ConstructorInfo:
    if cls.__init__ is object.__init__ and cls.__new__ is object.__new__:
        return ConstructorInfo(factory=cls, parameters=(), name=cls.__name__)

    signature = inspect.signature(cls)
    if dataclasses.is_dataclass(cls) or is_namedtuple(cls) or issubclass(cls, BaseModel):
        hints = _type_hints(cls)
    else:
        hints = _type_hints(cls.__init__)
    hints.pop("return", None)
    return ConstructorInfo(factory=cls, parameters=_parameters(signature, hints), name=cls.__name__)


def _alternate_constructors(cls: type) -> List[ConstructorInfo]:
    constructors: List[ConstructorInfo] = []
    seen = set()
    for owner in cls.__mro__:
        for name, attribute in vars(owner).items():
            if name in seen or not isinstance(attribute, classmethod):
                continue
            seen.add(name)
            if not is_binding_constructor(attribute):
                continue
            method = getattr(cls, name)
            hints = _type_hints(attribute.__func__)
            hints.pop("return", None)
            constructors.append(
                ConstructorInfo(
                    factory=method,
                    parameters=_parameters(inspect.signature(method), hints),
                    name=f"{cls.__name__}.{name}",
                )
            )
    return constructors


class ShapeRegistry:
    """Compute-once cache of shapes keyed by annotation.

    Readers never wait on a lock: a shape is computed outside the cache and
    published with ``dict.setdefault``, so concurrent first lookups agree on
    one instance. Child shapes are resolved lazily through ``shape_of``,
    which lets recursive types terminate.
    """

    def __init__(self) -> None:
        self._shapes: Dict[Any, BindingShape] = {}

    def shape_of(self, annotation: Any) -> BindingShape:
        try:
            shape = self._shapes.get(annotation)
        except TypeError:
            return self._compute(annotation)
        if shape is None:
            shape = self._shapes.setdefault(annotation, self._compute(annotation))
        return shape

    def __contains__(self, annotation: Any) -> bool:
        try:
            return annotation in self._shapes
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._shapes)

    def clear(self) -> None:
        self._shapes.clear()

    def _compute(self, annotation: Any) -> BindingShape:
        target, nullable, constraints = unwrap_annotation(annotation)
        base = dict(annotation=annotation, target=target, nullable=nullable, constraints=constraints)

        def unsupported(reason: str) -> BindingShape:
            return BindingShape(kind=ShapeKind.UNSUPPORTED, reason=reason, **base)

        if isinstance(target, (str, ForwardRef)):
            return unsupported("unresolved forward reference")
        if target is Any or isinstance(target, TypeVar):
            return unsupported("type is not concrete")

        origin = get_origin(target)
        if origin is Union or origin is types.UnionType:
            return unsupported("unions of several types are not supported")
        if origin is not None:
            args = get_args(target)
            if origin in COLLECTION_ORIGINS:
                if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
                    return unsupported("only homogeneous tuple[X, ...] is supported")
                if not args:
                    return unsupported("collection element type is missing")
                return BindingShape(
                    kind=ShapeKind.COLLECTION,
                    element=args[0],
                    container=COLLECTION_ORIGINS[origin],
                    **base,
                )
            if origin in MAPPING_ORIGINS:
                if len(args) != 2 or args[0] is not str:
                    return unsupported("mapping keys must be str")
                return BindingShape(kind=ShapeKind.MAPPING, element=args[1], container=dict, **base)
            return unsupported(f"generic type {type_label(origin)} is not supported")

        if not isinstance(target, type):
            return unsupported("not a class")
        if target in COLLECTION_ORIGINS or target in MAPPING_ORIGINS:
            return unsupported("container element type is missing")
        if issubclass(target, SIMPLE_TYPES):
            return BindingShape(kind=ShapeKind.SIMPLE, **base)
        if issubclass(target, (list, set, frozenset, dict)) or (
            issubclass(target, tuple) and not is_namedtuple(target)
        ):
            return unsupported("container subclasses are not supported")
        if inspect.isabstract(target):
            return unsupported("abstract classes cannot be instantiated")
        return self._class_shape(target, base)

    def _class_shape(self, cls: type, base: Dict[str, Any]) -> BindingShape:
        try:
            primary = _primary_constructor(cls)
        except (TypeError, ValueError) as e:
            return BindingShape(
                kind=ShapeKind.UNSUPPORTED, reason=f"cannot inspect constructor: {e}", **base
            )
        members = _members_of(cls)
        alternates = _alternate_constructors(cls)
        needs_arguments = any(not p.has_default for p in primary.parameters)

        if _is_frozen(cls) or needs_arguments:
            # most parameters first; ties keep declaration order
            ordered = sorted([primary, *alternates], key=lambda c: -len(c.parameters))
            return BindingShape(
                kind=ShapeKind.CONSTRUCTOR,
                members=members,
                constructors=tuple(ordered),
                **base,
            )
        return BindingShape(kind=ShapeKind.COMPLEX, members=members, constructors=(primary,), **base)


default_registry = ShapeRegistry()
