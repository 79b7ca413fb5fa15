"""Scalar conversion between configuration text and Python values.

Parsing is delegated to pydantic in lax mode, with one cached
``TypeAdapter`` per target type. Enums and booleans get extra leniency:
enum members match by name case-insensitively (then by value), and boolean
text is lowercased first.
"""

import json
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict

from pydantic import TypeAdapter, ValidationError

from fluent_config.binding.shapes import BindingShape, ShapeKind, type_label

_ADAPTERS: Dict[Any, TypeAdapter] = {}

_ZERO_VALUES: Dict[type, Any] = {
    str: "",
    bool: False,
    int: 0,
    float: 0.0,
    Decimal: Decimal(0),
    timedelta: timedelta(0),
}


class ConversionFailure(Exception):
    """A string could not be parsed into the requested type."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def adapter_for(target: Any) -> TypeAdapter:
    adapter = _ADAPTERS.get(target)
    if adapter is None:
        adapter = _ADAPTERS.setdefault(target, TypeAdapter(target))
    return adapter


def _first_error(error: ValidationError) -> str:
    details = error.errors()
    if not details:
        return str(error)
    return details[0].get("msg", str(error))


def parse_enum(raw: str, target: type) -> Enum:
    text = raw.strip()
    folded = text.casefold()
    for member in target:  # type: ignore[attr-defined]
        if member.name.casefold() == folded:
            return member
    for member in target:  # type: ignore[attr-defined]
        if str(member.value).casefold() == folded:
            return member
    names = ", ".join(member.name for member in target)  # type: ignore[attr-defined]
    raise ConversionFailure(f"expected one of {names}")


def convert_scalar(raw: str, target: type, nullable: bool = False) -> Any:
    """Parse ``raw`` into ``target``; raises ConversionFailure."""
    if raw is None or raw == "":
        if nullable:
            return None
        if issubclass(target, str) and not issubclass(target, Enum):
            return target("")
        raise ConversionFailure("value is empty")

    if issubclass(target, Enum):
        return parse_enum(raw, target)
    if issubclass(target, str):
        return raw if target is str else target(raw)

    text = raw.strip()
    if target is bool:
        text = text.lower()
    try:
        return adapter_for(target).validate_python(text)
    except ValidationError as e:
        raise ConversionFailure(_first_error(e)) from e


def convert_for_shape(raw: str, shape: BindingShape) -> Any:
    if shape.kind is not ShapeKind.SIMPLE:
        raise ConversionFailure(f"{shape.type_name} is not a scalar type")
    return convert_scalar(raw, shape.target, shape.nullable)


def zero_value(shape: BindingShape) -> Any:
    """The value a member gets when nothing configures it."""
    if shape.nullable:
        return None
    if shape.kind in (ShapeKind.COLLECTION, ShapeKind.MAPPING):
        return shape.empty_container()
    if shape.kind is ShapeKind.SIMPLE:
        for kind, value in _ZERO_VALUES.items():
            if shape.target is kind:
                return value
    return None


def render_scalar(value: Any) -> str:
    """Render a scalar so that ``convert_scalar`` parses it back."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    dumped = adapter_for(type(value)).dump_python(value, mode="json")
    return dumped if isinstance(dumped, str) else json.dumps(dumped)


def describe_target(shape: BindingShape) -> str:
    label = type_label(shape.target)
    return f"Optional[{label}]" if shape.nullable else label
