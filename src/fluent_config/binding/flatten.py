"""Flatten a bound object back into configuration keys."""

from typing import Any, Dict, Optional

from fluent_config.binding.conversion import render_scalar
from fluent_config.binding.shapes import BindingShape, ShapeKind, ShapeRegistry, default_registry
from fluent_config.core.keys import join_key
from fluent_config.exceptions import InvalidArgumentError, require_argument


def flatten(instance: Any, prefix: str = "", registry: Optional[ShapeRegistry] = None) -> Dict[str, str]:
    """Render ``instance`` as a flat map that binds back to an equal object.

    ``None`` members are omitted; collections use ``path:index`` keys and
    mappings ``path:key``.
    """
    require_argument(instance, "instance")
    registry = registry if registry is not None else default_registry
    shape = registry.shape_of(type(instance))
    if not shape.is_object:
        raise InvalidArgumentError(
            f"Only objects can be flattened, got {shape.type_name}", argument="instance"
        )
    flat: Dict[str, str] = {}
    _flatten_value(instance, shape, prefix, flat, registry)
    return flat


def _flatten_value(value: Any, shape: BindingShape, path: str, flat: Dict[str, str], registry: ShapeRegistry) -> None:
    if value is None:
        return
    if shape.kind is ShapeKind.SIMPLE:
        flat[path] = render_scalar(value)
    elif shape.kind is ShapeKind.COLLECTION:
        element = registry.shape_of(shape.element)
        for index, item in enumerate(value):
            _flatten_value(item, element, join_key(path, str(index)), flat, registry)
    elif shape.kind is ShapeKind.MAPPING:
        element = registry.shape_of(shape.element)
        for key, item in value.items():
            _flatten_value(item, element, join_key(path, str(key)), flat, registry)
    elif shape.is_object:
        for member in shape.members:
            member_shape = registry.shape_of(member.annotation)
            _flatten_value(getattr(value, member.name, None), member_shape, join_key(path, member.name), flat, registry)
    else:
        raise InvalidArgumentError(
            f"Cannot flatten '{path}': {shape.reason}", argument="instance"
        )
