"""Typed binding of flat configuration maps."""

from .binder import Binder, BindingOptions, bind
from .conversion import ConversionFailure, convert_scalar, render_scalar
from .flatten import flatten
from .markers import Required, binding_constructor
from .shapes import BindingShape, ShapeKind, ShapeRegistry, default_registry
from .structured import StructuredBinder, bind_structured
from .validation import ConstraintValidator, ObjectValidator, Violation

__all__ = [
    "Binder",
    "BindingOptions",
    "BindingShape",
    "ConstraintValidator",
    "ConversionFailure",
    "ObjectValidator",
    "Required",
    "ShapeKind",
    "ShapeRegistry",
    "StructuredBinder",
    "Violation",
    "bind",
    "bind_structured",
    "binding_constructor",
    "convert_scalar",
    "default_registry",
    "flatten",
    "render_scalar",
]
