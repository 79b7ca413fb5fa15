"""Document-style binding.

The flat map is reconstituted into a nested document, aligned to the
target's members and handed to pydantic for deserialization. For dataclass,
NamedTuple and pydantic model targets this produces the same objects as
``Binder``; types pydantic cannot describe are reported as unsupported.
"""

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from fluent_config.binding.binder import BindingContext, BindingOptions, collect_violations, has_content
from fluent_config.binding.conversion import ConversionFailure, convert_scalar
from fluent_config.binding.shapes import BindingShape, ShapeKind, ShapeRegistry, default_registry
from fluent_config.binding.tree import KeyNode, KeyTree, infer_leaf
from fluent_config.binding.validation import ConstraintValidator, ObjectValidator
from fluent_config.core.errors import ConversionError, MissingRequiredKey, UnsupportedShapeError
from fluent_config.core.keys import join_key
from fluent_config.core.result import Result
from fluent_config.exceptions import require_argument
from fluent_config.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_OMIT = object()
_STRUCTURED_ADAPTERS: Dict[Any, TypeAdapter] = {}


def structured_adapter(cls: Any) -> TypeAdapter:
    adapter = _STRUCTURED_ADAPTERS.get(cls)
    if adapter is None:
        adapter = _STRUCTURED_ADAPTERS.setdefault(cls, TypeAdapter(cls))
    return adapter


def coerce_leaf(raw: str, shape: BindingShape) -> Any:
    """Type a leaf for the document, guided by the member it feeds."""
    if raw == "" and shape.nullable:
        return None
    target = shape.target
    if shape.kind is not ShapeKind.SIMPLE or not isinstance(target, type):
        return infer_leaf(raw)
    inferred = infer_leaf(raw)
    if target is bool:
        return inferred if isinstance(inferred, bool) else raw.strip().lower()
    if target is int:
        # floats such as 1e3 would pass pydantic's exact-float check
        if isinstance(inferred, int) and not isinstance(inferred, bool):
            return inferred
        return raw
    if target is float:
        if isinstance(inferred, (int, float)) and not isinstance(inferred, bool):
            return inferred
        return raw
    if issubclass(target, Enum):
        try:
            return convert_scalar(raw, target, shape.nullable)
        except ConversionFailure:
            return raw
    return raw


class StructuredBinder:
    def __init__(self, options: Optional[BindingOptions] = None, registry: Optional[ShapeRegistry] = None):
        self.options = options if options is not None else BindingOptions()
        self.registry = registry if registry is not None else default_registry
        self.validator: ObjectValidator = self.options.validator or ConstraintValidator(self.registry)

    def bind(self, cls: Type[T], configuration: Mapping[str, str]) -> Result[T]:
        require_argument(cls, "cls")
        require_argument(configuration, "configuration")

        shape = self.registry.shape_of(cls)
        context = BindingContext(self.options.enable_validation)
        if not shape.is_object:
            reason = shape.reason or f"{shape.kind.value} types cannot be bound as a root object"
            return Result.failure(UnsupportedShapeError.create(shape.type_name, reason))

        try:
            adapter = structured_adapter(cls)
        except PydanticUserError as e:
            return Result.failure(UnsupportedShapeError.create(shape.type_name, str(e).splitlines()[0]))

        node = KeyTree(configuration).find(self.options.prefix) or KeyNode()
        document = self.align(node, shape, "", context)

        try:
            instance = adapter.validate_python(document)
        except ValidationError as e:
            for detail in e.errors():
                context.add(self._error_from_detail(detail, shape))
            return Result.failure(list(context.errors))

        if self.options.enable_validation:
            collect_violations(instance, self.validator, context)
        if context.errors:
            return Result.failure(list(context.errors))
        return Result.success(instance)

    def align(self, node: Optional[KeyNode], shape: BindingShape, path: str, context: BindingContext) -> Dict[str, Any]:
        """Rename document keys to member names and shape leaves for the target."""
        document: Dict[str, Any] = {}
        for member in shape.members:
            member_shape = self.registry.shape_of(member.annotation)
            member_path = join_key(path, member.name)
            child = node.child(member.name) if node is not None else None
            value = self._align_value(child, member_shape, member_path, context) if has_content(child) else _OMIT

            if value is not _OMIT:
                document[member.name] = value
                continue
            if member_shape.kind is ShapeKind.SIMPLE and member.required and context.enable_validation:
                context.add(MissingRequiredKey.for_member(member_path))
                context.missing_paths.add(member_path)
            if member_shape.kind in (ShapeKind.COLLECTION, ShapeKind.MAPPING):
                if not member.has_default or member.default_value() is None:
                    document[member.name] = member_shape.empty_container()
            elif not member.has_default and member_shape.nullable:
                document[member.name] = None
        return document

    def _align_value(self, node: KeyNode, shape: BindingShape, path: str, context: BindingContext) -> Any:
        if shape.kind is ShapeKind.SIMPLE:
            if node.has_value:
                return coerce_leaf(node.value, shape)
            return node.to_document()
        if shape.kind is ShapeKind.COLLECTION:
            element = self.registry.shape_of(shape.element)
            indexed = node.indexed_children()
            if not indexed:
                return _OMIT
            return [
                self._align_element(child, element, join_key(path, str(i)), context) for i, child in indexed
            ]
        if shape.kind is ShapeKind.MAPPING:
            element = self.registry.shape_of(shape.element)
            if not node.has_children:
                return _OMIT
            return {
                child.segment: self._align_element(child, element, join_key(path, child.segment), context)
                for child in node.children()
            }
        if shape.is_object:
            return self.align(node, shape, path, context)
        return node.to_document()

    def _align_element(self, node: KeyNode, shape: BindingShape, path: str, context: BindingContext) -> Any:
        value = self._align_value(node, shape, path, context)
        return shape.empty_container() if value is _OMIT else value

    def _error_from_detail(self, detail: Dict[str, Any], shape: BindingShape):
        location: List[str] = [str(part) for part in detail.get("loc", ())]
        path = join_key(*location)
        if detail.get("type") == "missing":
            return MissingRequiredKey.for_member(path)
        raw = detail.get("input")
        raw_text = "" if isinstance(raw, (dict, list)) else str(raw)
        return ConversionError.create(path, raw_text, detail.get("type", "value"), detail.get("msg", "invalid value"))

    def to_document(self, configuration: Mapping[str, str]) -> Any:
        """The raw reconstituted document, with heuristically typed leaves."""
        return KeyTree(configuration).to_document(infer=True)


def bind_structured(
    cls: Type[T], configuration: Mapping[str, str], options: Optional[BindingOptions] = None
) -> Result[T]:
    """Bind ``configuration`` to ``cls`` through the document route."""
    return StructuredBinder(options).bind(cls, configuration)
