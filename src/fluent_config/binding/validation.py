"""Object-graph validation after binding.

The binder only depends on the ``ObjectValidator`` protocol. The default
``ConstraintValidator`` reads constraints from ``Annotated`` metadata
(``annotated_types`` markers, ``pydantic.Field`` metadata and
``Required``) and evaluates each one independently, so an object that
breaks two rules yields two violations.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Set, runtime_checkable

import annotated_types

from fluent_config.binding.markers import Required
from fluent_config.binding.shapes import BindingShape, MemberInfo, ShapeKind, ShapeRegistry, default_registry
from fluent_config.core.keys import join_key
from fluent_config.logging import get_logger

logger = get_logger(__name__)

RuleFn = Callable[[Any, Any], Optional[str]]


@dataclass(frozen=True)
class Violation:
    path: str
    message: str
    rule: str


@runtime_checkable
class ObjectValidator(Protocol):
    def validate(self, instance: Any) -> List[Violation]:
        ...


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _required(constraint: Required, value: Any) -> Optional[str]:
    return constraint.message if _is_empty(value) else None


def _gt(constraint: annotated_types.Gt, value: Any) -> Optional[str]:
    return None if value > constraint.gt else f"Value must be greater than {constraint.gt}"


def _ge(constraint: annotated_types.Ge, value: Any) -> Optional[str]:
    return None if value >= constraint.ge else f"Value must be at least {constraint.ge}"


def _lt(constraint: annotated_types.Lt, value: Any) -> Optional[str]:
    return None if value < constraint.lt else f"Value must be less than {constraint.lt}"


def _le(constraint: annotated_types.Le, value: Any) -> Optional[str]:
    return None if value <= constraint.le else f"Value must be at most {constraint.le}"


def _multiple_of(constraint: annotated_types.MultipleOf, value: Any) -> Optional[str]:
    if value % constraint.multiple_of == 0:
        return None
    return f"Value must be a multiple of {constraint.multiple_of}"


def _min_len(constraint: annotated_types.MinLen, value: Any) -> Optional[str]:
    if len(value) >= constraint.min_length:
        return None
    return f"Length must be at least {constraint.min_length}"


def _max_len(constraint: annotated_types.MaxLen, value: Any) -> Optional[str]:
    if len(value) <= constraint.max_length:
        return None
    return f"Length must be at most {constraint.max_length}"


def _predicate(constraint: annotated_types.Predicate, value: Any) -> Optional[str]:
    if constraint.func(value):
        return None
    name = getattr(constraint.func, "__name__", "predicate")
    return f"Value does not satisfy {name}"


DEFAULT_RULES: Dict[type, RuleFn] = {
    Required: _required,
    annotated_types.Gt: _gt,
    annotated_types.Ge: _ge,
    annotated_types.Lt: _lt,
    annotated_types.Le: _le,
    annotated_types.MultipleOf: _multiple_of,
    annotated_types.MinLen: _min_len,
    annotated_types.MaxLen: _max_len,
    annotated_types.Predicate: _predicate,
}

# rules that also apply when the value is None
_NONE_AWARE = {Required}


class ConstraintValidator:
    """Evaluates ``Annotated`` constraints over a bound object graph."""

    def __init__(self, registry: Optional[ShapeRegistry] = None, rules: Optional[Dict[type, RuleFn]] = None):
        self.registry = registry if registry is not None else default_registry
        self._rules: Dict[type, RuleFn] = dict(DEFAULT_RULES)
        if rules:
            self._rules.update(rules)

    def register_rule(self, constraint_type: type, rule: RuleFn) -> None:
        """Add or replace the rule evaluated for a constraint type."""
        self._rules[constraint_type] = rule

    def validate(self, instance: Any) -> List[Violation]:
        violations: List[Violation] = []
        shape = self.registry.shape_of(type(instance))
        self._walk_object(instance, shape, "", violations, set())
        return violations

    def _walk_object(
        self, instance: Any, shape: BindingShape, path: str, violations: List[Violation], seen: Set[int]
    ) -> None:
        if not shape.is_object or id(instance) in seen:
            return
        seen.add(id(instance))
        for member in shape.members:
            value = getattr(instance, member.name, None)
            member_path = join_key(path, member.name)
            self._check(member, value, member_path, violations)
            self._walk_value(value, self.registry.shape_of(member.annotation), member_path, violations, seen)

    def _walk_value(
        self, value: Any, shape: BindingShape, path: str, violations: List[Violation], seen: Set[int]
    ) -> None:
        if value is None:
            return
        if shape.is_object:
            self._walk_object(value, shape, path, violations, seen)
        elif shape.kind is ShapeKind.COLLECTION:
            element = self.registry.shape_of(shape.element)
            for index, item in enumerate(value):
                self._check_constraints(element.constraints, item, join_key(path, str(index)), violations)
                self._walk_value(item, element, join_key(path, str(index)), violations, seen)
        elif shape.kind is ShapeKind.MAPPING:
            element = self.registry.shape_of(shape.element)
            for key, item in value.items():
                self._check_constraints(element.constraints, item, join_key(path, str(key)), violations)
                self._walk_value(item, element, join_key(path, str(key)), violations, seen)

    def _check(self, member: MemberInfo, value: Any, path: str, violations: List[Violation]) -> None:
        self._check_constraints(member.constraints, value, path, violations)

    def _check_constraints(
        self, constraints: Iterable[Any], value: Any, path: str, violations: List[Violation]
    ) -> None:
        for constraint in constraints:
            rule = self._rule_for(constraint)
            if rule is None:
                continue
            if value is None and type(constraint) not in _NONE_AWARE:
                continue
            try:
                message = rule(constraint, value)
            except TypeError as e:
                message = f"Constraint {type(constraint).__name__} cannot be evaluated: {e}"
            if message:
                violations.append(Violation(path=path, message=message, rule=type(constraint).__name__))

    def _rule_for(self, constraint: Any) -> Optional[RuleFn]:
        for constraint_type in type(constraint).__mro__:
            rule = self._rules.get(constraint_type)
            if rule is not None:
                return rule
        return None
