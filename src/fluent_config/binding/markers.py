"""Declarative markers understood by the binder and the validator."""

from dataclasses import dataclass
from typing import Any, Callable

BINDING_CONSTRUCTOR_ATTR = "__fluent_config_constructor__"


@dataclass(frozen=True)
class Required:
    """``Annotated`` marker: the member must be present and non-empty.

    Example::

        host: Annotated[str, Required()] = ""
    """

    message: str = "Value is required"


def binding_constructor(method: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a classmethod as an alternate constructor for binding.

    Apply it beneath ``@classmethod``::

        @classmethod
        @binding_constructor
        def from_url(cls, url: str) -> "Database": ...
    """
    setattr(method, BINDING_CONSTRUCTOR_ATTR, True)
    return method


def is_binding_constructor(member: Any) -> bool:
    if getattr(member, BINDING_CONSTRUCTOR_ATTR, False):
        return True
    func = getattr(member, "__func__", None)
    return bool(getattr(func, BINDING_CONSTRUCTOR_ATTR, False))
