"""Key tree over a flat configuration map.

The binder walks configuration as a tree rather than scanning every key for
every member. Children are grouped case-insensitively and both separator
forms collapse into the same path, so ``Items:0:Name`` and
``items__1__name`` land under one ``Items`` node.
"""

import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from fluent_config.core.keys import is_index_segment, loose_segment, split_key

_INT_PATTERN = re.compile(r"^[+-]?\d+$")
_FLOAT_PATTERN = re.compile(r"^[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?$")


class KeyNode:
    __slots__ = ("segment", "value", "_children", "_loose")

    def __init__(self, segment: str = ""):
        self.segment = segment
        self.value: Optional[str] = None
        self._children: Dict[str, "KeyNode"] = {}
        self._loose: Optional[Dict[str, "KeyNode"]] = None

    @property
    def has_children(self) -> bool:
        return bool(self._children)

    @property
    def has_value(self) -> bool:
        return self.value is not None

    def children(self) -> Iterator["KeyNode"]:
        return iter(self._children.values())

    def ensure_child(self, segment: str) -> "KeyNode":
        folded = segment.casefold()
        node = self._children.get(folded)
        if node is None:
            node = KeyNode(segment)
            self._children[folded] = node
            self._loose = None
        return node

    def child(self, name: str) -> Optional["KeyNode"]:
        """Find a child by member name.

        Case-insensitive match first, then a match ignoring underscores.
        """
        node = self._children.get(name.casefold())
        if node is not None:
            return node
        if self._loose is None:
            loose: Dict[str, KeyNode] = {}
            for candidate in self._children.values():
                loose.setdefault(loose_segment(candidate.segment), candidate)
            self._loose = loose
        return self._loose.get(loose_segment(name))

    def indexed_children(self) -> List[Tuple[int, "KeyNode"]]:
        """Children whose segment is a non-negative integer, ascending."""
        indexed = [
            (int(node.segment), node)
            for node in self._children.values()
            if is_index_segment(node.segment)
        ]
        indexed.sort(key=lambda item: item[0])
        return indexed

    def find(self, path: str) -> Optional["KeyNode"]:
        node: Optional[KeyNode] = self
        for segment in split_key(path):
            if node is None:
                return None
            node = node.child(segment)
        return node

    def to_document(self, infer: bool = True) -> Any:
        """Reconstitute this subtree as nested dicts and lists.

        Nodes whose children are all indices become lists. With ``infer``,
        leaves are typed heuristically (bool, int, float, then text).
        """
        if not self._children:
            if self.value is None:
                return None
            return infer_leaf(self.value) if infer else self.value
        indexed = self.indexed_children()
        if len(indexed) == len(self._children):
            return [node.to_document(infer) for _, node in indexed]
        return {node.segment: node.to_document(infer) for node in self._children.values()}


class KeyTree:
    def __init__(self, configuration: Mapping[str, str]):
        self.root = KeyNode()
        for key, value in configuration.items():
            node = self.root
            for segment in split_key(key):
                node = node.ensure_child(segment)
            if node is not self.root:
                node.value = value

    def find(self, path: str) -> Optional[KeyNode]:
        return self.root.find(path) if path else self.root

    def to_document(self, infer: bool = True) -> Any:
        document = self.root.to_document(infer)
        return {} if document is None else document


def infer_leaf(raw: str) -> Any:
    """Heuristic leaf typing: ``true``/``false``, integers, floats, else text."""
    text = raw.strip()
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if _INT_PATTERN.match(text):
        return int(text)
    if _FLOAT_PATTERN.match(text):
        return float(text)
    return raw
