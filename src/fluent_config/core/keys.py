"""Hierarchical key conventions.

Keys are segments joined by ``:`` on the wire. ``__`` is accepted as an
equivalent separator everywhere keys are compared, so ``Database:Host`` and
``DATABASE__HOST`` address the same entry.
"""

import re
from typing import List

KEY_SEPARATOR = ":"
ALTERNATE_SEPARATOR = "__"

_SPLIT_PATTERN = re.compile(r":|__")


def split_key(key: str) -> List[str]:
    """Split a key on either separator, dropping empty segments."""
    return [segment for segment in _SPLIT_PATTERN.split(key) if segment]


def join_key(*segments: str) -> str:
    return KEY_SEPARATOR.join(segment for segment in segments if segment)


def normalize_key(key: str) -> str:
    """Canonical comparison form of a key.

    Case and separator style are ignored; any other punctuation inside a
    segment stays significant.
    """
    return KEY_SEPARATOR.join(segment.casefold() for segment in split_key(key))


def loose_segment(segment: str) -> str:
    """Comparison form used when matching a key segment to a member name.

    ``max_connections``, ``MaxConnections`` and ``MAX_CONNECTIONS`` compare
    equal.
    """
    return segment.replace("_", "").casefold()


def to_alternate(key: str) -> str:
    return ALTERNATE_SEPARATOR.join(split_key(key))


def is_index_segment(segment: str) -> bool:
    return segment.isdigit() and segment.isascii()
