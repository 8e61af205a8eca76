"""Event record model shared by the decode and encode pipelines.

An `Event` wraps a nested mapping of JSON-compatible values (str, int, float,
bool, None, dict, list) and addresses it through field references:

    [a][b][c]   nested lookup; numeric segments index into lists
    name        a single top-level key, taken literally ("a.b" stays one key)

Anything else (unbalanced or empty brackets, brackets inside a bare name) is
rejected with `FieldReferenceError`.

Only the slice of a full event API that the codec needs is implemented here:
path get/set/includes, tag management, serialization and field
interpolation (`sprintf`).
"""
from __future__ import annotations

import copy
import json
import re
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Tuple

__all__ = [
    "Event",
    "FieldReferenceError",
    "parse_reference",
    "compact_json",
    "MESSAGE_FIELD",
    "TAGS_FIELD",
]

MESSAGE_FIELD = "message"
TAGS_FIELD = "tags"

# One or more bracketed, non-empty, bracket-free segments; use with fullmatch.
BRACKETED_REFERENCE = re.compile(r"(?:\[[^\[\]]+\])+")
_SEGMENT = re.compile(r"\[([^\[\]]+)\]")

_MISSING = object()


class FieldReferenceError(ValueError):
    """Raised when a field reference string cannot be parsed."""


@lru_cache(maxsize=1024)
def parse_reference(reference: str) -> Tuple[str, ...]:
    """Split a field reference into its path segments.

    Args:
        reference: Bracketed (`[a][b]`) or bare (`a`) field reference.

    Returns:
        Tuple of path segments, outermost first.

    Raises:
        FieldReferenceError: If the reference is empty or malformed.

    Examples:
        >>> parse_reference("[a][b]")
        ('a', 'b')
        >>> parse_reference("a.b")
        ('a.b',)
    """
    if not isinstance(reference, str) or not reference:
        raise FieldReferenceError(f"invalid field reference: {reference!r}")
    if BRACKETED_REFERENCE.fullmatch(reference):
        return tuple(_SEGMENT.findall(reference))
    if "[" in reference or "]" in reference:
        raise FieldReferenceError(f"invalid field reference: {reference!r}")
    return (reference,)


def compact_json(value: Any) -> str:
    """Serialize `value` as compact JSON text (no whitespace, no newline)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def _list_index(container: List[Any], segment: str) -> Optional[int]:
    try:
        index = int(segment)
    except ValueError:
        return None
    if -len(container) <= index < len(container):
        return index
    return None


def _child(node: Any, segment: str) -> Any:
    if isinstance(node, dict):
        return node.get(segment, _MISSING)
    if isinstance(node, list):
        index = _list_index(node, segment)
        return _MISSING if index is None else node[index]
    return _MISSING


class Event:
    """Nested, field-reference addressable record.

    The mapping passed to the constructor is adopted as the event's backing
    store rather than copied; decoded JSON objects are fresh per call so the
    decoder hands them over without paying for a deep copy. Use `to_dict()` to
    obtain an independent copy.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        if data is None:
            self._data: Dict[str, Any] = {}
        elif isinstance(data, dict):
            self._data = data
        else:
            self._data = dict(data)

    def _lookup(self, reference: str) -> Any:
        node: Any = self._data
        for segment in parse_reference(reference):
            node = _child(node, segment)
            if node is _MISSING:
                break
        return node

    def get(self, reference: str) -> Any:
        """Return the value at `reference`, or None when absent."""
        value = self._lookup(reference)
        return None if value is _MISSING else value

    def includes(self, reference: str) -> bool:
        """Return True when `reference` resolves to a field (even a null one)."""
        return self._lookup(reference) is not _MISSING

    def set(self, reference: str, value: Any) -> None:
        """Assign `value` at `reference`, creating intermediate mappings.

        Intermediate segments that hold scalars are replaced by mappings. A
        numeric segment addresses an existing list element.

        Raises:
            FieldReferenceError: If the reference is malformed or a segment
                indexes past the end of a list.
        """
        segments = parse_reference(reference)
        node: Any = self._data
        for segment in segments[:-1]:
            nxt = _child(node, segment)
            if not isinstance(nxt, (dict, list)):
                nxt = {}
                node = self._assign(node, segment, nxt)
            node = nxt
        self._assign(node, segments[-1], value)

    @staticmethod
    def _assign(node: Any, segment: str, value: Any) -> Any:
        if isinstance(node, list):
            index = _list_index(node, segment)
            if index is not None:
                node[index] = value
                return node
            raise FieldReferenceError(f"list index out of range: {segment!r}")
        node[segment] = value
        return node

    def tag(self, marker: str) -> None:
        """Append `marker` to the tags list unless already present."""
        tags = self.get(TAGS_FIELD)
        if tags is None:
            tags = []
        elif not isinstance(tags, list):
            tags = [tags]
        if marker not in tags:
            tags.append(marker)
        self.set(TAGS_FIELD, tags)

    def sprintf(self, template: str) -> str:
        """Interpolate `%{field}` placeholders in `template` against this event."""
        from ..mapping.interpolation import compile_interpolation

        return compile_interpolation(template).render(self)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def to_json(self) -> str:
        return compact_json(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Event):
            return self._data == other._data
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Event({self._data!r})"
