"""Field interpolation for `%{field}` placeholders.

A template string is split once into literal text and placeholders; rendering
walks those parts against an event. Rendering rules:

    missing field       placeholder kept verbatim ("%{[a][b]}")
    string              as-is
    boolean             "true" / "false"
    number              decimal text
    null (in a list)    empty string
    list                elements rendered then joined with ","
    mapping             compact JSON text

Rendering always yields a string.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Tuple, Union

from ..models.event import compact_json, parse_reference

if TYPE_CHECKING:  # pragma: no cover
    from ..models.event import Event

__all__ = ["Interpolation", "Placeholder", "compile_interpolation", "stringify"]

_PLACEHOLDER = re.compile(r"%\{([^}]+)\}")


@dataclass(frozen=True)
class Placeholder:
    reference: str
    raw: str


@dataclass(frozen=True)
class Interpolation:
    """A template string pre-split into literal and placeholder parts."""

    text: str
    parts: Tuple[Union[str, Placeholder], ...]

    @property
    def is_static(self) -> bool:
        return not any(isinstance(p, Placeholder) for p in self.parts)

    def render(self, event: "Event") -> str:
        if self.is_static:
            return self.text
        out = []
        for part in self.parts:
            if isinstance(part, Placeholder):
                value = event.get(part.reference)
                out.append(part.raw if value is None else stringify(value))
            else:
                out.append(part)
        return "".join(out)


def stringify(value: Any) -> str:
    """Render a field value the way interpolation inserts it into text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(stringify(v) for v in value)
    if isinstance(value, dict):
        return compact_json(value)
    return str(value)


@lru_cache(maxsize=512)
def compile_interpolation(text: str) -> Interpolation:
    """Split `text` into literal and placeholder parts.

    Raises:
        FieldReferenceError: If a placeholder holds a malformed reference.
    """
    parts = []
    pos = 0
    for match in _PLACEHOLDER.finditer(text):
        if match.start() > pos:
            parts.append(text[pos:match.start()])
        reference = match.group(1)
        parse_reference(reference)
        parts.append(Placeholder(reference=reference, raw=match.group(0)))
        pos = match.end()
    if pos < len(text):
        parts.append(text[pos:])
    return Interpolation(text=text, parts=tuple(parts))
