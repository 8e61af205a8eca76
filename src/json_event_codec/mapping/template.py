"""Declarative encode mapping: compile once, build per event.

An encode mapping is a JSON-like dict describing the output document. Each
node is classified once, at configuration time, into a closed set of kinds:

    LiteralValue  number / boolean / null, copied verbatim
    Accessor      string wholly matching (?:\\[[^\\[\\]]+\\])+, e.g. "[a][b]";
                  resolves to the event value as-is (type preserved)
    Template      any other string; field-interpolated, always a string
    NestedMap     dict; keys are interpolated, values are nodes
    NestedList    list; elements are nodes, position preserved

Example:
    >>> mapping = compile_mapping({"%{k}": "[a][b]", "s": "%{[a][b]}"})
    >>> build_mapping(Event({"k": "x", "a": {"b": [1, 2, 3]}}), mapping)
    {'x': [1, 2, 3], 's': '1,2,3'}

Design Invariants:
    - Classification of a string depends only on the whole-string accessor
      pattern match.
    - `build_mapping` is pure: the event is never mutated and accessor values
      are deep-copied into the output.
    - Interpolated key collisions resolve last-write-wins in template order.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Mapping, Tuple, Union

from ..models.event import BRACKETED_REFERENCE, Event, FieldReferenceError
from .interpolation import Interpolation, compile_interpolation

__all__ = [
    "Accessor",
    "LiteralValue",
    "MappingTemplateError",
    "NestedList",
    "NestedMap",
    "Template",
    "TemplateNode",
    "build_mapping",
    "compile_mapping",
]


class MappingTemplateError(ValueError):
    """Raised when an encode mapping cannot be compiled."""


@dataclass(frozen=True)
class LiteralValue:
    value: Union[int, float, bool, None]


@dataclass(frozen=True)
class Accessor:
    reference: str


@dataclass(frozen=True)
class Template:
    interpolation: Interpolation


@dataclass(frozen=True)
class NestedMap:
    entries: Tuple[Tuple[Interpolation, "TemplateNode"], ...]


@dataclass(frozen=True)
class NestedList:
    items: Tuple["TemplateNode", ...]


TemplateNode = Union[LiteralValue, Accessor, Template, NestedMap, NestedList]


def _compile_string(value: str, where: str) -> Union[Accessor, Template]:
    if BRACKETED_REFERENCE.fullmatch(value):
        return Accessor(reference=value)
    try:
        return Template(interpolation=compile_interpolation(value))
    except FieldReferenceError as e:
        raise MappingTemplateError(f"{where}: {e}") from e


def _compile_node(value: Any, where: str) -> TemplateNode:
    if isinstance(value, dict):
        return _compile_map(value, where)
    if isinstance(value, (list, tuple)):
        return NestedList(
            items=tuple(_compile_node(v, f"{where}[{i}]") for i, v in enumerate(value))
        )
    if isinstance(value, str):
        return _compile_string(value, where)
    if value is None or isinstance(value, (bool, int, float)):
        return LiteralValue(value=value)
    raise MappingTemplateError(
        f"{where}: unsupported mapping value of type {type(value).__name__}"
    )


def _compile_map(raw: Mapping[Any, Any], where: str) -> NestedMap:
    entries = []
    for key, value in raw.items():
        if not isinstance(key, str):
            raise MappingTemplateError(f"{where}: mapping keys must be strings, got {key!r}")
        try:
            key_template = compile_interpolation(key)
        except FieldReferenceError as e:
            raise MappingTemplateError(f"{where}: key {key!r}: {e}") from e
        entries.append((key_template, _compile_node(value, f"{where}.{key}")))
    return NestedMap(entries=tuple(entries))


def compile_mapping(raw: Mapping[str, Any]) -> NestedMap:
    """Classify every node of an encode mapping.

    Args:
        raw: Mapping definition; must be a dict at the root.

    Returns:
        The compiled root `NestedMap`, immutable and safe to share.

    Raises:
        MappingTemplateError: On a non-dict root, a non-string key, an
            unsupported value type or a malformed `%{...}` placeholder.
    """
    if not isinstance(raw, Mapping):
        raise MappingTemplateError(
            f"encode mapping must be an object, got {type(raw).__name__}"
        )
    return _compile_map(raw, "$")


def build_mapping(event: Event, node: TemplateNode) -> Any:
    """Produce the output value tree for `event` from a compiled node."""
    if isinstance(node, NestedMap):
        out = {}
        for key, value in node.entries:
            out[key.render(event)] = build_mapping(event, value)
        return out
    if isinstance(node, NestedList):
        return [build_mapping(event, item) for item in node.items]
    if isinstance(node, Accessor):
        return copy.deepcopy(event.get(node.reference))
    if isinstance(node, Template):
        return node.interpolation.render(event)
    if isinstance(node, LiteralValue):
        return node.value
    raise TypeError(f"not a compiled mapping node: {node!r}")
