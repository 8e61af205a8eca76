from __future__ import annotations

import pytest

from json_event_codec.mapping.interpolation import compile_interpolation, stringify
from json_event_codec.models.event import Event, FieldReferenceError


@pytest.fixture
def event():
    return Event(
        {
            "k": "x",
            "n": 42,
            "f": 1.5,
            "ok": True,
            "no": False,
            "a": {"b": [1, 2, 3]},
            "obj": {"x": 1, "y": "two"},
            "mixed": ["s", None, False, {"z": 1}],
        }
    )


def test_static_text_returned_unchanged(event):
    interp = compile_interpolation("plain text, no fields")
    assert interp.is_static
    assert interp.render(event) == "plain text, no fields"


def test_scalar_rendering(event):
    assert event.sprintf("%{k}-%{n}-%{f}") == "x-42-1.5"
    assert event.sprintf("%{ok}/%{no}") == "true/false"


def test_list_joined_with_commas(event):
    assert event.sprintf("%{[a][b]}") == "1,2,3"
    assert event.sprintf("%{mixed}") == 's,,false,{"z":1}'


def test_mapping_rendered_as_compact_json(event):
    assert event.sprintf("%{obj}") == '{"x":1,"y":"two"}'


def test_missing_field_keeps_placeholder(event):
    assert event.sprintf("value=%{[nope][deep]}") == "value=%{[nope][deep]}"


def test_malformed_placeholder_reference_raises():
    with pytest.raises(FieldReferenceError):
        compile_interpolation("%{[broken}")


def test_unterminated_placeholder_is_literal(event):
    assert event.sprintf("%{k") == "%{k"


def test_stringify_none_is_empty():
    assert stringify(None) == ""
