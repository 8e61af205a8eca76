from __future__ import annotations

import json
import math

import pytest

from json_event_codec.codec import JsonCodec
from json_event_codec.models.event import Event
from json_event_codec.models.options import CodecOptions


def test_encode_without_mapping_is_compact_json():
    data = {"foo": "bar", "baz": {"bah": ["a", "b", "c"]}}
    event = Event(data)
    payload = JsonCodec().encode(event)
    assert isinstance(payload, bytes)
    assert payload == b'{"foo":"bar","baz":{"bah":["a","b","c"]}}'
    assert payload.decode("utf-8") == event.to_json()
    assert b"\n" not in payload
    assert json.loads(payload) == data


def test_encode_keeps_non_ascii_as_utf8():
    payload = JsonCodec().encode(Event({"city": "Zürich"}))
    assert payload == '{"city":"Zürich"}'.encode("utf-8")


def test_on_event_handler_receives_event_and_payload():
    codec = JsonCodec()
    got = []
    codec.on_event(lambda e, d: got.append((e, d)))
    event = Event({"a": 1})
    returned = codec.encode(event)
    assert got == [(event, b'{"a":1}')]
    assert returned == b'{"a":1}'


def test_encode_with_mapping_reshapes_output():
    mapping = {
        "%{k}": "[a][b]",
        "k": "%{[a][b]}",
        "meta": {"source": "codec", "count": "[n]", "tags": ["[n]", "%{n}"]},
    }
    codec = JsonCodec(CodecOptions(encode_mapping=mapping))
    event = Event({"k": "x", "a": {"b": [1, 2, 3]}, "n": 2, "ignored": True})
    payload = codec.encode(event)
    assert json.loads(payload) == {
        "x": [1, 2, 3],
        "k": "1,2,3",
        "meta": {"source": "codec", "count": 2, "tags": [2, "2"]},
    }
    assert payload.startswith(b'{"x":[1,2,3],"k":"1,2,3"')


def test_mapping_does_not_mutate_event():
    codec = JsonCodec(CodecOptions(encode_mapping={"copy": "[a]"}))
    event = Event({"a": [1]})
    codec.encode(event)
    assert event.to_dict() == {"a": [1]}


def test_decode_then_encode_object_round_trip():
    codec = JsonCodec()
    raw = b'{"message":"hi","n":[1,{"x":null}],"ok":false}'
    event = codec.decode(raw)[0]
    assert codec.encode(event) == raw


def test_unserializable_values_surface_to_caller():
    codec = JsonCodec()
    with pytest.raises(TypeError):
        codec.encode(Event({"obj": object()}))
    with pytest.raises(ValueError):
        codec.encode(Event({"n": math.inf}))
