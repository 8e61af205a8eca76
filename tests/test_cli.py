from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from json_event_codec.__main__ import app
from json_event_codec.config import get_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for k in ["CODEC_CHARSET", "CODEC_TARGET", "CODEC_ENCODE_MAPPING", "CODEC_CAPTURE_ORIGINAL"]:
        monkeypatch.delenv(k, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _lines(output: str) -> list:
    return [json.loads(line) for line in output.splitlines() if line.strip()]


def test_decode_array_from_stdin():
    result = runner.invoke(app, ["decode"], input='[{"a": 1}, {"b": 2}]')
    assert result.exit_code == 0, result.output
    assert _lines(result.stdout) == [{"a": 1}, {"b": 2}]


def test_decode_file_with_target_and_capture(tmp_path):
    payload = tmp_path / "payload.json"
    payload.write_bytes(b'{"a": 1}')
    result = runner.invoke(
        app, ["decode", str(payload), "--target", "[doc]", "--capture-original"]
    )
    assert result.exit_code == 0, result.output
    assert _lines(result.stdout) == [{"doc": {"a": 1}, "event": {"original": '{"a": 1}'}}]


def test_decode_plain_text_falls_back():
    result = runner.invoke(app, ["decode"], input="not json")
    assert result.exit_code == 0
    assert _lines(result.stdout) == [{"message": "not json", "tags": ["_jsonparsefailure"]}]


def test_decode_invalid_charset_exits_with_config_error():
    result = runner.invoke(app, ["decode", "--charset", "klingon-8"], input="{}")
    assert result.exit_code == 2


def test_encode_lines_with_inline_mapping():
    events = '{"k": "x", "a": {"b": [1, 2, 3]}}\n\n{"k": "y", "a": {"b": []}}\n'
    result = runner.invoke(
        app,
        ["encode", "--mapping", '{"%{k}": "[a][b]", "s": "%{[a][b]}"}'],
        input=events,
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ['{"x":[1,2,3],"s":"1,2,3"}', '{"y":[],"s":""}']


def test_encode_mapping_from_file(tmp_path):
    mapping = tmp_path / "mapping.json"
    mapping.write_text('{"host": "[agent][name]"}', encoding="utf-8")
    result = runner.invoke(
        app, ["encode", "--mapping", f"@{mapping}"], input='{"agent": {"name": "web-1"}}\n'
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ['{"host":"web-1"}']


def test_encode_without_mapping_uses_env_mapping(monkeypatch):
    monkeypatch.setenv("CODEC_ENCODE_MAPPING", '{"only": "[a]"}')
    result = runner.invoke(app, ["encode"], input='{"a": true, "b": 1}\n')
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ['{"only":true}']


def test_encode_rejects_non_object_lines():
    result = runner.invoke(app, ["encode"], input="[1, 2]\n")
    assert result.exit_code == 1


def test_encode_rejects_bad_mapping_option():
    result = runner.invoke(app, ["encode", "--mapping", "{nope"], input="{}\n")
    assert result.exit_code == 2
