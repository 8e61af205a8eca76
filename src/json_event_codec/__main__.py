"""Command-line entry point for json-event-codec.

Two commands wrap `JsonCodec` for shell pipelines:

1.  `decode [PATH]` reads one complete payload (file or stdin), decodes it
    and prints every resulting event as one compact JSON line.
2.  `encode [PATH]` reads newline-delimited JSON objects (file or stdin),
    treats each as an event and writes one encoded payload per line.

Options given on the command line override `CODEC_*` settings from the
environment / `.env`.
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .codec import JsonCodec
from .config import get_settings
from .models.event import Event

app = typer.Typer(help="JSON event codec CLI")

logger = logging.getLogger(__name__)


def _load_env() -> None:
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)
        logger.debug("Loaded environment from %s", env_file)


def _read_input(path: Optional[Path]) -> bytes:
    if path is None:
        return sys.stdin.buffer.read()
    return path.read_bytes()


def _parse_mapping_option(value: Optional[str]) -> Optional[Dict[str, Any]]:
    """Accept inline JSON text or `@path/to/mapping.json`."""
    if value is None:
        return None
    text = value
    if value.startswith("@"):
        try:
            text = Path(value[1:]).read_text(encoding="utf-8")
        except OSError as e:
            raise typer.BadParameter(f"cannot read mapping file: {e}", param_hint="--mapping")
    try:
        mapping = json.loads(text)
    except ValueError as e:
        raise typer.BadParameter(f"mapping is not valid JSON: {e}", param_hint="--mapping")
    if not isinstance(mapping, dict):
        raise typer.BadParameter("mapping must be a JSON object", param_hint="--mapping")
    return mapping


def _build_codec(**overrides: Any) -> JsonCodec:
    _load_env()
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    try:
        options = settings.codec_options(**overrides)
    except ValidationError as e:
        typer.echo(f"Invalid codec configuration:\n{e}", err=True)
        raise typer.Exit(code=2)
    return JsonCodec(options)


@app.command()
def decode(
    path: Optional[Path] = typer.Argument(
        None, help="File holding one payload. Reads stdin when omitted."
    ),
    charset: Optional[str] = typer.Option(
        None, "--charset", help="Payload character encoding (overrides CODEC_CHARSET)."
    ),
    target: Optional[str] = typer.Option(
        None, "--target", help="Nest decoded objects under this field reference."
    ),
    capture_original: Optional[bool] = typer.Option(
        None,
        "--capture-original/--no-capture-original",
        help="Store the raw payload at [event][original].",
    ),
) -> None:
    """Decode one payload and print each event as a JSON line."""
    codec = _build_codec(charset=charset, target=target, capture_original=capture_original)
    count = 0

    def _emit(event: Event) -> None:
        nonlocal count
        typer.echo(event.to_json())
        count += 1

    codec.decode(_read_input(path), _emit)
    logger.info("Decoded %d event(s)", count)


@app.command()
def encode(
    path: Optional[Path] = typer.Argument(
        None, help="File of newline-delimited JSON events. Reads stdin when omitted."
    ),
    mapping: Optional[str] = typer.Option(
        None,
        "--mapping",
        help="Encode mapping as JSON text, or @file (overrides CODEC_ENCODE_MAPPING).",
    ),
) -> None:
    """Encode newline-delimited JSON events, one payload per line."""
    codec = _build_codec(encode_mapping=_parse_mapping_option(mapping))
    codec.on_event(lambda _event, payload: typer.echo(payload))
    lines = _read_input(path).decode("utf-8").splitlines()
    count = 0
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            fields = json.loads(line)
        except ValueError as e:
            typer.echo(f"line {lineno}: invalid JSON: {e}", err=True)
            raise typer.Exit(code=1)
        if not isinstance(fields, dict):
            typer.echo(f"line {lineno}: expected a JSON object", err=True)
            raise typer.Exit(code=1)
        codec.encode(Event(fields))
        count += 1
    logger.info("Encoded %d event(s)", count)


if __name__ == "__main__":  # pragma: no cover
    app()
