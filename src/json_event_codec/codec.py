"""JSON codec: bytes <-> events.

Decoding turns one complete payload into events:

    object root       one event
    array root        one event per element
    scalar root       one fallback event (message = raw text, tagged)
    invalid JSON      one fallback event (message = raw text, tagged)

Array elements that are not objects are degraded one by one: each becomes a
fallback event holding the element's compact JSON text, and the other
elements decode normally. An empty array yields no events.

Encoding serializes an event to compact UTF-8 JSON, either as-is or through a
compiled encode mapping chosen once at construction.

Error handling:
    Parse and shape failures are logged and turned into fallback events. Any
    other exception raised while parsing or shaping is caught at the decode
    boundary, logged with its traceback, and turned into the same single
    fallback event, so one bad payload cannot halt a long-running stream.
    Exceptions raised by caller-supplied handlers propagate. Encode errors
    propagate.
"""
from __future__ import annotations

import enum
import json
import logging
from typing import Any, Callable, List, Optional, Union

from .charset import CharsetNormalizer
from .mapping.template import build_mapping
from .models.event import MESSAGE_FIELD, Event, compact_json
from .models.options import CodecOptions

__all__ = [
    "JsonCodec",
    "RootShape",
    "classify_root",
    "PARSE_FAILURE_TAG",
    "ORIGINAL_FIELD",
]

PARSE_FAILURE_TAG = "_jsonparsefailure"
ORIGINAL_FIELD = "[event][original]"
ORIGINAL_PARENT = "[event]"

Payload = Union[bytes, bytearray, memoryview, str]
DecodeHandler = Callable[[Event], Any]
EncodeHandler = Callable[[Event, bytes], Any]


class RootShape(enum.Enum):
    OBJECT = "object"
    ARRAY = "array"
    SCALAR = "scalar"


def classify_root(value: Any) -> RootShape:
    if isinstance(value, dict):
        return RootShape.OBJECT
    if isinstance(value, list):
        return RootShape.ARRAY
    return RootShape.SCALAR


def _reject_constant(name: str) -> Any:
    # json accepts NaN/Infinity by default; they are not JSON.
    raise ValueError(f"invalid JSON constant: {name}")


class JsonCodec:
    """Decode JSON payloads into events and encode events as compact JSON.

    Args:
        options: Validated codec options; defaults to `CodecOptions()`.
        logger: Logger receiving parse failures and unexpected errors.
            Defaults to this module's logger.

    Example:
        >>> codec = JsonCodec(CodecOptions(target="[doc]"))
        >>> [e.to_dict() for e in codec.decode(b'{"a": 1}')]
        [{'doc': {'a': 1}}]
    """

    def __init__(
        self,
        options: Optional[CodecOptions] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.options = options or CodecOptions()
        self._logger = logger or logging.getLogger(__name__)
        self._converter = CharsetNormalizer(self.options.charset, logger=self._logger)
        self._mapping = self.options.compiled_mapping()
        self._on_event: Optional[EncodeHandler] = None

    # ------------------------------------------------------------------ decode
    def decode(self, data: Payload, handler: Optional[DecodeHandler] = None) -> List[Event]:
        """Decode one complete payload.

        Args:
            data: Raw payload bytes (or already-decoded text).
            handler: Optional callback invoked once per produced event, in order.

        Returns:
            The produced events. Never raises on malformed input.

        Note:
            Events for one payload are fully built inside the error boundary
            before `handler` sees the first one. The payload is parsed in one
            piece anyway, so this holds at most one payload's events, and it
            keeps handler exceptions outside the fallback conversion.
        """
        text = self._converter.convert(data)
        events = self._parse(text)
        if handler is not None:
            for event in events:
                handler(event)
        return events

    def _parse(self, text: str) -> List[Event]:
        try:
            return self._parse_payload(text)
        except Exception as e:
            self._logger.warning(
                "An unexpected error occurred parsing JSON data: error=%s class=%s data=%r",
                e,
                type(e).__name__,
                text,
                exc_info=True,
            )
            return [self._fallback(text)]

    def _parse_payload(self, text: str) -> List[Event]:
        try:
            decoded = json.loads(text, parse_constant=_reject_constant)
        except ValueError as e:
            self._logger.error(
                "JSON parse error, original data now in message field: error=%s data=%r",
                e,
                text,
            )
            return [self._fallback(text)]

        shape = classify_root(decoded)
        if shape is RootShape.OBJECT:
            return [self._from_object(decoded, text)]
        if shape is RootShape.ARRAY:
            return [self._from_element(item, text) for item in decoded]
        self._logger.error("JSON codec is expecting array or object/map: data=%r", text)
        return [self._fallback(text)]

    def _from_element(self, item: Any, text: str) -> Event:
        if classify_root(item) is RootShape.OBJECT:
            try:
                return self._from_object(item, text)
            except Exception as e:
                element = compact_json(item)
                self._logger.warning(
                    "Could not build event from JSON array element, original element now in "
                    "message field: error=%s element=%r",
                    e,
                    element,
                    exc_info=True,
                )
                return self._fallback(element)
        element = compact_json(item)
        self._logger.warning(
            "JSON array element is not an object, original element now in message field: "
            "element=%r",
            element,
        )
        return self._fallback(element)

    def _from_object(self, decoded: dict, text: str) -> Event:
        if self.options.target:
            event = Event()
            event.set(self.options.target, decoded)
        else:
            event = Event(decoded)
        if self.options.capture_original:
            self._capture_original(event, text)
        return event

    def _capture_original(self, event: Event, text: str) -> None:
        if event.includes(ORIGINAL_FIELD):
            return
        # A payload-owned non-object [event] field is never replaced.
        if event.includes(ORIGINAL_PARENT) and not isinstance(event.get(ORIGINAL_PARENT), dict):
            self._logger.debug(
                "Skipping original capture, %s holds a non-object value", ORIGINAL_PARENT
            )
            return
        event.set(ORIGINAL_FIELD, text)

    @staticmethod
    def _fallback(message: str) -> Event:
        event = Event({MESSAGE_FIELD: message})
        event.tag(PARSE_FAILURE_TAG)
        return event

    # ------------------------------------------------------------------ encode
    def on_event(self, handler: Optional[EncodeHandler]) -> None:
        """Register the callback receiving `(event, payload)` after each encode."""
        self._on_event = handler

    def encode(self, event: Event) -> bytes:
        """Serialize `event` to compact UTF-8 JSON.

        When an encode mapping is configured the mapping output is serialized
        instead of the event's own fields. The payload is also passed to the
        `on_event` handler when one is registered.
        """
        if self._mapping is not None:
            text = compact_json(build_mapping(event, self._mapping))
        else:
            text = event.to_json()
        payload = text.encode("utf-8")
        if self._on_event is not None:
            self._on_event(event, payload)
        return payload
