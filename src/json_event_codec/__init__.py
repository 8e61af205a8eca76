"""Package initialization for json-event-codec.

Public API:
    JsonCodec: decode payloads into events, encode events as compact JSON
    CodecOptions: validated codec configuration
    Event: field-reference addressable record
    compile_mapping / build_mapping: encode mapping engine
"""

from .codec import ORIGINAL_FIELD, PARSE_FAILURE_TAG, JsonCodec
from .mapping.template import MappingTemplateError, build_mapping, compile_mapping
from .models.event import Event, FieldReferenceError
from .models.options import CodecOptions

__all__ = [
    "JsonCodec",
    "CodecOptions",
    "Event",
    "FieldReferenceError",
    "MappingTemplateError",
    "build_mapping",
    "compile_mapping",
    "ORIGINAL_FIELD",
    "PARSE_FAILURE_TAG",
]
