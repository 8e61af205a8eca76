"""Pydantic model for codec construction options.

`CodecOptions` is validated once when a codec is built and is frozen
afterwards, so a codec instance can be shared read-only between callers.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..charset import DEFAULT_CHARSET, validate_charset
from ..mapping.template import NestedMap, compile_mapping
from .event import parse_reference


class CodecOptions(BaseModel):
    """Validated configuration for `JsonCodec`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    charset: str = Field(
        default=DEFAULT_CHARSET,
        description="Declared character encoding of incoming payload bytes",
    )
    target: Optional[str] = Field(
        default=None,
        description=(
            "Field reference under which decoded objects are nested. "
            "None merges decoded fields at the event root."
        ),
    )
    encode_mapping: Optional[Dict[str, Any]] = Field(
        default=None,
        description=(
            "Declarative output template for encoding. None encodes the event "
            "as-is."
        ),
    )
    capture_original: bool = Field(
        default=False,
        description="Store the raw decoded text at [event][original] when absent",
    )

    @field_validator("charset")
    @classmethod
    def check_charset(cls, v: str) -> str:
        return validate_charset(v)

    @field_validator("target", mode="before")
    @classmethod
    def check_target(cls, v: Any) -> Optional[str]:
        """Normalize blank -> None and reject malformed field references."""
        if v is None:
            return None
        if isinstance(v, str):
            trimmed = v.strip()
            if not trimmed:
                return None
            parse_reference(trimmed)
            return trimmed
        return v

    @field_validator("encode_mapping")
    @classmethod
    def check_encode_mapping(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if v is not None:
            compile_mapping(v)
        return v

    def compiled_mapping(self) -> Optional[NestedMap]:
        """Compile `encode_mapping`, or return None when no mapping is set."""
        if self.encode_mapping is None:
            return None
        return compile_mapping(self.encode_mapping)


__all__ = ["CodecOptions"]
