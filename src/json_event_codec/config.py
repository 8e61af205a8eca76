"""Application configuration management using Pydantic Settings.

This module defines the `Settings` class, which loads codec configuration
from environment variables and a `.env` file, and turns it into validated
`CodecOptions` for the CLI.

The `get_settings` function provides a cached, singleton instance of the
configuration, ensuring consistent settings throughout the application.
"""
from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict as _SettingsConfigDict

from .charset import DEFAULT_CHARSET
from .models.options import CodecOptions


class Settings(BaseSettings):
    """Defines all application configuration parameters.

    Values come from environment variables or a `.env` file. The encode
    mapping is supplied as JSON object text (e.g.
    `CODEC_ENCODE_MAPPING={"host": "[agent][name]"}`).
    """

    model_config = _SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    CODEC_CHARSET: str = Field(
        default=DEFAULT_CHARSET,
        description="Character encoding of incoming payloads, e.g. UTF-8 or CP1252",
    )
    CODEC_TARGET: Optional[str] = Field(
        default=None,
        description=(
            "Optional field reference (e.g. [document]) under which decoded JSON "
            "objects are nested. Blank merges fields at the event root."
        ),
    )
    # Use Any type to prevent Pydantic Settings JSON decoding; validator converts to dict
    CODEC_ENCODE_MAPPING: Any = Field(
        default=None,
        description=(
            "Optional JSON object describing the encoded output document. Keys may "
            "use %{field} interpolation; values may be literals, accessors such as "
            "[a][b] (type preserved) or interpolated strings."
        ),
    )
    CODEC_CAPTURE_ORIGINAL: bool = Field(
        default=False,
        description="If true, store the raw decoded text at [event][original] when absent",
    )

    @field_validator("CODEC_TARGET", mode="before")
    @classmethod
    def normalize_target(cls, v: Any) -> Optional[str]:
        """Trim whitespace and normalize blank -> None."""
        if v is None:
            return None
        if isinstance(v, str):
            trimmed = v.strip()
            return trimmed or None
        return None

    @field_validator("CODEC_ENCODE_MAPPING", mode="before")
    @classmethod
    def parse_mapping(cls, v: Any) -> Optional[Dict[str, Any]]:
        """Parse JSON object text into a dict; blank means no mapping.

        Raises:
            ValueError: If the text is not valid JSON or not a JSON object.
        """
        if v is None:
            return None
        if isinstance(v, str):
            if not v.strip():
                return None
            try:
                v = json.loads(v)
            except ValueError as e:
                raise ValueError(f"CODEC_ENCODE_MAPPING is not valid JSON: {e}") from e
        if not isinstance(v, dict):
            raise ValueError("CODEC_ENCODE_MAPPING must be a JSON object")
        return v

    def codec_options(self, **overrides: Any) -> CodecOptions:
        """Build validated codec options, letting non-None overrides win.

        Raises:
            pydantic.ValidationError: If any option is invalid.
        """
        values: Dict[str, Any] = {
            "charset": self.CODEC_CHARSET,
            "target": self.CODEC_TARGET,
            "encode_mapping": self.CODEC_ENCODE_MAPPING,
            "capture_original": self.CODEC_CAPTURE_ORIGINAL,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return CodecOptions(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # pragma: no cover - trivial
    """Return a cached, singleton instance of the application settings."""
    return Settings()


__all__ = ["Settings", "get_settings"]
