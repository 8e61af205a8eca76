"""Byte to text normalization for incoming payloads.

Some producers emit JSON in an encoding other than UTF-8 (CP1252 is common
for Windows log shippers). `CharsetNormalizer` decodes payloads from the
declared encoding into text, substituting U+FFFD for byte sequences that are
invalid under it so the decoder always receives well-formed text.
"""
from __future__ import annotations

import codecs
import logging
from typing import Optional, Union

__all__ = ["CharsetNormalizer", "DEFAULT_CHARSET", "validate_charset"]

DEFAULT_CHARSET = "UTF-8"


def validate_charset(name: str) -> str:
    """Check `name` against the interpreter's registry of text encodings.

    Transform-only codecs (rot13, base64, zlib, ...) are rejected as well as
    unknown names.

    Returns:
        `name` unchanged.

    Raises:
        ValueError: If `name` is not a known text encoding.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"unknown charset: {name!r}")
    try:
        info = codecs.lookup(name)
    except LookupError as e:
        raise ValueError(f"unknown charset: {name!r}") from e
    if not getattr(info, "_is_text_encoding", True):
        raise ValueError(f"not a text encoding: {name!r}")
    return name


class CharsetNormalizer:
    """Decode payload bytes from a declared charset without ever raising."""

    def __init__(
        self, charset: str = DEFAULT_CHARSET, *, logger: Optional[logging.Logger] = None
    ) -> None:
        self.charset = validate_charset(charset)
        self._logger = logger or logging.getLogger(__name__)

    def convert(self, data: Union[bytes, bytearray, memoryview, str]) -> str:
        """Return `data` as text.

        Text input is returned unchanged. Bytes are decoded strictly first;
        on failure a warning is logged and invalid sequences are replaced.
        Codecs without support for replacement (idna, ...) fall back to a
        replacing UTF-8 decode.
        """
        if isinstance(data, str):
            return data
        raw = bytes(data)
        try:
            return raw.decode(self.charset)
        except UnicodeError as e:
            self._logger.warning(
                "Received an event that has a different character encoding than configured: "
                "charset=%s error=%s",
                self.charset,
                e,
            )
        try:
            return raw.decode(self.charset, errors="replace")
        except UnicodeError:
            return raw.decode("utf-8", errors="replace")
