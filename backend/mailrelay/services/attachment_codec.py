"""
Attachment codec.

Converts between raw attachment bytes and the standard base64 text that
travels inside EmailDetails. Pure functions, no side effects.
"""

import base64
import binascii


class InvalidAttachmentEncoding(ValueError):
    """Raised when attachment text is not valid standard base64."""


def decode(text: str) -> bytes:
    """
    Decode base64 attachment text into raw bytes.

    Whitespace (spaces, tabs, CR, LF) is ignored so line-wrapped base64 is
    accepted. Otherwise only the standard alphabet is allowed
    (``validate=True``), so URL-safe characters, stray punctuation and bad
    padding are rejected rather than silently discarded.

    Raises:
        InvalidAttachmentEncoding: If ``text`` is not valid base64.
    """
    try:
        return base64.b64decode("".join(text.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidAttachmentEncoding(f"Attachment is not valid base64: {exc}") from exc


def encode(data: bytes) -> str:
    """Encode raw bytes as base64 text. Never fails."""
    return base64.b64encode(data).decode("ascii")
