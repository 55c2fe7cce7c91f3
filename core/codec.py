"""
Core Module - Binary Codec.

============================================================
RESPONSIBILITY
============================================================
Bytes <-> text encoding for the outbound transport envelope.

- Standard base64 alphabet (RFC 4648), "=" padding
- No URL-safe variant, no line wrapping
- Pure functions, no side effects

============================================================
"""

import base64
import binascii
import json
from typing import Any


def encode(data: bytes) -> str:
    """
    Encode bytes as base64 text.

    Args:
        data: Raw bytes

    Returns:
        Base64 text, padded to a multiple of 4 symbols
    """
    return base64.b64encode(bytes(data)).decode("ascii")


def decode(text: str) -> bytes:
    """
    Decode base64 text back to bytes.

    Raises:
        ValueError: If text contains symbols outside the alphabet
            or has invalid padding
    """
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 input: {e}") from e


def encode_json(value: Any) -> str:
    """Serialize a JSON value as UTF-8 and encode it."""
    return encode(json.dumps(value, ensure_ascii=False).encode("utf-8"))


__all__ = [
    "encode",
    "decode",
    "encode_json",
]
