"""Key generation and parsing helpers."""
from __future__ import annotations

import os

from picofile.errors import KeyLengthError

DEFAULT_KEY_LEN = 16
MAX_KEY_LEN = 0xFFFF


def validate_key(key: bytes) -> bytes:
    """Return ``key`` as bytes if its length fits the header's key length field."""

    key_bytes = bytes(key)
    if not 1 <= len(key_bytes) <= MAX_KEY_LEN:
        raise KeyLengthError(len(key_bytes))
    return key_bytes


def generate_key(length: int = DEFAULT_KEY_LEN) -> bytes:
    """Return ``length`` random key bytes."""

    if not 1 <= length <= MAX_KEY_LEN:
        raise KeyLengthError(length)
    return os.urandom(length)


def parse_hex_key(text: str) -> bytes:
    """Parse a key given as hexadecimal digits with no separators, e.g. ``5521E49A``."""

    cleaned = text.strip()
    if cleaned.lower().startswith("0x"):
        cleaned = cleaned[2:]
    if len(cleaned) % 2:
        raise ValueError("Key must have an even number of hexadecimal digits")
    try:
        key = bytes.fromhex(cleaned)
    except ValueError as exc:
        raise ValueError(f"Key is not hexadecimal: {text!r}") from exc
    return validate_key(key)


__all__ = ["DEFAULT_KEY_LEN", "MAX_KEY_LEN", "generate_key", "parse_hex_key", "validate_key"]
