"""Position-keyed XOR transform used for the Pico data region.

The same routine both encrypts and decrypts: applying it twice with the same
position and key restores the original bytes. It is **not** a security
mechanism; the format only uses it to keep stored samples inert.
"""

from __future__ import annotations

from picofile.errors import KeyLengthError


def _keystream(position: int, key: bytes, length: int) -> bytes:
    """Return ``length`` key bytes starting at data position ``position``."""

    start = position % len(key)
    rotated = key[start:] + key[:start]
    repeats = length // len(rotated) + 1
    return (rotated * repeats)[:length]


def crypt(position: int, buffer: bytearray | memoryview, key: bytes) -> None:
    """XOR ``buffer`` in place with the key stream at ``position``.

    ``buffer[i] ^= key[(position + i) % len(key)]`` for every index. The
    position is relative to the start of the data region.
    """

    if not key:
        raise KeyLengthError(0)
    if position < 0:
        raise ValueError("position must not be negative")
    length = len(buffer)
    if length == 0:
        return
    stream = _keystream(position, key, length)
    mixed = int.from_bytes(buffer, "big") ^ int.from_bytes(stream, "big")
    buffer[:] = mixed.to_bytes(length, "big")


def crypted(position: int, data: bytes, key: bytes) -> bytes:
    """Return a transformed copy of ``data``; the input is left untouched."""

    out = bytearray(data)
    crypt(position, out, key)
    return bytes(out)


__all__ = ["crypt", "crypted"]
