"""Container header format helpers."""

from __future__ import annotations

from dataclasses import dataclass
from struct import Struct
from typing import IO

from picofile.crypto.keys import MAX_KEY_LEN
from picofile.errors import (
    BadOffset,
    BadVersion,
    ContainerFormatError,
    ErrorSite,
    KeyLengthError,
    NotPico,
    ReadFailed,
    TruncatedHeader,
)

MAGIC = 0x91C0
MAJOR = 1
MINOR = 0

MAGIC_LEN = 2
MAJOR_LEN = 2
MINOR_LEN = 2
OFFSET_LEN = 4
HASH_LEN = 16
KEYLEN_LEN = 2

MAGIC_POS = 0
MAJOR_POS = MAGIC_POS + MAGIC_LEN
MINOR_POS = MAJOR_POS + MAJOR_LEN
OFFSET_POS = MINOR_POS + MINOR_LEN
HASH_POS = OFFSET_POS + OFFSET_LEN
KEYLEN_POS = HASH_POS + HASH_LEN
KEY_POS = KEYLEN_POS + KEYLEN_LEN

HEADER_FIXED_LEN = KEY_POS
MAX_OFFSET = 0xFFFFFFFF
EMPTY_HASH = bytes(HASH_LEN)

# magic, major, minor, offset, hash, key length; the key follows.
_HEADER_STRUCT = Struct(">HHHI16sH")  # totals 28 bytes


@dataclass(frozen=True)
class PicoHeader:
    major: int
    minor: int
    offset: int
    hash: bytes
    key: bytes

    @property
    def version(self) -> tuple[int, int]:
        return (self.major, self.minor)

    @property
    def key_length(self) -> int:
        return len(self.key)

    @property
    def md_start(self) -> int:
        return HEADER_FIXED_LEN + len(self.key)

    @property
    def md_length(self) -> int:
        return self.offset - self.md_start

    @property
    def header_len(self) -> int:
        return self.md_start

    def to_bytes(self) -> bytes:
        return build_header(
            major=self.major,
            minor=self.minor,
            offset=self.offset,
            content_hash=self.hash,
            key=self.key,
        )


def build_header(
    *,
    offset: int,
    content_hash: bytes,
    key: bytes,
    major: int = MAJOR,
    minor: int = MINOR,
) -> bytes:
    """Build header bytes: the fixed fields followed by the key."""

    if not 1 <= len(key) <= MAX_KEY_LEN:
        raise KeyLengthError(len(key))
    if len(content_hash) != HASH_LEN:
        raise ContainerFormatError(f"hash must be {HASH_LEN} bytes")
    if not 0 <= major <= 0xFFFF or not 0 <= minor <= 0xFFFF:
        raise ContainerFormatError("version numbers must fit in 16 bits")
    minimum = HEADER_FIXED_LEN + len(key)
    if offset > MAX_OFFSET:
        raise ContainerFormatError("data offset must fit in 32 bits")
    if offset < minimum:
        raise BadOffset(offset, minimum)

    packed = _HEADER_STRUCT.pack(
        MAGIC,
        major,
        minor,
        offset,
        content_hash,
        len(key),
    )
    return packed + key


def _parse_fixed(data: bytes) -> tuple[int, int, int, bytes, int]:
    if len(data) < MAGIC_LEN:
        raise TruncatedHeader(HEADER_FIXED_LEN, len(data))
    magic = int.from_bytes(data[MAGIC_POS:MAJOR_POS], "big")
    if magic != MAGIC:
        raise NotPico(magic, MAGIC)
    if len(data) < HEADER_FIXED_LEN:
        raise TruncatedHeader(HEADER_FIXED_LEN, len(data))

    _magic, major, minor, offset, content_hash, key_len = _HEADER_STRUCT.unpack(
        data[:HEADER_FIXED_LEN]
    )
    if major > MAJOR:
        raise BadVersion(major, minor, MAJOR, MINOR)
    if key_len == 0:
        raise KeyLengthError(0)
    return major, minor, offset, content_hash, key_len


def _check_offset(offset: int, key_len: int) -> None:
    minimum = HEADER_FIXED_LEN + key_len
    if offset < minimum:
        raise BadOffset(offset, minimum)


def parse_header(data: bytes) -> PicoHeader:
    """Parse header bytes (fixed part plus key); trailing bytes are ignored."""

    major, minor, offset, content_hash, key_len = _parse_fixed(data)
    key = bytes(data[KEY_POS : KEY_POS + key_len])
    if len(key) != key_len:
        raise TruncatedHeader(KEY_POS + key_len, len(data))
    _check_offset(offset, key_len)
    return PicoHeader(major=major, minor=minor, offset=offset, hash=content_hash, key=key)


def _read_exact(file_obj: IO[bytes], size: int, site: ErrorSite) -> bytes:
    chunks = []
    remaining = size
    while remaining > 0:
        try:
            chunk = file_obj.read(remaining)
        except OSError as exc:
            raise ReadFailed(site) from exc
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_header_from_stream(file_obj: IO[bytes]) -> PicoHeader:
    """Read and parse a header from the current position of a binary stream."""

    fixed = _read_exact(file_obj, HEADER_FIXED_LEN, ErrorSite.HEADER_READ_FIXED)
    _major, _minor, _offset, _hash, key_len = _parse_fixed(fixed)
    key = _read_exact(file_obj, key_len, ErrorSite.HEADER_READ_KEY)
    return parse_header(fixed + key)


__all__ = [
    "EMPTY_HASH",
    "HASH_LEN",
    "HEADER_FIXED_LEN",
    "KEY_POS",
    "MAGIC",
    "MAJOR",
    "MAX_KEY_LEN",
    "MAX_OFFSET",
    "MINOR",
    "PicoHeader",
    "build_header",
    "parse_header",
    "read_header_from_stream",
]
