"""The Pico container: header bookkeeping plus windowed metadata and data access."""
from __future__ import annotations

import logging
from typing import IO

from picofile.container.format import (
    EMPTY_HASH,
    HEADER_FIXED_LEN,
    MAJOR,
    MAX_OFFSET,
    MINOR,
    PicoHeader,
    read_header_from_stream,
)
from picofile.container.hashing import ContentHash, HashState
from picofile.crypto.keys import validate_key
from picofile.crypto.xor import crypt
from picofile.errors import ErrorSite, InternalError, ReadFailed, SeekFailed, WriteFailed

logger = logging.getLogger(__name__)

_FILL_CHUNK = bytes(4096)


class Pico:
    """A Pico-encoded file on top of a seekable binary store.

    Create a new file with :meth:`create` or wrap an existing one with
    :meth:`open`; in both cases the caller opens (and later closes) the store.

    Metadata is accessed with :meth:`get_metadata` / :meth:`put_metadata` and
    is stored unencrypted in the ``md_length`` bytes reserved between the key
    and the data. Data is decrypted by :meth:`get` and encrypted by
    :meth:`put`; its length is bounded only by the store.

    The header hash is cached. Any :meth:`put` marks it stale and only
    :meth:`flush` recomputes it, so read :attr:`hash` after flushing when a
    fresh value matters.
    """

    def __init__(
        self,
        store: IO[bytes],
        *,
        major: int,
        minor: int,
        offset: int,
        content_hash: bytes,
        key: bytes,
        hash_state: HashState,
        hasher: ContentHash | None = None,
    ) -> None:
        self._store = store
        self._major = major
        self._minor = minor
        self._offset = offset
        self._hash = content_hash
        self._key = key
        self._hash_state = hash_state
        self._hasher = hasher or ContentHash()
        self._md_start = HEADER_FIXED_LEN + len(key)
        self._md_length = offset - self._md_start

    @classmethod
    def create(
        cls,
        store: IO[bytes],
        key: bytes,
        md_length: int = 0,
        *,
        hasher: ContentHash | None = None,
    ) -> Pico:
        """Write a fresh header (and zeroed metadata slot) to ``store``."""

        key = validate_key(key)
        if md_length < 0:
            raise ValueError("md_length must not be negative")
        offset = HEADER_FIXED_LEN + len(key) + md_length
        if offset > MAX_OFFSET:
            raise ValueError(f"md_length {md_length} pushes the data offset past 32 bits")

        pico = cls(
            store,
            major=MAJOR,
            minor=MINOR,
            offset=offset,
            content_hash=EMPTY_HASH,
            key=key,
            hash_state=HashState.INVALID,
            hasher=hasher,
        )
        pico._write_header()
        pico._fill_metadata()
        try:
            store.flush()
        except OSError as exc:
            raise WriteFailed(ErrorSite.CREATE_FLUSH) from exc
        logger.debug("Created pico container: key_len=%d md_length=%d offset=%d", len(key), md_length, offset)
        return pico

    @classmethod
    def open(cls, store: IO[bytes], *, hasher: ContentHash | None = None) -> Pico:
        """Read and validate the header at the start of ``store``."""

        try:
            store.seek(0)
        except OSError as exc:
            raise SeekFailed(ErrorSite.HEADER_SEEK) from exc
        header = read_header_from_stream(store)
        logger.debug(
            "Opened pico container: version=%d.%d offset=%d md_length=%d",
            header.major,
            header.minor,
            header.offset,
            header.md_length,
        )
        return cls(
            store,
            major=header.major,
            minor=header.minor,
            offset=header.offset,
            content_hash=header.hash,
            key=header.key,
            hash_state=HashState.VALID,
            hasher=hasher,
        )

    @property
    def version(self) -> tuple[int, int]:
        return (self._major, self._minor)

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def hash(self) -> bytes:
        """The cached content hash; never recomputed here, see :meth:`flush`."""
        return self._hash

    @property
    def key(self) -> bytes:
        return self._key

    @property
    def md_start(self) -> int:
        return self._md_start

    @property
    def md_length(self) -> int:
        return self._md_length

    @property
    def hasher(self) -> ContentHash:
        """The digest primitive used by :meth:`flush`."""
        return self._hasher

    @property
    def hash_state(self) -> HashState:
        return self._hash_state

    @property
    def hash_valid(self) -> bool:
        return self._hash_state is HashState.VALID

    @property
    def header(self) -> PicoHeader:
        return PicoHeader(
            major=self._major,
            minor=self._minor,
            offset=self._offset,
            hash=self._hash,
            key=self._key,
        )

    def _seek(self, position: int, site: ErrorSite) -> None:
        try:
            self._store.seek(position)
        except OSError as exc:
            raise SeekFailed(site) from exc

    def _readinto(self, view: memoryview, site: ErrorSite) -> int:
        try:
            count = self._store.readinto(view)  # type: ignore[attr-defined]
        except OSError as exc:
            raise ReadFailed(site) from exc
        return count or 0

    def _write(self, data: bytes | memoryview, site: ErrorSite) -> int:
        try:
            count = self._store.write(data)
        except OSError as exc:
            raise WriteFailed(site) from exc
        return len(data) if count is None else count

    def _metadata_window(self, start: int, size: int) -> int:
        if start < 0:
            raise ValueError("start must not be negative")
        if self._md_length == 0 or start >= self._md_length:
            return 0
        return min(size, self._md_length - start)

    def get_metadata(self, start: int, buffer: bytearray | memoryview) -> int:
        """Read metadata from ``start`` into ``buffer``; return the byte count."""

        count = self._metadata_window(start, len(buffer))
        if count == 0:
            return 0
        self._seek(self._md_start + start, ErrorSite.METADATA_SEEK_READ)
        return self._readinto(memoryview(buffer)[:count], ErrorSite.METADATA_READ)

    def put_metadata(self, start: int, buffer: bytes | bytearray | memoryview) -> int:
        """Write metadata at ``start``, truncated to the reserved capacity."""

        count = self._metadata_window(start, len(buffer))
        if count == 0:
            return 0
        self._seek(self._md_start + start, ErrorSite.METADATA_SEEK_WRITE)
        return self._write(memoryview(buffer)[:count], ErrorSite.METADATA_WRITE)

    def get(self, position: int, buffer: bytearray | memoryview) -> int:
        """Read and decrypt data at ``position`` into ``buffer``; return the count.

        A count of zero means the end of the data region was reached.
        """

        if position < 0:
            raise ValueError("position must not be negative")
        self._seek(self._offset + position, ErrorSite.DATA_SEEK_READ)
        view = memoryview(buffer)
        count = self._readinto(view, ErrorSite.DATA_READ)
        crypt(position, view[:count], self._key)
        return count

    def put(self, position: int, buffer: bytearray | memoryview) -> int:
        """Encrypt ``buffer`` in place and write it at ``position``.

        The caller's buffer holds ciphertext once the seek succeeds, even if
        the write then fails. The cached hash becomes stale.
        """

        if position < 0:
            raise ValueError("position must not be negative")
        view = memoryview(buffer)
        if view.readonly:
            raise TypeError("put() encrypts in place and needs a writable buffer")
        self._seek(self._offset + position, ErrorSite.DATA_SEEK_WRITE)
        crypt(position, view, self._key)
        self._hash_state = HashState.INVALID
        return self._write(view, ErrorSite.DATA_WRITE)

    def flush(self) -> None:
        """Recompute a stale hash, rewrite the header and flush the store."""

        if self._hash_state is HashState.INVALID:
            self._hash = self._hasher.compute(self.get)
            self._hash_state = HashState.VALID
            logger.debug("Recomputed content hash %s", self._hash.hex())
        self._write_header()
        try:
            self._store.flush()
        except OSError as exc:
            raise WriteFailed(ErrorSite.FLUSH_STORE) from exc

    def _write_header(self) -> None:
        self._seek(0, ErrorSite.HEADER_SEEK)
        self._write(self.header.to_bytes(), ErrorSite.HEADER_WRITE)

    def _fill_metadata(self) -> None:
        remaining = self._md_length
        while remaining > 0:
            chunk = _FILL_CHUNK[: min(remaining, len(_FILL_CHUNK))]
            written = self._write(chunk, ErrorSite.METADATA_FILL)
            if written <= 0:
                raise InternalError(ErrorSite.METADATA_FILL, "store accepted no bytes")
            remaining -= written


__all__ = ["Pico"]
