"""Content hash over the decrypted data region.

The digest is computed by streaming the data region through the container's
own ``get`` so that the hashed bytes are exactly what a reader would decode.
Whether the cached digest still describes the data is tracked by
:class:`HashState`; only :meth:`picofile.container.core.Pico.flush` moves a
container from ``INVALID`` back to ``VALID``.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Callable

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes

from picofile.container.format import HASH_LEN
from picofile.errors import ErrorSite, HashError, IntegrityError, InternalError

if TYPE_CHECKING:
    from picofile.container.core import Pico

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096

ChunkReader = Callable[[int, bytearray], int]


class HashState(enum.Enum):
    VALID = "valid"
    INVALID = "invalid"


class ContentHash:
    """Streaming 128-bit digest of a data region, MD5 unless told otherwise."""

    def __init__(
        self,
        algorithm: Callable[[], hashes.HashAlgorithm] = hashes.MD5,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.algorithm = algorithm
        self.chunk_size = chunk_size

    def _context(self) -> hashes.Hash:
        algorithm = self.algorithm()
        if algorithm.digest_size != HASH_LEN:
            raise HashError(
                f"{algorithm.name} produces {algorithm.digest_size}-byte digests, "
                f"the header stores {HASH_LEN}",
                site=ErrorSite.HASH_RECOMPUTE,
            )
        try:
            return hashes.Hash(algorithm)
        except UnsupportedAlgorithm as exc:
            raise HashError(
                f"{algorithm.name} is not available from the crypto backend",
                site=ErrorSite.HASH_RECOMPUTE,
            ) from exc

    def compute(self, read: ChunkReader) -> bytes:
        """Digest everything ``read(position, buffer)`` returns from position 0.

        A read of zero bytes ends the scan; shorter positive reads continue it.
        """

        context = self._context()
        buffer = bytearray(self.chunk_size)
        view = memoryview(buffer)
        position = 0
        while True:
            count = read(position, buffer)
            if count == 0:
                break
            if count < 0 or count > len(buffer):
                raise InternalError(
                    ErrorSite.HASH_RECOMPUTE,
                    f"reader returned {count} bytes for a {len(buffer)}-byte buffer",
                )
            context.update(view[:count])
            position += count
        logger.debug("Hashed %d bytes of data", position)
        return context.finalize()

    def digest_bytes(self, data: bytes) -> bytes:
        """Digest an in-memory byte string with the same primitive."""

        context = self._context()
        context.update(data)
        return context.finalize()


def verify(pico: Pico, hasher: ContentHash | None = None) -> bytes:
    """Recompute the digest of an opened container and compare it to the stored one.

    The container's own hasher is used unless ``hasher`` is given. The
    container is not modified; its hash state is left as it was.
    """

    if not pico.hash_valid:
        raise HashError("Stored hash is stale; flush the container first", site=ErrorSite.HASH_VERIFY)
    actual = (hasher or pico.hasher).compute(pico.get)
    if actual != pico.hash:
        raise IntegrityError(
            f"Content hash mismatch: header has {pico.hash.hex()}, data hashes to {actual.hex()}",
            site=ErrorSite.HASH_VERIFY,
        )
    return actual


__all__ = ["CHUNK_SIZE", "ChunkReader", "ContentHash", "HashState", "verify"]
