import hashlib
import io

import pytest
from cryptography.hazmat.primitives import hashes

from picofile.container.core import Pico
from picofile.container.hashing import ContentHash, verify
from picofile.errors import ErrorSite, HashError, IntegrityError, InternalError

KEY = b"\x01\x02\x03"


def _reader_over(data: bytes, step: int):
    def read(position: int, buffer: bytearray) -> int:
        chunk = data[position : position + min(step, len(buffer))]
        buffer[: len(chunk)] = chunk
        return len(chunk)

    return read


def test_short_reads_do_not_end_the_scan() -> None:
    data = b"short reads keep going until zero"
    digest = ContentHash(chunk_size=8).compute(_reader_over(data, 1))
    assert digest == hashlib.md5(data).digest()


def test_only_bytes_read_are_hashed() -> None:
    data = b"x" * 10
    digest = ContentHash(chunk_size=64).compute(_reader_over(data, 64))
    assert digest == hashlib.md5(data).digest()


def test_digest_bytes_matches_streaming() -> None:
    hasher = ContentHash()
    data = b"abc" * 5000
    assert hasher.digest_bytes(data) == hasher.compute(_reader_over(data, 4096))


def test_wrong_digest_size_is_a_hash_error() -> None:
    with pytest.raises(HashError) as excinfo:
        ContentHash(algorithm=hashes.SHA256).compute(_reader_over(b"", 1))
    assert excinfo.value.site is ErrorSite.HASH_RECOMPUTE


def test_misbehaving_reader_is_an_internal_error() -> None:
    with pytest.raises(InternalError):
        ContentHash(chunk_size=4).compute(lambda position, buffer: 99)


def test_chunk_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ContentHash(chunk_size=0)


def test_verify_detects_corruption() -> None:
    store = io.BytesIO()
    pico = Pico.create(store, KEY, 0)
    pico.put(0, bytearray(b"original"))
    pico.flush()

    raw = bytearray(store.getvalue())
    raw[-1] ^= 0xFF
    damaged = Pico.open(io.BytesIO(bytes(raw)))

    with pytest.raises(IntegrityError):
        verify(damaged)
    assert damaged.hash_valid


def test_verify_refuses_stale_hash() -> None:
    pico = Pico.create(io.BytesIO(), KEY, 0)
    with pytest.raises(HashError):
        verify(pico)


def test_container_uses_pluggable_hasher() -> None:
    calls: list[int] = []

    class CountingHash(ContentHash):
        def compute(self, read):  # type: ignore[override]
            calls.append(1)
            return super().compute(read)

    pico = Pico.create(io.BytesIO(), KEY, 0, hasher=CountingHash())
    pico.flush()
    pico.flush()
    pico.put(0, bytearray(b"x"))
    pico.flush()

    assert len(calls) == 2


def test_verify_uses_the_container_hasher() -> None:
    hasher = ContentHash(algorithm=lambda: hashes.SHAKE128(16))
    store = io.BytesIO()
    pico = Pico.create(store, KEY, 0, hasher=hasher)
    pico.put(0, bytearray(b"not md5 this time"))
    pico.flush()

    reopened = Pico.open(io.BytesIO(store.getvalue()), hasher=hasher)

    assert reopened.hasher is hasher
    assert verify(reopened) == reopened.hash
    assert reopened.hash != hashlib.md5(b"not md5 this time").digest()
