"""High-level API for encoding and decoding Pico files on disk."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from picofile.container.core import Pico
from picofile.container.format import PicoHeader
from picofile.container.hashing import CHUNK_SIZE, verify
from picofile.crypto.keys import generate_key, validate_key
from picofile.errors import StoreExists, StoreNotFound

logger = logging.getLogger(__name__)


def _open_new(path: Path, overwrite: bool, mode: str) -> IO[bytes]:
    if overwrite:
        return path.open(mode.replace("x", "w"))
    try:
        return path.open(mode)
    except FileExistsError as exc:
        raise StoreExists(path) from exc


def _open_existing(path: Path, mode: str) -> IO[bytes]:
    try:
        return path.open(mode)
    except FileNotFoundError as exc:
        raise StoreNotFound(path) from exc


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except OSError:
        logger.warning("Could not remove partial output %s", path)


@contextmanager
def create_pico(
    path: os.PathLike[str] | str,
    key: bytes,
    md_length: int = 0,
    *,
    overwrite: bool = False,
) -> Iterator[Pico]:
    """Create a Pico file at ``path``; it is flushed and closed on exit."""

    target = Path(path)
    key = validate_key(key)
    with _open_new(target, overwrite, "x+b") as handle:
        try:
            pico = Pico.create(handle, key, md_length)
            yield pico
            pico.flush()
        except BaseException:
            handle.close()
            _discard(target)
            raise


@contextmanager
def open_pico(path: os.PathLike[str] | str, *, writable: bool = False) -> Iterator[Pico]:
    """Open an existing Pico file; writable containers are flushed on exit."""

    source = Path(path)
    with _open_existing(source, "r+b" if writable else "rb") as handle:
        pico = Pico.open(handle)
        yield pico
        if writable:
            pico.flush()


def encode_file(
    in_path: os.PathLike[str] | str,
    out_path: os.PathLike[str] | str,
    *,
    key: bytes | None = None,
    md_length: int = 0,
    metadata: bytes = b"",
    overwrite: bool = False,
) -> PicoHeader:
    """Encode ``in_path`` into a new Pico file at ``out_path``.

    A random key is generated when none is given. ``metadata`` is stored
    unencrypted; the reserved slot grows to fit it when ``md_length`` is
    smaller.
    """

    source = Path(in_path)
    target = Path(out_path)
    key = key if key is not None else generate_key()
    md_length = max(md_length, len(metadata))

    with _open_existing(source, "rb") as plain:
        with create_pico(target, key, md_length, overwrite=overwrite) as pico:
            if metadata:
                pico.put_metadata(0, metadata)
            position = 0
            while True:
                chunk = plain.read(CHUNK_SIZE)
                if not chunk:
                    break
                position += pico.put(position, bytearray(chunk))
        header = pico.header

    logger.info("Encoded %s -> %s (%d bytes)", source, target, position)
    return header


def decode_file(
    in_path: os.PathLike[str] | str,
    out_path: os.PathLike[str] | str,
    *,
    overwrite: bool = False,
) -> PicoHeader:
    """Decode the data region of the Pico file ``in_path`` into ``out_path``."""

    source = Path(in_path)
    target = Path(out_path)

    with open_pico(source) as pico:
        with _open_new(target, overwrite, "xb") as plain:
            try:
                buffer = bytearray(CHUNK_SIZE)
                view = memoryview(buffer)
                position = 0
                while True:
                    count = pico.get(position, buffer)
                    if count == 0:
                        break
                    plain.write(view[:count])
                    position += count
            except BaseException:
                plain.close()
                _discard(target)
                raise
        header = pico.header

    logger.info("Decoded %s -> %s (%d bytes)", source, target, position)
    return header


def read_header(path: os.PathLike[str] | str) -> PicoHeader:
    """Return the validated header of a Pico file without touching its data."""

    with open_pico(path) as pico:
        return pico.header


def read_metadata(path: os.PathLike[str] | str) -> bytes:
    """Return the whole reserved metadata slot of a Pico file."""

    with open_pico(path) as pico:
        buffer = bytearray(pico.md_length)
        count = pico.get_metadata(0, buffer)
        return bytes(buffer[:count])


def check_file(path: os.PathLike[str] | str) -> PicoHeader:
    """Verify the stored content hash against the data region."""

    with open_pico(path) as pico:
        verify(pico)
        logger.info("Verified %s (hash %s)", path, pico.hash.hex())
        return pico.header


__all__ = [
    "check_file",
    "create_pico",
    "decode_file",
    "encode_file",
    "open_pico",
    "read_header",
    "read_metadata",
]
