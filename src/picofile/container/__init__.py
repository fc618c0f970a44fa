"""Public container API re-exported for external users.

The objects listed in ``__all__`` form the supported public surface for
Python consumers. Everything else in :mod:`picofile.container` is considered
internal and may change without notice.
"""
from __future__ import annotations

from picofile.container.api import (
    check_file,
    create_pico,
    decode_file,
    encode_file,
    open_pico,
    read_header,
    read_metadata,
)
from picofile.container.core import Pico
from picofile.container.format import (
    HASH_LEN,
    HEADER_FIXED_LEN,
    MAGIC,
    MAJOR,
    MINOR,
    PicoHeader,
    build_header,
    parse_header,
    read_header_from_stream,
)
from picofile.container.hashing import CHUNK_SIZE, ContentHash, HashState, verify
from picofile.container.overview import HeaderFormat, header_fields, render_header

__all__ = [
    "CHUNK_SIZE",
    "ContentHash",
    "HASH_LEN",
    "HEADER_FIXED_LEN",
    "HashState",
    "HeaderFormat",
    "MAGIC",
    "MAJOR",
    "MINOR",
    "Pico",
    "PicoHeader",
    "build_header",
    "check_file",
    "create_pico",
    "decode_file",
    "encode_file",
    "header_fields",
    "open_pico",
    "parse_header",
    "read_header",
    "read_header_from_stream",
    "read_metadata",
    "render_header",
    "verify",
]
