"""Custom exceptions for the Pico container library."""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path


class ErrorSite(IntEnum):
    """Diagnostic identifiers telling apart call sites that raise the same kind."""

    CREATE_FLUSH = 1001
    HEADER_READ_FIXED = 1002
    HEADER_READ_KEY = 1008
    FLUSH_STORE = 1009
    METADATA_SEEK_READ = 1010
    METADATA_READ = 1011
    METADATA_SEEK_WRITE = 1012
    METADATA_WRITE = 1013
    DATA_SEEK_READ = 1014
    DATA_READ = 1015
    DATA_SEEK_WRITE = 1016
    DATA_WRITE = 1017
    HEADER_SEEK = 1018
    HEADER_WRITE = 1019
    METADATA_FILL = 1026
    HASH_RECOMPUTE = 1027
    HASH_VERIFY = 1028


class PicoError(Exception):
    """Base exception for the Pico container library."""

    def __init__(self, message: str, *, site: ErrorSite | None = None) -> None:
        super().__init__(message)
        self.site = site

    @property
    def cause(self) -> BaseException | None:
        return self.__cause__

    def __str__(self) -> str:
        message = super().__str__()
        if self.site is None:
            return message
        return f"{message} [site {int(self.site)}]"


class StoreNotFound(PicoError):
    """A file expected to exist could not be found."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"File {str(path)!r} was not found.")
        self.path = Path(path)


class StoreExists(PicoError):
    """Refusing to overwrite an existing file."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"Preventing overwrite of file {str(path)!r}, which already exists.")
        self.path = Path(path)


class StoreIOError(PicoError):
    """An operation on the underlying store failed."""

    def __init__(self, site: ErrorSite) -> None:
        super().__init__(self.__doc__ or "Store operation failed.", site=site)


class SeekFailed(StoreIOError):
    """Seeking within a file failed."""


class ReadFailed(StoreIOError):
    """Reading from a file failed."""


class WriteFailed(StoreIOError):
    """Writing to a file failed."""


class ContainerFormatError(PicoError):
    """Container does not match the expected format."""


class NotPico(ContainerFormatError):
    """The magic number does not identify a Pico-encoded file."""

    def __init__(self, magic: int, expected: int) -> None:
        super().__init__(
            f"The file does not appear to be a Pico-encoded file. "
            f"First bytes are 0x{magic:04X} instead of 0x{expected:04X}, as required."
        )
        self.magic = magic


class BadVersion(ContainerFormatError):
    """The file uses a newer major version than this library implements."""

    def __init__(self, major: int, minor: int, supported_major: int, supported_minor: int) -> None:
        super().__init__(
            f"This library implements version {supported_major}.{supported_minor} of the Pico "
            f"encoding, but the file specifies that it uses version {major}.{minor}."
        )
        self.major = major
        self.minor = minor
        self.supported_major = supported_major
        self.supported_minor = supported_minor


class KeyLengthError(ContainerFormatError):
    """A key must be between 1 and 65535 bytes long."""

    def __init__(self, length: int = 0) -> None:
        super().__init__(f"A key cannot have length {length}.")
        self.length = length


class BadOffset(ContainerFormatError):
    """The stored data offset points inside the header."""

    def __init__(self, offset: int, minimum: int) -> None:
        super().__init__(
            f"The header extends to at least offset 0x{minimum:X}, "
            f"but the file specifies the data offset as 0x{offset:X}."
        )
        self.offset = offset
        self.minimum = minimum


class TruncatedHeader(ContainerFormatError):
    """The file ends before the header does."""

    def __init__(self, needed: int, available: int) -> None:
        super().__init__(f"Header needs {needed} bytes but only {available} are available.")
        self.needed = needed
        self.available = available


class HashError(PicoError):
    """An error occurred computing the hash."""


class IntegrityError(PicoError):
    """Stored content hash does not match the data region."""


class InternalError(PicoError):
    """An internal error was detected in the pico library."""

    def __init__(self, site: ErrorSite, detail: str = "") -> None:
        message = "An internal error was detected in the pico library."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message, site=site)
