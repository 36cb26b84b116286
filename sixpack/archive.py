"""The 6pack archive container: magic bytes, chunk headers and checksums.

An archive starts with an 8-byte magic sequence followed by chunks. Each
chunk has a 16-byte little-endian header (id, options, size, checksum,
extra) followed by ``size`` bytes of payload. A file-entry chunk carries
the original size and name of a file. The data chunks that follow it hold
the file contents, either stored or compressed with FastLZ.
"""

from __future__ import annotations

import os
import struct
import zlib
from dataclasses import dataclass
from typing import BinaryIO

MAGIC = bytes((137, ord("6"), ord("P"), ord("K"), 13, 10, 26, 10))

CHUNK_FILE_ENTRY = 1
CHUNK_DATA = 17

METHOD_STORED = 0
METHOD_FASTLZ = 1

HEADER_SIZE = 16
_HEADER = struct.Struct("<HHIII")

_LABEL_WIDTH = 16


class ArchiveError(Exception):
    """Raised when an archive cannot be written or read."""


@dataclass(frozen=True)
class ChunkHeader:
    """The fixed 16-byte header that precedes every chunk."""

    chunk_id: int
    options: int
    size: int
    checksum: int
    extra: int = 0

    def pack(self) -> bytes:
        """Encode the header as 16 little-endian bytes."""
        return _HEADER.pack(
            self.chunk_id & 0xFFFF,
            self.options & 0xFFFF,
            self.size & 0xFFFFFFFF,
            self.checksum & 0xFFFFFFFF,
            self.extra & 0xFFFFFFFF,
        )

    @classmethod
    def unpack(cls, data: bytes) -> ChunkHeader:
        """Decode a header from exactly 16 bytes."""
        if len(data) != HEADER_SIZE:
            raise ArchiveError(
                f"chunk header needs {HEADER_SIZE} bytes, got {len(data)}"
            )
        return cls(*_HEADER.unpack(data))

    @classmethod
    def read(cls, stream: BinaryIO) -> ChunkHeader:
        """Read one header from a binary stream."""
        data = stream.read(HEADER_SIZE)
        if len(data) < HEADER_SIZE:
            raise ArchiveError("truncated chunk header")
        return cls.unpack(data)

    def write(self, stream: BinaryIO) -> None:
        """Write the encoded header to a binary stream."""
        stream.write(self.pack())


def update_adler32(checksum: int, data: bytes) -> int:
    """Continue an Adler-32 checksum over ``data``; start from 1."""
    return zlib.adler32(data, checksum) & 0xFFFFFFFF


def detect_magic(stream: BinaryIO) -> bool:
    """Tell whether the stream starts with the archive magic.

    The stream is left positioned at its beginning.
    """
    stream.seek(0)
    head = stream.read(len(MAGIC))
    stream.seek(0)
    return head == MAGIC


def write_magic(stream: BinaryIO) -> None:
    """Write the archive magic sequence."""
    stream.write(MAGIC)


def shown_name(path: str | os.PathLike[str]) -> str:
    """Strip the directory prefix: ``foo/bar/FILE.txt`` becomes ``FILE.txt``."""
    text = os.fspath(path)
    cut = text.rfind(os.sep, 0, max(len(text) - 1, 0))
    return text[cut + 1:]


def progress_label(name: str) -> str:
    """Return the 17-character label shown before a progress bar."""
    if len(name) < _LABEL_WIDTH:
        label = name.ljust(_LABEL_WIDTH)
    else:
        label = name[:13] + ".. "
    return label + "["