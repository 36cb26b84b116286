"""Extract the files held in a 6pack archive."""

from __future__ import annotations

import os
import struct
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from sixpack.archive import (
    CHUNK_DATA,
    CHUNK_FILE_ENTRY,
    HEADER_SIZE,
    MAGIC,
    METHOD_FASTLZ,
    METHOD_STORED,
    ArchiveError,
    ChunkHeader,
    detect_magic,
    progress_label,
    update_adler32,
)
from sixpack.fastlz import VERSION as FASTLZ_VERSION
from sixpack.fastlz import FastLZError, decompress

VERSION = "0.1.0"
BLOCK_SIZE = 65536
_ENTRY_FIXED = 10
_BAR_WIDTH = 50

_USAGE = """\
6unpack: uncompress 6pack archive

Usage: 6unpack archive-file
"""


def _out(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _progress(done: int, total: int) -> int:
    if total < (1 << 24):
        percent = done * 100 // total
    else:
        percent = done // 256 * 100 // (total >> 8)
    return percent >> 1


@dataclass
class _Extraction:
    """A file being written from the data chunks that follow its entry."""

    path: Path
    handle: BinaryIO
    size: int
    extracted: int = 0
    percent: int = 0

    def advance_progress(self) -> None:
        percent = _progress(self.extracted, self.size)
        if percent > self.percent:
            _out("#" * (percent - self.percent))
        self.percent = percent


def _open_entry(archive: BinaryIO, header: ChunkHeader, directory: Path) -> _Extraction | None:
    payload = archive.read(header.size)
    checksum = update_adler32(1, payload)
    if checksum != header.checksum:
        raise ArchiveError(
            f"checksum mismatch!\nGot {checksum:08X} Expecting {header.checksum:08X}"
        )
    if len(payload) < header.size:
        raise ArchiveError("truncated file entry")

    (size,) = struct.unpack_from("<I", payload, 0)
    (name_length,) = struct.unpack_from("<H", payload, 8)
    name_length = min(name_length, header.size - _ENTRY_FIXED)
    raw_name = payload[_ENTRY_FIXED:_ENTRY_FIXED + name_length].split(b"\0", 1)[0]
    name = os.fsdecode(raw_name)
    path = directory / name

    if path.exists():
        _out(f"File {name} already exists. Skipped.\n")
        return None
    try:
        handle = open(path, "xb")
    except OSError:
        _out(f"Can't create file {name}. Skipped.\n")
        return None

    label = progress_label(name)
    _out("\n" + label + "." * _BAR_WIDTH + "]\r" + label)
    return _Extraction(path, handle, size)


def _extract_stored(archive: BinaryIO, header: ChunkHeader, target: _Extraction) -> bool:
    target.extracted += header.size
    remaining = header.size
    checksum = 1
    while remaining > 0:
        block = archive.read(min(BLOCK_SIZE, remaining))
        if not block:
            break
        target.handle.write(block)
        checksum = update_adler32(checksum, block)
        remaining -= len(block)
    if checksum != header.checksum:
        _out(
            "\nError: checksum mismatch. Aborted.\n"
            f"Got {checksum:08X} Expecting {header.checksum:08X}\n"
        )
        return False
    return True


def _extract_compressed(archive: BinaryIO, header: ChunkHeader, target: _Extraction) -> bool:
    payload = archive.read(header.size)
    checksum = update_adler32(1, payload)
    target.extracted += header.extra
    if checksum != header.checksum:
        _out(
            "\nError: checksum mismatch. Skipped.\n"
            f"Got {checksum:08X} Expecting {header.checksum:08X}\n"
        )
        return False
    try:
        data = decompress(payload, header.extra)
    except FastLZError:
        data = None
    if data is None or len(data) != header.extra:
        _out("\nError: decompression failed. Skipped.\n")
        return False
    target.handle.write(data)
    return True


def _extract_chunk(archive: BinaryIO, header: ChunkHeader, target: _Extraction) -> bool:
    if header.options == METHOD_STORED:
        return _extract_stored(archive, header, target)
    if header.options == METHOD_FASTLZ:
        return _extract_compressed(archive, header, target)
    _out(f"\nError: unknown compression method ({header.options})\n")
    return False


def unpack_file(
    archive_file: str | os.PathLike[str],
    directory: str | os.PathLike[str] | None = None,
) -> list[Path]:
    """Extract every file of ``archive_file`` into ``directory``.

    The current directory is used when none is given. Existing files are
    never overwritten; such entries, and files whose data fails to verify,
    are skipped. Returns the paths of the files extracted in full.
    """
    target_dir = Path.cwd() if directory is None else Path(directory)
    try:
        archive = open(archive_file, "rb")
    except OSError as exc:
        raise ArchiveError(f"could not open {os.fspath(archive_file)}") from exc

    extracted: list[Path] = []
    current: _Extraction | None = None
    with archive:
        archive.seek(0, os.SEEK_END)
        fsize = archive.tell()
        if not detect_magic(archive):
            raise ArchiveError(f"file {os.fspath(archive_file)} is not a 6pack archive!")

        _out(f"Archive: {os.fspath(archive_file)}")
        archive.seek(len(MAGIC))
        try:
            while (pos := archive.tell()) < fsize:
                header = ChunkHeader.read(archive)

                if (
                    header.chunk_id == CHUNK_FILE_ENTRY
                    and _ENTRY_FIXED < header.size < BLOCK_SIZE
                ):
                    _out("\n")
                    if current is not None:
                        current.handle.close()
                        extracted.append(current.path)
                        current = None
                    current = _open_entry(archive, header, target_dir)

                if header.chunk_id == CHUNK_DATA and current is not None and current.size:
                    if _extract_chunk(archive, header, current):
                        current.advance_progress()
                    else:
                        current.handle.close()
                        current = None

                archive.seek(pos + HEADER_SIZE + header.size)
        finally:
            if current is not None:
                current.handle.close()

        if current is not None:
            extracted.append(current.path)
    _out("\n\n")
    return extracted


def main(argv: list[str] | None = None) -> int:
    """Run the 6unpack command line; returns the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args or any(arg in ("-h", "--help") for arg in args):
        print(_USAGE)
        return 0
    if any(arg in ("-v", "--version") for arg in args):
        print("6unpack: high-speed file compression tool")
        print(f"Version {VERSION} (using FastLZ {FASTLZ_VERSION})\n")
        return 0

    try:
        unpack_file(args[0])
    except ArchiveError as exc:
        print(f"\nError: {exc}")
        return 1
    return 0