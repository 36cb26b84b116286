"""Create 6pack archives from files."""

from __future__ import annotations

import os
import struct
import sys
import time
from functools import partial
from typing import BinaryIO

from sixpack.archive import (
    CHUNK_DATA,
    CHUNK_FILE_ENTRY,
    HEADER_SIZE,
    METHOD_FASTLZ,
    METHOD_STORED,
    ArchiveError,
    ChunkHeader,
    detect_magic,
    progress_label,
    shown_name,
    update_adler32,
    write_magic,
)
from sixpack.fastlz import VERSION as FASTLZ_VERSION
from sixpack.fastlz import FastLZError, compress_level, decompress

VERSION = "snapshot 20070615"
BLOCK_SIZE = 2 * 64 * 1024
_MIN_COMPRESS = 32
_BAR_WIDTH = 50

_USAGE = """\
6pack: high-speed file compression tool

Usage: 6pack [options]  input-file  output-file

Options:
  -1    compress faster
  -2    compress better
  -v    show program version
  -mem  check in-memory compression speed
"""

_HELP_HINT = "To get help on usage:\n  6pack --help\n"


def _out(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _progress(done: int, total: int) -> int:
    if total < (1 << 24):
        percent = done * 100 // total
    else:
        percent = done // 256 * 100 // (total >> 8)
    return percent >> 1


def pack_stream(source: BinaryIO, name: str, level: int, output: BinaryIO) -> int:
    """Append one file entry and its data chunks to ``output``.

    ``source`` must be seekable. Returns the number of archive bytes written.
    """
    if level not in (1, 2):
        raise FastLZError(f"unsupported compression level {level}")

    source.seek(0, os.SEEK_END)
    fsize = source.tell()
    source.seek(0)

    if detect_magic(source):
        raise ArchiveError(f"file {name} is already a 6pack archive!")

    encoded_name = os.fsencode(name) + b"\0"
    entry = struct.pack("<IIH", fsize & 0xFFFFFFFF, 0, len(encoded_name) & 0xFFFF)
    checksum = update_adler32(update_adler32(1, entry), encoded_name)
    entry_size = len(entry) + len(encoded_name)
    ChunkHeader(CHUNK_FILE_ENTRY, 0, entry_size, checksum, 0).write(output)
    output.write(entry)
    output.write(encoded_name)
    total_compressed = HEADER_SIZE + entry_size

    label = progress_label(name)
    _out(label + "." * _BAR_WIDTH + "]\r" + label)

    total_read = 0
    percent = 0
    for block in iter(partial(source.read, BLOCK_SIZE), b""):
        total_read += len(block)
        last_percent = percent
        percent = _progress(total_read, fsize)
        if percent > last_percent:
            _out("#" * (percent - last_percent))

        if len(block) >= _MIN_COMPRESS:
            payload = compress_level(level, block)
            method = METHOD_FASTLZ
        else:
            payload = block
            method = METHOD_STORED
        ChunkHeader(
            CHUNK_DATA, method, len(payload), update_adler32(1, payload), len(block)
        ).write(output)
        output.write(payload)
        total_compressed += HEADER_SIZE + len(payload)

    if total_read != fsize:
        _out("\n")
        raise ArchiveError(f"reading {name} failed!")

    _out("] ")
    if total_compressed < fsize:
        if fsize < (1 << 20):
            ratio = total_compressed * 1000 // fsize
        else:
            ratio = total_compressed // 256 * 1000 // (fsize >> 8)
        saved = 1000 - ratio
        _out(f"{saved // 10:2d}.{saved % 10}% saved")
    _out("\n")
    return total_compressed


def pack_file(level: int, input_file: str | os.PathLike[str], output_file: str | os.PathLike[str]) -> int:
    """Create the archive ``output_file`` holding ``input_file``.

    Refuses to overwrite an existing file. Returns the archive size.
    """
    if os.path.exists(output_file):
        raise ArchiveError(f"file {os.fspath(output_file)} already exists. Aborted.")
    try:
        output = open(output_file, "xb")
    except FileExistsError as exc:
        raise ArchiveError(f"file {os.fspath(output_file)} already exists. Aborted.") from exc
    except OSError as exc:
        raise ArchiveError(f"could not create {os.fspath(output_file)}. Aborted.") from exc

    with output:
        write_magic(output)
        try:
            source = open(input_file, "rb")
        except OSError as exc:
            raise ArchiveError(f"could not open {os.fspath(input_file)}") from exc
        with source:
            return len(MAGIC_PLACEHOLDER) + pack_stream(
                source, shown_name(input_file), level, output
            )


MAGIC_PLACEHOLDER = b"\x00" * 8


def _measure(action, size: int, seconds: float, rounds: int) -> float:
    fastest = 0.0
    for _ in range(rounds):
        count = 0
        start = time.perf_counter()
        while True:
            action()
            count += 1
            elapsed = time.perf_counter() - start
            if elapsed >= seconds:
                break
        fastest = max(fastest, size * count / elapsed / 1_000_000)
    return fastest


def _benchmark_speed(level: int, input_file: str, seconds: float = 3.0, rounds: int = 3) -> None:
    try:
        source = open(input_file, "rb")
    except OSError as exc:
        raise ArchiveError(f"could not open {input_file}") from exc
    with source:
        if detect_magic(source):
            raise ArchiveError("no benchmark for 6pack archive!")
        print("Reading source file....")
        data = source.read()

    print(f"Benchmarking FastLZ Level {level}, please wait...")
    compressed = compress_level(level, data)
    fastest = _measure(lambda: compress_level(level, data), len(data), seconds, rounds)
    ratio = len(compressed) / len(data) * 100 if data else 0.0
    print(
        f"\nCompressed {len(data)} bytes into {len(compressed)} bytes "
        f"({ratio:.1f}%) at {fastest:.1f} Mbyte/s."
    )
    fastest = _measure(lambda: decompress(compressed, len(data)), len(data), seconds, rounds)
    print(f"\nDecompressed at {fastest:.1f} Mbyte/s.\n\n(1 MB = 1000000 byte)")


def main(argv: list[str] | None = None) -> int:
    """Run the 6pack command line; returns the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print(_USAGE)
        return 0

    level = 2
    benchmark = False
    input_file: str | None = None
    output_file: str | None = None

    for argument in args:
        if argument in ("-h", "--help"):
            print(_USAGE)
            return 0
        if argument in ("-v", "--version"):
            print("6pack: high-speed file compression tool")
            print(f"Version {VERSION} (using FastLZ {FASTLZ_VERSION})\n")
            return 0
        if argument == "-mem":
            benchmark = True
            continue
        if argument in ("-1", "--fastest"):
            level = 1
            continue
        if argument == "-2":
            level = 2
            continue
        if argument.startswith("-") or (input_file and output_file):
            print(f"Error: unknown option {argument}\n")
            print(_HELP_HINT)
            return 1
        if input_file is None:
            input_file = argument
        else:
            output_file = argument

    if input_file is None:
        print("Error: input file is not specified.\n")
        print(_HELP_HINT)
        return 1
    if output_file is None and not benchmark:
        print("Error: output file is not specified.\n")
        print(_HELP_HINT)
        return 1

    try:
        if benchmark:
            _benchmark_speed(level, input_file)
        else:
            pack_file(level, input_file, output_file)
    except (ArchiveError, FastLZError) as exc:
        print(f"Error: {exc}\n")
        return 1
    return 0