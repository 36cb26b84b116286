import io
import struct

import pytest

from sixpack.archive import MAGIC, ArchiveError, ChunkHeader, update_adler32
from sixpack.fastlz import compress_level
from sixpack.pack import pack_stream
from sixpack.unpack import main, unpack_file


def make_archive(path, files, level=2):
    with open(path, "wb") as output:
        output.write(MAGIC)
        for name, data in files:
            pack_stream(io.BytesIO(data), name, level, output)
    return path


def entry_chunk(name, size):
    encoded = name.encode() + b"\0"
    payload = struct.pack("<IIH", size, 0, len(encoded)) + encoded
    header = ChunkHeader(1, 0, len(payload), update_adler32(1, payload))
    return header.pack() + payload


def data_chunk(payload, method, extra, checksum=None):
    if checksum is None:
        checksum = update_adler32(1, payload)
    return ChunkHeader(17, method, len(payload), checksum, extra).pack() + payload


def write_raw(path, *chunks):
    path.write_bytes(MAGIC + b"".join(chunks))
    return path


def sample(size):
    text = b"The quick brown fox jumps over the lazy dog. 0123456789\n"
    return (text * (size // len(text) + 1))[:size]


@pytest.mark.parametrize("level", [1, 2])
def test_round_trip_multiple_blocks(tmp_path, level):
    data = sample(140_000)
    archive = make_archive(tmp_path / "a.6pk", [("big.txt", data)], level)
    out = tmp_path / "out"
    out.mkdir()
    result = unpack_file(archive, out)
    assert result == [out / "big.txt"]
    assert (out / "big.txt").read_bytes() == data


def test_small_and_empty_files(tmp_path):
    files = [("tiny.bin", b"abc"), ("empty.bin", b""), ("mid.bin", sample(500))]
    archive = make_archive(tmp_path / "a.6pk", files)
    out = tmp_path / "out"
    out.mkdir()
    result = unpack_file(archive, out)
    assert result == [out / name for name, _ in files]
    for name, data in files:
        assert (out / name).read_bytes() == data


def test_hand_built_stored_archive(tmp_path):
    content = b"hello, archive"
    archive = write_raw(
        tmp_path / "a.6pk",
        entry_chunk("hello.txt", len(content)),
        data_chunk(content, 0, len(content)),
    )
    out = tmp_path / "out"
    out.mkdir()
    assert unpack_file(archive, out) == [out / "hello.txt"]
    assert (out / "hello.txt").read_bytes() == content


def test_hand_built_compressed_archive(tmp_path):
    content = sample(3000)
    packed = compress_level(1, content)
    archive = write_raw(
        tmp_path / "a.6pk",
        entry_chunk("c.txt", len(content)),
        data_chunk(packed, 1, len(content)),
    )
    out = tmp_path / "out"
    out.mkdir()
    assert unpack_file(archive, out) == [out / "c.txt"]
    assert (out / "c.txt").read_bytes() == content


def test_data_chunk_before_entry_is_ignored(tmp_path):
    content = b"payload bytes"
    archive = write_raw(
        tmp_path / "a.6pk",
        data_chunk(b"orphan data", 0, 11),
        entry_chunk("f.txt", len(content)),
        data_chunk(content, 0, len(content)),
    )
    out = tmp_path / "out"
    out.mkdir()
    assert unpack_file(archive, out) == [out / "f.txt"]
    assert (out / "f.txt").read_bytes() == content


def test_existing_file_is_skipped(tmp_path):
    archive = make_archive(tmp_path / "a.6pk", [("keep.txt", sample(100))])
    out = tmp_path / "out"
    out.mkdir()
    (out / "keep.txt").write_bytes(b"original")
    assert unpack_file(archive, out) == []
    assert (out / "keep.txt").read_bytes() == b"original"


def test_bad_data_checksum_drops_file(tmp_path):
    content = b"some stored content"
    archive = write_raw(
        tmp_path / "a.6pk",
        entry_chunk("bad.txt", len(content)),
        data_chunk(content, 0, len(content), checksum=1),
    )
    out = tmp_path / "out"
    out.mkdir()
    assert unpack_file(archive, out) == []


def test_bad_compressed_checksum_drops_file(tmp_path):
    content = sample(200)
    packed = compress_level(2, content)
    archive = write_raw(
        tmp_path / "a.6pk",
        entry_chunk("bad.txt", len(content)),
        data_chunk(packed, 1, len(content), checksum=1),
    )
    out = tmp_path / "out"
    out.mkdir()
    assert unpack_file(archive, out) == []
    assert (out / "bad.txt").read_bytes() == b""


def test_decompressed_size_mismatch_drops_file(tmp_path):
    content = sample(200)
    packed = compress_level(1, content)
    archive = write_raw(
        tmp_path / "a.6pk",
        entry_chunk("x.txt", len(content) + 10),
        data_chunk(packed, 1, len(content) + 10),
    )
    out = tmp_path / "out"
    out.mkdir()
    assert unpack_file(archive, out) == []


def test_unknown_method_drops_file_but_continues(tmp_path):
    good = b"second file data"
    archive = write_raw(
        tmp_path / "a.6pk",
        entry_chunk("first.txt", 5),
        data_chunk(b"abcde", 7, 5),
        entry_chunk("second.txt", len(good)),
        data_chunk(good, 0, len(good)),
    )
    out = tmp_path / "out"
    out.mkdir()
    assert unpack_file(archive, out) == [out / "second.txt"]
    assert (out / "second.txt").read_bytes() == good


def test_bad_entry_checksum_raises(tmp_path):
    entry = bytearray(entry_chunk("e.txt", 3))
    entry[-2] ^= 0xFF
    archive = write_raw(tmp_path / "a.6pk", bytes(entry))
    with pytest.raises(ArchiveError, match="checksum mismatch"):
        unpack_file(archive, tmp_path)


def test_not_an_archive(tmp_path):
    path = tmp_path / "plain.txt"
    path.write_bytes(b"just some text, no magic here")
    with pytest.raises(ArchiveError, match="not a 6pack archive"):
        unpack_file(path, tmp_path)


def test_missing_archive(tmp_path):
    with pytest.raises(ArchiveError, match="could not open"):
        unpack_file(tmp_path / "missing.6pk", tmp_path)


def test_main_without_arguments_prints_usage(capsys):
    assert main([]) == 0
    assert "Usage: 6unpack archive-file" in capsys.readouterr().out


def test_main_version(capsys):
    assert main(["-v"]) == 0
    out = capsys.readouterr().out
    assert "Version 0.1.0" in out
    assert "0.5.0" in out


def test_main_extracts_into_current_directory(tmp_path, monkeypatch):
    data = sample(1000)
    archive = make_archive(tmp_path / "a.6pk", [("doc.txt", data)])
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    assert main([str(archive)]) == 0
    assert (work / "doc.txt").read_bytes() == data


def test_main_reports_error(tmp_path, capsys):
    assert main([str(tmp_path / "missing.6pk")]) == 1
    assert "could not open" in capsys.readouterr().out