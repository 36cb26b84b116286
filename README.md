# sixpack

A byte-aligned LZ77 block compressor with two levels, and a small chunked
archive format built on it. Everything is pure Python with no third-party
dependencies.

## Installation

```
pip install .
```

## Library use

### Block compression: `sixpack.fastlz`

```python
from sixpack.fastlz import compress_level, decompress, FastLZError

data = b"hello hello hello hello hello hello"
packed = compress_level(2, data)
restored = decompress(packed, len(data))
assert restored == data
```

- `compress_level(level, data)` compresses one block at level 1 (faster) or
  level 2 (better ratio). Any other level raises `FastLZError`.
- `compress(data)` picks the level from the block size: level 1 below
  65536 bytes, level 2 otherwise.
- `decompress(data, maxout)` works for blocks of either level. The level is
  read from the top bits of the first byte. It never produces more than
  `maxout` bytes. It raises `FastLZError` if the block is corrupt, if its
  level is unknown, or if its contents would exceed `maxout`. Empty input
  gives `b""`.
- `FastLZError` is a subclass of `ValueError`.

### Archive helpers: `sixpack.archive`

- `MAGIC`: the 8-byte sequence that starts every archive.
- `ChunkHeader(chunk_id, options, size, checksum, extra=0)`: the 16-byte
  chunk header. It has `pack()`, `write(stream)`, `ChunkHeader.unpack(data)`
  and `ChunkHeader.read(stream)`.
- `update_adler32(checksum, data)`: continues an Adler-32 checksum. Start
  from 1.
- `detect_magic(stream)` and `write_magic(stream)`. `detect_magic` leaves the
  stream at its start.
- `shown_name(path)`: strips the directory part of a path.
- `progress_label(name)`: the label printed before a progress bar.
- `ArchiveError`: raised when an archive cannot be written or read.

### Packing and unpacking

- `sixpack.pack.pack_file(level, input_file, output_file)` creates a new
  archive that holds one file and returns the archive size in bytes. It
  raises `ArchiveError` if the output already exists, if the input cannot be
  opened, or if the input is already an archive.
- `sixpack.pack.pack_stream(source, name, level, output)` appends one file
  entry, read from a seekable binary stream, to an open archive.
- `sixpack.unpack.unpack_file(archive_file, directory=None)` extracts every
  file into `directory`, or into the current directory if none is given. It
  returns the paths of the files extracted in full. Existing files are
  skipped, not overwritten. Files whose chunks fail their checksum or fail
  to decompress are abandoned.

Both operations print progress bars to standard output.

## Command-line tools

Compress a file into a new archive. Level 2 is the default:

```
6pack [options] input-file output-file
```

Options:

- `-1`, `--fastest`: compress faster
- `-2`: compress better
- `-mem`: instead of writing an archive, measure in-memory compression and
  decompression speed for the input file (no output file needed)
- `-v`, `--version`: show the program version
- `-h`, `--help`: show usage

Extract an archive into the current directory:

```
6unpack archive-file
```

`6unpack` also takes `-h`/`--help` and `-v`/`--version`. Both commands exit
with status 1 on error.

## Archive format

An archive starts with the 8-byte magic sequence, followed by chunks. Each
chunk has a 16-byte little-endian header: id (16 bits), options (16 bits),
then size, checksum and extra (32 bits each). The payload follows the
header.

- A file-entry chunk (id 1) holds the original size, the name length and
  the NUL-terminated name.
- Data chunks (id 17) follow it. Each is either stored (options 0) or
  compressed (options 1). `6pack` stores blocks shorter than 32 bytes as
  they are. `extra` holds the uncompressed size.

Every payload carries an Adler-32 checksum. `6pack` reads input in blocks of
128 KiB.

## Limits

- One `6pack` run writes one file per archive. The format allows more, and
  `6unpack` extracts every entry it finds, but the package has no command
  for adding files to an existing archive.
- File sizes are recorded in 32 bits.
- Directory names are not stored, only the file name.

## Running the tests

```
pip install .[test]
pytest
```