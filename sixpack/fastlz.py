"""Byte-aligned LZ77 block compression in the FastLZ format.

Two levels exist. Level 1 is the faster one and is meant for short blocks.
Level 2 also encodes long match lengths and far distances, and compresses
better. The level is stored in the top three bits of the first byte, so
:func:`decompress` handles blocks of either level.
"""

from __future__ import annotations

VERSION = "0.5.0"
VERSION_INFO = (0, 5, 0)

_MAX_COPY = 32
_MAX_LEN = 264
_MAX_L1_DISTANCE = 8192
_MAX_L2_DISTANCE = 8191
_MAX_FAR_DISTANCE = 65535 + _MAX_L2_DISTANCE - 1

_HASH_LOG = 13
_HASH_SIZE = 1 << _HASH_LOG
_HASH_MASK = _HASH_SIZE - 1
_NO_MATCH = 0x1000000

_AUTO_LEVEL_THRESHOLD = 65536


class FastLZError(ValueError):
    """Raised for an unsupported level or a corrupt or oversized block."""


def _hash(value: int) -> int:
    return ((value * 2654435769) >> (32 - _HASH_LOG)) & _HASH_MASK


def _read24(data: bytes, pos: int) -> int:
    return data[pos] | (data[pos + 1] << 8) | (data[pos + 2] << 16)


def _match_length(data: bytes, p: int, q: int, bound: int) -> int:
    """Count bytes compared from p and q until a mismatch or q reaches bound.

    A mismatching byte is counted too, as the block format expects.
    """
    count = 0
    while q < bound:
        count += 1
        if data[p] != data[q]:
            break
        p += 1
        q += 1
    return count


def _emit_literals(out: bytearray, data: bytes, start: int, end: int) -> None:
    for pos in range(start, end, _MAX_COPY):
        chunk = data[pos:min(pos + _MAX_COPY, end)]
        out.append(len(chunk) - 1)
        out += chunk


def _emit_match1(out: bytearray, length: int, distance: int) -> None:
    distance -= 1
    high = distance >> 8
    low = distance & 255
    while length > _MAX_LEN - 2:
        out += bytes(((7 << 5) + high, _MAX_LEN - 2 - 7 - 2, low))
        length -= _MAX_LEN - 2
    if length < 7:
        out += bytes(((length << 5) + high, low))
    else:
        out += bytes(((7 << 5) + high, length - 7, low))


def _emit_long_length(out: bytearray, length: int) -> None:
    length -= 7
    while length >= 255:
        out.append(255)
        length -= 255
    out.append(length)


def _emit_match2(out: bytearray, length: int, distance: int) -> None:
    distance -= 1
    if distance < _MAX_L2_DISTANCE:
        if length < 7:
            out += bytes(((length << 5) + (distance >> 8), distance & 255))
        else:
            out.append((7 << 5) + (distance >> 8))
            _emit_long_length(out, length)
            out.append(distance & 255)
    else:
        distance -= _MAX_L2_DISTANCE
        if length < 7:
            out.append((length << 5) + 31)
        else:
            out.append((7 << 5) + 31)
            _emit_long_length(out, length)
        out += bytes((255, distance >> 8, distance & 255))


def _compress(data: bytes, level: int) -> bytes:
    size = len(data)
    ip_bound = size - 4
    ip_limit = size - 12 - 1
    if level == 1:
        max_distance = _MAX_L1_DISTANCE
        emit_match = _emit_match1
    else:
        max_distance = _MAX_FAR_DISTANCE
        emit_match = _emit_match2

    htab = [0] * _HASH_SIZE
    out = bytearray()
    anchor = 0
    ip = 2

    while ip < ip_limit:
        while True:
            seq = _read24(data, ip)
            slot = _hash(seq)
            ref = htab[slot]
            htab[slot] = ip
            distance = ip - ref
            candidate = _read24(data, ref) if distance < max_distance else _NO_MATCH
            if ip >= ip_limit:
                break
            ip += 1
            if seq == candidate:
                break

        if ip >= ip_limit:
            break
        ip -= 1

        # a far match must be at least five bytes long
        if level == 2 and distance >= _MAX_L2_DISTANCE:
            if data[ref + 3] != data[ip + 3] or data[ref + 4] != data[ip + 4]:
                ip += 1
                continue

        if ip > anchor:
            _emit_literals(out, data, anchor, ip)

        length = _match_length(data, ref + 3, ip + 3, ip_bound)
        emit_match(out, length, distance)

        ip += length
        htab[_hash(_read24(data, ip))] = ip
        ip += 1
        htab[_hash(_read24(data, ip))] = ip
        ip += 1
        anchor = ip

    _emit_literals(out, data, anchor, size)

    if level == 2 and out:
        out[0] |= 1 << 5
    return bytes(out)


def compress_level(level: int, data: bytes) -> bytes:
    """Compress ``data`` as one block at level 1 or 2."""
    if level not in (1, 2):
        raise FastLZError(f"unsupported compression level {level}")
    return _compress(bytes(data), level)


def compress(data: bytes) -> bytes:
    """Compress ``data``, choosing level 1 for short input and level 2 otherwise."""
    level = 1 if len(data) < _AUTO_LEVEL_THRESHOLD else 2
    return compress_level(level, data)


def _copy_match(out: bytearray, ref: int, length: int) -> None:
    distance = len(out) - ref
    if length <= distance:
        out += out[ref:ref + length]
    else:
        pattern = bytes(out[ref:])
        repeats, rest = divmod(length, distance)
        out += pattern * repeats + pattern[:rest]


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise FastLZError(message)


def _copy_literals(out: bytearray, data: bytes, ip: int, count: int, maxout: int) -> int:
    _check(len(out) + count <= maxout, "output exceeds the size limit")
    _check(ip + count <= len(data), "literal run runs past the end of the block")
    out += data[ip:ip + count]
    return ip + count


def _decompress1(data: bytes, maxout: int) -> bytes:
    size = len(data)
    ip_bound = size - 2
    out = bytearray()
    ctrl = data[0] & 31
    ip = 1

    while True:
        if ctrl >= 32:
            length = (ctrl >> 5) - 1
            ofs = (ctrl & 31) << 8
            ref = len(out) - ofs - 1
            if length == 7 - 1:
                _check(ip <= ip_bound, "match length runs past the end of the block")
                length += data[ip]
                ip += 1
            _check(ip < size, "match offset runs past the end of the block")
            ref -= data[ip]
            ip += 1
            length += 3
            _check(len(out) + length <= maxout, "output exceeds the size limit")
            _check(ref >= 0, "match refers before the start of the output")
            _copy_match(out, ref, length)
        else:
            ip = _copy_literals(out, data, ip, ctrl + 1, maxout)

        if ip > ip_bound:
            break
        ctrl = data[ip]
        ip += 1

    return bytes(out)


def _decompress2(data: bytes, maxout: int) -> bytes:
    size = len(data)
    ip_bound = size - 2
    out = bytearray()
    ctrl = data[0] & 31
    ip = 1

    while True:
        if ctrl >= 32:
            length = (ctrl >> 5) - 1
            ofs = (ctrl & 31) << 8
            ref = len(out) - ofs - 1
            if length == 7 - 1:
                while True:
                    _check(ip <= ip_bound, "match length runs past the end of the block")
                    code = data[ip]
                    ip += 1
                    length += code
                    if code != 255:
                        break
            _check(ip < size, "match offset runs past the end of the block")
            code = data[ip]
            ip += 1
            ref -= code
            length += 3

            # match from 16-bit distance
            if code == 255 and ofs == (31 << 8):
                _check(ip < ip_bound, "far distance runs past the end of the block")
                ofs = (data[ip] << 8) + data[ip + 1]
                ip += 2
                ref = len(out) - ofs - _MAX_L2_DISTANCE - 1

            _check(len(out) + length <= maxout, "output exceeds the size limit")
            _check(ref >= 0, "match refers before the start of the output")
            _copy_match(out, ref, length)
        else:
            ip = _copy_literals(out, data, ip, ctrl + 1, maxout)

        if ip >= size:
            break
        ctrl = data[ip]
        ip += 1

    return bytes(out)


def decompress(data: bytes, maxout: int) -> bytes:
    """Decompress one block of either level, producing at most ``maxout`` bytes.

    Raises :class:`FastLZError` if the block is corrupt, its level is unknown,
    or its contents would exceed ``maxout``.
    """
    data = bytes(data)
    if not data:
        return b""
    level = (data[0] >> 5) + 1
    if level == 1:
        return _decompress1(data, maxout)
    if level == 2:
        return _decompress2(data, maxout)
    raise FastLZError(f"unknown block level {level}")