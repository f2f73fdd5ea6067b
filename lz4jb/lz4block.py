"""
LZ4 block format (https://github.com/lz4/lz4/blob/dev/doc/lz4_Block_format.md).

A compressed block is a list of sequences:
    token | [literal length bytes] | literals | offset u16 | [match length bytes]
token: high nibble = literal length, low nibble = match length - 4; a nibble
of 15 is continued by extra bytes that are added until one is below 255.
The last sequence carries literals only. Matches never start within the
last 12 bytes of a block and the last 5 bytes are always literals.

Pure Python greedy encoder and safe decoder; output is readable by any
conforming LZ4 block decoder, including lz4-java.
"""

from __future__ import annotations

from .errors import DecompressionError

MIN_MATCH = 4
LAST_LITERALS = 5
MF_LIMIT = 12
MAX_OFFSET = 0xFFFF


def _write_length(out: bytearray, n: int) -> None:
    while n >= 255:
        out.append(255)
        n -= 255
    out.append(n)


def _emit(out: bytearray, literals, offset: int = 0, match_len: int = 0) -> None:
    lit_len = len(literals)
    ml = match_len - MIN_MATCH if match_len else 0
    out.append((min(lit_len, 15) << 4) | min(ml, 15))
    if lit_len >= 15:
        _write_length(out, lit_len - 15)
    out += literals
    if match_len:
        out.append(offset & 0xFF)
        out.append(offset >> 8)
        if ml >= 15:
            _write_length(out, ml - 15)


def compress(data: bytes) -> bytes:
    src = bytes(data)
    n = len(src)
    out = bytearray()
    table = {}
    anchor = 0
    i = 0
    match_end_limit = n - LAST_LITERALS
    while i + MF_LIMIT <= n:
        seq = src[i:i + MIN_MATCH]
        cand = table.get(seq)
        table[seq] = i
        if cand is None or i - cand > MAX_OFFSET:
            i += 1
            continue
        m = MIN_MATCH
        while i + m < match_end_limit and src[cand + m] == src[i + m]:
            m += 1
        _emit(out, src[anchor:i], i - cand, m)
        i += m
        anchor = i
    _emit(out, src[anchor:])
    return bytes(out)


def _read_length(src: bytes, ip: int, base: int):
    n = len(src)
    length = base
    while True:
        if ip >= n:
            raise DecompressionError("lz4 block truncated in length field")
        b = src[ip]
        ip += 1
        length += b
        if b != 255:
            return length, ip


def decompress(data: bytes, original_len: int) -> bytes:
    src = bytes(data)
    n = len(src)
    dst = bytearray()
    ip = 0
    while True:
        if ip >= n:
            raise DecompressionError("lz4 block ended before the last literals")
        token = src[ip]
        ip += 1
        lit_len = token >> 4
        if lit_len == 15:
            lit_len, ip = _read_length(src, ip, lit_len)
        if ip + lit_len > n:
            raise DecompressionError("lz4 literals run past the end of the block")
        if len(dst) + lit_len > original_len:
            raise DecompressionError(f"lz4 literals expand past {original_len} bytes")
        dst += src[ip:ip + lit_len]
        ip += lit_len
        if ip == n:
            break
        if ip + 2 > n:
            raise DecompressionError("lz4 block truncated in match offset")
        offset = src[ip] | (src[ip + 1] << 8)
        ip += 2
        if offset == 0 or offset > len(dst):
            raise DecompressionError(f"invalid lz4 match offset {offset}")
        match_len = token & 0x0F
        if match_len == 15:
            match_len, ip = _read_length(src, ip, match_len)
        match_len += MIN_MATCH
        if len(dst) + match_len > original_len:
            raise DecompressionError(f"lz4 match expands past {original_len} bytes")
        start = len(dst) - offset
        if offset >= match_len:
            dst += dst[start:start + match_len]
        else:
            # Overlapping copy repeats the last `offset` bytes.
            pattern = bytes(dst[start:])
            dst += (pattern * (match_len // offset + 1))[:match_len]
    if len(dst) != original_len:
        raise DecompressionError(
            f"lz4 block expanded to {len(dst)} bytes, expected {original_len}"
        )
    return bytes(dst)
