from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from .constants import (
    COMPRESSION_LEVEL_BASE,
    HEADER_LENGTH,
    LEVEL_MASK,
    MAGIC,
    MAGIC_LENGTH,
    MAX_BLOCK_SIZE,
    MAX_COMPRESSED_LEN,
    METHOD_LZ4,
    METHOD_MASK,
    METHOD_RAW,
    MIN_BLOCK_SIZE,
)
from .errors import ConfigurationError, FormatError, TruncationError


# Block header (13 bytes, follows the 8-byte magic)
# struct: <B I I I
#  - token u8 (method | level)
#  - compressed_len u32
#  - original_len u32
#  - checksum u32 (over the original bytes)
_BLOCK_HDR_STRUCT = struct.Struct("<BIII")


def compression_level(block_size: int) -> int:
    """Map a block size to the size class stored in the token's low nibble.

    Level n holds blocks of up to ``1 << (n + 10)`` bytes; every size below
    1 KiB shares level 0.
    """
    if isinstance(block_size, bool) or not isinstance(block_size, int):
        raise ConfigurationError(f"block size must be an integer, got {block_size!r}")
    if block_size < MIN_BLOCK_SIZE or block_size > MAX_BLOCK_SIZE:
        raise ConfigurationError(
            f"wrong block size {block_size}. It should be between {MIN_BLOCK_SIZE} and {MAX_BLOCK_SIZE}"
        )
    return max(0, (block_size - 1).bit_length() - COMPRESSION_LEVEL_BASE)


def max_block_len(level: int) -> int:
    return 1 << (level + COMPRESSION_LEVEL_BASE)


@dataclass
class BlockHeader:
    method: int
    level: int
    compressed_len: int
    original_len: int
    checksum: int

    @property
    def token(self) -> int:
        return self.method | self.level

    @property
    def is_end_marker(self) -> bool:
        return self.original_len == 0

    def pack(self) -> bytes:
        return _BLOCK_HDR_STRUCT.pack(self.token, self.compressed_len, self.original_len, self.checksum)

    @classmethod
    def end_marker(cls, level: int = 0) -> "BlockHeader":
        return cls(method=METHOD_RAW, level=level, compressed_len=0, original_len=0, checksum=0)

    @classmethod
    def parse(cls, raw: bytes) -> "BlockHeader":
        if len(raw) != HEADER_LENGTH:
            raise TruncationError(f"block header needs {HEADER_LENGTH} bytes, got {len(raw)}")
        token, compressed_len, original_len, checksum = _BLOCK_HDR_STRUCT.unpack(raw)
        method = token & METHOD_MASK
        level = token & LEVEL_MASK
        if method not in (METHOD_RAW, METHOD_LZ4):
            raise FormatError(f"unknown compression method in token 0x{token:02x}")
        if original_len > max_block_len(level):
            raise FormatError(
                f"block declares {original_len} bytes, above the {max_block_len(level)} byte limit of level {level}"
            )
        if compressed_len > MAX_COMPRESSED_LEN:
            raise FormatError(f"compressed length {compressed_len} out of range")
        if (compressed_len == 0) != (original_len == 0):
            raise FormatError(
                f"inconsistent block lengths: compressed={compressed_len} original={original_len}"
            )
        if method == METHOD_RAW and compressed_len != original_len:
            raise FormatError(
                f"raw block lengths differ: compressed={compressed_len} original={original_len}"
            )
        if method == METHOD_LZ4 and compressed_len > original_len:
            raise FormatError(
                f"lz4 block does not shrink: compressed={compressed_len} original={original_len}"
            )
        if original_len == 0 and checksum != 0:
            raise FormatError("end-of-stream marker carries a non-zero checksum")
        return cls(
            method=method,
            level=level,
            compressed_len=compressed_len,
            original_len=original_len,
            checksum=checksum,
        )


def write_block(f: BinaryIO, header: BlockHeader, payload: bytes = b"") -> int:
    """Write magic, header and payload; returns the number of bytes written."""
    frame = MAGIC + header.pack()
    write_all(f, frame)
    if payload:
        write_all(f, payload)
    return len(frame) + len(payload)


def write_all(f: BinaryIO, data: bytes) -> None:
    """Write every byte of data, retrying short writes from raw sinks."""
    view = memoryview(data).cast("B")
    chunk = data
    while view:
        n = f.write(chunk)
        if n is None:
            # None from a raw stream means nothing was written yet (would block);
            # plain write-everything sinks return None after a full write.
            if not isinstance(f, io.RawIOBase):
                return
            n = 0
        view = view[n:]
        chunk = view


def read_exact(f: BinaryIO, n: int) -> bytes:
    """Read up to n bytes, retrying short reads; fewer bytes only at EOF."""
    chunks = []
    remaining = n
    while remaining > 0:
        b = f.read(remaining)
        if not b:
            break
        chunks.append(b)
        remaining -= len(b)
    return b"".join(chunks)


@dataclass
class BlockLocation:
    offset: int
    payload_offset: int
    header: BlockHeader


def scan_blocks(f: BinaryIO, *, stop_on_empty_block: bool = True) -> Iterator[BlockLocation]:
    """Walk a container block by block without decoding payloads.

    Offsets are relative to the position of ``f`` when the scan starts.
    """
    pos = 0
    while True:
        magic = read_exact(f, MAGIC_LENGTH)
        if not magic and pos > 0:
            return
        if magic != MAGIC:
            raise FormatError(f"bad block magic at offset {pos}")
        raw = read_exact(f, HEADER_LENGTH)
        header = BlockHeader.parse(raw)
        payload_offset = pos + MAGIC_LENGTH + HEADER_LENGTH
        yield BlockLocation(offset=pos, payload_offset=payload_offset, header=header)
        if header.is_end_marker and stop_on_empty_block:
            return
        payload = read_exact(f, header.compressed_len)
        if len(payload) != header.compressed_len:
            raise TruncationError(
                f"block at offset {pos} truncated: {len(payload)} of {header.compressed_len} payload bytes"
            )
        pos = payload_offset + header.compressed_len
