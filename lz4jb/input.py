from __future__ import annotations

import io
from typing import BinaryIO, Optional, Union

from .checksum import ChecksumFunc, checksum_for
from .codec import Codec, resolve_codec
from .constants import HEADER_LENGTH, MAGIC, MAGIC_LENGTH, METHOD_RAW
from .errors import CorruptionError, FormatError, TruncationError
from .header import BlockHeader, read_exact

# Decoder states
UNINITIALIZED = "uninitialized"
IDLE = "idle"
DECODING = "decoding"
TERMINATED = "terminated"
FAILED = "failed"


class BlockInput(io.RawIOBase):
    """Forward-only reader that decodes an LZ4Block container.

    Blocks are pulled lazily from ``source`` as the caller consumes bytes;
    block boundaries are invisible to the caller. The magic is checked on the
    first read, not at construction. Closing the reader leaves ``source``
    open.

    With ``stop_on_empty_block`` (the default) the end-of-stream marker ends
    decoding and nothing after it is read. Otherwise empty blocks are skipped
    so concatenated containers decode as one stream, ending at EOF.
    """

    def __init__(
        self,
        source: BinaryIO,
        *,
        codec: Union[Codec, str, None] = None,
        checksum: Optional[ChecksumFunc] = None,
        stop_on_empty_block: bool = True,
    ):
        super().__init__()
        self.source = source
        self.codec = resolve_codec(codec)
        self.checksum = checksum if checksum is not None else checksum_for(self.codec.backend)
        self.stop_on_empty_block = stop_on_empty_block
        self.state = UNINITIALIZED
        self._error: Optional[BaseException] = None
        self._buf = b""
        self._pos = 0
        # Stats
        self.blocks_read = 0
        self.bytes_in = 0
        self.bytes_out = 0

    def readable(self) -> bool:
        return True

    def _read_source(self, n: int) -> bytes:
        data = read_exact(self.source, n)
        self.bytes_in += len(data)
        return data

    def _read_header(self) -> Optional[BlockHeader]:
        """Read the next header; None on a clean end between blocks."""
        first = self._read_source(1)
        if self.state == UNINITIALIZED or first == MAGIC[:1]:
            magic = first + self._read_source(MAGIC_LENGTH - 1)
            if len(magic) < MAGIC_LENGTH:
                if self.state == UNINITIALIZED:
                    raise FormatError(f"stream too short for the {MAGIC_LENGTH} byte magic")
                raise TruncationError("stream ended inside a block magic")
            if magic != MAGIC:
                raise FormatError("bad LZ4Block magic")
            self.state = IDLE
            raw = self._read_source(HEADER_LENGTH)
        elif not first:
            return None
        else:
            # Header right after the previous payload, without a repeated magic.
            raw = first + self._read_source(HEADER_LENGTH - 1)
        if len(raw) != HEADER_LENGTH:
            raise TruncationError(
                f"stream ended inside a block header ({len(raw)} of {HEADER_LENGTH} bytes)"
            )
        return BlockHeader.parse(raw)

    def _next_block(self) -> bool:
        """Decode the next non-empty block into the buffer; False at end of stream."""
        while True:
            header = self._read_header()
            if header is None:
                return False
            if not header.is_end_marker:
                break
            if self.stop_on_empty_block:
                return False
        self.state = DECODING
        payload = self._read_source(header.compressed_len)
        if len(payload) != header.compressed_len:
            raise TruncationError(
                f"stream ended inside a block payload ({len(payload)} of {header.compressed_len} bytes)"
            )
        if header.method == METHOD_RAW:
            data = payload
        else:
            data = self.codec.decompress(payload, header.original_len)
        if self.checksum(data) != header.checksum:
            raise CorruptionError(f"block {self.blocks_read} checksum mismatch")
        self._buf = data
        self._pos = 0
        self.blocks_read += 1
        self.state = IDLE
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        if self.state == FAILED:
            assert self._error is not None
            raise self._error
        if self.state == TERMINATED:
            return 0
        out = memoryview(b).cast("B")
        if not len(out):
            return 0
        if self._pos == len(self._buf):
            try:
                more = self._next_block()
            except Exception as e:
                self.state = FAILED
                self._error = e
                raise
            if not more:
                self.state = TERMINATED
                self._buf = b""
                self._pos = 0
                return 0
        n = min(len(out), len(self._buf) - self._pos)
        out[:n] = self._buf[self._pos:self._pos + n]
        self._pos += n
        self.bytes_out += n
        return n
