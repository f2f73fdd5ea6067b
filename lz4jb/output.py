from __future__ import annotations

from typing import Any, BinaryIO, Optional, Union

from .checksum import ChecksumFunc, checksum_for
from .codec import Codec, resolve_codec
from .constants import DEFAULT_BLOCK_SIZE, METHOD_LZ4, METHOD_RAW
from .errors import StreamFinishedError
from .header import BlockHeader, compression_level, write_block


class BlockOutput:
    """Streaming encoder that frames written bytes into LZ4Block containers.

    The sink is borrowed, never closed: ``finish()`` writes the end-of-stream
    marker, flushes the sink and hands it back so the caller can keep writing
    to it.

    Example::

        buf = io.BytesIO()
        out = BlockOutput(buf, 64)
        out.write(b"...")
        out.finish()
    """

    def __init__(
        self,
        sink: BinaryIO,
        block_size: int = DEFAULT_BLOCK_SIZE,
        *,
        codec: Union[Codec, str, None] = None,
        checksum: Optional[ChecksumFunc] = None,
    ):
        self.level = compression_level(block_size)
        self.block_size = block_size
        self.codec = resolve_codec(codec)
        self.checksum = checksum if checksum is not None else checksum_for(self.codec.backend)
        self.sink: Optional[BinaryIO] = sink
        self._buf = bytearray()
        self.finished = False
        # Stats
        self.blocks_written = 0
        self.bytes_in = 0
        self.bytes_out = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None and not self.finished:
            self.finish()

    def _check_open(self) -> BinaryIO:
        if self.finished or self.sink is None:
            raise StreamFinishedError("write to a finished LZ4Block stream")
        return self.sink

    def writable(self) -> bool:
        return not self.finished

    def write(self, data: Any) -> int:
        sink = self._check_open()
        view = memoryview(data).cast("B")
        n = len(view)
        pos = 0
        while pos < n:
            take = min(self.block_size - len(self._buf), n - pos)
            self._buf += view[pos:pos + take]
            pos += take
            if len(self._buf) == self.block_size:
                self._emit_block(sink)
        self.bytes_in += n
        return n

    def _emit_block(self, sink: BinaryIO) -> None:
        original = bytes(self._buf)
        self._buf.clear()
        compressed = self.codec.compress(original)
        if len(compressed) < len(original):
            method, payload = METHOD_LZ4, compressed
        else:
            method, payload = METHOD_RAW, original
        header = BlockHeader(
            method=method,
            level=self.level,
            compressed_len=len(payload),
            original_len=len(original),
            checksum=self.checksum(original),
        )
        self.bytes_out += write_block(sink, header, payload)
        self.blocks_written += 1

    def flush(self) -> None:
        sink = self._check_open()
        if self._buf:
            self._emit_block(sink)
        flush = getattr(sink, "flush", None)
        if flush is not None:
            flush()

    def finish(self) -> BinaryIO:
        """Flush pending bytes, write the end marker and return the sink."""
        sink = self._check_open()
        if self._buf:
            self._emit_block(sink)
        self.finished = True
        self.sink = None
        self.bytes_out += write_block(sink, BlockHeader.end_marker(self.level))
        flush = getattr(sink, "flush", None)
        if flush is not None:
            flush()
        return sink
