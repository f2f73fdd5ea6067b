"""
lz4jb: streaming codec for the lz4-java LZ4Block container

Reads and writes the block-framed format produced by lz4-java's
LZ4BlockOutputStream (also found in Minecraft region and save files).
This is NOT the standard LZ4 frame format.

- BlockOutput: frames written bytes into checksummed, optionally
  LZ4-compressed blocks and terminates the stream with an end marker,
  handing the borrowed sink back to the caller
- BlockInput: io.RawIOBase reader that validates and reassembles blocks
  into one continuous byte stream
- Interchangeable backends: native (lz4 + xxhash) or pure Python
- `lz4jb` command-line tool: compress, decompress, list, test
"""

from __future__ import annotations

import io

from .constants import DEFAULT_BLOCK_SIZE
from .errors import (
    Lz4jbError,
    ConfigurationError,
    FormatError,
    StreamFinishedError,
    TruncationError,
    CorruptionError,
    BackendError,
    DecompressionError,
)
from .codec import Codec
from .input import BlockInput
from .output import BlockOutput

__version__ = "0.2.0"

__all__ = [
    "BlockInput",
    "BlockOutput",
    "Codec",
    "compress",
    "decompress",
    "Lz4jbError",
    "ConfigurationError",
    "FormatError",
    "StreamFinishedError",
    "TruncationError",
    "CorruptionError",
    "BackendError",
    "DecompressionError",
]


def compress(data: bytes, block_size: int = DEFAULT_BLOCK_SIZE, *, codec=None) -> bytes:
    """Encode ``data`` as a complete container, end marker included."""
    out = BlockOutput(io.BytesIO(), block_size, codec=codec)
    out.write(data)
    return out.finish().getvalue()


def decompress(data: bytes, *, codec=None) -> bytes:
    return BlockInput(io.BytesIO(data), codec=codec).readall()
