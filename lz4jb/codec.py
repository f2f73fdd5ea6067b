from __future__ import annotations

from typing import Union

import lz4.block

from . import lz4block
from .constants import BACKEND_LZ4, BACKEND_PURE, DEFAULT_BACKEND
from .errors import BackendError, ConfigurationError, DecompressionError


class Codec:
    """LZ4 block compression backend selected by name.

    Both backends speak the raw LZ4 block format (no size prefix) and are
    interchangeable on the wire: "lz4" calls into the native liblz4 binding,
    "pure" uses the pure Python encoder/decoder in lz4jb.lz4block.
    """

    BACKENDS = (BACKEND_LZ4, BACKEND_PURE)

    def __init__(self, backend: str = DEFAULT_BACKEND):
        if backend not in self.BACKENDS:
            raise ConfigurationError(f"unsupported backend: {backend!r}")
        self.backend = backend

    def __repr__(self) -> str:
        return f"Codec({self.backend!r})"

    def compress(self, data: bytes) -> bytes:
        if self.backend == BACKEND_PURE:
            return lz4block.compress(data)
        try:
            return lz4.block.compress(data, store_size=False)
        except lz4.block.LZ4BlockError as e:
            raise BackendError(f"lz4 compression failed: {e}") from e

    def decompress(self, data: bytes, original_len: int) -> bytes:
        if self.backend == BACKEND_PURE:
            return lz4block.decompress(data, original_len)
        try:
            out = lz4.block.decompress(data, uncompressed_size=original_len)
        except lz4.block.LZ4BlockError as e:
            raise DecompressionError(f"lz4 decompression failed: {e}") from e
        if len(out) != original_len:
            raise DecompressionError(
                f"lz4 block expanded to {len(out)} bytes, expected {original_len}"
            )
        return out


def resolve_codec(codec: Union[Codec, str, None]) -> Codec:
    if codec is None:
        return Codec()
    if isinstance(codec, str):
        return Codec(codec)
    return codec
