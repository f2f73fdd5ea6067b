from __future__ import annotations

from typing import Callable, Dict

import xxhash

from .constants import BACKEND_LZ4, BACKEND_PURE, CHECKSUM_MASK, DEFAULT_SEED
from .errors import ConfigurationError
from .xxh32 import xxh32

ChecksumFunc = Callable[[bytes], int]


def default_checksum(data: bytes) -> int:
    # lz4-java's StreamingXXHash32 wrapper drops the top nibble of the digest.
    return xxhash.xxh32(data, seed=DEFAULT_SEED).intdigest() & CHECKSUM_MASK


def pure_checksum(data: bytes) -> int:
    return xxh32(data, DEFAULT_SEED) & CHECKSUM_MASK


CHECKSUMS: Dict[str, ChecksumFunc] = {
    BACKEND_LZ4: default_checksum,
    BACKEND_PURE: pure_checksum,
}


def checksum_for(backend: str) -> ChecksumFunc:
    """Return the block checksum paired with a compression backend name."""
    try:
        return CHECKSUMS[backend]
    except KeyError:
        raise ConfigurationError(f"unsupported backend: {backend!r}") from None
