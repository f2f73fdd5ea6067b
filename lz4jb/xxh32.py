"""
XXH32 (xxHash, 32-bit variant).
Pure Python implementation, usable without the native xxhash module.
"""

import struct

_PRIME1 = 0x9E3779B1
_PRIME2 = 0x85EBCA77
_PRIME3 = 0xC2B2AE3D
_PRIME4 = 0x27D4EB2F
_PRIME5 = 0x165667B1

_MASK = 0xFFFFFFFF

_STRIPE = struct.Struct("<4I")
_WORD = struct.Struct("<I")


def _rotl(x: int, r: int) -> int:
    return ((x << r) | (x >> (32 - r))) & _MASK


def _round(acc: int, lane: int) -> int:
    acc = (acc + lane * _PRIME2) & _MASK
    return _rotl(acc, 13) * _PRIME1 & _MASK


def xxh32(data: bytes, seed: int = 0) -> int:
    data = memoryview(data).cast("B")
    n = len(data)
    i = 0
    if n >= 16:
        v1 = (seed + _PRIME1 + _PRIME2) & _MASK
        v2 = (seed + _PRIME2) & _MASK
        v3 = seed & _MASK
        v4 = (seed - _PRIME1) & _MASK
        limit = n - 16
        while i <= limit:
            a, b, c, d = _STRIPE.unpack_from(data, i)
            v1 = _round(v1, a)
            v2 = _round(v2, b)
            v3 = _round(v3, c)
            v4 = _round(v4, d)
            i += 16
        h = (_rotl(v1, 1) + _rotl(v2, 7) + _rotl(v3, 12) + _rotl(v4, 18)) & _MASK
    else:
        h = (seed + _PRIME5) & _MASK
    h = (h + n) & _MASK

    while i + 4 <= n:
        (k,) = _WORD.unpack_from(data, i)
        h = (h + k * _PRIME3) & _MASK
        h = _rotl(h, 17) * _PRIME4 & _MASK
        i += 4
    while i < n:
        h = (h + data[i] * _PRIME5) & _MASK
        h = _rotl(h, 11) * _PRIME1 & _MASK
        i += 1

    h ^= h >> 15
    h = h * _PRIME2 & _MASK
    h ^= h >> 13
    h = h * _PRIME3 & _MASK
    h ^= h >> 16
    return h
