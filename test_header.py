from __future__ import annotations

import io
import struct
import unittest

from lz4jb.constants import (
    COMPRESSION_LEVEL_BASE,
    MAGIC,
    MAX_BLOCK_SIZE,
    METHOD_LZ4,
    METHOD_RAW,
    MIN_BLOCK_SIZE,
)
from lz4jb.errors import ConfigurationError, FormatError, TruncationError
from lz4jb.header import BlockHeader, compression_level, max_block_len, scan_blocks

# "..." stored raw, as written by lz4-java with a 64..1024 byte block size
VALID_HEADER = bytes([0x10, 3, 0, 0, 0, 3, 0, 0, 0, 0x52, 0xE4, 0x77, 0x06])
VALID_DATA = MAGIC + VALID_HEADER + b"..."
VALID_EMPTY = MAGIC + bytes([0x10]) + b"\x00" * 12


class CompressionLevelTests(unittest.TestCase):
    def test_bounds(self):
        self.assertEqual(compression_level(MIN_BLOCK_SIZE), 0)
        self.assertEqual(compression_level(MAX_BLOCK_SIZE), 0x0F)
        for bad in (MIN_BLOCK_SIZE - 1, MAX_BLOCK_SIZE + 1, 0, -1):
            with self.assertRaises(ConfigurationError):
                compression_level(bad)

    def test_non_integer_rejected(self):
        for bad in (64.0, "64", None, True):
            with self.assertRaises(ConfigurationError):
                compression_level(bad)

    def test_powers_of_two(self):
        for i in range(0x0F):
            size = 1 << (COMPRESSION_LEVEL_BASE + i)
            self.assertEqual(compression_level(size), i)
            self.assertEqual(compression_level(size + 1), i + 1)
            self.assertEqual(max_block_len(i), size)

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            compression_level(63)


class BlockHeaderTests(unittest.TestCase):
    def test_parse_valid(self):
        h = BlockHeader.parse(VALID_HEADER)
        self.assertEqual(h.method, METHOD_RAW)
        self.assertEqual(h.level, 0)
        self.assertEqual(h.compressed_len, 3)
        self.assertEqual(h.original_len, 3)
        self.assertEqual(h.checksum, 0x0677E452)
        self.assertFalse(h.is_end_marker)

    def test_pack_roundtrip(self):
        self.assertEqual(BlockHeader.parse(VALID_HEADER).pack(), VALID_HEADER)

    def test_parse_end_marker(self):
        h = BlockHeader.parse(VALID_EMPTY[len(MAGIC):])
        self.assertTrue(h.is_end_marker)
        self.assertEqual(h.compressed_len, 0)
        self.assertEqual(h.checksum, 0)
        self.assertEqual(BlockHeader.end_marker(0).pack(), VALID_EMPTY[len(MAGIC):])
        self.assertEqual(BlockHeader.end_marker(6).pack()[0], 0x16)

    def test_parse_short(self):
        for n in range(len(VALID_HEADER)):
            with self.assertRaises(TruncationError):
                BlockHeader.parse(VALID_HEADER[:n])

    def test_raw_different_sizes(self):
        raw = bytearray(VALID_HEADER)
        raw[5] += 1  # original_len 3 -> 4
        with self.assertRaises(FormatError):
            BlockHeader.parse(bytes(raw))

    def test_lz4_different_sizes(self):
        raw = bytearray(VALID_HEADER)
        raw[0] = METHOD_LZ4
        raw[5] += 1
        h = BlockHeader.parse(bytes(raw))
        self.assertEqual(h.method, METHOD_LZ4)
        self.assertEqual(h.compressed_len, 3)
        self.assertEqual(h.original_len, 4)

    def test_lz4_must_not_grow(self):
        raw = struct.pack("<BIII", METHOD_LZ4, 10, 4, 1)
        with self.assertRaises(FormatError):
            BlockHeader.parse(raw)

    def test_invalid_methods(self):
        for token in range(0x100):
            if token & 0xF0 in (0x10, 0x20):
                continue
            raw = bytes([token]) + VALID_HEADER[1:]
            with self.assertRaises(FormatError):
                BlockHeader.parse(raw)

    def test_original_len_above_level(self):
        raw = struct.pack("<BIII", METHOD_LZ4, 100, 2048, 1)
        with self.assertRaises(FormatError):
            BlockHeader.parse(raw)
        raw = struct.pack("<BIII", METHOD_LZ4 | 0x0F, 100, MAX_BLOCK_SIZE + 1, 1)
        with self.assertRaises(FormatError):
            BlockHeader.parse(raw)
        h = BlockHeader.parse(struct.pack("<BIII", METHOD_LZ4 | 0x0F, 100, MAX_BLOCK_SIZE, 1))
        self.assertEqual(h.original_len, MAX_BLOCK_SIZE)

    def test_zero_length_mismatch(self):
        with self.assertRaises(FormatError):
            BlockHeader.parse(struct.pack("<BIII", METHOD_LZ4, 0, 5, 1))
        with self.assertRaises(FormatError):
            BlockHeader.parse(struct.pack("<BIII", METHOD_LZ4, 5, 0, 0))

    def test_marker_with_checksum(self):
        with self.assertRaises(FormatError):
            BlockHeader.parse(struct.pack("<BIII", METHOD_RAW, 0, 0, 0x1234))


class ScanBlocksTests(unittest.TestCase):
    def test_scan(self):
        stream = VALID_DATA + VALID_DATA + VALID_EMPTY + b"trailing"
        blocks = list(scan_blocks(io.BytesIO(stream)))
        self.assertEqual(len(blocks), 3)
        self.assertEqual([b.offset for b in blocks], [0, 24, 48])
        self.assertEqual(blocks[1].payload_offset, 24 + 21)
        self.assertTrue(blocks[2].header.is_end_marker)

    def test_scan_bad_magic(self):
        with self.assertRaises(FormatError):
            list(scan_blocks(io.BytesIO(b"LZ4Bl0ck" + VALID_HEADER)))

    def test_scan_truncated(self):
        with self.assertRaises(TruncationError):
            list(scan_blocks(io.BytesIO(VALID_DATA[:-1])))


if __name__ == "__main__":
    unittest.main()
