# Magic tag written in front of every block header: "LZ4Block"
MAGIC = b"LZ4Block"
MAGIC_LENGTH = len(MAGIC)

# Header after the magic (13 bytes):
#  - token u8 (method << 4 | compression level)
#  - compressed_len u32
#  - original_len u32
#  - checksum u32
HEADER_LENGTH = 13

# Compression methods (token high nibble)
METHOD_RAW = 0x10
METHOD_LZ4 = 0x20
METHOD_MASK = 0xF0
LEVEL_MASK = 0x0F

# Block sizes: level n covers blocks of up to 1 << (n + 10) bytes
COMPRESSION_LEVEL_BASE = 10
MIN_BLOCK_SIZE = 64
MAX_BLOCK_SIZE = 1 << (COMPRESSION_LEVEL_BASE + 0x0F)  # 32 MiB
MAX_COMPRESSED_LEN = 0x7FFFFFFF  # lz4-java stores lengths in signed ints

DEFAULT_BLOCK_SIZE = 1 << 16  # 64 KiB

# Checksum: XXH32 seeded like lz4-java, top nibble dropped
DEFAULT_SEED = 0x9747B28C
CHECKSUM_MASK = 0x0FFFFFFF

# Compression backends
BACKEND_LZ4 = "lz4"
BACKEND_PURE = "pure"
DEFAULT_BACKEND = BACKEND_LZ4

DEFAULT_SUFFIX = ".lz4"
