from __future__ import annotations

import argparse
import os
import random
import sys
from typing import Optional

from lz4jb.errors import Lz4jbError
from lz4jb.header import scan_blocks


def _flip_byte(path: str, offset: int, xor_val: int = 0xFF) -> None:
    if offset < 0:
        raise ValueError("Offset must be non-negative")
    with open(path, "r+b") as f:
        f.seek(offset)
        b = f.read(1)
        if not b:
            raise ValueError("Offset beyond end of file")
        f.seek(offset)
        f.write(bytes([b[0] ^ (xor_val & 0xFF)]))
        f.flush()
        os.fsync(f.fileno())


def cmd_by_offset(args: argparse.Namespace) -> None:
    _flip_byte(args.container, args.offset, xor_val=args.xor)
    print(f"Flipped 1 byte at offset {args.offset}")


def cmd_block(args: argparse.Namespace) -> None:
    with open(args.container, "rb") as f:
        blocks = [b for b in scan_blocks(f) if not b.header.is_end_marker]
    idx = args.index
    if idx < 0 or idx >= len(blocks):
        raise ValueError(f"Block index out of range (0..{len(blocks)-1})")
    loc = blocks[idx]
    if args.within < 0 or args.within >= loc.header.compressed_len:
        raise ValueError(f"--within must be within the payload (0..{loc.header.compressed_len-1})")
    off = loc.payload_offset + args.within
    _flip_byte(args.container, off, xor_val=args.xor)
    print(f"Flipped 1 byte in block {idx} payload at offset {off}")


def cmd_random(args: argparse.Namespace) -> None:
    rng = random.Random(args.seed)
    flips = 0
    size = os.path.getsize(args.container)
    with open(args.container, "r+b") as f:
        for _ in range(args.count):
            pos = rng.randrange(0, size)
            f.seek(pos)
            b = f.read(1)
            if not b:
                continue
            f.seek(pos)
            f.write(bytes([b[0] ^ (args.xor & 0xFF)]))
            flips += 1
        f.flush()
        os.fsync(f.fileno())
    print(f"Flipped {flips} byte(s) at random offsets")


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="lz4jb.corrupt", description="Corrupt LZ4Block containers for testing")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_off = sub.add_parser("by-offset", help="Flip one byte at an absolute offset")
    p_off.add_argument("container", help="Path to the compressed file")
    p_off.add_argument("--offset", type=int, required=True, help="Absolute byte offset")
    p_off.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_off.set_defaults(func=cmd_by_offset)

    p_blk = sub.add_parser("block", help="Flip a byte inside the payload of a data block")
    p_blk.add_argument("container", help="Path to the compressed file")
    p_blk.add_argument("--index", type=int, default=0, help="Data block index (0-based, default 0)")
    p_blk.add_argument("--within", type=int, default=0, help="Byte offset within the payload (default 0)")
    p_blk.add_argument("--xor", type=lambda x: int(x, 0), default=0x01, help="XOR mask to apply (default 0x01)")
    p_blk.set_defaults(func=cmd_block)

    p_rand = sub.add_parser("random", help="Flip N random bytes anywhere in the file")
    p_rand.add_argument("container", help="Path to the compressed file")
    p_rand.add_argument("--count", type=int, default=1, help="Number of random byte flips (default 1)")
    p_rand.add_argument("--seed", type=int, default=None, help="PRNG seed for reproducibility")
    p_rand.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_rand.set_defaults(func=cmd_random)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (Lz4jbError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
