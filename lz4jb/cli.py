from __future__ import annotations

import argparse
import os
import shutil
import sys
from typing import BinaryIO, List, Optional

from lz4jb import __version__
from lz4jb.codec import Codec
from lz4jb.constants import (
    BACKEND_LZ4,
    BACKEND_PURE,
    DEFAULT_BACKEND,
    DEFAULT_BLOCK_SIZE,
    DEFAULT_SUFFIX,
    MAX_BLOCK_SIZE,
    MIN_BLOCK_SIZE,
)
from lz4jb.errors import ConfigurationError, Lz4jbError
from lz4jb.header import compression_level
from lz4jb.input import BlockInput
from lz4jb.output import BlockOutput

STDIO = "-"

MODE_COMPRESS = "compress"
MODE_DECOMPRESS = "decompress"
MODE_LIST = "list"
MODE_TEST = "test"


def _label(path: str) -> str:
    return "<stdio>" if path == STDIO else path


def _output_path(path: str, mode: str, suffix: str, to_stdout: bool) -> Optional[str]:
    """Derive the output path for one input; None for modes that write nothing.

    Raises:
        ValueError: when decompressing a file that lacks ``suffix``.
    """
    if mode not in (MODE_COMPRESS, MODE_DECOMPRESS):
        return None
    if to_stdout or path == STDIO:
        return STDIO
    if mode == MODE_COMPRESS:
        return path + suffix
    if not suffix or not path.endswith(suffix) or path == suffix:
        raise ValueError(f"could not guess the output filename for {path} (expected suffix {suffix})")
    return path[: -len(suffix)]


def _safe_copymode(src: str, dst: str) -> None:
    """Best-effort permission copy that never raises."""
    try:
        shutil.copymode(src, dst)
    except OSError as exc:
        print(f"Warning: failed to set mode on {dst}: {exc}", file=sys.stderr)


def _safe_remove(path: str) -> None:
    try:
        os.remove(path)
    except OSError as exc:
        print(f"Warning: failed to remove {path}: {exc}", file=sys.stderr)


def run_compress(src: BinaryIO, dst: BinaryIO, *, block_size: int, codec: Codec) -> BlockOutput:
    out = BlockOutput(dst, block_size, codec=codec)
    shutil.copyfileobj(src, out)
    out.finish()
    return out


def run_decompress(src: BinaryIO, dst: BinaryIO, *, codec: Codec) -> BlockInput:
    reader = BlockInput(src, codec=codec)
    shutil.copyfileobj(reader, dst)
    dst.flush()
    return reader


def run_test(src: BinaryIO, *, codec: Codec) -> BlockInput:
    reader = BlockInput(src, codec=codec)
    while reader.read(1 << 16):
        pass
    return reader


def cmd_list(paths: List[str], *, codec: Codec) -> bool:
    """Print compressed size, decompressed size and ratio for each container."""
    print("         compressed        decompressed  ratio filename")
    ok = True
    for path in paths:
        try:
            src = sys.stdin.buffer if path == STDIO else open(path, "rb")
            try:
                reader = run_test(src, codec=codec)
            finally:
                if path != STDIO:
                    src.close()
        except (Lz4jbError, OSError) as exc:
            print(f"Error: could not list from {_label(path)}: {exc}", file=sys.stderr)
            ok = False
            continue
        compressed, decompressed = reader.bytes_in, reader.bytes_out
        ratio = 100.0 * compressed / decompressed if decompressed else 0.0
        print(f"{compressed:>19} {decompressed:>19} {ratio:>5.1f}% {_label(path)}")
    return ok


def cmd_test(paths: List[str], *, codec: Codec) -> bool:
    """Decode each container and discard the output.

    Prints:
        "<path>: OK" on success, "<path>: FAIL (<reason>)" otherwise.
    """
    ok = True
    for path in paths:
        try:
            src = sys.stdin.buffer if path == STDIO else open(path, "rb")
            try:
                run_test(src, codec=codec)
            finally:
                if path != STDIO:
                    src.close()
            print(f"{_label(path)}: OK")
        except (Lz4jbError, OSError) as exc:
            print(f"{_label(path)}: FAIL ({exc})")
            ok = False
    return ok


def _convert_one(path: str, out_path: str, mode: str, *, block_size: int, codec: Codec, keep: bool, force: bool) -> None:
    if out_path == STDIO and mode == MODE_COMPRESS and not force and sys.stdout.isatty():
        raise ValueError("stdout is a terminal. Use -f to force compression.")
    src = sys.stdin.buffer if path == STDIO else open(path, "rb")
    created = False
    try:
        if out_path == STDIO:
            dst = sys.stdout.buffer
        else:
            dst = open(out_path, "wb" if force else "xb")
            created = True
        try:
            if mode == MODE_COMPRESS:
                run_compress(src, dst, block_size=block_size, codec=codec)
            else:
                run_decompress(src, dst, codec=codec)
        except BaseException:
            if created:
                dst.close()
                _safe_remove(out_path)
                created = False
            raise
        finally:
            if created:
                dst.close()
    finally:
        if path != STDIO:
            src.close()
    if path != STDIO and out_path != STDIO:
        _safe_copymode(path, out_path)
        if not keep:
            os.remove(path)


def cmd_convert(
    paths: List[str],
    mode: str,
    *,
    block_size: int = DEFAULT_BLOCK_SIZE,
    codec: Optional[Codec] = None,
    suffix: str = DEFAULT_SUFFIX,
    to_stdout: bool = False,
    keep: bool = False,
    force: bool = False,
) -> bool:
    """Compress or decompress each path (``-`` for stdin).

    Args:
        paths: Input files.
        mode: MODE_COMPRESS or MODE_DECOMPRESS.
        block_size: Block size used when compressing.
        codec: Compression backend.
        suffix: Suffix appended on compression and stripped on decompression.
        to_stdout: Write everything to stdout and keep the inputs.
        keep: Keep the input files.
        force: Overwrite existing outputs, allow compressing to a terminal.
    """
    codec = codec or Codec()
    ok = True
    for path in paths:
        try:
            out_path = _output_path(path, mode, suffix, to_stdout)
            assert out_path is not None
            _convert_one(path, out_path, mode, block_size=block_size, codec=codec, keep=keep or to_stdout, force=force)
        except (Lz4jbError, OSError, ValueError) as exc:
            print(f"Error: could not {mode} from {_label(path)}: {exc}", file=sys.stderr)
            ok = False
    return ok


def _block_size(value: str) -> int:
    try:
        size = int(value)
        compression_level(size)
    except (ValueError, ConfigurationError):
        raise argparse.ArgumentTypeError(
            f"block size must be an integer between {MIN_BLOCK_SIZE} and {MAX_BLOCK_SIZE}"
        )
    return size


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="lz4jb",
        description="Compress or decompress lz4-java LZ4Block containers",
        epilog="This is not the standard LZ4 frame format; use it for data written by lz4-java.",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    modes = ap.add_mutually_exclusive_group()
    modes.add_argument("-z", "--compress", dest="mode", action="store_const", const=MODE_COMPRESS,
                       help="Compress. This is the default operation mode.")
    modes.add_argument("-d", "--decompress", "--uncompress", dest="mode", action="store_const",
                       const=MODE_DECOMPRESS, help="Decompress.")
    modes.add_argument("-l", "--list", dest="mode", action="store_const", const=MODE_LIST,
                       help="List compressed and decompressed sizes of compressed files.")
    modes.add_argument("-t", "--test", dest="mode", action="store_const", const=MODE_TEST,
                       help="Test the integrity of compressed files.")
    ap.add_argument("-c", "--stdout", action="store_true",
                    help="Write output on standard output; keep original files unchanged.")
    ap.add_argument("-k", "--keep", action="store_true",
                    help="Keep (don't delete) input files during compression or decompression.")
    ap.add_argument("-f", "--force", action="store_true", help="Force the compression or decompression.")
    ap.add_argument("-S", "--suffix", default=DEFAULT_SUFFIX,
                    help=f"Append this suffix instead of the default {DEFAULT_SUFFIX} for compression.")
    ap.add_argument("-b", "--blocksize", type=_block_size, default=DEFAULT_BLOCK_SIZE,
                    help=f"Block size for compression in bytes (between {MIN_BLOCK_SIZE} and {MAX_BLOCK_SIZE}).")
    ap.add_argument("--backend", choices=[BACKEND_LZ4, BACKEND_PURE], default=DEFAULT_BACKEND,
                    help=f"LZ4 implementation (default {DEFAULT_BACKEND}).")
    ap.add_argument("files", nargs="*", help="Input files (default: standard input).")
    args = ap.parse_args(argv)

    mode = args.mode or MODE_COMPRESS
    if mode in (MODE_LIST, MODE_TEST) and (args.stdout or args.keep or args.force or args.suffix != DEFAULT_SUFFIX):
        ap.error("--stdout, --keep, --force and --suffix do not apply to --list or --test")
    if mode != MODE_COMPRESS and args.blocksize != DEFAULT_BLOCK_SIZE:
        ap.error("--blocksize only applies to compression")

    files = args.files or [STDIO]
    codec = Codec(args.backend)
    if mode == MODE_LIST:
        ok = cmd_list(files, codec=codec)
    elif mode == MODE_TEST:
        ok = cmd_test(files, codec=codec)
    else:
        ok = cmd_convert(
            files,
            mode,
            block_size=args.blocksize,
            codec=codec,
            suffix=args.suffix,
            to_stdout=args.stdout,
            keep=args.keep,
            force=args.force,
        )
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
