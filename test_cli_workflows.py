from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path
from typing import List, Optional

from lz4jb import decompress
from lz4jb.constants import MAGIC

REPO_ROOT = Path(__file__).resolve().parent


def _sample_bytes() -> bytes:
    return b"hello world\n" * 5000 + os.urandom(3000)


class CliWorkflowTests(unittest.TestCase):
    def run_cli(self, args: List[str], *, cwd: Optional[Path] = None, expect: Optional[int] = 0, stdin: bytes = b"", script: Optional[Path] = None):
        cmd = [sys.executable, str(script)] if script else [sys.executable, "-m", "lz4jb.cli"]
        cmd += args
        env = os.environ.copy()
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(REPO_ROOT) if not existing else f"{REPO_ROOT}{os.pathsep}{existing}"
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            input=stdin,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\n"
                f"STDOUT:\n{proc.stdout.decode(errors='replace')}\nSTDERR:\n{proc.stderr.decode(errors='replace')}"
            )
        return proc

    def make_workspace(self) -> Path:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        return Path(tmp.name)

    def test_compress_decompress_roundtrip(self):
        root = self.make_workspace()
        src = root / "data.bin"
        payload = _sample_bytes()
        src.write_bytes(payload)
        os.chmod(src, 0o640)

        self.run_cli([str(src)])
        packed = root / "data.bin.lz4"
        self.assertTrue(packed.exists())
        self.assertFalse(src.exists())
        self.assertTrue(packed.read_bytes().startswith(MAGIC))
        self.assertEqual(decompress(packed.read_bytes()), payload)
        if os.name == "posix":
            self.assertEqual(packed.stat().st_mode & 0o777, 0o640)

        self.run_cli(["-d", str(packed)])
        self.assertFalse(packed.exists())
        self.assertEqual(src.read_bytes(), payload)

    def test_keep_and_blocksize(self):
        root = self.make_workspace()
        src = root / "data.bin"
        payload = _sample_bytes()
        src.write_bytes(payload)

        self.run_cli(["-k", "-b", "1024", str(src)])
        self.assertTrue(src.exists())
        packed = (root / "data.bin.lz4").read_bytes()
        self.assertGreater(packed.count(MAGIC), len(payload) // 1024)
        self.assertEqual(decompress(packed), payload)

    def test_stdout_and_stdin(self):
        payload = _sample_bytes()
        proc = self.run_cli(["-c"], stdin=payload)
        self.assertEqual(decompress(proc.stdout), payload)

        proc = self.run_cli(["-d", "-c"], stdin=proc.stdout)
        self.assertEqual(proc.stdout, payload)

    def test_custom_suffix(self):
        root = self.make_workspace()
        src = root / "region.mca"
        src.write_bytes(b"chunk" * 100)
        self.run_cli(["-S", ".lz4b", str(src)])
        self.assertTrue((root / "region.mca.lz4b").exists())
        self.run_cli(["-d", "-S", ".lz4b", str(root / "region.mca.lz4b")])
        self.assertEqual(src.read_bytes(), b"chunk" * 100)

    def test_refuses_to_overwrite(self):
        root = self.make_workspace()
        src = root / "data.bin"
        src.write_bytes(b"abc" * 100)
        (root / "data.bin.lz4").write_bytes(b"existing")

        proc = self.run_cli([str(src)], expect=1)
        self.assertIn(b"Error:", proc.stderr)
        self.assertTrue(src.exists())
        self.assertEqual((root / "data.bin.lz4").read_bytes(), b"existing")

        self.run_cli(["-f", str(src)])
        self.assertEqual(decompress((root / "data.bin.lz4").read_bytes()), b"abc" * 100)

    def test_decompress_requires_suffix(self):
        root = self.make_workspace()
        src = root / "data.bin"
        src.write_bytes(b"abc")
        proc = self.run_cli(["-d", str(src)], expect=1)
        self.assertIn(b"could not guess the output filename", proc.stderr)

    def test_list_and_test(self):
        root = self.make_workspace()
        src = root / "data.bin"
        payload = _sample_bytes()
        src.write_bytes(payload)
        self.run_cli(["-k", str(src)])
        packed = root / "data.bin.lz4"

        proc = self.run_cli(["-l", str(packed)])
        out = proc.stdout.decode()
        self.assertIn("compressed", out)
        line = out.splitlines()[1].split()
        self.assertEqual(int(line[0]), packed.stat().st_size)
        self.assertEqual(int(line[1]), len(payload))
        self.assertEqual(line[-1], str(packed))

        proc = self.run_cli(["-t", str(packed)])
        self.assertIn(b"OK", proc.stdout)

    def test_detects_corruption(self):
        root = self.make_workspace()
        src = root / "data.bin"
        src.write_bytes(_sample_bytes())
        self.run_cli(["-k", str(src)])
        packed = root / "data.bin.lz4"

        proc = self.run_cli(["block", str(packed), "--index", "0", "--within", "3"], script=REPO_ROOT / "scripts" / "corrupt.py")
        self.assertIn(b"Flipped 1 byte in block 0", proc.stdout)

        proc = self.run_cli(["-t", str(packed)], expect=1)
        self.assertIn(b"FAIL", proc.stdout)

        proc = self.run_cli(["-d", "-c", str(packed)], expect=1)
        self.assertIn(b"Error: could not decompress", proc.stderr)
        self.assertTrue(packed.exists())

    def test_pure_backend_interop(self):
        root = self.make_workspace()
        src = root / "data.bin"
        payload = b"pure python lz4 " * 2000
        src.write_bytes(payload)
        self.run_cli(["--backend", "pure", "-k", str(src)])
        self.assertEqual(decompress((root / "data.bin.lz4").read_bytes()), payload)
        proc = self.run_cli(["-d", "-c", "--backend", "pure", str(root / "data.bin.lz4")])
        self.assertEqual(proc.stdout, payload)

    def test_usage_errors(self):
        self.run_cli(["-b", "63"], expect=2)
        self.run_cli(["-b", "33554433"], expect=2)
        self.run_cli(["-d", "-l"], expect=2)
        self.run_cli(["-t", "-k"], expect=2)
        self.run_cli(["-d", "-b", "1024"], expect=2)


if __name__ == "__main__":
    unittest.main()
