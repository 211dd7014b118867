from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Dict

from vpkarchive.reader import ArchiveReader
from vpkarchive.errors import CorruptEntry, IntegrityError


REPO_ROOT = Path(__file__).resolve().parent


def _build_fixture_tree(root: Path) -> Dict[str, bytes]:
    files: Dict[str, bytes] = {}
    (root / "materials" / "models").mkdir(parents=True)
    content = b"hello world\n" * 20
    (root / "readme.txt").write_bytes(content)
    files["readme.txt"] = content

    bin_data = os.urandom(2048)
    (root / "materials" / "models" / "crate.vtf").write_bytes(bin_data)
    files["materials/models/crate.vtf"] = bin_data

    (root / "materials" / "empty.vmt").write_text("")
    files["materials/empty.vmt"] = b""
    return files


def _compare_trees(src: Path, dst: Path):
    for root_src, dirs_src, files_src in os.walk(src):
        rel = os.path.relpath(root_src, src)
        root_dst = os.path.join(dst, rel) if rel != "." else dst
        assert os.path.isdir(root_dst), f"Missing directory: {root_dst}"
        for fname in files_src:
            with open(Path(root_src) / fname, "rb") as sf, open(Path(root_dst) / fname, "rb") as df:
                assert sf.read() == df.read(), f"File contents differ: {Path(root_dst) / fname}"


class CLIIntegrationTests(unittest.TestCase):
    def _run(self, cmd, *, expect: int | None = 0, cwd: Path | None = None):
        env = os.environ.copy()
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(REPO_ROOT) if not existing else f"{REPO_ROOT}{os.pathsep}{existing}"
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\nSTDOUT:\n{proc.stdout}\nSTDERR:\n{proc.stderr}"
            )
        return proc

    def run_cli(self, args, **kw):
        return self._run([sys.executable, "-m", "vpkarchive.cli"] + list(args), **kw)

    def run_corrupt(self, args, **kw):
        return self._run([sys.executable, str(REPO_ROOT / "scripts" / "corrupt.py")] + list(args), **kw)

    def make_workspace(self):
        tmp_src = tempfile.TemporaryDirectory()
        tmp_workspace = tempfile.TemporaryDirectory()
        self.addCleanup(tmp_src.cleanup)
        self.addCleanup(tmp_workspace.cleanup)
        src_root = Path(tmp_src.name)
        data = _build_fixture_tree(src_root)
        return src_root, Path(tmp_workspace.name), data

    def test_create_list_verify_extract(self):
        src_root, workspace, data = self.make_workspace()
        archive = workspace / "pak01_dir.vpk"
        create_proc = self.run_cli(["create", str(src_root), str(archive)])
        self.assertIn("Wrote 3 file(s)", create_proc.stdout)

        list_proc = self.run_cli(["list", str(archive)])
        listed = [line.split("\t")[1] for line in list_proc.stdout.splitlines()]
        self.assertEqual(sorted(listed), sorted(data))
        self.assertIn("2048\tmaterials/models/crate.vtf", list_proc.stdout)

        info_proc = self.run_cli(["info", str(archive)])
        self.assertIn("Version: 1", info_proc.stdout)
        self.assertIn("Files: 3", info_proc.stdout)

        verify_proc = self.run_cli(["verify", str(archive)])
        self.assertIn("OK", verify_proc.stdout)

        extract_dir = workspace / "extract"
        self.run_cli(["extract", str(archive), "-o", str(extract_dir), "--quiet"])
        _compare_trees(src_root, extract_dir)

    def test_extract_selected_paths(self):
        src_root, workspace, data = self.make_workspace()
        archive = workspace / "pak01_dir.vpk"
        self.run_cli(["create", str(src_root), str(archive), "--quiet"])
        out = workspace / "sel"
        self.run_cli(["extract", str(archive), "readme.txt", "-o", str(out)])
        self.assertEqual((out / "readme.txt").read_bytes(), data["readme.txt"])
        self.assertFalse((out / "materials").exists())

        proc = self.run_cli(["extract", str(archive), "missing.txt", "-o", str(out)], expect=2)
        self.assertIn("missing.txt", proc.stderr)

    def test_corrupted_file_fails_verify(self):
        src_root, workspace, data = self.make_workspace()
        archive = workspace / "pak01_dir.vpk"
        self.run_cli(["create", str(src_root), str(archive), "--quiet"])

        self.run_corrupt(["file", str(archive), "materials/models/crate.vtf", "--within", "100"])

        r = ArchiveReader(str(archive))
        r.load()
        with self.assertRaises(IntegrityError):
            r.get_file("materials/models/crate.vtf")
        self.assertEqual(r.get_file("readme.txt"), data["readme.txt"])

        verify_proc = self.run_cli(["verify", str(archive)], expect=1)
        self.assertIn("FAIL", verify_proc.stdout)
        self.assertIn("crate.vtf", verify_proc.stderr)

        self.run_cli(["extract", str(archive), "-o", str(workspace / "x")], expect=2)

    def test_by_offset_on_tree_terminator_breaks_load(self):
        src_root, workspace, _data = self.make_workspace()
        archive = workspace / "pak01_dir.vpk"
        self.run_cli(["create", str(src_root), str(archive), "--quiet"])

        # readme.txt is the first record: header(12) + "txt\0" + " \0" + "readme\0" + 16
        terminator = 12 + 4 + 2 + 7 + 16
        self.assertEqual(archive.read_bytes()[terminator:terminator + 2], b"\xff\xff")
        proc = self.run_corrupt(["by-offset", str(archive), "--offset", str(terminator)])
        self.assertIn("(tree)", proc.stdout)
        self.assertIn("0xff -> 0x00", proc.stdout)

        r = ArchiveReader(str(archive))
        with self.assertRaises(CorruptEntry):
            r.load()
        self.assertFalse(r.loaded)
        self.run_cli(["list", str(archive)], expect=2)

    def test_by_offset_reports_payload_owner(self):
        src_root, workspace, data = self.make_workspace()
        archive = workspace / "pak01_dir.vpk"
        self.run_cli(["create", str(src_root), str(archive), "--quiet"])
        r = ArchiveReader(str(archive))
        r.load()
        span = r.locate("readme.txt")[0]

        proc = self.run_corrupt(["by-offset", str(archive), "--offset", str(span.offset + 3), "--xor", "0x01"])
        self.assertIn("(readme.txt)", proc.stdout)
        with self.assertRaises(IntegrityError):
            r.get_file("readme.txt")
        self.assertEqual(r.get_file("materials/models/crate.vtf"), data["materials/models/crate.vtf"])

        self.run_corrupt(["by-offset", str(archive), "--offset", "0", "--xor", "0"], expect=2)
        self.run_corrupt(["by-offset", str(archive), "--offset", str(archive.stat().st_size)], expect=2)

    def test_random_payload_flip_fails_verify(self):
        src_root, workspace, _data = self.make_workspace()
        first = workspace / "a" / "pak01_dir.vpk"
        second = workspace / "b" / "pak01_dir.vpk"
        self.run_cli(["create", str(src_root), str(first), "--quiet"])
        self.run_cli(["create", str(src_root), str(second), "--quiet"])
        pristine = first.read_bytes()

        proc = self.run_corrupt(["random", str(first), "--seed", "7", "--count", "3"])
        self.assertIn("Flipped 3 byte(s)", proc.stdout)
        damaged = {line.split("\t")[0].split(": ", 1)[1] for line in proc.stdout.splitlines() if line.startswith("  damaged:")}
        self.assertTrue(damaged)
        self.assertTrue(damaged <= {"readme.txt", "materials/models/crate.vtf"})

        # header and tree are untouched, so the archive still loads
        r = ArchiveReader(str(first))
        r.load()
        self.assertEqual(first.read_bytes()[:12 + r.header.tree_length], pristine[:12 + r.header.tree_length])
        for path in damaged:
            with self.assertRaises(IntegrityError):
                r.get_file(path)

        verify_proc = self.run_cli(["verify", str(first)], expect=1)
        self.assertIn("FAIL", verify_proc.stdout)

        # same seed, same damage
        self.run_corrupt(["random", str(second), "--seed", "7", "--count", "3"])
        self.assertEqual(first.read_bytes(), second.read_bytes())

    def test_random_anywhere_reports_regions(self):
        src_root, workspace, _data = self.make_workspace()
        archive = workspace / "pak01_dir.vpk"
        self.run_cli(["create", str(src_root), str(archive), "--quiet"])
        pristine = archive.read_bytes()

        proc = self.run_corrupt(["random", str(archive), "--anywhere", "--seed", "3", "--count", "5"])
        self.assertIn("Flipped 5 byte(s)", proc.stdout)
        lines = [line for line in proc.stdout.splitlines() if line.startswith("  damaged:")]
        self.assertEqual(len(lines), 5)
        offsets = sorted(int(line.split("\t")[2]) for line in lines)
        after = archive.read_bytes()
        self.assertEqual([i for i in range(len(after)) if after[i] != pristine[i]], offsets)

    def test_not_a_vpk(self):
        _src_root, workspace, _data = self.make_workspace()
        bogus = workspace / "bogus_dir.vpk"
        bogus.write_bytes(b"not an archive at all")
        proc = self.run_cli(["list", str(bogus)], expect=2)
        self.assertIn("Error:", proc.stderr)
        proc = self.run_cli(["extract", str(bogus), "-o", str(workspace / "x")], expect=2)
        self.assertIn("Failed to load", proc.stderr)

    def test_create_from_missing_directory(self):
        _src_root, workspace, _data = self.make_workspace()
        self.run_cli(["create", str(workspace / "nope"), str(workspace / "o_dir.vpk")], expect=1)


if __name__ == "__main__":
    unittest.main()
