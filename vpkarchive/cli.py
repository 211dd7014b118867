from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from vpkarchive.constants import DIR_ARCHIVE_INDEX
from vpkarchive.errors import (
    VPKError,
    FormatError,
    IntegrityError,
    ExtractionError,
)
from vpkarchive.reader import ArchiveReader
from vpkarchive.writer import ArchiveWriter


def _load_reader(archive: str) -> ArchiveReader:
    r = ArchiveReader(archive)
    try:
        r.load()
    except FormatError as exc:
        print(f"Error: {archive} is not a readable VPK directory file: {exc}", file=sys.stderr)
        sys.exit(2)
    return r


def cmd_list(archive: str) -> bool:
    """List archive entries as ``size<TAB>path``."""
    r = _load_reader(archive)
    for path in sorted(r.files):
        print(f"{r.tree[path].size}\t{path}")
    return True


def cmd_info(archive: str) -> bool:
    r = _load_reader(archive)
    h = r.header
    print(f"Archive: {archive}")
    print(f"  Version: {h.version}")
    print(f"  Header length: {h.length}")
    print(f"  Tree length: {h.tree_length}")
    if h.footer_length is not None:
        print(f"  Footer length: {h.footer_length}")
    entries = list(r.tree.values())
    segments = sorted({e.archive_index for e in entries if e.archive_index != DIR_ARCHIVE_INDEX})
    print(f"  Files: {len(entries)}")
    print(f"    In directory file: {len([e for e in entries if e.archive_index == DIR_ARCHIVE_INDEX])}")
    print(f"    With preload data: {len([e for e in entries if e.preload_bytes > 0])}")
    print(f"  Segment files: {len(segments)}")
    print(f"  Total payload bytes: {sum(e.size for e in entries)}")
    return True


def cmd_verify(archive: str) -> bool:
    r = _load_reader(archive)
    bad = 0
    for path in sorted(r.files):
        try:
            r.get_file(path)
        except IntegrityError as exc:
            bad += 1
            print(f"FAIL {path}: {exc}", file=sys.stderr)
    print("OK" if bad == 0 else f"FAIL ({bad} corrupted file(s))")
    return bad == 0


def cmd_extract(archive: str, *, outdir: str = ".", paths: Optional[List[str]] = None, quiet: bool = False) -> bool:
    """Extract all (or the selected) files below ``outdir``."""
    r = ArchiveReader(archive)
    try:
        written = r.extract(outdir, paths=paths or None)
    except ExtractionError as exc:
        for dst, err in exc.failures:
            print(f"  failed: {dst}: {err}", file=sys.stderr)
        print(f"Error: {len(exc.failures)} file(s) could not be written", file=sys.stderr)
        return False
    if not quiet:
        for dst in written:
            print(f" extracting: {os.path.relpath(dst, outdir)}")
    print(f"Extracted {len(written)} file(s) to {outdir}")
    return True


def cmd_create(source: str, output: str, *, quiet: bool = False) -> bool:
    w = ArchiveWriter(source)
    if not w.is_valid():
        print(f"Error: {source} is not a directory", file=sys.stderr)
        return False
    w.load()
    if not quiet:
        for rec in w.records:
            print(f"   adding: {rec.path} ({rec.size} bytes)")
    w.save(output)
    print(f"Wrote {len(w.records)} file(s) to {output} (tree {w.tree_length} bytes)")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="vpkarchive",
        description="Read and write VPK (_dir.vpk) archives",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Path to *_dir.vpk")

    ap_info = sub.add_parser("info", help="Show archive header and summary")
    ap_info.add_argument("archive", help="Path to *_dir.vpk")

    ap_verify = sub.add_parser("verify", help="Check every file's CRC")
    ap_verify.add_argument("archive", help="Path to *_dir.vpk")

    ap_extract = sub.add_parser("extract", help="Extract files")
    ap_extract.add_argument("archive", help="Path to *_dir.vpk")
    ap_extract.add_argument("paths", nargs="*", help="Specific archive paths to extract")
    ap_extract.add_argument("-o", "--outdir", default=".", help="Output directory")
    ap_extract.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_create = sub.add_parser("create", help="Create a version 1 archive from a directory")
    ap_create.add_argument("source", help="Source directory")
    ap_create.add_argument("output", help="Output archive path (e.g. pak01_dir.vpk)")
    ap_create.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "list":
            ok = cmd_list(args.archive)
        elif args.cmd == "info":
            ok = cmd_info(args.archive)
        elif args.cmd == "verify":
            ok = cmd_verify(args.archive)
        elif args.cmd == "extract":
            ok = cmd_extract(args.archive, outdir=args.outdir, paths=args.paths, quiet=args.quiet)
        elif args.cmd == "create":
            ok = cmd_create(args.source, args.output, quiet=args.quiet)
        else:
            raise RuntimeError("Unknown command")
    except KeyError as e:
        print(f"Error: {e.args[0] if e.args else e}", file=sys.stderr)
        sys.exit(2)
    except (VPKError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
