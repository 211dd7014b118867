from __future__ import annotations

import argparse
import os
import random
import sys
from typing import List, Optional, Tuple

from vpkarchive.reader import ArchiveReader
from vpkarchive.errors import VPKError


def _flip_byte(path: str, offset: int, xor_val: int = 0xFF) -> Tuple[int, int]:
    """XOR one byte in place; return (old, new)."""
    if offset < 0:
        raise ValueError("Offset must be non-negative")
    if xor_val & 0xFF == 0:
        raise ValueError("XOR mask must change the byte")
    with open(path, "r+b") as f:
        f.seek(offset)
        b = f.read(1)
        if not b:
            raise ValueError(f"Offset {offset} beyond end of {path}")
        new = b[0] ^ (xor_val & 0xFF)
        f.seek(offset)
        f.write(bytes([new]))
        f.flush()
        os.fsync(f.fileno())
    return b[0], new


def _load(archive: str) -> Optional[ArchiveReader]:
    r = ArchiveReader(archive)
    try:
        r.load()
    except VPKError:
        return None
    return r


def _region(r: Optional[ArchiveReader], source: str, offset: int) -> str:
    """Name what lives at ``offset`` of ``source``: header, tree, an archive path, or nothing."""
    if r is None:
        return "unparsed"
    if os.path.abspath(source) == os.path.abspath(r.path):
        if offset < r.header.length:
            return "header"
        if offset < r.header.data_offset:
            return "tree"
    for path in r.files:
        for span in r.locate(path):
            if os.path.abspath(span.source) == os.path.abspath(source) and span.offset <= offset < span.offset + span.length:
                return path
    return "unreferenced"


def _payload_positions(r: ArchiveReader) -> List[Tuple[str, str, int]]:
    """Every payload byte of the archive as (archive path, source file, offset)."""
    out = []
    for path in sorted(r.files):
        for span in r.locate(path):
            out.extend((path, span.source, span.offset + i) for i in range(span.length))
    return out


def cmd_by_offset(args: argparse.Namespace) -> None:
    target = args.target or args.archive
    region = _region(_load(args.archive), target, args.offset)
    old, new = _flip_byte(target, args.offset, xor_val=args.xor)
    print(f"Flipped 1 byte at offset {args.offset} of {target} ({region}): {old:#04x} -> {new:#04x}")


def cmd_file(args: argparse.Namespace) -> None:
    r = ArchiveReader(args.archive)
    r.load()
    spans = r.locate(args.path)
    if spans is None:
        raise ValueError(f"Not in archive: {args.path}")
    within = args.within
    for span in spans:
        if within < span.length:
            off = span.offset + within
            _flip_byte(span.source, off, xor_val=args.xor)
            print(f"Flipped 1 byte of {args.path} in {span.source} at offset {off}")
            return
        within -= span.length
    raise ValueError(f"--within must be within file length (0..{r.get_entry(args.path).size - 1})")


def cmd_random(args: argparse.Namespace) -> None:
    rng = random.Random(args.seed)
    if args.anywhere:
        r = _load(args.archive)
        size = os.path.getsize(args.archive)
        picks = [(_region(r, args.archive, pos), args.archive, pos) for pos in sorted(rng.sample(range(size), min(args.count, size)))]
    else:
        r = ArchiveReader(args.archive)
        r.load()
        positions = _payload_positions(r)
        if not positions:
            raise ValueError("Archive holds no payload bytes")
        picks = [positions[i] for i in sorted(rng.sample(range(len(positions)), min(args.count, len(positions))))]
    for path, source, offset in picks:
        _flip_byte(source, offset, xor_val=args.xor)
    print(f"Flipped {len(picks)} byte(s)")
    for path, source, offset in picks:
        print(f"  damaged: {path}\t{source}\t{offset}")


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="vpkarchive.corrupt", description="Corrupt VPK archives for testing")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_off = sub.add_parser("by-offset", help="Flip one byte at an absolute offset and report what it hit")
    p_off.add_argument("archive", help="Path to *_dir.vpk")
    p_off.add_argument("--offset", type=int, required=True, help="Absolute byte offset")
    p_off.add_argument("--target", help="File to damage instead of the directory file (e.g. pak01_000.vpk)")
    p_off.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_off.set_defaults(func=cmd_by_offset)

    p_file = sub.add_parser("file", help="Flip a byte inside one archived file's payload")
    p_file.add_argument("archive", help="Path to *_dir.vpk")
    p_file.add_argument("path", help="Archive path of the file to damage")
    p_file.add_argument("--within", type=int, default=0, help="Byte offset within the file (default 0)")
    p_file.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_file.set_defaults(func=cmd_file)

    p_rand = sub.add_parser("random", help="Flip N distinct random payload bytes (or any bytes with --anywhere)")
    p_rand.add_argument("archive", help="Path to *_dir.vpk")
    p_rand.add_argument("--count", type=int, default=1, help="Number of random byte flips (default 1)")
    p_rand.add_argument("--seed", type=int, default=None, help="PRNG seed for reproducibility")
    p_rand.add_argument("--anywhere", action="store_true", help="Pick offsets anywhere in the directory file, header and tree included")
    p_rand.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_rand.set_defaults(func=cmd_random)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (VPKError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
