from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterator, Tuple

from .constants import PLACEHOLDER
from .integrity import checksum_file


@dataclass
class SourceFile:
    rel_path: str
    size: int
    checksum: int
    source_path: str


def norm_path(p: str) -> str:
    """Normalize archive paths to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError("Path may not contain '..'")
    return "/".join(parts)


def join_archive_path(extension: str, directory: str, name: str) -> str:
    path = "" if name == PLACEHOLDER else name
    if extension != PLACEHOLDER:
        path += "." + extension
    if directory != PLACEHOLDER:
        path = directory + "/" + path
    return path


def split_archive_path(rel_path: str) -> Tuple[str, str, str]:
    """Split ``a/b/foo.txt`` into ``("a/b", "foo", "txt")``, using a space for missing parts."""
    rel_path = norm_path(rel_path)
    if not rel_path:
        raise ValueError("Empty archive path")
    directory, _, filename = rel_path.rpartition("/")
    name, ext = os.path.splitext(filename)
    ext = ext[1:]
    if not ext:
        # "foo" or "foo." keep the whole filename as the base name
        name = filename
    return directory or PLACEHOLDER, name or PLACEHOLDER, ext or PLACEHOLDER


def iter_source_files(root: str) -> Iterator[SourceFile]:
    """Yield regular files under ``root``: a directory's files before its subdirectories, sorted by name."""
    root = os.path.abspath(root)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        rel_dir = os.path.relpath(dirpath, root)
        for fn in sorted(filenames):
            full = os.path.join(dirpath, fn)
            if not os.path.isfile(full):
                continue
            rel = fn if rel_dir == "." else os.path.join(rel_dir, fn)
            yield SourceFile(
                rel_path=norm_path(rel),
                size=os.path.getsize(full),
                checksum=checksum_file(full),
                source_path=full,
            )
