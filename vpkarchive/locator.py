from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .constants import DIR_ARCHIVE_INDEX, DIR_SUFFIX, SEGMENT_SUFFIX_FMT
from .errors import SegmentNameError
from .header import Header
from .tree import DirectoryEntry


@dataclass
class Span:
    source: str
    offset: int
    length: int


def segment_path(directory_path: str, archive_index: int) -> str:
    """Map ``pak01_dir.vpk`` and index 3 to ``pak01_003.vpk``."""
    if not directory_path.endswith(DIR_SUFFIX):
        raise SegmentNameError(f"Directory file name must end with {DIR_SUFFIX!r}: {directory_path}")
    base = directory_path[: -len(DIR_SUFFIX)]
    return base + SEGMENT_SUFFIX_FMT.format(index=archive_index)


def preload_span(entry: DirectoryEntry, directory_path: str) -> Span:
    return Span(directory_path, entry.preload_offset, entry.preload_bytes)


def main_span(entry: DirectoryEntry, header: Header, directory_path: str) -> Span:
    if entry.archive_index == DIR_ARCHIVE_INDEX:
        return Span(directory_path, header.data_offset + entry.entry_offset, entry.entry_length)
    # Segment files hold payload only; offsets are absolute within them.
    return Span(segment_path(directory_path, entry.archive_index), entry.entry_offset, entry.entry_length)


def resolve(entry: DirectoryEntry, header: Header, directory_path: str) -> List[Span]:
    """Return the non-empty spans holding an entry's bytes, preload first."""
    spans: List[Span] = []
    if entry.preload_bytes > 0:
        spans.append(preload_span(entry, directory_path))
    if entry.entry_length > 0:
        spans.append(main_span(entry, header, directory_path))
    return spans
