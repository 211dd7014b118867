"""
Directory tree codec.

Layout (all strings NUL terminated, an empty string closes the current level)

    tree      := { extension directories } ""
    directories := { directory files } ""
    files     := { name entry preload } ""
    entry     := crc u32 | preload_bytes u16 | archive_index u16
                 | entry_offset u32 | entry_length u32 | terminator u16 (0xFFFF)
    preload   := preload_bytes raw bytes

The encoder writes one extension/directory/name triple per file and closes the
name and directory levels right after each entry, so every record costs
``len(ext)+1 + len(dir)+1 + len(name)+1 + 20`` bytes and the tree ends with a
single NUL.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .constants import DIR_ARCHIVE_INDEX, ENTRY_TERMINATOR, ENTRY_BODY_LENGTH
from .cursor import NAME_ERRORS, ByteCursor
from .errors import CorruptEntry
from .pathutil import join_archive_path, split_archive_path


@dataclass
class DirectoryEntry:
    checksum: int
    preload_bytes: int
    archive_index: int
    entry_offset: int
    entry_length: int
    # Absolute position of the inline preload data in the directory file.
    preload_offset: int = 0

    @property
    def size(self) -> int:
        return self.preload_bytes + self.entry_length

    @property
    def in_directory_file(self) -> bool:
        return self.archive_index == DIR_ARCHIVE_INDEX


@dataclass
class FileRecord:
    location: str
    name: str
    extension: str
    checksum: int
    size: int
    source_path: str
    entry_size: int = 0
    data_offset: int = 0

    @property
    def path(self) -> str:
        return join_archive_path(self.extension, self.location, self.name)


def read_entry(cursor: ByteCursor) -> DirectoryEntry:
    entry = DirectoryEntry(
        checksum=cursor.read_u32(),
        preload_bytes=cursor.read_u16(),
        archive_index=cursor.read_u16(),
        entry_offset=cursor.read_u32(),
        entry_length=cursor.read_u32(),
    )
    terminator = cursor.read_u16()
    if terminator != ENTRY_TERMINATOR:
        raise CorruptEntry(f"Bad directory entry terminator {terminator:#06x} at {cursor.tell() - 2}")
    entry.preload_offset = cursor.tell()
    return entry


def decode_tree(cursor: ByteCursor) -> Dict[str, DirectoryEntry]:
    """Decode the tree starting at the cursor position into a path -> entry map.

    Duplicate paths keep the last entry read.
    """
    files: Dict[str, DirectoryEntry] = {}
    while True:
        extension = cursor.read_cstring()
        if extension == "":
            break
        while True:
            directory = cursor.read_cstring()
            if directory == "":
                break
            while True:
                name = cursor.read_cstring()
                if name == "":
                    break
                entry = read_entry(cursor)
                cursor.skip(entry.preload_bytes)
                files[join_archive_path(extension, directory, name)] = entry
    return files


def make_record(rel_path: str, checksum: int, size: int, source_path: str) -> FileRecord:
    location, name, extension = split_archive_path(rel_path)
    return FileRecord(
        location=location,
        name=name,
        extension=extension,
        checksum=checksum,
        size=size,
        source_path=source_path,
    )


def _encoded_length(s: str) -> int:
    return len(s.encode("utf-8", errors=NAME_ERRORS))


def entry_size(record: FileRecord) -> int:
    return (
        _encoded_length(record.location) + 1
        + _encoded_length(record.name) + 1
        + _encoded_length(record.extension) + 1
        + ENTRY_BODY_LENGTH
    )


def layout_records(records: Iterable[FileRecord]) -> int:
    """Assign ``entry_size`` and ``data_offset`` to each record; return the tree length."""
    tree_length = 0
    data_offset = 0
    for rec in records:
        rec.entry_size = entry_size(rec)
        rec.data_offset = data_offset
        tree_length += rec.entry_size
        data_offset += rec.size
    return tree_length + 1


def encode_tree(records: List[FileRecord], cursor: Optional[ByteCursor] = None) -> bytes:
    layout_records(records)
    out = cursor if cursor is not None else ByteCursor()
    start = out.tell()
    for rec in records:
        out.write_cstring(rec.extension)
        out.write_cstring(rec.location)
        out.write_cstring(rec.name)
        out.write_u32(rec.checksum)
        out.write_u16(0)  # no preload
        out.write_u16(DIR_ARCHIVE_INDEX)
        out.write_u32(rec.data_offset)
        out.write_u32(rec.size)
        out.write_u16(ENTRY_TERMINATOR)
        out.write_bytes(b"\x00\x00")
    out.write_bytes(b"\x00")
    return out.getvalue()[start:]
