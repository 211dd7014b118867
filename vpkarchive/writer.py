from __future__ import annotations

import os
from typing import Callable, Iterable, List, Optional

from .constants import VERSION_1
from .cursor import ByteCursor
from .errors import ArchiveNotLoaded
from .header import Header, encode_header
from .pathutil import SourceFile, iter_source_files
from .storage import FileStorage, Storage
from .tree import FileRecord, encode_tree, layout_records, make_record


_COPY_CHUNK = 1024 * 1024


class ArchiveWriter:
    """Builds a single-file version 1 VPK from the files below a source directory.

    Every payload is stored in the directory file right after the tree, in the
    same order as the tree records.
    """

    def __init__(
        self,
        root: str,
        storage: Optional[Storage] = None,
        enumerate_files: Callable[[str], Iterable[SourceFile]] = iter_source_files,
    ):
        self.root = root
        self.storage = storage if storage is not None else FileStorage()
        if not self.storage.supports(Storage.WRITER_METHODS):
            raise TypeError(f"{type(self.storage).__name__} lacks writer storage methods {Storage.WRITER_METHODS}")
        self.enumerate_files = enumerate_files
        self.records: List[FileRecord] = []
        self.header: Optional[Header] = None

    @property
    def loaded(self) -> bool:
        return self.header is not None

    @property
    def tree_length(self) -> int:
        if self.header is None:
            raise ArchiveNotLoaded("Writer not loaded")
        return self.header.tree_length

    @property
    def files(self) -> List[str]:
        return [rec.path for rec in self.records]

    def is_valid(self) -> bool:
        return os.path.isdir(self.root)

    def load(self, version: int = VERSION_1) -> None:
        # Rejects anything but version 1 before touching the filesystem
        encode_header(Header(version=version, tree_length=0))
        records = [
            make_record(src.rel_path, src.checksum, src.size, src.source_path)
            for src in self.enumerate_files(self.root)
        ]
        tree_length = layout_records(records)
        self.records = records
        self.header = Header(version=version, tree_length=tree_length)

    def build_directory(self) -> bytes:
        """Return the encoded header followed by the tree."""
        if self.header is None:
            raise ArchiveNotLoaded("Writer not loaded")
        out = ByteCursor(encode_header(self.header))
        out.seek(len(out.buf))
        encode_tree(self.records, out)
        return out.getvalue()

    def save(self, destination: str) -> None:
        directory = self.build_directory()
        with self.storage.open_write(destination) as wf:
            wf.write(directory)
            for rec in self.records:
                self._copy_payload(rec, wf)

    # internals
    def _copy_payload(self, rec: FileRecord, wf) -> None:
        copied = 0
        with self.storage.open_read(rec.source_path) as rf:
            while True:
                block = rf.read(_COPY_CHUNK)
                if not block:
                    break
                wf.write(block)
                copied += len(block)
        if copied != rec.size:
            raise OSError(f"{rec.source_path} changed size since load ({rec.size} -> {copied} bytes)")
