from __future__ import annotations

import os
from typing import Dict, Iterable, List, Optional

from .constants import HEADER_2_LENGTH
from .cursor import ByteCursor
from .errors import (
    VPKError,
    FormatError,
    IntegrityError,
    ArchiveNotLoaded,
    LoadFailed,
    ExtractionError,
)
from .header import Header, decode_header
from .integrity import verify as verify_checksum
from .locator import Span, resolve
from .pathutil import norm_path
from .storage import FileStorage, Storage
from .tree import DirectoryEntry, decode_tree


class ArchiveReader:
    """Reader for a VPK directory file (``*_dir.vpk``) and its numbered segment files.

    Construction does no I/O. ``load`` decodes the header and tree; lookups and
    extraction are only valid afterwards.
    """

    def __init__(self, path: str, storage: Optional[Storage] = None):
        self.path = path
        self.storage = storage if storage is not None else FileStorage()
        if not self.storage.supports(Storage.READER_METHODS):
            raise TypeError(f"{type(self.storage).__name__} lacks reader storage methods {Storage.READER_METHODS}")
        self.header: Optional[Header] = None
        self.tree: Optional[Dict[str, DirectoryEntry]] = None

    def __enter__(self):
        self.load()
        return self

    def __exit__(self, exc_type, exc, tb):
        return None

    def __contains__(self, path: str) -> bool:
        return path in self._require_tree()

    def __len__(self) -> int:
        return len(self._require_tree())

    @property
    def loaded(self) -> bool:
        return self.header is not None and self.tree is not None

    @property
    def files(self) -> List[str]:
        return list(self._require_tree())

    def is_valid(self) -> bool:
        """Check whether the file starts with a decodable header, without loading it."""
        prefix = self.storage.read_prefix(self.path, HEADER_2_LENGTH)
        try:
            decode_header(ByteCursor(prefix))
        except FormatError:
            return False
        return True

    def load(self) -> None:
        cursor = ByteCursor(self.storage.read_all(self.path))
        header = decode_header(cursor)
        tree = decode_tree(cursor)
        # Publish only a fully decoded directory
        self.header = header
        self.tree = tree

    def get_entry(self, path: str) -> Optional[DirectoryEntry]:
        return self._require_tree().get(path)

    def locate(self, path: str) -> Optional[List[Span]]:
        entry = self.get_entry(path)
        if entry is None:
            return None
        return resolve(entry, self.header, self.path)

    def get_file(self, path: str) -> Optional[bytes]:
        """Return the verified contents of ``path``, or None if it is not in the archive."""
        entry = self.get_entry(path)
        if entry is None:
            return None
        data = bytearray()
        for span in resolve(entry, self.header, self.path):
            data += self.storage.read_at(span.source, span.offset, span.length)
        return verify_checksum(path, bytes(data), entry.checksum)

    def verify(self) -> bool:
        """Check every entry's checksum. Returns False on the first mismatch."""
        for path in self.files:
            try:
                self.get_file(path)
            except IntegrityError:
                return False
        return True

    def extract(self, destination_root: str, paths: Optional[Iterable[str]] = None) -> List[str]:
        """Write archive files below ``destination_root``; return the destinations written.

        Read and checksum failures abort immediately. Write failures are
        collected and reported together in an ``ExtractionError`` once every
        file has been attempted.
        """
        if not self.loaded:
            try:
                self.load()
            except (VPKError, OSError) as exc:
                raise LoadFailed(f"Failed to load {self.path}: {exc}") from exc
        if paths is None:
            selected = self.files
        else:
            selected = list(paths)
            missing = [p for p in selected if p not in self.tree]
            if missing:
                raise KeyError(f"Not in archive: {', '.join(missing)}")

        written: List[str] = []
        failures = []
        for path in selected:
            try:
                dst = os.path.join(destination_root, *norm_path(path).split("/"))
            except ValueError as exc:
                failures.append((os.path.join(destination_root, path), exc))
                continue
            data = self.get_file(path)
            try:
                self.storage.write_file(dst, data)
            except OSError as exc:
                failures.append((dst, exc))
                continue
            written.append(dst)
        if failures:
            raise ExtractionError(failures)
        return written

    # internals
    def _require_tree(self) -> Dict[str, DirectoryEntry]:
        if self.tree is None:
            raise ArchiveNotLoaded(f"Archive not loaded: {self.path}")
        return self.tree
