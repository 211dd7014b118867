from __future__ import annotations

import os
from typing import BinaryIO


class Storage:
    """Read/write capability used by the archive reader and writer.

    ``ArchiveReader`` needs ``read_at``, ``read_all``, ``read_prefix`` and
    (for ``extract``) ``write_file``. ``ArchiveWriter`` needs ``open_read`` for
    source files and ``open_write`` for the destination. Methods an
    implementation leaves out raise ``NotImplementedError`` when called.
    Implementations open and release any handle within each call.
    """

    READER_METHODS = ("read_at", "read_all", "read_prefix", "write_file")
    WRITER_METHODS = ("open_read", "open_write")

    def supports(self, methods) -> bool:
        """True when every named method is overridden by this implementation."""
        return all(getattr(type(self), m) is not getattr(Storage, m) for m in methods)

    def read_at(self, path: str, offset: int, length: int) -> bytes:
        raise NotImplementedError

    def read_all(self, path: str) -> bytes:
        raise NotImplementedError

    def read_prefix(self, path: str, length: int) -> bytes:
        raise NotImplementedError

    def write_file(self, path: str, data: bytes) -> None:
        raise NotImplementedError

    def open_write(self, path: str) -> BinaryIO:
        raise NotImplementedError

    def open_read(self, path: str) -> BinaryIO:
        raise NotImplementedError


class FileStorage(Storage):
    def read_at(self, path: str, offset: int, length: int) -> bytes:
        with open(path, "rb") as fh:
            fh.seek(offset)
            data = fh.read(length)
        if len(data) != length:
            raise OSError(f"Short read from {path} at offset {offset}: wanted {length} bytes, got {len(data)}")
        return data

    def read_all(self, path: str) -> bytes:
        with open(path, "rb") as fh:
            return fh.read()

    def read_prefix(self, path: str, length: int) -> bytes:
        with open(path, "rb") as fh:
            return fh.read(length)

    def write_file(self, path: str, data: bytes) -> None:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(data)

    def open_write(self, path: str) -> BinaryIO:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        return open(path, "wb")

    def open_read(self, path: str) -> BinaryIO:
        return open(path, "rb")
