from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional

from .constants import (
    VPK_SIGNATURE,
    VERSION_1,
    VERSION_2,
    SUPPORTED_VERSIONS,
    WRITABLE_VERSIONS,
    HEADER_LENGTHS,
)
from .cursor import ByteCursor
from .errors import InvalidSignature, UnsupportedVersion, UnsupportedWriteVersion


_HEADER_1_STRUCT = struct.Struct("<III")


@dataclass
class Header:
    version: int
    tree_length: int
    signature: int = VPK_SIGNATURE
    # Version 2 only. Kept verbatim, never interpreted.
    unknown1: Optional[int] = None
    footer_length: Optional[int] = None
    unknown3: Optional[int] = None
    unknown4: Optional[int] = None

    @property
    def length(self) -> int:
        return header_length(self.version)

    @property
    def data_offset(self) -> int:
        """Absolute offset of the first byte after the tree in the directory file."""
        return self.length + self.tree_length


def header_length(version: int) -> int:
    try:
        return HEADER_LENGTHS[version]
    except KeyError:
        raise UnsupportedVersion(f"Unsupported VPK version: {version}") from None


def decode_header(cursor: ByteCursor) -> Header:
    signature = cursor.read_u32()
    if signature != VPK_SIGNATURE:
        raise InvalidSignature(f"Not a VPK directory file (signature {signature:#010x})")
    version = cursor.read_u32()
    if version not in SUPPORTED_VERSIONS:
        raise UnsupportedVersion(f"Unsupported VPK version: {version}")
    header = Header(version=version, tree_length=cursor.read_u32(), signature=signature)
    if version == VERSION_2:
        header.unknown1 = cursor.read_u32()
        header.footer_length = cursor.read_u32()
        header.unknown3 = cursor.read_u32()
        header.unknown4 = cursor.read_u32()
    return header


def encode_header(header: Header) -> bytes:
    if header.version not in WRITABLE_VERSIONS:
        raise UnsupportedWriteVersion(f"Writing VPK version {header.version} is not supported")
    return _HEADER_1_STRUCT.pack(VPK_SIGNATURE, VERSION_1, header.tree_length)
