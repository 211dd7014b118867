from __future__ import annotations

import zlib

from .errors import IntegrityError


_READ_CHUNK = 1024 * 1024


def checksum(data: bytes, crc: int = 0) -> int:
    """CRC-32 (IEEE) as stored in VPK directory entries."""
    return zlib.crc32(data, crc) & 0xFFFFFFFF


def checksum_file(path: str) -> int:
    crc = 0
    with open(path, "rb") as fh:
        while True:
            block = fh.read(_READ_CHUNK)
            if not block:
                break
            crc = checksum(block, crc)
    return crc


def verify(path: str, data: bytes, expected: int) -> bytes:
    actual = checksum(data)
    if actual != expected:
        raise IntegrityError(path, expected, actual)
    return data
