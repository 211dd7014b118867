from __future__ import annotations

import struct

from .errors import TruncatedData


_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")

# Names are raw bytes on disk; undecodable bytes survive a decode/encode round trip.
NAME_ERRORS = "surrogateescape"


class ByteCursor:
    """Sequential little-endian reader/writer over an in-memory buffer.

    Reads consume from the current position and raise ``TruncatedData`` rather
    than returning short values. Writes overwrite/extend the buffer at the
    current position, so a fresh cursor behaves as an append-only builder.
    """

    def __init__(self, data: bytes = b"", pos: int = 0):
        self.buf = bytearray(data)
        self.pos = pos

    def tell(self) -> int:
        return self.pos

    def seek(self, pos: int) -> None:
        if pos < 0 or pos > len(self.buf):
            raise TruncatedData(f"Seek to {pos} outside buffer of {len(self.buf)} bytes")
        self.pos = pos

    def remaining(self) -> int:
        return len(self.buf) - self.pos

    def getvalue(self) -> bytes:
        return bytes(self.buf)

    # reads
    def read_bytes(self, n: int) -> bytes:
        if n < 0:
            raise ValueError("Negative read length")
        end = self.pos + n
        if end > len(self.buf):
            raise TruncatedData(f"Unexpected end of data at {self.pos} (wanted {n} bytes, have {self.remaining()})")
        out = bytes(self.buf[self.pos:end])
        self.pos = end
        return out

    def skip(self, n: int) -> None:
        self.read_bytes(n)

    def read_u16(self) -> int:
        return _U16.unpack(self.read_bytes(2))[0]

    def read_u32(self) -> int:
        return _U32.unpack(self.read_bytes(4))[0]

    def read_cstring(self, encoding: str = "utf-8") -> str:
        end = self.buf.find(0, self.pos)
        if end < 0:
            raise TruncatedData(f"Unterminated string at {self.pos}")
        raw = bytes(self.buf[self.pos:end])
        self.pos = end + 1
        return raw.decode(encoding, errors=NAME_ERRORS)

    # writes
    def write_bytes(self, data: bytes) -> None:
        end = self.pos + len(data)
        self.buf[self.pos:end] = data
        self.pos = end

    def write_u16(self, value: int) -> None:
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"u16 out of range: {value}")
        self.write_bytes(_U16.pack(value))

    def write_u32(self, value: int) -> None:
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError(f"u32 out of range: {value}")
        self.write_bytes(_U32.pack(value))

    def write_cstring(self, value: str, encoding: str = "utf-8") -> None:
        raw = value.encode(encoding, errors=NAME_ERRORS)
        if b"\x00" in raw:
            raise ValueError("String may not contain NUL")
        self.write_bytes(raw + b"\x00")
