"""
Little-endian fixed-width integers and length-prefixed "sized blobs".

Every identifier on the wire is a sized blob: u16 length followed by the raw bytes.
Writers append to a bytearray; ByteReader walks a buffer with a cursor and raises
TruncatedInput instead of silently returning short reads.
"""

from typing import Optional

from ledgertx.core.errors import FieldOverflow, TruncatedInput

U16_MAX = 0xFFFF
U32_MAX = 0xFFFFFFFF


def _put_uint(buf: bytearray, val: int, width: int, what: str) -> None:
    if val < 0 or val >= 1 << (8 * width):
        raise FieldOverflow(f"{what}={val} does not fit in {width} bytes")
    buf.extend(val.to_bytes(width, "little"))


def put_u16(buf: bytearray, val: int, what: str = "u16") -> None:
    _put_uint(buf, val, 2, what)


def put_u32(buf: bytearray, val: int, what: str = "u32") -> None:
    _put_uint(buf, val, 4, what)


def put_i64(buf: bytearray, val: int) -> None:
    """Signed 8-byte value (timestamps)."""
    buf.extend(val.to_bytes(8, "little", signed=True))


def put_sized(buf: bytearray, val: Optional[bytes]) -> None:
    """u16 length + raw bytes. None is written as an empty blob."""
    data = val or b""
    put_u16(buf, len(data), "sized blob length")
    buf.extend(data)


def put_sub_object(buf: bytearray, dat: bytes, size_width: int = 4) -> None:
    """Size-prefixed nested object (u32 by default, u16 for pointers)."""
    _put_uint(buf, len(dat), size_width, "sub-object size")
    buf.extend(dat)


class ByteReader:
    """Cursor over an immutable buffer."""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.pos = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.pos

    def read_bytes(self, n: int, what: str = "data") -> bytes:
        if n > self.remaining:
            raise TruncatedInput(n, self.remaining, what)
        out = self.data[self.pos:self.pos + n]
        self.pos += n
        return out

    def read_u16(self, what: str = "u16") -> int:
        return int.from_bytes(self.read_bytes(2, what), "little")

    def read_u32(self, what: str = "u32") -> int:
        return int.from_bytes(self.read_bytes(4, what), "little")

    def read_i64(self, what: str = "i64") -> int:
        return int.from_bytes(self.read_bytes(8, what), "little", signed=True)

    def read_sized(self, what: str = "sized blob") -> bytes:
        """Returns the blob; its length is the observed id length for discovery."""
        length = self.read_u16(what)
        return self.read_bytes(length, what)

    def read_sub_object(self, size_width: int = 4, what: str = "sub-object") -> bytes:
        if size_width == 2:
            size = self.read_u16(what)
        else:
            size = self.read_u32(what)
        return self.read_bytes(size, what)

    def rest(self) -> bytes:
        out = self.data[self.pos:]
        self.pos = len(self.data)
        return out
