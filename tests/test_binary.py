# tests/test_binary.py
import pytest

from ledgertx.core.binary import (
    ByteReader,
    put_i64,
    put_sized,
    put_sub_object,
    put_u16,
    put_u32,
)
from ledgertx.core.errors import FieldOverflow, TruncatedInput


def test_integers_are_little_endian():
    buf = bytearray()
    put_u16(buf, 0x0102)
    put_u32(buf, 0x03040506)
    assert bytes(buf) == b"\x02\x01\x06\x05\x04\x03"


def test_i64_signed_roundtrip():
    buf = bytearray()
    put_i64(buf, -2)
    assert bytes(buf) == b"\xfe" + b"\xff" * 7
    assert ByteReader(buf).read_i64() == -2


def test_overflow_is_rejected():
    with pytest.raises(FieldOverflow):
        put_u16(bytearray(), 0x10000)
    with pytest.raises(FieldOverflow):
        put_u32(bytearray(), -1)
    # FieldOverflow is also a ValueError
    with pytest.raises(ValueError):
        put_sized(bytearray(), b"x" * 70000)


def test_sized_blob_layout():
    buf = bytearray()
    put_sized(buf, b"abc")
    put_sized(buf, None)
    assert bytes(buf) == b"\x03\x00abc\x00\x00"

    reader = ByteReader(buf)
    assert reader.read_sized() == b"abc"
    assert reader.read_sized() == b""
    assert reader.remaining == 0


def test_sub_object_size_widths():
    buf = bytearray()
    put_sub_object(buf, b"xy")
    put_sub_object(buf, b"z", size_width=2)
    assert bytes(buf) == b"\x02\x00\x00\x00xy\x01\x00z"

    reader = ByteReader(buf)
    assert reader.read_sub_object() == b"xy"
    assert reader.read_sub_object(size_width=2) == b"z"


def test_truncated_input_reports_lengths():
    reader = ByteReader(b"\x05\x00ab")
    with pytest.raises(TruncatedInput) as exc:
        reader.read_sized("user_id")
    assert exc.value.wanted == 5
    assert exc.value.available == 2
    assert "user_id" in str(exc.value)


def test_rest_consumes_everything():
    reader = ByteReader(b"\x10\x00payload")
    assert reader.read_u16() == 0x10
    assert reader.rest() == b"payload"
    assert reader.remaining == 0
