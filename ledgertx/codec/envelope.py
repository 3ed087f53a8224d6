# ledgertx/codec/envelope.py
"""
Transport envelope: u16 format tag (little-endian) followed by the payload.

    0x0000  plain   packed transaction as-is
    0x0010  zlib    packed transaction, zlib/DEFLATE compressed
"""

import zlib
from enum import IntEnum
from typing import Optional, Union

import structlog

from ledgertx.core.binary import ByteReader, put_u16
from ledgertx.core.config import IdLengthConfig
from ledgertx.core.encoding import hex_id
from ledgertx.core.errors import TransactionError, UnsupportedFormat
from ledgertx.model.transaction import Transaction

log = structlog.get_logger(__name__)


class FormatType(IntEnum):
    PLAIN = 0x0000
    ZLIB = 0x0010


FORMAT_PLAIN = FormatType.PLAIN
FORMAT_ZLIB = FormatType.ZLIB

FORMAT_NAMES = {"plain": FORMAT_PLAIN, "zlib": FORMAT_ZLIB}


def parse_format(value: Union[str, int]) -> FormatType:
    """Accepts a name ("plain"/"zlib") or a numeric tag."""
    if isinstance(value, str):
        name = value.strip().lower()
        if name in FORMAT_NAMES:
            return FORMAT_NAMES[name]
        try:
            value = int(name, 0)
        except ValueError:
            raise UnsupportedFormat(-1) from None
    try:
        return FormatType(value)
    except ValueError:
        raise UnsupportedFormat(value) from None


def serialize(tx: Transaction, format_type: Union[int, str] = FORMAT_PLAIN) -> bytes:
    fmt = parse_format(format_type)
    payload = tx.pack()
    if fmt == FORMAT_ZLIB:
        payload = zlib.compress(payload)
    buf = bytearray()
    put_u16(buf, int(fmt), "format")
    buf.extend(payload)
    log.debug("serialized", transaction_id=hex_id(tx.transaction_id), format=fmt.name, size=len(buf))
    return bytes(buf)


def read_format(data: bytes) -> FormatType:
    return parse_format(ByteReader(data).read_u16("format"))


def deserialize(data: bytes, id_conf: Optional[IdLengthConfig] = None) -> Transaction:
    reader = ByteReader(data)
    fmt = parse_format(reader.read_u16("format"))
    payload = reader.rest()
    if fmt == FORMAT_ZLIB:
        try:
            payload = zlib.decompress(payload)
        except zlib.error as e:
            raise TransactionError(f"corrupt zlib payload: {e}") from e
    tx = Transaction.unpack(payload, id_conf)
    log.debug("deserialized", transaction_id=hex_id(tx.transaction_id), format=fmt.name)
    return tx
