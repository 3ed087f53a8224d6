# tests/test_envelope.py
import zlib

import pytest

from ledgertx.codec import (
    FORMAT_PLAIN,
    FORMAT_ZLIB,
    deserialize,
    parse_format,
    read_format,
    serialize,
)
from ledgertx.core.errors import TransactionError, TruncatedInput, UnsupportedFormat
from ledgertx.model.transaction import Transaction


@pytest.fixture
def signed_tx(users, keypairs, asset_group_id, timestamp):
    tx = Transaction(timestamp=timestamp)
    evt = tx.create_event(asset_group_id)
    evt.add_mandatory_approver(users[1])
    evt.create_asset(users[1], body=b"hello " * 50)
    tx.sign_and_add(keypairs[1], users[1])
    return tx


def test_format_equivalence(signed_tx):
    plain = serialize(signed_tx, FORMAT_PLAIN)
    compressed = serialize(signed_tx, FORMAT_ZLIB)

    assert plain[:2] == b"\x00\x00"
    assert compressed[:2] == b"\x10\x00"
    assert plain[2:] == signed_tx.pack()
    assert zlib.decompress(compressed[2:]) == plain[2:]
    assert len(compressed) < len(plain)

    a = deserialize(plain)
    b = deserialize(compressed)
    assert a.transaction_id == b.transaction_id == signed_tx.transaction_id
    assert b.verify_all() == (True, -1)


def test_unknown_format_rejected(signed_tx):
    with pytest.raises(UnsupportedFormat) as exc:
        deserialize(b"\x20\x00" + signed_tx.pack())
    assert exc.value.format_type == 0x20
    with pytest.raises(UnsupportedFormat):
        serialize(signed_tx, 0x30)


def test_parse_format_names():
    assert parse_format("plain") is FORMAT_PLAIN
    assert parse_format("ZLIB") is FORMAT_ZLIB
    assert parse_format("0x10") is FORMAT_ZLIB
    assert parse_format(0) is FORMAT_PLAIN
    with pytest.raises(UnsupportedFormat):
        parse_format("bz2")


def test_read_format(signed_tx):
    assert read_format(serialize(signed_tx, "zlib")) is FORMAT_ZLIB


def test_truncated_envelope(signed_tx):
    data = serialize(signed_tx)
    with pytest.raises(TruncatedInput):
        deserialize(data[:1])
    with pytest.raises(TruncatedInput):
        deserialize(data[:-10])


def test_corrupt_zlib_payload():
    with pytest.raises(TransactionError):
        deserialize(b"\x10\x00not zlib at all")
