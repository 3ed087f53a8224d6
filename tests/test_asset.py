# tests/test_asset.py
import pytest

from ledgertx.core.config import IdLengthConfig
from ledgertx.core.errors import FieldOverflow, TruncatedInput
from ledgertx.crypto.hashing import sha256
from ledgertx.model.asset import Asset, AssetHash, AssetRaw, BodyType


@pytest.fixture
def asset(users):
    return Asset().add_owner(users[1]).set_body_raw(b"hello")


def test_digest_is_stable(asset):
    asset.digest()
    first = asset.asset_id
    asset.digest()
    assert asset.asset_id == first
    assert len(first) == 32


def test_same_fields_same_id(asset, users):
    copy = Asset(user_id=users[1], nonce=asset.nonce, body=b"hello")
    assert copy.digest() == asset.digest()


def test_every_field_changes_id(asset):
    asset.digest()
    original = asset.asset_id

    asset.set_body_raw(b"hello!")
    assert asset.asset_id is None
    asset.digest()
    assert asset.asset_id != original

    changed_body = asset.asset_id
    asset.attach_file(b"file content")
    asset.digest()
    assert asset.asset_id != changed_body


def test_add_owner_draws_fresh_nonce(users):
    a = Asset().add_owner(users[1])
    nonce = a.nonce
    a.add_owner()
    assert a.user_id == users[1]
    assert len(a.nonce) == 32
    assert a.nonce != nonce


def test_file_keeps_only_digest(users):
    a = Asset().add_owner(users[1]).attach_file(b"\x00" * 100)
    assert a.file_size == 100
    assert a.file_digest == sha256(b"\x00" * 100)


def test_pack_unpack(asset):
    asset.attach_file(b"some file")
    data = asset.pack()
    restored = Asset.unpack(data, IdLengthConfig())
    assert restored.asset_id == asset.asset_id
    assert restored.user_id == asset.user_id
    assert restored.nonce == asset.nonce
    assert restored.file_size == 9
    assert restored.file_digest == asset.file_digest
    assert restored.body == b"hello"
    assert restored.pack() == data


def test_pack_without_file_omits_digest(users):
    a = Asset(user_id=users[1], nonce=b"n" * 32, body=b"")
    data = a.pack()
    # asset_id(2+32) user_id(2+32) nonce(2+32) file_size(4) body_type(2) body_size(2)
    assert len(data) == 34 * 3 + 4 + 2 + 2


def test_object_body_is_canonical(users):
    a = Asset().add_owner(users[1]).set_body_object({"b": 1, "a": [1, 2]})
    assert a.body_type == BodyType.OBJECT
    assert a.body == b'{"a":[1,2],"b":1}'
    assert a.get_body_object() == {"a": [1, 2], "b": 1}

    b = Asset(user_id=a.user_id, nonce=a.nonce).set_body({"a": [1, 2], "b": 1})
    assert b.digest() == a.digest()


def test_raw_body_has_no_object(asset):
    assert asset.get_body_object() is None
    asset.set_body("text")
    assert asset.body == b"text"


def test_body_too_large(users):
    a = Asset().add_owner(users[1]).set_body_raw(b"x" * 70000)
    with pytest.raises(FieldOverflow):
        a.pack()


def test_unpack_truncated(asset):
    data = asset.pack()
    with pytest.raises(TruncatedInput):
        Asset.unpack(data[:-1], IdLengthConfig())


def test_unpack_observes_lengths(users):
    conf = IdLengthConfig.uniform(8)
    a = Asset(id_conf=conf).add_owner(users[1]).set_body_raw(b"x")
    data = a.pack()
    assert len(a.asset_id) == 8

    seen = IdLengthConfig()
    Asset.unpack(data, seen)
    assert seen.asset_id_len == 8
    assert seen.user_id_len == 8
    assert seen.nonce_len == 8


def test_asset_raw():
    raw = AssetRaw().set(b"\x01" * 40, "body")
    assert raw.asset_id == b"\x01" * 32
    restored = AssetRaw.unpack(raw.pack(), IdLengthConfig())
    assert restored.asset_id == raw.asset_id
    assert restored.body == b"body"


def test_asset_hash_keeps_order():
    ids = [bytes([i]) * 32 for i in (3, 1, 2)]
    ah = AssetHash()
    for asset_id in ids:
        ah.add_asset_id(asset_id)
    restored = AssetHash.unpack(ah.pack(), IdLengthConfig())
    assert restored.asset_ids == ids
