# tests/test_builder.py
from ledgertx.builder import (
    add_event_asset,
    add_reference_to_transaction,
    add_relation_asset,
    add_relation_pointer,
    get_identifier,
    get_identifier_with_timestamp,
    make_relation_with_asset,
    make_transaction,
    sign_to_transaction,
)
from ledgertx.core.config import IdLengthConfig
from ledgertx.model.transaction import Transaction


def test_get_identifier():
    assert get_identifier("seed") == get_identifier("seed")
    assert len(get_identifier("seed", 8)) == 8
    assert get_identifier("seed", 8) == get_identifier("seed")[:8]
    assert get_identifier() != get_identifier()
    assert len(get_identifier_with_timestamp("seed", 16)) == 16


def test_make_transaction_shape():
    tx = make_transaction(event_num=2, relation_num=1, witness=True)
    assert len(tx.events) == 2
    assert len(tx.relations) == 1
    assert tx.witness is not None
    assert tx.timestamp > 0
    assert tx.version == 2


def test_full_build(users, keypairs, asset_group_id):
    conf = IdLengthConfig.uniform(16)
    base = make_transaction(event_num=1, witness=True, id_conf=conf)
    add_event_asset(base, 0, asset_group_id, users[1], asset_body={"amount": 3})
    base.events[0].add_mandatory_approver(users[1])
    base.witness.add(users[1])
    sign_to_transaction(base, users[1], keypairs[1])
    assert base.verify_all() == (True, -1)

    tx = make_transaction(relation_num=1, witness=True, id_conf=IdLengthConfig.uniform(16))
    add_relation_asset(tx, 0, asset_group_id, users[2], asset_body=b"moved")
    add_relation_pointer(tx, 0, base.transaction_id, base.events[0].asset.asset_id)
    ref = add_reference_to_transaction(tx, asset_group_id, base, 0)
    assert ref.sig_slot_indices == [0]
    tx.add_relation(make_relation_with_asset(asset_group_id, users[2], asset_file=b"file", id_conf=tx.id_conf))
    assert sign_to_transaction(tx, users[1], keypairs[1]) == 0

    restored = Transaction.unpack(tx.pack())
    assert restored.verify_all() == (True, -1)
    assert len(restored.relations) == 2
    assert len(restored.relations[0].asset.asset_id) == 16
    assert restored.relations[0].pointers[0].transaction_id == base.transaction_id


def test_relation_is_recut_when_added(users, asset_group_id, timestamp):
    rtn = make_relation_with_asset(asset_group_id, users[1], asset_body=b"x", id_conf=IdLengthConfig())
    rtn.add_pointer(get_identifier("tx"), get_identifier("asset"))
    assert len(rtn.asset.nonce) == 32

    tx = make_transaction(id_conf=IdLengthConfig.uniform(10))
    tx.timestamp = timestamp
    tx.add_relation(rtn)
    assert rtn.id_conf is tx.id_conf
    assert rtn.asset.id_conf is tx.id_conf
    assert len(rtn.asset_group_id) == 10
    assert len(rtn.asset.user_id) == 10
    assert len(rtn.asset.nonce) == 10
    assert len(rtn.pointers[0].transaction_id) == 10

    seen = IdLengthConfig()
    restored = Transaction.unpack(tx.pack(), seen)
    assert seen == IdLengthConfig.uniform(10)
    r_rtn = restored.relations[0]
    assert len(r_rtn.asset_group_id) == 10
    assert len(r_rtn.asset.asset_id) == 10
    assert len(r_rtn.pointers[0].asset_id) == 10
    assert restored.transaction_id == tx.transaction_id


def test_standalone_relation_reads_env_lengths(monkeypatch, users, asset_group_id):
    monkeypatch.setenv("LEDGERTX_ID_LENGTH", "12")
    rtn = make_relation_with_asset(asset_group_id, users[1], asset_body=b"x")
    assert len(rtn.asset_group_id) == 12
    assert len(rtn.asset.user_id) == 12


def test_make_transaction_reads_env_lengths(monkeypatch, users):
    monkeypatch.setenv("LEDGERTX_ID_LENGTH", "8")
    tx = make_transaction(event_num=1)
    assert tx.id_conf == IdLengthConfig.uniform(8)
    tx.events[0].add_mandatory_approver(users[1])
    assert len(tx.events[0].mandatory_approvers[0]) == 8
