# tests/test_verify.py
import pytest

from ledgertx.builder import get_identifier
from ledgertx.model.transaction import Transaction
from ledgertx.verify.verifier import (
    TransactionVerifier,
    VerificationResult,
    verify_asset_files,
    verify_using_crossref,
)

FILE_1 = b"contents of the first file"
FILE_2 = b"contents of the second file"


@pytest.fixture
def tx(users, keypairs, asset_group_id, timestamp):
    tx = Transaction(timestamp=timestamp)
    evt = tx.create_event(asset_group_id)
    evt.add_mandatory_approver(users[1])
    evt.create_asset(users[1], file_content=FILE_1)
    rtn = tx.create_relation(asset_group_id)
    rtn.create_asset(users[2], file_content=FILE_2)
    tx.add_witness_user(users[1])
    tx.add_witness_user(users[2])
    tx.sign_and_add(keypairs[1], users[1])
    tx.sign_and_add(keypairs[2], users[2])
    return tx


def test_valid_transaction(tx):
    result = TransactionVerifier().verify(tx)
    assert result.is_valid is True
    assert bool(result)
    assert result.failures == []
    assert "valid" in str(result)


def test_collects_every_failure(tx):
    for sig in tx.signatures:
        sig.signature = bytes(64)
    result = TransactionVerifier().verify(tx)
    assert result.is_valid is False
    assert [f.index for f in result.failures] == [0, 1]
    assert all(f.category == "signature" for f in result.failures)
    assert result.first_failure.index == 0
    assert "FAILED (2 issues)" in str(result)


def test_unsigned_slots_only_reported_when_required(tx, users):
    # slots are not covered by the digest, existing signatures stay valid
    tx.get_or_allocate_slot(users[3])
    assert TransactionVerifier().verify(tx).is_valid
    result = TransactionVerifier(require_all_signed=True).verify(tx)
    assert not result.is_valid
    assert result.first_failure.index == 2


def test_trusted_key_fills_in_omitted_public_key(tx, users, keypairs):
    tx.sign_and_add(keypairs[1], users[1], omit_public_key=True)
    assert not TransactionVerifier().verify(tx).is_valid

    trusted = {users[1].hex(): keypairs[1].public_key_b64url()}
    assert TransactionVerifier(trusted_keys=trusted).verify(tx).is_valid

    wrong = {users[1].hex(): keypairs[2].public_key_b64url()}
    result = TransactionVerifier(trusted_keys=wrong).verify(tx)
    assert result.first_failure.message == "Invalid signature"


def test_structure_checks(tx):
    tx.events[0].add_option_approver(b"\x09" * 32)
    tx.events[0].reference_indices.append(3)
    result = TransactionVerifier().verify(tx)
    assert {f.category for f in result.failures} == {"structure"}
    # approver count, dangling reference index, and the digest that can no longer be packed
    assert len(result.failures) == 3
    assert result.failures[-1].message.startswith("Cannot compute digest")


def test_asset_files(tx, asset_group_id):
    event_asset = tx.events[0].asset.asset_id
    relation_asset = tx.relations[0].asset.asset_id

    valid, invalid = verify_asset_files(tx, {event_asset: FILE_1, relation_asset: b"tampered"})
    assert valid == [(asset_group_id, event_asset)]
    assert invalid == [(asset_group_id, relation_asset)]

    valid, invalid = verify_asset_files(tx, {relation_asset: None})
    assert valid == [] and invalid == []

    result = TransactionVerifier().verify(tx, {event_asset: FILE_1, relation_asset: b"tampered"})
    assert not result.is_valid
    assert result.valid_assets == [(asset_group_id, event_asset)]
    assert result.first_failure.category == "asset_file"


def test_verify_using_crossref(users, keypairs, asset_group_id, domain_id, timestamp):
    outer = Transaction(timestamp=timestamp)
    outer.create_event(asset_group_id).add_mandatory_approver(users[1])
    foreign_id = get_identifier("transaction in another domain")
    outer.create_crossref(domain_id, foreign_id)
    outer.sign_and_add(keypairs[1], users[1])

    crossref_data = outer.crossref.pack()
    sig = outer.signatures[0]
    base = outer.transaction_base_digest

    assert verify_using_crossref(domain_id, foreign_id, base, crossref_data, sig)
    assert verify_using_crossref(domain_id, foreign_id, base, crossref_data, sig.pack())
    assert not verify_using_crossref(domain_id, get_identifier("other"), base, crossref_data, sig)
    assert not verify_using_crossref(domain_id, foreign_id, bytes(32), crossref_data, sig)


def test_result_defaults():
    result = VerificationResult(True)
    assert result.failures == []
    assert result.first_failure is None
