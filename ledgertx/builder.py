# ledgertx/builder.py
"""
Shortcuts for the common ways of putting a transaction together.

    tx = make_transaction(event_num=1, witness=True)
    add_event_asset(tx, 0, asset_group_id, user_id, asset_body="hello")
    tx.events[0].add_mandatory_approver(user_id)
    tx.add_witness_user(user_id)
    sign_to_transaction(tx, user_id, keypair)
"""

import time
from typing import Any, Optional

from ledgertx.core.config import DEFAULT_ID_LENGTH, IdLengthConfig, id_length_config_from_env
from ledgertx.core.entropy import random_bytes
from ledgertx.crypto.hashing import sha256
from ledgertx.crypto.keys import KeyPair
from ledgertx.model.reference import Reference
from ledgertx.model.relation import Relation
from ledgertx.model.transaction import DEFAULT_VERSION, Transaction
from ledgertx.model.witness import Witness


def get_identifier(seed: Optional[str] = None, length: int = DEFAULT_ID_LENGTH) -> bytes:
    """SHA-256 of the seed truncated to `length`; random bytes when no seed is given."""
    if seed is None:
        return random_bytes(length)
    return sha256(seed.encode("utf-8"))[:length]


def get_identifier_with_timestamp(seed: str, length: int = DEFAULT_ID_LENGTH) -> bytes:
    return get_identifier(seed + "%f" % time.time(), length)


def make_transaction(event_num: int = 0, relation_num: int = 0, witness: bool = False,
                     id_conf: Optional[IdLengthConfig] = None,
                     version: int = DEFAULT_VERSION) -> Transaction:
    """
    Transaction with empty Events/Relations (and Witness) already attached and timestamped.
    Without id_conf the lengths come from LEDGERTX_ID_LENGTH and friends.
    """
    tx = Transaction(version=version, id_conf=id_conf or id_length_config_from_env())
    tx.timestamp = time.time_ns() // 1000
    for _ in range(event_num):
        tx.create_event()
    for _ in range(relation_num):
        tx.create_relation()
    if witness:
        tx.set_witness(Witness())
    return tx


def add_event_asset(tx: Transaction, event_idx: int, asset_group_id: bytes, user_id: bytes,
                    asset_body: Any = None, asset_file: Optional[bytes] = None) -> None:
    evt = tx.events[event_idx]
    evt.set_asset_group(asset_group_id)
    evt.create_asset(user_id, asset_file, asset_body)


def add_relation_asset(tx: Transaction, relation_idx: int, asset_group_id: bytes, user_id: bytes,
                       asset_body: Any = None, asset_file: Optional[bytes] = None) -> None:
    rtn = tx.relations[relation_idx]
    rtn.set_asset_group(asset_group_id)
    rtn.create_asset(user_id, asset_file, asset_body)


def add_relation_pointer(tx: Transaction, relation_idx: int, ref_transaction_id: Optional[bytes] = None,
                         ref_asset_id: Optional[bytes] = None) -> None:
    tx.relations[relation_idx].add_pointer(ref_transaction_id, ref_asset_id)


def add_reference_to_transaction(tx: Transaction, asset_group_id: bytes, ref_transaction: Transaction,
                                 event_index: int) -> Reference:
    return tx.create_reference(asset_group_id, ref_transaction, event_index)


def make_relation_with_asset(asset_group_id: bytes, user_id: bytes, asset_body: Any = None,
                             asset_file: Optional[bytes] = None,
                             id_conf: Optional[IdLengthConfig] = None) -> Relation:
    """
    Standalone Relation. Without id_conf the lengths come from the environment, as in
    make_transaction(); Transaction.add_relation() re-cuts its ids to the transaction's config.
    """
    rtn = Relation(id_conf=id_conf or id_length_config_from_env())
    rtn.set_asset_group(asset_group_id)
    rtn.create_asset(user_id, asset_file, asset_body)
    return rtn


def sign_to_transaction(tx: Transaction, user_id: bytes, keypair: KeyPair,
                        omit_public_key: bool = False) -> int:
    """Sign and store into the user's slot; returns the slot index."""
    return tx.sign_and_add(keypair, user_id, omit_public_key)
