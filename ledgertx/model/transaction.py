# ledgertx/model/transaction.py
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import structlog

from ledgertx.core.binary import ByteReader, put_i64, put_sub_object, put_u16, put_u32
from ledgertx.core.config import IdLengthConfig
from ledgertx.core.encoding import hex_id
from ledgertx.core.errors import TransactionNotLinked, UnsupportedVersion
from ledgertx.crypto.hashing import sha256
from ledgertx.crypto.keys import KeyPair
from ledgertx.model.crossref import CrossRef
from ledgertx.model.event import Event
from ledgertx.model.reference import Reference
from ledgertx.model.relation import Relation
from ledgertx.model.signature import Signature
from ledgertx.model.slots import SignatureSlots
from ledgertx.model.witness import Witness

log = structlog.get_logger(__name__)

DEFAULT_VERSION = 2


def _now_micros() -> int:
    return time.time_ns() // 1000


def _put_list(buf: bytearray, objs, what: str) -> None:
    put_u16(buf, len(objs), what)
    for obj in objs:
        put_sub_object(buf, obj.pack())


def _put_optional(buf: bytearray, obj) -> None:
    if obj is None:
        put_u16(buf, 0)
        return
    put_u16(buf, 1)
    put_sub_object(buf, obj.pack())


@dataclass
class Transaction:
    """
    Top-level signed record.

    Identifier is derived in two phases:
        transaction_base_digest = SHA256(pack_base())
        digest                  = SHA256(transaction_base_digest ++ pack_crossref())
        transaction_id          = digest[:transaction_id_len]
    Signatures cover the full 32-byte digest, so they are not part of either phase.
    A zero timestamp is replaced with the current time (microseconds) on first digest/pack.
    """
    version: int = DEFAULT_VERSION
    timestamp: int = 0
    events: List[Event] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)
    witness: Optional[Witness] = None
    crossref: Optional[CrossRef] = None
    transaction_id: Optional[bytes] = field(default=None, compare=False)
    transaction_base_digest: Optional[bytes] = field(default=None, repr=False, compare=False)
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)
    slots: SignatureSlots = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.slots = SignatureSlots(self.id_conf)
        self._share_config(self.id_conf, refit=True)

    def _share_config(self, id_conf: IdLengthConfig, refit: bool) -> None:
        self.id_conf = id_conf
        self.slots.id_conf = id_conf
        for evt in self.events:
            evt.bind(id_conf, refit)
        for ref in self.references:
            ref.link(self.slots, id_conf)
        for rtn in self.relations:
            rtn.bind(id_conf, self.version, refit)
        if self.witness is not None:
            self.witness.link(self.slots, id_conf)
        if self.crossref is not None:
            self.crossref.id_conf = id_conf

    @property
    def signatures(self) -> List[Signature]:
        return self.slots.signatures

    @property
    def sig_slot_users(self) -> List[Optional[bytes]]:
        return self.slots.users

    # --- attaching sub-objects -------------------------------------------------

    def add_event(self, event: Event) -> "Transaction":
        event.bind(self.id_conf)
        self.events.append(event)
        return self

    def add_reference(self, reference: Reference) -> "Transaction":
        reference.link(self.slots, self.id_conf)
        self.references.append(reference)
        return self

    def add_relation(self, relation: Relation) -> "Transaction":
        relation.bind(self.id_conf, self.version)
        self.relations.append(relation)
        return self

    def set_witness(self, witness: Witness) -> "Transaction":
        witness.link(self.slots, self.id_conf)
        self.witness = witness
        return self

    def set_crossref(self, crossref: Optional[CrossRef]) -> "Transaction":
        if crossref is not None:
            crossref.id_conf = self.id_conf
        self.crossref = crossref
        return self

    def create_event(self, asset_group_id: Optional[bytes] = None,
                     reference_indices: Optional[List[int]] = None) -> Event:
        evt = Event()
        self.add_event(evt)
        if asset_group_id is not None:
            evt.set_asset_group(asset_group_id)
        for idx in reference_indices or []:
            evt.add_reference_index(idx)
        return evt

    def create_relation(self, asset_group_id: Optional[bytes] = None) -> Relation:
        rtn = Relation()
        self.add_relation(rtn)
        if asset_group_id is not None:
            rtn.set_asset_group(asset_group_id)
        return rtn

    def create_reference(self, asset_group_id: Optional[bytes] = None,
                         ref_transaction: Optional["Transaction"] = None,
                         event_index: Optional[int] = None) -> Reference:
        ref = Reference()
        self.add_reference(ref)
        ref.add(asset_group_id, ref_transaction, event_index)
        return ref

    def add_witness_user(self, user_id: bytes) -> Witness:
        if self.witness is None:
            self.set_witness(Witness())
        return self.witness.add(user_id)

    def create_crossref(self, domain_id: bytes, transaction_id: bytes) -> CrossRef:
        crossref = CrossRef(id_conf=self.id_conf).set(domain_id, transaction_id)
        self.crossref = crossref
        return crossref

    # --- signature slots ---------------------------------------------------------

    def get_or_allocate_slot(self, user_id: bytes) -> int:
        return self.slots.get_or_allocate(user_id)

    def add_signature(self, user_id: bytes, signature: Signature) -> int:
        return self.slots.add_signature(user_id, signature)

    def _slot_for_signer(self, user_id: bytes) -> int:
        idx = self.slots.index_of(user_id)
        if idx is not None:
            return idx
        unlinked = [i for i, ref in enumerate(self.references) if ref.ref_event is None]
        if unlinked:
            # the signer may own a slot one of these references recorded
            raise TransactionNotLinked(f"link references {unlinked} before signing for {hex_id(user_id)}")
        # an option approver of a referenced event takes one of that reference's quorum slots
        for ref in self.references:
            if ref.ref_event is None or not ref.ref_event.is_option_approver(user_id):
                continue
            if ref.find_option_slot(user_id) is None:
                continue
            placeholder = ref.claim_option_slot(user_id)
            return self.slots.get_or_allocate(placeholder)
        return self.slots.get_or_allocate(user_id)

    def sign(self, keypair: KeyPair) -> bytes:
        """Signature over the digest; nothing is stored."""
        return keypair.sign(self.digest())

    def sign_and_add(self, keypair: KeyPair, user_id: bytes, omit_public_key: bool = False) -> int:
        signature = self.sign(keypair)
        idx = self._slot_for_signer(user_id)
        sig = Signature(key_type=int(keypair.curve_type))
        if not omit_public_key:
            sig.set_public_key_by_keypair(keypair)
        sig.set_signature(signature)
        self.slots.signatures[idx] = sig
        log.debug("signed", user_id=hex_id(user_id), index=idx,
                  transaction_id=hex_id(self.transaction_id))
        return idx

    def verify_all(self) -> Tuple[bool, int]:
        """(True, -1) when every initialized signature verifies, else (False, first failing index)."""
        digest = self.digest()
        for i, sig in enumerate(self.signatures):
            if not sig.initialized:
                continue
            if not sig.verify(digest):
                return False, i
        return True, -1

    # --- digest ------------------------------------------------------------------

    def pack_base(self) -> bytes:
        if self.timestamp == 0:
            self.timestamp = _now_micros()
        buf = bytearray()
        put_u32(buf, self.version, "version")
        put_i64(buf, self.timestamp)
        put_u16(buf, self.id_conf.transaction_id_len, "transaction_id_len")
        _put_list(buf, self.events, "event count")
        _put_list(buf, self.references, "reference count")
        _put_list(buf, self.relations, "relation count")
        _put_optional(buf, self.witness)
        return bytes(buf)

    def pack_crossref(self) -> bytes:
        buf = bytearray()
        _put_optional(buf, self.crossref)
        return bytes(buf)

    def compute_digest(self, base: Optional[bytes] = None) -> Tuple[bytes, bytes]:
        """(base_digest, digest) of the current content. Does not memoize."""
        base_digest = sha256(self.pack_base() if base is None else base)
        return base_digest, sha256(base_digest + self.pack_crossref())

    def digest(self, base: Optional[bytes] = None) -> bytes:
        """Recompute the 32-byte digest and memoize transaction_base_digest / transaction_id."""
        base_digest, digest = self.compute_digest(base)
        self.transaction_base_digest = base_digest
        self.transaction_id = digest[:self.id_conf.transaction_id_len]
        log.debug("transaction_digest", transaction_id=hex_id(self.transaction_id))
        return digest

    # --- wire ----------------------------------------------------------------------

    def pack(self) -> bytes:
        if self.version == 0:
            raise UnsupportedVersion("version 0 transactions cannot be packed")
        base = self.pack_base()
        self.digest(base)
        buf = bytearray(base)
        buf.extend(self.pack_crossref())
        _put_list(buf, self.signatures, "signature count")
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: Optional[IdLengthConfig] = None) -> "Transaction":
        """
        Decode a packed transaction. id_conf receives every id length seen on the
        wire, but only once the whole buffer decoded; the header's transaction_id_len
        wins. transaction_id is recomputed.
        """
        id_conf = IdLengthConfig() if id_conf is None else id_conf
        seen = id_conf.copy()
        reader = ByteReader(data)
        version = reader.read_u32("version")
        tx = cls(version=version, id_conf=seen)
        tx.timestamp = reader.read_i64("timestamp")
        transaction_id_len = reader.read_u16("transaction_id_len")

        for _ in range(reader.read_u16("event count")):
            tx.events.append(Event.unpack(reader.read_sub_object(what="event"), seen))

        for _ in range(reader.read_u16("reference count")):
            ref = Reference.unpack(reader.read_sub_object(what="reference"), seen)
            ref.link(tx.slots, seen)
            tx.references.append(ref)

        for _ in range(reader.read_u16("relation count")):
            tx.relations.append(Relation.unpack(reader.read_sub_object(what="relation"), seen, version))

        if reader.read_u16("witness flag") > 0:
            tx.witness = Witness.unpack(reader.read_sub_object(what="witness"), seen)
            tx.witness.link(tx.slots, seen)

        if reader.read_u16("crossref flag") > 0:
            tx.crossref = CrossRef.unpack(reader.read_sub_object(what="crossref"), seen)

        signatures = []
        for _ in range(reader.read_u16("signature count")):
            signatures.append(Signature.unpack(reader.read_sub_object(what="signature")))
        tx.slots.load(signatures)

        seen.observe("transaction_id_len", transaction_id_len)
        if tx.witness is not None:
            tx.witness.restore_slots()
        id_conf.update_from(seen)
        tx._share_config(id_conf, refit=False)
        tx.digest()
        log.debug("transaction_unpacked", transaction_id=hex_id(tx.transaction_id),
                  events=len(tx.events), references=len(tx.references),
                  relations=len(tx.relations), signatures=len(signatures))
        return tx

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "transaction_id": hex_id(self.transaction_id),
            "id_length": self.id_conf.to_dict(),
            "events": [e.to_dict() for e in self.events],
            "references": [r.to_dict() for r in self.references],
            "relations": [r.to_dict() for r in self.relations],
            "witness": self.witness.to_dict() if self.witness is not None else None,
            "cross_ref": self.crossref.to_dict() if self.crossref is not None else None,
            "signatures": [s.to_dict() for s in self.signatures],
        }
