import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional

import structlog

from ledgertx.core.binary import ByteReader, put_sized, put_u16
from ledgertx.core.config import IdLengthConfig, fit_id
from ledgertx.core.encoding import hex_id
from ledgertx.core.entropy import random_bytes
from ledgertx.core.errors import (
    InvalidEventIndex,
    NotAnApprover,
    OptionalSlotsExhausted,
    SlotLayoutMismatch,
    TransactionNotLinked,
)
from ledgertx.model.event import Event
from ledgertx.model.signature import Signature
from ledgertx.model.slots import SignatureSlots

if TYPE_CHECKING:
    from ledgertx.model.transaction import Transaction

log = structlog.get_logger(__name__)


@dataclass
class OptionalSlot:
    """
    One of the quorum slots: unclaimed until some option approver signs into it.
    presigned marks a slot that already held a signature when it was decoded; its
    signer is not recorded on the wire, but the slot is no longer free.
    """
    placeholder_id: bytes
    claimed_by: Optional[bytes] = None
    presigned: bool = False

    @property
    def claimed(self) -> bool:
        return self.claimed_by is not None or self.presigned


@dataclass
class Reference:
    """
    Input of a UTXO-style transfer: spends Event `ref_event_index` of transaction `ref_transaction_id`.

    Linking it to the referenced transaction reserves one signature slot per
    mandatory approver and option_quorum_numerator slots for option approvers.
    Quorum slots are held by random placeholder ids until an approver claims one.
    Only the four wire fields are packed; the rest is bookkeeping.
    """
    asset_group_id: Optional[bytes] = None
    ref_transaction_id: Optional[bytes] = None
    ref_event_index: int = 0
    sig_slot_indices: List[int] = field(default_factory=list)
    ref_event: Optional[Event] = field(default=None, repr=False, compare=False)
    option_slots: List[OptionalSlot] = field(default_factory=list, repr=False, compare=False)
    slots: Optional[SignatureSlots] = field(default=None, repr=False, compare=False)
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)

    def link(self, slots: SignatureSlots, id_conf: IdLengthConfig) -> None:
        self.slots = slots
        self.id_conf = id_conf

    def _require_slots(self) -> SignatureSlots:
        if self.slots is None:
            raise TransactionNotLinked("Reference is not attached to a transaction")
        return self.slots

    def _require_ref_event(self) -> Event:
        if self.ref_event is None:
            raise TransactionNotLinked("Reference is not linked to the referenced transaction")
        return self.ref_event

    def add(self, asset_group_id: Optional[bytes] = None, ref_transaction: Optional["Transaction"] = None,
            ref_event_index: Optional[int] = None) -> "Reference":
        """
        Set the wire fields and, given the referenced transaction, reserve signature slots.
        On a decoded Reference (slot indices already present) the recorded indices are
        reused and the owning transaction's slot table is repaired instead.
        """
        slots = self._require_slots()
        if asset_group_id is not None:
            self.asset_group_id = fit_id(asset_group_id, self.id_conf.asset_group_id_len)
        if ref_event_index is not None and ref_event_index >= 0:
            self.ref_event_index = ref_event_index
        if ref_transaction is None:
            return self

        if ref_transaction.transaction_id is None:
            ref_transaction.digest()
        if self.ref_event_index >= len(ref_transaction.events):
            raise InvalidEventIndex(
                f"event {self.ref_event_index} requested, "
                f"referenced transaction has {len(ref_transaction.events)}"
            )
        self.ref_transaction_id = fit_id(ref_transaction.transaction_id, self.id_conf.transaction_id_len)
        self.ref_event = copy.deepcopy(ref_transaction.events[self.ref_event_index])
        self._reserve_slots(slots, self.ref_event)
        return self

    def _reserve_slots(self, slots: SignatureSlots, evt: Event) -> None:
        self.option_slots = [
            OptionalSlot(random_bytes(self.id_conf.user_id_len))
            for _ in range(evt.option_quorum_numerator)
        ]
        owners = list(evt.mandatory_approvers) + [s.placeholder_id for s in self.option_slots]

        if not self.sig_slot_indices:
            self.sig_slot_indices = [slots.get_or_allocate(uid) for uid in owners]
        else:
            if len(self.sig_slot_indices) != len(owners):
                raise SlotLayoutMismatch(
                    f"reference records {len(self.sig_slot_indices)} slots, "
                    f"referenced event needs {len(owners)}"
                )
            for idx, uid in zip(self.sig_slot_indices, owners):
                slots.assign(idx, uid)
            quorum_indices = self.sig_slot_indices[len(evt.mandatory_approvers):]
            for slot, idx in zip(self.option_slots, quorum_indices):
                slot.presigned = slots.signatures[idx].initialized
        log.debug("reference_slots", ref_transaction_id=hex_id(self.ref_transaction_id),
                  sig_slot_indices=self.sig_slot_indices)

    def is_approver(self, user_id: bytes) -> bool:
        evt = self._require_ref_event()
        return evt.is_mandatory_approver(user_id) or evt.is_option_approver(user_id)

    def find_option_slot(self, user_id: bytes) -> Optional[OptionalSlot]:
        """The slot already claimed by this user, else the first free one, else None."""
        uid = bytes(user_id)
        for slot in self.option_slots:
            if slot.claimed_by == uid:
                return slot
        for slot in self.option_slots:
            if not slot.claimed:
                return slot
        return None

    def claim_option_slot(self, user_id: bytes) -> bytes:
        """Placeholder id of the slot this option approver signs into (FIFO over free slots)."""
        evt = self._require_ref_event()
        uid = bytes(user_id)
        if not evt.is_option_approver(uid):
            raise NotAnApprover(f"{hex_id(uid)} is not an option approver of the referenced event")
        slot = self.find_option_slot(uid)
        if slot is None:
            raise OptionalSlotsExhausted(
                f"all {len(self.option_slots)} optional slots are already claimed"
            )
        slot.claimed_by = uid
        return slot.placeholder_id

    def add_signature(self, user_id: bytes, signature: Signature) -> int:
        """Store a signature of an approver of the referenced event; returns the slot index."""
        slots = self._require_slots()
        evt = self._require_ref_event()
        uid = bytes(user_id)
        if evt.is_mandatory_approver(uid):
            return slots.add_signature(uid, signature)
        if evt.is_option_approver(uid):
            return slots.add_signature(self.claim_option_slot(uid), signature)
        raise NotAnApprover(f"{hex_id(uid)} is not an approver of the referenced event")

    def pack(self) -> bytes:
        buf = bytearray()
        put_sized(buf, self.asset_group_id)
        put_sized(buf, self.ref_transaction_id)
        put_u16(buf, self.ref_event_index, "event index")
        put_u16(buf, len(self.sig_slot_indices), "slot count")
        for idx in self.sig_slot_indices:
            put_u16(buf, idx, "slot index")
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: IdLengthConfig) -> "Reference":
        reader = ByteReader(data)
        obj = cls(id_conf=id_conf)
        obj.asset_group_id = reader.read_sized("asset_group_id")
        id_conf.observe("asset_group_id_len", len(obj.asset_group_id))
        obj.ref_transaction_id = reader.read_sized("ref transaction_id")
        obj.ref_event_index = reader.read_u16("event index")
        for _ in range(reader.read_u16("slot count")):
            obj.sig_slot_indices.append(reader.read_u16("slot index"))
        return obj

    def to_dict(self) -> dict:
        return {
            "asset_group_id": hex_id(self.asset_group_id),
            "transaction_id": hex_id(self.ref_transaction_id),
            "event_index_in_ref": self.ref_event_index,
            "sig_indices": list(self.sig_slot_indices),
        }
