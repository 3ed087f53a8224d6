from dataclasses import dataclass, field
from typing import List, Optional

from ledgertx.core.binary import ByteReader, put_sized, put_u16
from ledgertx.core.config import IdLengthConfig, fit_id
from ledgertx.core.encoding import hex_id
from ledgertx.core.errors import TransactionNotLinked
from ledgertx.model.signature import Signature
from ledgertx.model.slots import SignatureSlots


@dataclass
class Witness:
    """Users who must sign the transaction as a whole; sig_slot_indices runs parallel to user_ids."""
    user_ids: List[bytes] = field(default_factory=list)
    sig_slot_indices: List[int] = field(default_factory=list)
    slots: Optional[SignatureSlots] = field(default=None, repr=False, compare=False)
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)

    def link(self, slots: SignatureSlots, id_conf: IdLengthConfig) -> None:
        self.slots = slots
        self.id_conf = id_conf

    def _require_slots(self) -> SignatureSlots:
        if self.slots is None:
            raise TransactionNotLinked("Witness is not attached to a transaction")
        return self.slots

    def add(self, user_id: bytes) -> "Witness":
        slots = self._require_slots()
        uid = fit_id(user_id, self.id_conf.user_id_len)
        self.user_ids.append(uid)
        self.sig_slot_indices.append(slots.get_or_allocate(uid))
        return self

    def add_signature(self, user_id: bytes, signature: Signature) -> int:
        return self._require_slots().add_signature(user_id, signature)

    def restore_slots(self) -> None:
        """After decoding, both user ids and indices are known: rebind them in the slot table."""
        slots = self._require_slots()
        for uid, idx in zip(self.user_ids, self.sig_slot_indices):
            slots.assign(idx, uid)

    def pack(self) -> bytes:
        buf = bytearray()
        put_u16(buf, len(self.user_ids), "witness count")
        for uid, idx in zip(self.user_ids, self.sig_slot_indices):
            put_sized(buf, uid)
            put_u16(buf, idx, "slot index")
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: IdLengthConfig) -> "Witness":
        reader = ByteReader(data)
        obj = cls(id_conf=id_conf)
        for _ in range(reader.read_u16("witness count")):
            uid = reader.read_sized("witness user_id")
            id_conf.observe("user_id_len", len(uid))
            obj.user_ids.append(uid)
            obj.sig_slot_indices.append(reader.read_u16("slot index"))
        return obj

    def to_dict(self) -> dict:
        return {
            "user_ids": [hex_id(u) for u in self.user_ids],
            "sig_indices": list(self.sig_slot_indices),
        }
