from dataclasses import dataclass, field
from typing import Optional

from ledgertx.core.binary import ByteReader, put_sized, put_u16
from ledgertx.core.config import IdLengthConfig, fit_id
from ledgertx.core.encoding import hex_id


@dataclass
class Pointer:
    """Link from a Relation to another transaction, optionally to one of its assets."""
    transaction_id: Optional[bytes] = None
    asset_id: Optional[bytes] = None
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)

    def bind(self, id_conf: IdLengthConfig, refit: bool = True) -> None:
        self.id_conf = id_conf
        if refit:
            self.transaction_id = fit_id(self.transaction_id, id_conf.transaction_id_len)
            self.asset_id = fit_id(self.asset_id, id_conf.asset_id_len)

    def set(self, transaction_id: Optional[bytes], asset_id: Optional[bytes] = None) -> "Pointer":
        if transaction_id is not None:
            self.transaction_id = fit_id(transaction_id, self.id_conf.transaction_id_len)
        if asset_id is not None:
            self.asset_id = fit_id(asset_id, self.id_conf.asset_id_len)
        return self

    def pack(self) -> bytes:
        buf = bytearray()
        put_sized(buf, self.transaction_id)
        if self.asset_id is None:
            put_u16(buf, 0)
            return bytes(buf)
        put_u16(buf, 1)
        put_sized(buf, self.asset_id)
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: IdLengthConfig) -> "Pointer":
        reader = ByteReader(data)
        obj = cls(id_conf=id_conf)
        obj.transaction_id = reader.read_sized("pointer transaction_id")
        id_conf.observe("transaction_id_len", len(obj.transaction_id))
        if reader.read_u16("asset_id flag") == 0:
            return obj
        obj.asset_id = reader.read_sized("pointer asset_id")
        id_conf.observe("asset_id_len", len(obj.asset_id))
        return obj

    def to_dict(self) -> dict:
        return {"transaction_id": hex_id(self.transaction_id), "asset_id": hex_id(self.asset_id)}
