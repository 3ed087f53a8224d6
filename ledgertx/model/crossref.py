from dataclasses import dataclass, field
from typing import Optional

from ledgertx.core.binary import ByteReader, put_sized
from ledgertx.core.config import DOMAIN_ID_LENGTH, IdLengthConfig, fit_id
from ledgertx.core.encoding import hex_id


@dataclass
class CrossRef:
    """
    Transaction of another domain, included to prove ordering across domains.
    domain_id is always 32 bytes; transaction_id follows the id length config.
    """
    domain_id: Optional[bytes] = None
    transaction_id: Optional[bytes] = None
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)

    def set(self, domain_id: Optional[bytes], transaction_id: Optional[bytes]) -> "CrossRef":
        if domain_id is not None:
            self.domain_id = fit_id(domain_id, DOMAIN_ID_LENGTH)
        if transaction_id is not None:
            self.transaction_id = fit_id(transaction_id, self.id_conf.transaction_id_len)
        return self

    def pack(self) -> bytes:
        buf = bytearray()
        put_sized(buf, self.domain_id)
        put_sized(buf, self.transaction_id)
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: IdLengthConfig) -> "CrossRef":
        reader = ByteReader(data)
        domain_id = reader.read_sized("domain_id")
        # foreign domain: its id length says nothing about ours
        transaction_id = reader.read_sized("crossref transaction_id")
        return cls(domain_id, transaction_id, id_conf=id_conf)

    def to_dict(self) -> dict:
        return {"domain_id": hex_id(self.domain_id), "transaction_id": hex_id(self.transaction_id)}
