from dataclasses import dataclass
from typing import Optional

from ledgertx.core.binary import ByteReader, put_u32
from ledgertx.core.encoding import hex_id
from ledgertx.crypto.keys import KeyPair, KeyType, verify_signature


@dataclass
class Signature:
    """
    Public key and signature of one slot.

    On the wire the length fields hold bit counts (bytes * 8), not byte counts.
    key_type 0 marks a reserved but unsigned slot and is packed as the tag alone.
    """
    key_type: int = KeyType.NOT_INITIALIZED
    public_key: bytes = b""
    signature: bytes = b""

    @property
    def initialized(self) -> bool:
        return self.key_type != KeyType.NOT_INITIALIZED

    def set_public_key(self, key_type: int, public_key: Optional[bytes]) -> "Signature":
        self.key_type = int(key_type)
        self.public_key = bytes(public_key or b"")
        return self

    def set_public_key_by_keypair(self, keypair: KeyPair) -> "Signature":
        return self.set_public_key(keypair.curve_type, keypair.public_key)

    def set_signature(self, signature: bytes) -> "Signature":
        self.signature = bytes(signature)
        return self

    def verify(self, digest: bytes) -> bool:
        return verify_signature(self.key_type, self.public_key, digest, self.signature)

    def pack(self) -> bytes:
        buf = bytearray()
        put_u32(buf, int(self.key_type), "key_type")
        if not self.initialized:
            return bytes(buf)
        put_u32(buf, len(self.public_key) * 8, "public key bit length")
        buf.extend(self.public_key)
        put_u32(buf, len(self.signature) * 8, "signature bit length")
        buf.extend(self.signature)
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes) -> "Signature":
        reader = ByteReader(data)
        key_type = reader.read_u32("key_type")
        if key_type == KeyType.NOT_INITIALIZED:
            return cls()
        pub_bits = reader.read_u32("public key length")
        public_key = reader.read_bytes(pub_bits // 8, "public key")
        sig_bits = reader.read_u32("signature length")
        signature = reader.read_bytes(sig_bits // 8, "signature")
        return cls(key_type, public_key, signature)

    def to_dict(self) -> dict:
        if not self.initialized:
            return {"key_type": 0}
        return {
            "key_type": int(self.key_type),
            "public_key": hex_id(self.public_key),
            "signature": hex_id(self.signature),
        }
