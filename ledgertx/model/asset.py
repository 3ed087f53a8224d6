"""
Asset variants carried by Events and Relations.

Asset      content-addressed: asset_id = SHA256(packed fields without asset_id)[:asset_id_len]
AssetRaw   caller supplies the asset_id; body is stored as-is
AssetHash  ordered list of externally computed asset ids
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, List, Optional, Union

import structlog

from ledgertx.core.binary import ByteReader, put_sized, put_u16, put_u32
from ledgertx.core.canon import canonical_json, decode_canonical_json
from ledgertx.core.config import IdLengthConfig, fit_id
from ledgertx.core.encoding import hex_id
from ledgertx.core.entropy import random_bytes
from ledgertx.crypto.hashing import file_digest, sha256

log = structlog.get_logger(__name__)

Body = Union[bytes, bytearray, str]


class BodyType(IntEnum):
    RAW = 0
    OBJECT = 1


def _body_bytes(body: Body) -> bytes:
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


@dataclass
class Asset:
    asset_id: Optional[bytes] = None
    user_id: Optional[bytes] = None
    nonce: bytes = b""
    file_size: int = 0
    file_digest: Optional[bytes] = None
    body_type: int = BodyType.RAW
    body: bytes = b""
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)

    @property
    def body_size(self) -> int:
        return len(self.body)

    def bind(self, id_conf: IdLengthConfig, refit: bool = True) -> None:
        """Move to another length config; with refit the ids are re-cut and asset_id is recomputed on pack."""
        self.id_conf = id_conf
        if not refit:
            return
        user_id = fit_id(self.user_id, id_conf.user_id_len)
        changed = user_id != self.user_id
        self.user_id = user_id
        if self.nonce and len(self.nonce) != id_conf.nonce_len:
            self.nonce = random_bytes(id_conf.nonce_len)
            changed = True
        if changed or (self.asset_id is not None and len(self.asset_id) != id_conf.asset_id_len):
            self.asset_id = None

    def add_owner(self, user_id: Optional[bytes] = None) -> "Asset":
        """Set the owner (keeps the previous one when None) and draw a fresh nonce."""
        if user_id is not None:
            self.user_id = fit_id(user_id, self.id_conf.user_id_len)
        self.nonce = random_bytes(self.id_conf.nonce_len)
        self.asset_id = None
        return self

    def attach_file(self, content: bytes) -> "Asset":
        """Only the size and SHA-256 of the file are kept, never the content."""
        self.file_size = len(content)
        self.file_digest = file_digest(content)
        self.asset_id = None
        return self

    def set_body_raw(self, body: Body) -> "Asset":
        self.body_type = BodyType.RAW
        self.body = _body_bytes(body)
        self.asset_id = None
        return self

    def set_body_object(self, value: Any) -> "Asset":
        self.body_type = BodyType.OBJECT
        self.body = canonical_json(value)
        self.asset_id = None
        return self

    def set_body(self, body: Any) -> "Asset":
        """bytes/str become a raw body; anything else is encoded as an object."""
        if isinstance(body, (bytes, bytearray, str)):
            return self.set_body_raw(body)
        return self.set_body_object(body)

    def get_body_object(self) -> Any:
        if self.body_type != BodyType.OBJECT:
            return None
        return decode_canonical_json(self.body)

    def _pack_content(self) -> bytes:
        buf = bytearray()
        put_sized(buf, self.user_id)
        put_sized(buf, self.nonce)
        put_u32(buf, self.file_size, "file_size")
        if self.file_size > 0:
            put_sized(buf, self.file_digest)
        put_u16(buf, int(self.body_type), "body_type")
        put_u16(buf, self.body_size, "body_size")
        buf.extend(self.body)
        return bytes(buf)

    def digest(self) -> bytes:
        """Recompute asset_id from the current fields; returns the full 32-byte digest."""
        d = sha256(self._pack_content())
        self.asset_id = d[:self.id_conf.asset_id_len]
        log.debug("asset_digest", asset_id=hex_id(self.asset_id))
        return d

    def pack(self) -> bytes:
        if self.asset_id is None:
            self.digest()
        buf = bytearray()
        put_sized(buf, self.asset_id)
        buf.extend(self._pack_content())
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: IdLengthConfig) -> "Asset":
        reader = ByteReader(data)
        obj = cls(id_conf=id_conf)
        obj.asset_id = reader.read_sized("asset_id")
        id_conf.observe("asset_id_len", len(obj.asset_id))
        obj.user_id = reader.read_sized("user_id")
        id_conf.observe("user_id_len", len(obj.user_id))
        obj.nonce = reader.read_sized("nonce")
        id_conf.observe("nonce_len", len(obj.nonce))
        obj.file_size = reader.read_u32("file_size")
        if obj.file_size > 0:
            obj.file_digest = reader.read_sized("file_digest")
        obj.body_type = reader.read_u16("body_type")
        body_size = reader.read_u16("body_size")
        obj.body = reader.read_bytes(body_size, "asset body")
        return obj

    def to_dict(self) -> dict:
        return {
            "asset_id": hex_id(self.asset_id),
            "user_id": hex_id(self.user_id),
            "nonce": hex_id(self.nonce),
            "file_size": self.file_size,
            "file_digest": hex_id(self.file_digest),
            "body_type": int(self.body_type),
            "body_size": self.body_size,
            "body": hex_id(self.body),
        }


@dataclass
class AssetRaw:
    asset_id: Optional[bytes] = None
    body: bytes = b""
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)

    @property
    def body_size(self) -> int:
        return len(self.body)

    def bind(self, id_conf: IdLengthConfig, refit: bool = True) -> None:
        self.id_conf = id_conf
        if refit:
            self.asset_id = fit_id(self.asset_id, id_conf.asset_id_len)

    def set(self, asset_id: Optional[bytes], body: Body = b"") -> "AssetRaw":
        if asset_id is not None:
            self.asset_id = fit_id(asset_id, self.id_conf.asset_id_len)
        self.body = _body_bytes(body)
        return self

    def pack(self) -> bytes:
        buf = bytearray()
        put_sized(buf, self.asset_id)
        put_u16(buf, self.body_size, "body_size")
        buf.extend(self.body)
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: IdLengthConfig) -> "AssetRaw":
        reader = ByteReader(data)
        asset_id = reader.read_sized("asset_id")
        id_conf.observe("asset_id_len", len(asset_id))
        body_size = reader.read_u16("body_size")
        body = reader.read_bytes(body_size, "asset body")
        return cls(asset_id, body, id_conf=id_conf)

    def to_dict(self) -> dict:
        return {"asset_id": hex_id(self.asset_id), "body_size": self.body_size, "body": hex_id(self.body)}


@dataclass
class AssetHash:
    """Insertion order of asset_ids is significant and preserved on the wire."""
    asset_ids: List[bytes] = field(default_factory=list)
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)

    def bind(self, id_conf: IdLengthConfig, refit: bool = True) -> None:
        self.id_conf = id_conf
        if refit:
            self.asset_ids = [fit_id(a, id_conf.asset_id_len) for a in self.asset_ids]

    def add_asset_id(self, asset_id: bytes) -> "AssetHash":
        self.asset_ids.append(fit_id(asset_id, self.id_conf.asset_id_len))
        return self

    def pack(self) -> bytes:
        buf = bytearray()
        put_u16(buf, len(self.asset_ids), "asset id count")
        for asset_id in self.asset_ids:
            put_sized(buf, asset_id)
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: IdLengthConfig) -> "AssetHash":
        reader = ByteReader(data)
        obj = cls(id_conf=id_conf)
        for _ in range(reader.read_u16("asset id count")):
            asset_id = reader.read_sized("asset_id")
            id_conf.observe("asset_id_len", len(asset_id))
            obj.asset_ids.append(asset_id)
        return obj

    def to_dict(self) -> dict:
        return {"asset_ids": [hex_id(a) for a in self.asset_ids]}
