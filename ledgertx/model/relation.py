from dataclasses import dataclass, field
from typing import Any, List, Optional

from ledgertx.core.binary import ByteReader, put_sized, put_sub_object, put_u16, put_u32
from ledgertx.core.config import IdLengthConfig, fit_id
from ledgertx.core.encoding import hex_id
from ledgertx.core.errors import MissingAssetGroup
from ledgertx.model.asset import Asset, AssetHash, AssetRaw
from ledgertx.model.pointer import Pointer

# AssetRaw/AssetHash are on the wire from this transaction version on
ASSET_VARIANTS_MIN_VERSION = 2


@dataclass
class Relation:
    """
    Account/state style container: an asset plus links to other transactions.

    Writers normally fill one of asset / asset_raw / asset_hash; readers accept all three.
    """
    asset_group_id: Optional[bytes] = None
    pointers: List[Pointer] = field(default_factory=list)
    asset: Optional[Asset] = None
    asset_raw: Optional[AssetRaw] = None
    asset_hash: Optional[AssetHash] = None
    version: int = ASSET_VARIANTS_MIN_VERSION
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)

    def bind(self, id_conf: IdLengthConfig, version: int, refit: bool = True) -> None:
        """Adopt a transaction's length config and version, re-cutting ids set under the previous config."""
        self.id_conf = id_conf
        self.version = version
        if refit:
            self.asset_group_id = fit_id(self.asset_group_id, id_conf.asset_group_id_len)
        for obj in [*self.pointers, self.asset, self.asset_raw, self.asset_hash]:
            if obj is not None:
                obj.bind(id_conf, refit)

    def set_asset_group(self, asset_group_id: bytes) -> "Relation":
        self.asset_group_id = fit_id(asset_group_id, self.id_conf.asset_group_id_len)
        return self

    def add_pointer(self, transaction_id: Optional[bytes], asset_id: Optional[bytes] = None) -> "Relation":
        self.pointers.append(Pointer(id_conf=self.id_conf).set(transaction_id, asset_id))
        return self

    def attach_pointer(self, pointer: Pointer) -> "Relation":
        pointer.bind(self.id_conf)
        self.pointers.append(pointer)
        return self

    def attach_asset(self, asset: Asset) -> "Relation":
        asset.bind(self.id_conf)
        self.asset = asset
        return self

    def create_asset(self, user_id: Optional[bytes] = None, file_content: Optional[bytes] = None,
                     body: Any = None) -> "Relation":
        asset = Asset(id_conf=self.id_conf)
        asset.add_owner(user_id)
        if file_content is not None:
            asset.attach_file(file_content)
        if body is not None:
            asset.set_body(body)
        self.asset = asset
        return self

    def create_asset_raw(self, asset_id: bytes, body: Any = b"") -> "Relation":
        self.asset_raw = AssetRaw(id_conf=self.id_conf).set(asset_id, body)
        return self

    def add_asset_hash(self, asset_id: bytes) -> "Relation":
        if self.asset_hash is None:
            self.asset_hash = AssetHash(id_conf=self.id_conf)
        self.asset_hash.add_asset_id(asset_id)
        return self

    def pack(self) -> bytes:
        if not self.asset_group_id:
            raise MissingAssetGroup("Relation needs an asset_group_id")
        buf = bytearray()
        put_sized(buf, self.asset_group_id)

        put_u16(buf, len(self.pointers), "pointer count")
        for ptr in self.pointers:
            put_sub_object(buf, ptr.pack(), size_width=2)

        variants = [self.asset]
        if self.version >= ASSET_VARIANTS_MIN_VERSION:
            variants += [self.asset_raw, self.asset_hash]
        for obj in variants:
            if obj is not None:
                put_sub_object(buf, obj.pack())
            else:
                put_u32(buf, 0)
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: IdLengthConfig,
               version: int = ASSET_VARIANTS_MIN_VERSION) -> "Relation":
        reader = ByteReader(data)
        obj = cls(version=version, id_conf=id_conf)
        obj.asset_group_id = reader.read_sized("asset_group_id")
        id_conf.observe("asset_group_id_len", len(obj.asset_group_id))

        for _ in range(reader.read_u16("pointer count")):
            dat = reader.read_sub_object(size_width=2, what="pointer")
            obj.pointers.append(Pointer.unpack(dat, id_conf))

        size = reader.read_u32("asset size")
        if size > 0:
            obj.asset = Asset.unpack(reader.read_bytes(size, "asset"), id_conf)

        if version >= ASSET_VARIANTS_MIN_VERSION:
            size = reader.read_u32("asset_raw size")
            if size > 0:
                obj.asset_raw = AssetRaw.unpack(reader.read_bytes(size, "asset_raw"), id_conf)
            size = reader.read_u32("asset_hash size")
            if size > 0:
                obj.asset_hash = AssetHash.unpack(reader.read_bytes(size, "asset_hash"), id_conf)
        return obj

    def to_dict(self) -> dict:
        return {
            "asset_group_id": hex_id(self.asset_group_id),
            "pointers": [p.to_dict() for p in self.pointers],
            "asset": self.asset.to_dict() if self.asset is not None else None,
            "asset_raw": self.asset_raw.to_dict() if self.asset_raw is not None else None,
            "asset_hash": self.asset_hash.to_dict() if self.asset_hash is not None else None,
        }
