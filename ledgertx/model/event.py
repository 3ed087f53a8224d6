from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from ledgertx.core.binary import ByteReader, put_sized, put_sub_object, put_u16, put_u32
from ledgertx.core.config import IdLengthConfig, fit_id
from ledgertx.core.encoding import hex_id
from ledgertx.core.errors import ApproverCountMismatch
from ledgertx.model.asset import Asset


@dataclass
class Event:
    """
    Output of a UTXO-style transfer.

    Declares who must approve spending it in a future transaction: every
    mandatory approver, plus option_quorum_numerator of the option approvers.
    reference_indices point into the References of the same transaction.
    """
    asset_group_id: Optional[bytes] = None
    reference_indices: List[int] = field(default_factory=list)
    mandatory_approvers: List[bytes] = field(default_factory=list)
    option_quorum_numerator: int = 0
    option_quorum_denominator: int = 0
    option_approvers: List[bytes] = field(default_factory=list)
    asset: Optional[Asset] = None
    id_conf: IdLengthConfig = field(default_factory=IdLengthConfig, repr=False, compare=False)

    def bind(self, id_conf: IdLengthConfig, refit: bool = True) -> None:
        """Adopt a transaction's length config, re-cutting ids set under the previous one."""
        self.id_conf = id_conf
        if refit:
            self.asset_group_id = fit_id(self.asset_group_id, id_conf.asset_group_id_len)
            self.mandatory_approvers = [fit_id(u, id_conf.user_id_len) for u in self.mandatory_approvers]
            self.option_approvers = [fit_id(u, id_conf.user_id_len) for u in self.option_approvers]
        if self.asset is not None:
            self.asset.bind(id_conf, refit)

    def set_asset_group(self, asset_group_id: bytes) -> "Event":
        self.asset_group_id = fit_id(asset_group_id, self.id_conf.asset_group_id_len)
        return self

    def add_reference_index(self, index: int) -> "Event":
        if index >= 0:
            self.reference_indices.append(index)
        return self

    def set_option_params(self, numerator: int, denominator: int) -> "Event":
        self.option_quorum_numerator = numerator
        self.option_quorum_denominator = denominator
        return self

    def add_mandatory_approver(self, user_id: bytes) -> "Event":
        self.mandatory_approvers.append(fit_id(user_id, self.id_conf.user_id_len))
        return self

    def add_mandatory_approvers(self, user_ids: Iterable[bytes]) -> "Event":
        for user_id in user_ids:
            self.add_mandatory_approver(user_id)
        return self

    def add_option_approver(self, user_id: bytes) -> "Event":
        self.option_approvers.append(fit_id(user_id, self.id_conf.user_id_len))
        return self

    def attach_asset(self, asset: Asset) -> "Event":
        asset.bind(self.id_conf)
        self.asset = asset
        return self

    def create_asset(self, user_id: Optional[bytes] = None, file_content: Optional[bytes] = None,
                     body: Any = None) -> "Event":
        asset = Asset(id_conf=self.id_conf)
        asset.add_owner(user_id)
        if file_content is not None:
            asset.attach_file(file_content)
        if body is not None:
            asset.set_body(body)
        self.asset = asset
        return self

    def is_mandatory_approver(self, user_id: bytes) -> bool:
        return bytes(user_id) in self.mandatory_approvers

    def is_option_approver(self, user_id: bytes) -> bool:
        return bytes(user_id) in self.option_approvers

    def pack(self) -> bytes:
        if len(self.option_approvers) != self.option_quorum_denominator:
            raise ApproverCountMismatch(
                f"{len(self.option_approvers)} option approvers, "
                f"denominator is {self.option_quorum_denominator}"
            )
        buf = bytearray()
        put_sized(buf, self.asset_group_id)

        put_u16(buf, len(self.reference_indices), "reference index count")
        for idx in self.reference_indices:
            put_u16(buf, idx, "reference index")

        put_u16(buf, len(self.mandatory_approvers), "mandatory approver count")
        for user_id in self.mandatory_approvers:
            put_sized(buf, user_id)

        put_u16(buf, self.option_quorum_numerator, "option numerator")
        put_u16(buf, self.option_quorum_denominator, "option denominator")
        for user_id in self.option_approvers:
            put_sized(buf, user_id)

        if self.asset is not None:
            put_sub_object(buf, self.asset.pack())
        else:
            put_u32(buf, 0)
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes, id_conf: IdLengthConfig) -> "Event":
        reader = ByteReader(data)
        obj = cls(id_conf=id_conf)
        obj.asset_group_id = reader.read_sized("asset_group_id")
        id_conf.observe("asset_group_id_len", len(obj.asset_group_id))

        for _ in range(reader.read_u16("reference index count")):
            obj.reference_indices.append(reader.read_u16("reference index"))

        for _ in range(reader.read_u16("mandatory approver count")):
            user_id = reader.read_sized("mandatory approver")
            id_conf.observe("user_id_len", len(user_id))
            obj.mandatory_approvers.append(user_id)

        obj.option_quorum_numerator = reader.read_u16("option numerator")
        obj.option_quorum_denominator = reader.read_u16("option denominator")
        for _ in range(obj.option_quorum_denominator):
            user_id = reader.read_sized("option approver")
            id_conf.observe("user_id_len", len(user_id))
            obj.option_approvers.append(user_id)

        asset_size = reader.read_u32("asset size")
        if asset_size > 0:
            obj.asset = Asset.unpack(reader.read_bytes(asset_size, "asset"), id_conf)
        return obj

    def to_dict(self) -> dict:
        return {
            "asset_group_id": hex_id(self.asset_group_id),
            "reference_indices": list(self.reference_indices),
            "mandatory_approvers": [hex_id(u) for u in self.mandatory_approvers],
            "option_approver_num_numerator": self.option_quorum_numerator,
            "option_approver_num_denominator": self.option_quorum_denominator,
            "option_approvers": [hex_id(u) for u in self.option_approvers],
            "asset": self.asset.to_dict() if self.asset is not None else None,
        }
