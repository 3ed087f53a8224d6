from .asset import Asset, AssetRaw, AssetHash, BodyType
from .crossref import CrossRef
from .event import Event
from .pointer import Pointer
from .reference import Reference, OptionalSlot
from .relation import Relation
from .signature import Signature
from .slots import SignatureSlots
from .transaction import Transaction, DEFAULT_VERSION
from .witness import Witness

__all__ = [
    "Asset", "AssetRaw", "AssetHash", "BodyType",
    "CrossRef", "Event", "Pointer", "Reference", "OptionalSlot",
    "Relation", "Signature", "SignatureSlots", "Transaction",
    "DEFAULT_VERSION", "Witness",
]
