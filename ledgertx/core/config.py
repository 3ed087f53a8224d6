import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

from ledgertx.core.errors import InvalidIdLength

DEFAULT_ID_LENGTH = 32
MIN_ID_LENGTH = 1
MAX_ID_LENGTH = 32

# domain_id is fixed by the protocol, independent of IdLengthConfig
DOMAIN_ID_LENGTH = 32

ENV_ID_LENGTH = "LEDGERTX_ID_LENGTH"
ENV_FIELD_OVERRIDES = {
    "transaction_id_len": "LEDGERTX_TRANSACTION_ID_LENGTH",
    "user_id_len": "LEDGERTX_USER_ID_LENGTH",
    "asset_group_id_len": "LEDGERTX_ASSET_GROUP_ID_LENGTH",
    "asset_id_len": "LEDGERTX_ASSET_ID_LENGTH",
    "nonce_len": "LEDGERTX_NONCE_LENGTH",
}


def _check_length(name: str, value: int) -> int:
    if not isinstance(value, int) or not MIN_ID_LENGTH <= value <= MAX_ID_LENGTH:
        raise InvalidIdLength(f"{name} must be in {MIN_ID_LENGTH}..{MAX_ID_LENGTH}, got {value!r}")
    return value


@dataclass
class IdLengthConfig:
    """
    Byte lengths of the identifier fields of one transaction.

    A single instance is shared by every object of a transaction. Decoders write
    the lengths they observe on the wire back into it (see observe()).
    """
    transaction_id_len: int = DEFAULT_ID_LENGTH
    user_id_len: int = DEFAULT_ID_LENGTH
    asset_group_id_len: int = DEFAULT_ID_LENGTH
    asset_id_len: int = DEFAULT_ID_LENGTH
    nonce_len: int = DEFAULT_ID_LENGTH

    def __post_init__(self):
        for f in fields(self):
            _check_length(f.name, getattr(self, f.name))

    @classmethod
    def uniform(cls, length: int) -> "IdLengthConfig":
        return cls(length, length, length, length, length)

    def copy(self) -> "IdLengthConfig":
        return IdLengthConfig(**self.to_dict())

    def update_from(self, other: "IdLengthConfig") -> None:
        for name, value in other.to_dict().items():
            setattr(self, name, value)

    def set(self, name: str, value: int) -> None:
        if name not in ENV_FIELD_OVERRIDES:
            raise AttributeError(f"unknown id length field: {name}")
        setattr(self, name, _check_length(name, value))

    def observe(self, name: str, length: int) -> None:
        """Record a length learned from decoded data. Empty blobs carry no information."""
        if MIN_ID_LENGTH <= length <= MAX_ID_LENGTH:
            setattr(self, name, length)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def fit_id(value: Optional[bytes], length: int) -> Optional[bytes]:
    """Truncate or zero-pad an identifier to exactly `length` bytes."""
    if value is None:
        return None
    value = bytes(value)
    return value[:length].ljust(length, b"\x00")


def id_length_config_from_env(environ: Optional[Mapping[str, str]] = None) -> IdLengthConfig:
    """Resolve lengths in this order:
    1. per-field variable (e.g. LEDGERTX_USER_ID_LENGTH)
    2. LEDGERTX_ID_LENGTH
    3. Default: 32
    """
    env = os.environ if environ is None else environ
    base = int(env.get(ENV_ID_LENGTH, DEFAULT_ID_LENGTH))
    values = {}
    for name, var in ENV_FIELD_OVERRIDES.items():
        raw = env.get(var)
        values[name] = int(raw) if raw else base
    return IdLengthConfig(**values)
