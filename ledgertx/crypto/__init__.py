from .hashing import sha256, truncated_sha256, file_digest
from .keys import KeyPair, KeyType, DEFAULT_CURVE_TYPE, verify_signature

__all__ = ["sha256", "truncated_sha256", "file_digest", "KeyPair", "KeyType",
           "DEFAULT_CURVE_TYPE", "verify_signature"]
