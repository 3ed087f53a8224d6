"""
ECDSA signing capability bound to the `cryptography` package.

Keys are raw bytes, not opaque handles: a 32-byte private scalar and a SEC1
encoded public point (65 bytes uncompressed, 33 compressed). Signatures are the
fixed 64-byte R||S form, each half left-padded to 32 bytes.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

from ledgertx.core.encoding import b64url_decode, b64url_encode
from ledgertx.core.errors import SigningError

SIGNATURE_HALF_LEN = 32
DIGEST_LEN = 32


class KeyType(IntEnum):
    NOT_INITIALIZED = 0
    ECDSA_SECP256K1 = 1
    ECDSA_P256V1 = 2


DEFAULT_CURVE_TYPE = KeyType.ECDSA_P256V1

_CURVES = {
    KeyType.ECDSA_SECP256K1: ec.SECP256K1,
    KeyType.ECDSA_P256V1: ec.SECP256R1,
}


def _curve(curve_type: int) -> ec.EllipticCurve:
    try:
        return _CURVES[KeyType(curve_type)]()
    except (KeyError, ValueError):
        raise SigningError(f"unsupported key type: {curve_type}")


def _algorithm() -> ec.ECDSA:
    # the transaction digest is already SHA-256, so it must not be hashed again
    return ec.ECDSA(Prehashed(hashes.SHA256()))


def _public_point(public_key: ec.EllipticCurvePublicKey, compressed: bool) -> bytes:
    fmt = (serialization.PublicFormat.CompressedPoint if compressed
           else serialization.PublicFormat.UncompressedPoint)
    return public_key.public_bytes(serialization.Encoding.X962, fmt)


def verify_signature(key_type: int, public_key: bytes, digest: bytes, signature: bytes) -> bool:
    """Check a raw R||S signature over a 32-byte digest. Malformed input is simply invalid."""
    if not public_key or len(signature) != 2 * SIGNATURE_HALF_LEN or len(digest) != DIGEST_LEN:
        return False
    try:
        curve = _curve(key_type)
        pub = ec.EllipticCurvePublicKey.from_encoded_point(curve, bytes(public_key))
    except (SigningError, ValueError):
        return False
    r = int.from_bytes(signature[:SIGNATURE_HALF_LEN], "big")
    s = int.from_bytes(signature[SIGNATURE_HALF_LEN:], "big")
    try:
        pub.verify(encode_dss_signature(r, s), bytes(digest), _algorithm())
    except (InvalidSignature, ValueError):
        return False
    return True


@dataclass
class KeyPair:
    """Private/public key pair of one signer. private_key is None for verify-only pairs."""
    curve_type: KeyType = DEFAULT_CURVE_TYPE
    public_key: bytes = b""
    private_key: Optional[bytes] = field(default=None, repr=False)
    compressed: bool = False

    @classmethod
    def generate(cls, curve_type: int = DEFAULT_CURVE_TYPE, compressed: bool = False) -> "KeyPair":
        priv = ec.generate_private_key(_curve(curve_type))
        raw = priv.private_numbers().private_value.to_bytes(32, "big")
        return cls(KeyType(curve_type), _public_point(priv.public_key(), compressed), raw, compressed)

    @classmethod
    def from_private_key(cls, private_key: bytes, curve_type: int = DEFAULT_CURVE_TYPE,
                         compressed: bool = False) -> "KeyPair":
        try:
            priv = ec.derive_private_key(int.from_bytes(private_key, "big"), _curve(curve_type))
        except ValueError as e:
            raise SigningError(f"invalid private key: {e}") from e
        return cls(KeyType(curve_type), _public_point(priv.public_key(), compressed),
                   bytes(private_key), compressed)

    @classmethod
    def from_public_key(cls, public_key: bytes, curve_type: int = DEFAULT_CURVE_TYPE) -> "KeyPair":
        try:
            ec.EllipticCurvePublicKey.from_encoded_point(_curve(curve_type), bytes(public_key))
        except ValueError as e:
            raise SigningError(f"invalid public key: {e}") from e
        return cls(KeyType(curve_type), bytes(public_key), None, len(public_key) == 33)

    def _private(self) -> ec.EllipticCurvePrivateKey:
        if self.private_key is None:
            raise SigningError("keypair has no private key")
        return ec.derive_private_key(int.from_bytes(self.private_key, "big"), _curve(self.curve_type))

    def sign(self, digest: bytes) -> bytes:
        if len(digest) != DIGEST_LEN:
            raise SigningError(f"digest must be {DIGEST_LEN} bytes, got {len(digest)}")
        der = self._private().sign(bytes(digest), _algorithm())
        r, s = decode_dss_signature(der)
        return r.to_bytes(SIGNATURE_HALF_LEN, "big") + s.to_bytes(SIGNATURE_HALF_LEN, "big")

    def verify(self, digest: bytes, signature: bytes) -> bool:
        return verify_signature(self.curve_type, self.public_key, digest, signature)

    def public_key_b64url(self) -> str:
        return b64url_encode(self.public_key)

    def to_key_file(self) -> dict:
        """JSON-friendly form written by `ledgertx keygen`."""
        d = {"key_type": int(self.curve_type), "public_key": self.public_key_b64url()}
        if self.private_key is not None:
            d["private_key"] = b64url_encode(self.private_key)
        return d

    @classmethod
    def from_key_file(cls, d: dict) -> "KeyPair":
        curve_type = d.get("key_type", DEFAULT_CURVE_TYPE)
        if "private_key" in d:
            pub = b64url_decode(d["public_key"]) if d.get("public_key") else b""
            return cls.from_private_key(b64url_decode(d["private_key"]), curve_type,
                                        compressed=len(pub) == 33)
        return cls.from_public_key(b64url_decode(d["public_key"]), curve_type)
