# tests/test_keys.py
import pytest

from ledgertx.core.errors import SigningError
from ledgertx.crypto.hashing import sha256
from ledgertx.crypto.keys import KeyPair, KeyType, verify_signature
from ledgertx.model.signature import Signature

DIGEST = sha256(b"transaction digest")


@pytest.mark.parametrize("curve", [KeyType.ECDSA_P256V1, KeyType.ECDSA_SECP256K1])
def test_sign_verify(curve):
    kp = KeyPair.generate(curve)
    sig = kp.sign(DIGEST)
    assert len(sig) == 64
    assert len(kp.public_key) == 65
    assert kp.verify(DIGEST, sig)
    assert not kp.verify(sha256(b"other"), sig)


def test_compressed_public_key():
    kp = KeyPair.generate(compressed=True)
    assert len(kp.public_key) == 33
    assert verify_signature(kp.curve_type, kp.public_key, DIGEST, kp.sign(DIGEST))


def test_digest_must_be_32_bytes():
    with pytest.raises(SigningError):
        KeyPair.generate().sign(b"short")


def test_public_only_pair_cannot_sign():
    kp = KeyPair.generate()
    public_only = KeyPair.from_public_key(kp.public_key)
    assert public_only.verify(DIGEST, kp.sign(DIGEST))
    with pytest.raises(SigningError):
        public_only.sign(DIGEST)


def test_malformed_input_verifies_false():
    kp = KeyPair.generate()
    sig = kp.sign(DIGEST)
    assert not verify_signature(kp.curve_type, b"", DIGEST, sig)
    assert not verify_signature(kp.curve_type, b"\x04" + b"\x00" * 64, DIGEST, sig)
    assert not verify_signature(kp.curve_type, kp.public_key, DIGEST, sig[:-1])
    assert not verify_signature(99, kp.public_key, DIGEST, sig)


def test_key_file_roundtrip():
    kp = KeyPair.generate()
    restored = KeyPair.from_key_file(kp.to_key_file())
    assert restored.private_key == kp.private_key
    assert restored.public_key == kp.public_key

    public = KeyPair.from_key_file({"key_type": 2, "public_key": kp.public_key_b64url()})
    assert public.private_key is None


def test_from_private_key_derives_public():
    kp = KeyPair.generate()
    assert KeyPair.from_private_key(kp.private_key).public_key == kp.public_key


def test_signature_lengths_are_bits():
    kp = KeyPair.generate()
    sig = Signature().set_public_key_by_keypair(kp).set_signature(kp.sign(DIGEST))
    data = sig.pack()
    assert data[:4] == (2).to_bytes(4, "little")
    assert data[4:8] == (65 * 8).to_bytes(4, "little")
    assert data[8 + 65:12 + 65] == (64 * 8).to_bytes(4, "little")

    restored = Signature.unpack(data)
    assert restored == sig
    assert restored.verify(DIGEST)


def test_uninitialized_signature_is_type_only():
    sig = Signature()
    assert not sig.initialized
    assert sig.pack() == b"\x00\x00\x00\x00"
    assert Signature.unpack(sig.pack()) == sig


def test_signature_without_public_key_fails():
    kp = KeyPair.generate()
    sig = Signature(KeyType.ECDSA_P256V1, b"", kp.sign(DIGEST))
    assert not sig.verify(DIGEST)
