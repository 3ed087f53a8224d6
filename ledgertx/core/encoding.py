import base64
import binascii
from typing import Optional


def b64url_encode(data: bytes) -> str:
    """Encode bytes to base64url (no padding, URL-safe). Used for key files."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(s: str) -> bytes:
    """Decode base64url string back to bytes."""
    padding = len(s) % 4
    if padding:
        s += "=" * (4 - padding)
    return base64.urlsafe_b64decode(s)


def hex_id(data: Optional[bytes]) -> Optional[str]:
    """Identifiers are displayed as lowercase hex; None stays None."""
    if data is None:
        return None
    return binascii.hexlify(data).decode("ascii")


def parse_hex_id(s: str) -> bytes:
    s = s.strip()
    if s.startswith(("0x", "0X")):
        s = s[2:]
    try:
        return binascii.unhexlify(s)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"not a hex identifier: {s!r}") from e
