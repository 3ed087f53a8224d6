import hashlib


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(bytes(data)).digest()


def truncated_sha256(data: bytes, length: int) -> bytes:
    """First `length` bytes of SHA-256; content addresses (asset_id, transaction_id)."""
    return sha256(data)[:length]


def file_digest(content: bytes) -> bytes:
    """Digest stored in an asset instead of the file itself."""
    return sha256(content)
