import secrets

from ledgertx.core.errors import RngUnavailable


def random_bytes(length: int) -> bytes:
    """Cryptographically secure random bytes (nonces, placeholder user ids)."""
    if length < 0:
        raise ValueError("length must be non-negative")
    try:
        return secrets.token_bytes(length)
    except (OSError, NotImplementedError) as e:
        raise RngUnavailable(f"random source failed: {e}") from e
