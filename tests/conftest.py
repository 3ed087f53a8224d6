# tests/conftest.py
import pytest

from ledgertx.builder import get_identifier
from ledgertx.crypto.keys import KeyPair


@pytest.fixture
def timestamp() -> int:
    return 1_767_225_600_000_000  # 2026-01-01T00:00:00Z in microseconds


@pytest.fixture
def asset_group_id() -> bytes:
    return get_identifier("asset_group_1")


@pytest.fixture
def domain_id() -> bytes:
    return get_identifier("test domain")


@pytest.fixture(scope="session")
def users():
    """u1..u6 as 32-byte ids."""
    return {n: get_identifier(f"user{n}") for n in range(1, 7)}


@pytest.fixture(scope="session")
def keypairs():
    return {n: KeyPair.generate() for n in range(1, 7)}
