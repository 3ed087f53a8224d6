# tests/test_logging.py
import json

import pytest
import structlog

from ledgertx.core import entropy
from ledgertx.core.errors import RngUnavailable
from ledgertx.core.logging import configure_logging
from ledgertx.model.transaction import Transaction


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_json_debug_output(capsys, users):
    configure_logging("DEBUG", json_output=True)
    tx = Transaction(timestamp=1)
    tx.get_or_allocate_slot(users[1])
    err = capsys.readouterr().err
    lines = [json.loads(line) for line in err.splitlines() if line.strip()]
    allocated = [entry for entry in lines if entry["event"] == "slot_allocated"]
    assert allocated[0]["index"] == 0
    assert allocated[0]["user_id"] == users[1].hex()
    assert allocated[0]["level"] == "debug"


def test_level_filters_debug(capsys, users, monkeypatch):
    monkeypatch.setenv("LEDGERTX_LOG_LEVEL", "warning")
    configure_logging()
    Transaction().get_or_allocate_slot(users[1])
    assert capsys.readouterr().err == ""


def test_rng_failure_is_loud(monkeypatch):
    def broken(n):
        raise OSError("no entropy")

    monkeypatch.setattr(entropy.secrets, "token_bytes", broken)
    with pytest.raises(RngUnavailable):
        entropy.random_bytes(32)
