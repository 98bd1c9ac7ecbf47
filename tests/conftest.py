"""Pytest fixtures for SplitLedger tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ledger import Ledger


@pytest.fixture(autouse=True)
def app_home(tmp_path, monkeypatch):
    """Keep settings and people.json lookups inside a temp directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("SPLITLEDGER_HOME", str(home))
    monkeypatch.delenv("SPLITLEDGER_LOG_LEVEL", raising=False)
    return home


@pytest.fixture
def when() -> datetime:
    return datetime(2022, 5, 1, 11, 0, tzinfo=timezone.utc)


@pytest.fixture
def trio() -> Ledger:
    return Ledger(["Alice", "Bob", "Charlie"])


@pytest.fixture
def quartet() -> Ledger:
    """Registry {Alex, Ben, Cara, Danielle} with Cara's 120 expense recorded."""
    ledger = Ledger(["Alex", "Ben", "Cara", "Danielle"])
    ledger.add_expense("Cara", 120, {"Ben": 45, "Alex": 25, "Cara": 25, "Danielle": 25},
                       "dinner", datetime(2022, 5, 1, 19, 30, tzinfo=timezone.utc))
    return ledger
