# tests/conftest.py
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from budget_ledger import config
from budget_ledger.repository import KeyValueRepository
from budget_ledger.store import LedgerStore

NOW = datetime(2025, 3, 15, 9, 30, 42)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch) -> Path:
    """
    Point budget.ini and the default database at a temporary directory
    so tests never touch files next to the package.
    """
    ini_path = tmp_path / "budget.ini"
    monkeypatch.setattr(config, "CONFIG_FILE", ini_path)
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "default.db")
    return ini_path


@pytest.fixture
def repository(tmp_path: Path) -> KeyValueRepository:
    return KeyValueRepository(tmp_path / "ledger.db")


@pytest.fixture
def clock():
    return lambda: NOW


def seed(repository: KeyValueRepository, **values: Any) -> None:
    """
    Write raw ledger keys the way a previous session would have left them.
    Lists and dicts are JSON encoded, everything else is stored as text.
    """
    encoded = {
        key: json.dumps(value) if isinstance(value, (list, dict)) else str(value)
        for key, value in values.items()
    }
    repository.set_items(encoded)


def stored(repository: KeyValueRepository, key: str) -> str | None:
    return repository.load_all().get(key)


def make_store(repository: KeyValueRepository, clock, month: str = "March 2025") -> LedgerStore:
    store = LedgerStore(repository, clock=clock)
    store.initialize(month)
    return store


@pytest.fixture
def empty_store(repository, clock) -> LedgerStore:
    """
    Store for the current month with no fixed or extra expenses and a
    budget of 10000 (as if the user had cleared the seeded entries).
    """
    seed(repository, lastMonthKey="March 2025", totalBudget="10000")
    return make_store(repository, clock)
