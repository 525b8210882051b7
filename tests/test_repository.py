from __future__ import annotations

from budget_ledger import config
from budget_ledger.repository import KeyValueRepository


def test_new_database_is_empty(repository):
    assert repository.load_all() == {}


def test_set_items_upserts(repository):
    repository.set_items({"a": "1", "b": "2"})
    repository.set_item("a", "3")

    assert repository.load_all() == {"a": "3", "b": "2"}


def test_replace_all_drops_other_keys(repository):
    repository.set_items({"theme": "dark", "other": "x"})

    repository.replace_all({"totalBudget": "12000"})

    assert repository.load_all() == {"totalBudget": "12000"}


def test_data_shared_between_instances(tmp_path):
    KeyValueRepository(tmp_path / "shared.db").set_item("k", "v")

    assert KeyValueRepository(tmp_path / "shared.db").load_all() == {"k": "v"}


def test_defaults_to_configured_db_path(tmp_path):
    repository = KeyValueRepository()
    repository.set_item("k", "v")

    assert config.DB_PATH == tmp_path / "default.db"
    assert config.DB_PATH.exists()


def test_creates_missing_parent_directory(tmp_path):
    repository = KeyValueRepository(tmp_path / "nested" / "dir" / "ledger.db")
    repository.set_item("k", "v")

    assert (tmp_path / "nested" / "dir" / "ledger.db").exists()
