import logging
from contextlib import closing
from pathlib import Path

from .db import get_conn

logger = logging.getLogger(__name__)

TABLE_NAME = "ledger_kv"


class KeyValueRepository:
    """Durable string key/value storage backed by one sqlite table.

    Values are stored verbatim; encoding them (JSON or scalar text) is the
    caller's business. Every write commits before returning.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path
        self.ensure_schema()

    def _connect(self):
        return closing(get_conn(self.db_path))

    def ensure_schema(self) -> None:
        with self._connect() as conn, conn:
            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} (KEY TEXT PRIMARY KEY, VALUE TEXT NOT NULL)"
            )

    def load_all(self) -> dict[str, str]:
        with self._connect() as conn:
            rows = conn.execute(f"SELECT KEY, VALUE FROM {TABLE_NAME}").fetchall()
        return {key: value for key, value in rows}

    def set_item(self, key: str, value: str) -> None:
        self.set_items({key: value})

    def set_items(self, items: dict[str, str]) -> None:
        """Upsert all items in a single transaction."""
        with self._connect() as conn, conn:
            conn.executemany(
                f"INSERT INTO {TABLE_NAME} (KEY, VALUE) VALUES (?, ?) "
                "ON CONFLICT(KEY) DO UPDATE SET VALUE=excluded.VALUE",
                [(key, str(value)) for key, value in items.items()],
            )
        logger.debug("Persisted keys: %s", ", ".join(items))

    def replace_all(self, items: dict[str, str]) -> None:
        """Drop every stored key, then write ``items``, atomically."""
        with self._connect() as conn, conn:
            conn.execute(f"DELETE FROM {TABLE_NAME}")
            conn.executemany(
                f"INSERT INTO {TABLE_NAME} (KEY, VALUE) VALUES (?, ?)",
                [(key, str(value)) for key, value in items.items()],
            )
        logger.info("Replaced storage contents with %d keys", len(items))
