import sqlite3
from pathlib import Path

from . import config


def get_conn(db_path: Path | None = None):
    """Return a sqlite3 connection to the given or configured DB path.

    The database file is created on first use, so only the parent directory
    is prepared here.
    """
    db_path = db_path or config.DB_PATH
    if not db_path:
        raise RuntimeError("Database path is not configured. Please choose a DB file.")
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return sqlite3.connect(str(db_path))
