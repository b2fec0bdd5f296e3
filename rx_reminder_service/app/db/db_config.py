# app/db/db_config.py

import sqlite3
from pathlib import Path
from typing import Optional, Union

from app.core.env import SERVICE_ROOT
from app.core.settings import REMINDER_DB_PATH

# rx_reminder_service/app/db/reminders.db unless REMINDER_DB_PATH is set
DB_PATH = Path(REMINDER_DB_PATH) if REMINDER_DB_PATH else SERVICE_ROOT / "app" / "db" / "reminders.db"


def get_sqlite_connection(db_path: Optional[Union[str, Path]] = None) -> sqlite3.Connection:
    """
    Open a SQLite connection shared across threads, with WAL journaling.
    The parent directory is created when missing.
    """
    path = Path(db_path) if db_path else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), check_same_thread=False)

    # Performance & concurrency settings
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=5000;")

    return conn
