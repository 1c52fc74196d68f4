# src/db.py
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path


class InvalidDbPathError(Exception):
    """Raised when NEWS_DB_PATH points to an invalid location."""
    pass


@contextmanager
def db_conn():
    """
    Context manager for database connections.
    Opens connection, initializes schema, yields connection, closes on exit.

    Usage:
        with db_conn() as conn:
            # use conn
    """
    conn = get_conn()
    try:
        init_db(conn)
        yield conn
    finally:
        conn.close()


def get_conn() -> sqlite3.Connection:
    """
    Open a SQLite connection to the DB path.
    DB path is configured via NEWS_DB_PATH env var, with a safe local default.
    """
    db_path = os.environ.get("NEWS_DB_PATH", "./data/users.db")
    path = Path(db_path)

    # Validate: if NEWS_DB_PATH is set, check that the root/drive exists
    if os.environ.get("NEWS_DB_PATH"):
        root = path.anchor or (path.parts[0] if path.parts else None)
        if root and not Path(root).exists():
            raise InvalidDbPathError(
                f"NEWS_DB_PATH is set to '{db_path}' but the root path '{root}' doesn't exist."
            )

    # Ensure parent directory exists (e.g., ./data/)
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    # FastAPI runs sync routes in a threadpool; each request opens its own connection
    conn = sqlite3.connect(str(path), check_same_thread=False)
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """
    Create required tables if they don't exist.
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS users (
            user_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            preferences_json TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            last_login_at TEXT
        )
    """)

    conn.commit()
