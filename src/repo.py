from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone

from src.errors import DuplicateEmailError


_USER_COLUMNS = (
    "user_id, name, email, password_hash, preferences_json, "
    "created_at, updated_at, last_login_at"
)


def normalize_email(email: str) -> str:
    """Emails are stored and looked up stripped and lower-cased."""
    return email.strip().lower()


def _row_to_user(row) -> dict:
    try:
        preferences = json.loads(row[4])
    except (TypeError, ValueError):
        preferences = []
    return {
        "user_id": row[0],
        "name": row[1],
        "email": row[2],
        "password_hash": row[3],
        "preferences": preferences,
        "created_at": row[5],
        "updated_at": row[6],
        "last_login_at": row[7],
    }


def create_user(conn: sqlite3.Connection, *, name: str, email: str, password_hash: str,
                preferences: list[str] | None = None) -> str:
    """
    Insert a new user.

    Args:
        conn: database connection
        name: display name
        email: login email (normalized before storing)
        password_hash: bcrypt hash from src.auth.hash_password, never plaintext
        preferences: category strings, stored as a JSON array

    Returns:
        The new user_id (uuid4 hex)

    Raises:
        DuplicateEmailError if the email is already registered
    """
    user_id = uuid.uuid4().hex
    now = datetime.now(timezone.utc).isoformat()
    try:
        conn.execute(
            """
            INSERT INTO users
            (user_id, name, email, password_hash, preferences_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (user_id, name, normalize_email(email), password_hash,
             json.dumps(list(preferences or [])), now, now),
        )
    except sqlite3.IntegrityError as exc:
        # UNIQUE(email) is the only constraint a well-formed insert can violate
        raise DuplicateEmailError() from exc
    conn.commit()
    return user_id


def get_user_by_email(conn: sqlite3.Connection, *, email: str) -> dict | None:
    row = conn.execute(
        f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?",
        (normalize_email(email),),
    ).fetchone()
    if row is None:
        return None
    return _row_to_user(row)


def get_user_by_id(conn: sqlite3.Connection, *, user_id: str) -> dict | None:
    row = conn.execute(
        f"SELECT {_USER_COLUMNS} FROM users WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    if row is None:
        return None
    return _row_to_user(row)


def update_user_preferences(conn: sqlite3.Connection, *, user_id: str, preferences: list[str]) -> None:
    """Replace the stored preference list as-is (normalization happens on read)."""
    now = datetime.now(timezone.utc).isoformat()
    conn.execute(
        "UPDATE users SET preferences_json = ?, updated_at = ? WHERE user_id = ?",
        (json.dumps(list(preferences)), now, user_id),
    )
    conn.commit()


def update_user_last_login(conn: sqlite3.Connection, *, user_id: str) -> None:
    now = datetime.now(timezone.utc).isoformat()
    conn.execute(
        "UPDATE users SET last_login_at = ? WHERE user_id = ?",
        (now, user_id),
    )
    conn.commit()
