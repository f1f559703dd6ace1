# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import sqlite3
from typing import Any, Dict, Optional

from taskboard.core.models import User

_USER_COLS = "id, name, email, password_hash, avatar_url, created_at"

# Columns a profile update may touch.
UPDATABLE = {"name", "email", "password_hash", "avatar_url"}


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=str(row["id"]),
        name=str(row["name"]),
        email=str(row["email"]),
        password_hash=str(row["password_hash"]),
        avatar_url=row["avatar_url"],
        created_at=str(row["created_at"]),
    )


def insert_user(conn: sqlite3.Connection, user: User) -> None:
    conn.execute(
        f"INSERT INTO users ({_USER_COLS}) VALUES (?, ?, ?, ?, ?, ?)",
        (user.id, user.name, user.email, user.password_hash, user.avatar_url, user.created_at),
    )


def get_user_by_id(conn: sqlite3.Connection, user_id: str) -> Optional[User]:
    row = conn.execute(f"SELECT {_USER_COLS} FROM users WHERE id = ?", (user_id,)).fetchone()
    return _row_to_user(row) if row else None


def get_user_by_email(conn: sqlite3.Connection, email: str) -> Optional[User]:
    row = conn.execute(f"SELECT {_USER_COLS} FROM users WHERE email = ?", (email,)).fetchone()
    return _row_to_user(row) if row else None


def email_taken(conn: sqlite3.Connection, email: str, *, exclude_id: Optional[str] = None) -> bool:
    if exclude_id:
        row = conn.execute("SELECT 1 FROM users WHERE email = ? AND id <> ?", (email, exclude_id)).fetchone()
    else:
        row = conn.execute("SELECT 1 FROM users WHERE email = ?", (email,)).fetchone()
    return row is not None


def update_user(conn: sqlite3.Connection, user_id: str, fields: Dict[str, Any]) -> None:
    if not fields:
        return
    unknown = set(fields) - UPDATABLE
    if unknown:
        raise ValueError(f"Not updatable: {', '.join(sorted(unknown))}")
    cols = sorted(fields)
    assignments = ", ".join(f"{c} = ?" for c in cols)
    conn.execute(
        f"UPDATE users SET {assignments} WHERE id = ?",
        [fields[c] for c in cols] + [user_id],
    )
