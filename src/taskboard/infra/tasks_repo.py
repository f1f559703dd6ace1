# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Task queries. Every statement is scoped by user_id."""

from __future__ import annotations

import sqlite3
from typing import List, Optional

from taskboard.core.models import Task

_TASK_COLS = "id, user_id, title, completed, created_at"


def _row_to_task(row: sqlite3.Row) -> Task:
    return Task(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        title=str(row["title"]),
        completed=bool(row["completed"]),
        created_at=str(row["created_at"]),
    )


def insert_task(conn: sqlite3.Connection, task: Task) -> None:
    conn.execute(
        f"INSERT INTO tasks ({_TASK_COLS}) VALUES (?, ?, ?, ?, ?)",
        (task.id, task.user_id, task.title, int(task.completed), task.created_at),
    )


def list_tasks_for_user(conn: sqlite3.Connection, user_id: str) -> List[Task]:
    rows = conn.execute(
        f"SELECT {_TASK_COLS} FROM tasks WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    ).fetchall()
    return [_row_to_task(r) for r in rows]


def get_task_for_user(conn: sqlite3.Connection, task_id: str, user_id: str) -> Optional[Task]:
    row = conn.execute(
        f"SELECT {_TASK_COLS} FROM tasks WHERE id = ? AND user_id = ?",
        (task_id, user_id),
    ).fetchone()
    return _row_to_task(row) if row else None


def update_task_for_user(
    conn: sqlite3.Connection,
    task_id: str,
    user_id: str,
    *,
    title: Optional[str] = None,
    completed: Optional[bool] = None,
) -> int:
    """Apply the given fields; returns the number of rows touched (0 or 1)."""
    sets: List[str] = []
    params: list = []
    if title is not None:
        sets.append("title = ?")
        params.append(title)
    if completed is not None:
        sets.append("completed = ?")
        params.append(int(bool(completed)))
    if not sets:
        return 0
    cur = conn.execute(
        f"UPDATE tasks SET {', '.join(sets)} WHERE id = ? AND user_id = ?",
        params + [task_id, user_id],
    )
    return cur.rowcount


def toggle_task_for_user(conn: sqlite3.Connection, task_id: str, user_id: str) -> int:
    """Flip completion in one statement so concurrent toggles cannot lose a flip."""
    cur = conn.execute(
        "UPDATE tasks SET completed = 1 - completed WHERE id = ? AND user_id = ?",
        (task_id, user_id),
    )
    return cur.rowcount


def delete_task_for_user(conn: sqlite3.Connection, task_id: str, user_id: str) -> int:
    cur = conn.execute("DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id))
    return cur.rowcount
