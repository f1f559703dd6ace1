# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from taskboard.core.models import Task
from taskboard.core.validation import clean_title
from taskboard.errors import NotFoundError
from taskboard.infra import tasks_repo
from taskboard.infra.db import Database

logger = logging.getLogger(__name__)


def _owned_task(conn, *, user_id: str, task_id: str) -> Task:
    """Load a task only if ``user_id`` owns it."""
    task = tasks_repo.get_task_for_user(conn, task_id, user_id)
    if task is None:
        logger.warning("Task lookup denied task_id=%s user_id=%s", task_id, user_id)
        raise NotFoundError("Task not found")
    return task


def list_tasks(db: Database, user_id: str) -> List[Task]:
    """Tasks owned by user_id, newest first."""
    with db.connection() as conn:
        return tasks_repo.list_tasks_for_user(conn, user_id)


def create_task(db: Database, *, user_id: str, title: str) -> Task:
    task = Task(
        id=uuid.uuid4().hex,
        user_id=user_id,
        title=clean_title(title),
        completed=False,
        created_at=datetime.now(timezone.utc).isoformat(),
    )
    with db.connection() as conn:
        tasks_repo.insert_task(conn, task)
    logger.info("Created task id=%s user_id=%s", task.id, user_id)
    return task


def update_task(
    db: Database,
    *,
    user_id: str,
    task_id: str,
    title: Optional[str] = None,
    completed: Optional[bool] = None,
) -> Task:
    """Set title and/or completion. With neither given, completion is flipped."""
    new_title = clean_title(title) if title is not None else None
    with db.connection() as conn:
        task = _owned_task(conn, user_id=user_id, task_id=task_id)
        if new_title is None and completed is None:
            tasks_repo.toggle_task_for_user(conn, task.id, user_id)
        else:
            tasks_repo.update_task_for_user(conn, task.id, user_id, title=new_title, completed=completed)
        updated = _owned_task(conn, user_id=user_id, task_id=task.id)
    logger.info("Updated task id=%s user_id=%s completed=%s", updated.id, user_id, updated.completed)
    return updated


def toggle_task(db: Database, *, user_id: str, task_id: str) -> Task:
    return update_task(db, user_id=user_id, task_id=task_id)


def delete_task(db: Database, *, user_id: str, task_id: str) -> None:
    with db.connection() as conn:
        task = _owned_task(conn, user_id=user_id, task_id=task_id)
        tasks_repo.delete_task_for_user(conn, task.id, user_id)
    logger.info("Deleted task id=%s user_id=%s", task_id, user_id)


def task_summary(tasks: Iterable[Task]) -> Tuple[int, int]:
    """(completed, pending) counts for the dashboard header."""
    completed = pending = 0
    for t in tasks:
        if t.completed:
            completed += 1
        else:
            pending += 1
    return completed, pending
