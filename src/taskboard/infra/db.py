# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import contextlib
import logging
import queue
import sqlite3
from pathlib import Path
from typing import Iterator, List, Union

from taskboard.errors import PersistenceError

logger = logging.getLogger(__name__)

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id            TEXT PRIMARY KEY,
        name          TEXT NOT NULL,
        email         TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        avatar_url    TEXT,
        created_at    TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tasks (
        id         TEXT PRIMARY KEY,
        user_id    TEXT NOT NULL,
        title      TEXT NOT NULL,
        completed  INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_created ON tasks(user_id, created_at)",
)


class Database:
    """
    Fixed-size pool of SQLite connections shared by all requests.

    - open once at startup, close once at shutdown
    - connection() checks one out, commits on success, rolls back on error
    - connections are created with check_same_thread=False because FastAPI
      runs sync endpoints on a threadpool; the pool hands each one to a
      single thread at a time
    """

    def __init__(self, path: Union[str, Path], *, pool_size: int = 4, timeout: float = 30.0) -> None:
        if pool_size < 1:
            raise ValueError("pool_size must be >= 1")
        self._path = Path(path)
        self._timeout = timeout
        self._pool: "queue.LifoQueue[sqlite3.Connection]" = queue.LifoQueue(maxsize=pool_size)
        self._all: List[sqlite3.Connection] = []
        self._closed = False

        self._path.parent.mkdir(parents=True, exist_ok=True)
        for _ in range(pool_size):
            conn = self._connect()
            self._all.append(conn)
            self._pool.put(conn)
        self._ensure_schema()
        logger.info("Database ready path=%s pool_size=%s", self._path, pool_size)

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path), timeout=self._timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        with self.connection() as conn:
            for stmt in SCHEMA:
                conn.execute(stmt)

    @contextlib.contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        if self._closed:
            raise PersistenceError("Database is closed")
        try:
            conn = self._pool.get(timeout=self._timeout)
        except queue.Empty:
            raise PersistenceError("No database connection available")
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._pool.put(conn)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for conn in self._all:
            conn.close()
        self._all.clear()
        logger.info("Database closed path=%s", self._path)
