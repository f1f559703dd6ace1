# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Optional

from taskboard.auth.passwords import DUMMY_HASH, hash_password, needs_rehash, verify_password
from taskboard.core.models import User
from taskboard.core.validation import clean_email, clean_name, clean_password, normalize_email
from taskboard.errors import DuplicateEmailError
from taskboard.infra import users_repo
from taskboard.infra.db import Database

logger = logging.getLogger(__name__)


def register_user(db: Database, *, name: str, email: str, password: str) -> User:
    """Create a user. No session is issued here; the caller logs in separately."""
    n = clean_name(name)
    e = clean_email(email)
    p = clean_password(password)

    user = User(
        id=uuid.uuid4().hex,
        name=n,
        email=e,
        password_hash=hash_password(p),
        avatar_url=None,
        created_at=datetime.now(timezone.utc).isoformat(),
    )
    with db.connection() as conn:
        if users_repo.email_taken(conn, e):
            raise DuplicateEmailError()
        try:
            users_repo.insert_user(conn, user)
        except sqlite3.IntegrityError:
            # Lost a race against a concurrent registration for the same email.
            raise DuplicateEmailError() from None
    logger.info("Registered user id=%s", user.id)
    return user


def get_user(db: Database, user_id: str) -> Optional[User]:
    uid = (user_id or "").strip()
    if not uid:
        return None
    with db.connection() as conn:
        return users_repo.get_user_by_id(conn, uid)


def authenticate(db: Database, *, email: str, password: str) -> Optional[User]:
    """Return the user for valid credentials, else None (no hint which part was wrong)."""
    e = normalize_email(email)
    if not e or not password:
        return None
    with db.connection() as conn:
        u = users_repo.get_user_by_email(conn, e)
    if u is None:
        verify_password(DUMMY_HASH, password)
        return None
    if not verify_password(u.password_hash, password):
        return None
    if needs_rehash(u.password_hash):
        with db.connection() as conn:
            users_repo.update_user(conn, u.id, {"password_hash": hash_password(password)})
        logger.info("Upgraded password hash user_id=%s", u.id)
    return u
