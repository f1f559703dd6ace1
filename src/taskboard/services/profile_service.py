# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from taskboard.auth.passwords import hash_password
from taskboard.config import DEFAULT_AVATAR_MAX_BYTES
from taskboard.core.models import User
from taskboard.core.validation import clean_email, clean_name, optional_password
from taskboard.errors import DuplicateEmailError, NotFoundError, ValidationError
from taskboard.infra import users_repo
from taskboard.infra.db import Database

logger = logging.getLogger(__name__)

AVATAR_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
AVATAR_SUBDIR = "avatars"
AVATAR_URL_PREFIX = "/uploads/avatars/"


@dataclass(frozen=True)
class AvatarUpload:
    filename: str
    content_type: str
    data: bytes


def initials(name: str) -> str:
    """'Ada Lovelace' -> 'AL'."""
    return "".join(part[0] for part in str(name or "").split() if part).upper()


def _sniff_image(data: bytes) -> Optional[str]:
    """Content type implied by the file's leading bytes, if it is one we accept."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def _validate_avatar(avatar: AvatarUpload, max_bytes: int) -> str:
    """Return the file extension to store the avatar with."""
    ctype = (avatar.content_type or "").split(";")[0].strip().lower()
    ext = AVATAR_TYPES.get(ctype)
    if not ext:
        raise ValidationError("avatar", "Avatar must be a PNG, JPEG, GIF or WebP image")
    if not avatar.data:
        raise ValidationError("avatar", "Avatar file is empty")
    if len(avatar.data) > max_bytes:
        raise ValidationError("avatar", f"Avatar must be at most {max_bytes // 1024} KB")
    if _sniff_image(avatar.data) != ctype:
        raise ValidationError("avatar", "Avatar file content does not match its image type")
    return ext


def _avatar_path(upload_dir: Path, avatar_url: Optional[str]) -> Optional[Path]:
    """Map a stored avatar URL back to its file, only for files we wrote."""
    if not avatar_url or not avatar_url.startswith(AVATAR_URL_PREFIX):
        return None
    name = Path(avatar_url[len(AVATAR_URL_PREFIX):]).name
    return (upload_dir / AVATAR_SUBDIR / name) if name else None


def update_profile(
    db: Database,
    *,
    user_id: str,
    name: str,
    email: str,
    password: Optional[str] = None,
    avatar: Optional[AvatarUpload] = None,
    upload_dir: Path,
    avatar_max_bytes: int = DEFAULT_AVATAR_MAX_BYTES,
) -> User:
    """Update the caller's own profile.

    All fields are validated before anything is written, so a rejected
    update leaves both the row and the avatar directory untouched.
    """
    n = clean_name(name)
    e = clean_email(email)
    p = optional_password(password)
    ext = _validate_avatar(avatar, avatar_max_bytes) if avatar is not None else None

    fields: Dict[str, Any] = {"name": n, "email": e}
    if p is not None:
        fields["password_hash"] = hash_password(p)

    new_file: Optional[Path] = None
    with db.connection() as conn:
        current = users_repo.get_user_by_id(conn, user_id)
        if current is None:
            raise NotFoundError("User not found")
        if users_repo.email_taken(conn, e, exclude_id=user_id):
            raise DuplicateEmailError()

        if avatar is not None and ext is not None:
            avatars_dir = Path(upload_dir) / AVATAR_SUBDIR
            avatars_dir.mkdir(parents=True, exist_ok=True)
            ts = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
            new_file = avatars_dir / f"{user_id}_{ts}{ext}"
            new_file.write_bytes(avatar.data)
            fields["avatar_url"] = AVATAR_URL_PREFIX + new_file.name
            logger.info("Stored avatar user_id=%s file=%s bytes=%s", user_id, new_file.name, len(avatar.data))

        try:
            users_repo.update_user(conn, user_id, fields)
            updated = users_repo.get_user_by_id(conn, user_id)
        except sqlite3.IntegrityError:
            if new_file is not None:
                new_file.unlink(missing_ok=True)
            raise DuplicateEmailError() from None
        except Exception:
            if new_file is not None:
                new_file.unlink(missing_ok=True)
            raise

    if new_file is not None:
        old = _avatar_path(Path(upload_dir), current.avatar_url)
        if old is not None and old != new_file:
            old.unlink(missing_ok=True)

    if updated is None:
        raise NotFoundError("User not found")
    logger.info("Updated profile user_id=%s fields=%s", user_id, ",".join(sorted(fields)))
    return updated
