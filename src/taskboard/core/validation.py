# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Form field normalisation and checks.

Each ``clean_*`` helper returns the normalised value or raises
ValidationError naming the offending field.
"""

from __future__ import annotations

import re
from typing import Optional

from taskboard.errors import ValidationError

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")

NAME_MAX = 100
EMAIL_MAX = 254
TITLE_MAX = 200
PASSWORD_MIN = 6


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def clean_email(email: str) -> str:
    e = normalize_email(email)
    if not e:
        raise ValidationError("email", "Email is required")
    if len(e) > EMAIL_MAX or not EMAIL_RE.match(e):
        raise ValidationError("email", "Invalid email address")
    return e


def clean_name(name: str) -> str:
    n = " ".join(str(name or "").split())
    if not n:
        raise ValidationError("name", "Name is required")
    if len(n) > NAME_MAX:
        raise ValidationError("name", f"Name must be at most {NAME_MAX} characters")
    return n


def clean_password(password: str) -> str:
    p = str(password or "")
    if len(p) < PASSWORD_MIN:
        raise ValidationError("password", f"Password must be at least {PASSWORD_MIN} characters")
    return p


def clean_title(title: str) -> str:
    t = str(title or "").strip()
    if not t:
        raise ValidationError("title", "Task cannot be empty")
    if len(t) > TITLE_MAX:
        raise ValidationError("title", f"Task title must be at most {TITLE_MAX} characters")
    return t


def optional_password(password: Optional[str]) -> Optional[str]:
    """Empty means "keep the current password"."""
    if password is None or password == "":
        return None
    return clean_password(password)
