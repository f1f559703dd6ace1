# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Plain records returned by the repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    password_hash: str
    avatar_url: Optional[str]
    created_at: str

    def public(self) -> Dict[str, Any]:
        """Serializable view without the password hash."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar_url": self.avatar_url,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Task:
    id: str
    user_id: str
    title: str
    completed: bool
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "completed": self.completed,
            "created_at": self.created_at,
        }
