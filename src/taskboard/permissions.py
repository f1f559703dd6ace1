# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from fastapi import HTTPException, Request, Response, status

from taskboard.auth.session import issue_token, verify_token
from taskboard.auth.users import get_user
from taskboard.config import Settings
from taskboard.core.models import User
from taskboard.infra.db import Database

logger = logging.getLogger(__name__)

DEFAULT_NEXT = "/dashboard"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    name: str
    email: str
    avatar_url: Optional[str]

    @classmethod
    def from_user(cls, u: User) -> "CurrentUser":
        return cls(id=u.id, name=u.name, email=u.email, avatar_url=u.avatar_url)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    return request.app.state.db


def load_user_from_request(request: Request) -> Optional[CurrentUser]:
    """Resolve the session cookie to a user.

    Missing cookie, bad/expired token and deleted user all give None.
    """
    settings = get_settings(request)
    token = request.cookies.get(settings.cookie_name, "")
    sess = verify_token(token, settings.secret_key)
    if not sess:
        if token:
            logger.debug("Session cookie rejected path=%s", request.url.path)
        return None
    u = get_user(get_db(request), sess.user_id)
    if not u:
        return None
    return CurrentUser.from_user(u)


def current_user_optional(request: Request) -> Optional[CurrentUser]:
    """Resolve once per request; later calls reuse request.state.user."""
    if hasattr(request.state, "user"):
        return request.state.user
    u = load_user_from_request(request)
    request.state.user = u
    return u


def require_user(request: Request) -> CurrentUser:
    """Page guard: redirect to the login page when there is no valid session."""
    u = current_user_optional(request)
    if u:
        return u
    next_url = str(request.url.path)
    if request.url.query:
        next_url += "?" + request.url.query
    loc = f"/login?next={quote(next_url, safe='/')}"
    raise HTTPException(status_code=status.HTTP_303_SEE_OTHER, headers={"Location": loc})


def require_api_user(request: Request) -> CurrentUser:
    """API guard: 401 when there is no valid session."""
    u = current_user_optional(request)
    if u:
        return u
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


def safe_next(next_url: Optional[str]) -> str:
    """Only follow same-site relative redirects after login."""
    n = (next_url or "").strip()
    if not n.startswith("/") or n.startswith("//") or "\\" in n:
        return DEFAULT_NEXT
    if n == "/" or n.startswith("/login") or n.startswith("/register"):
        return DEFAULT_NEXT
    return n


def cookie_settings(settings: Settings) -> dict:
    return {"httponly": True, "samesite": "lax", "secure": settings.cookie_secure, "path": "/"}


def set_session_cookie(response: Response, settings: Settings, user_id: str) -> None:
    token = issue_token(user_id, settings.secret_key, max_age=settings.session_max_age)
    response.set_cookie(
        settings.cookie_name,
        token,
        max_age=settings.session_max_age,
        **cookie_settings(settings),
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(settings.cookie_name, **cookie_settings(settings))
