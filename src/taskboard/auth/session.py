# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Signed session tokens.

Token layout (itsdangerous URLSafeSerializer)::

    base64url(json({"uid": <user id>, "exp": <epoch seconds>})) "." base64url(hmac)

The signature is HMAC-SHA256 over the encoded payload with a key derived from
the server secret and SESSION_SALT. itsdangerous compares signatures in
constant time. Expiry is checked after the signature, so an intact signature
never extends a token's life.

Nothing is stored server-side: a token stays valid until ``exp`` and cannot be
revoked early.
"""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadData, URLSafeSerializer

from taskboard.config import DEFAULT_SESSION_MAX_AGE

SESSION_SALT = "taskboard.session.v1"


def _serializer(secret_key: str) -> URLSafeSerializer:
    if not secret_key:
        raise RuntimeError("Session secret key is empty")
    return URLSafeSerializer(
        secret_key,
        salt=SESSION_SALT,
        signer_kwargs={"key_derivation": "hmac", "digest_method": hashlib.sha256},
    )


@dataclass(frozen=True)
class SessionData:
    user_id: str
    expires_at: int


def issue_token(
    user_id: str,
    secret_key: str,
    *,
    max_age: int = DEFAULT_SESSION_MAX_AGE,
    now: Optional[float] = None,
) -> str:
    uid = str(user_id or "").strip()
    if not uid:
        raise ValueError("Cannot issue a session without a user id")
    issued = int(time.time() if now is None else now)
    return _serializer(secret_key).dumps({"uid": uid, "exp": issued + int(max_age)})


def verify_token(token: str, secret_key: str, *, now: Optional[float] = None) -> Optional[SessionData]:
    """Return the session carried by ``token`` or None.

    Bad signature, malformed payload and expiry all give the same None.
    """
    if not token:
        return None
    try:
        data = _serializer(secret_key).loads(token)
    except BadData:
        return None
    if not isinstance(data, dict):
        return None
    uid = data.get("uid")
    exp = data.get("exp")
    if not isinstance(uid, str) or not uid.strip():
        return None
    if isinstance(exp, bool) or not isinstance(exp, int):
        return None
    current = time.time() if now is None else now
    if current >= exp:
        return None
    return SessionData(user_id=uid.strip(), expires_at=exp)
