# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""JSON API for script clients and single-page frontends.

Prefix: /api

Identity always comes from the session cookie; user ids in request bodies
are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from taskboard.auth.users import authenticate, register_user
from taskboard.permissions import (
    CurrentUser,
    clear_session_cookie,
    get_db,
    get_settings,
    require_api_user,
    set_session_cookie,
)
from taskboard.services.profile_service import AvatarUpload, update_profile
from taskboard.services.task_service import create_task, delete_task, list_tasks, update_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


class RegisterBody(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class LoginBody(BaseModel):
    email: str = ""
    password: str = ""


class TaskCreateBody(BaseModel):
    title: str = ""


class TaskPatchBody(BaseModel):
    title: Optional[str] = None
    completed: Optional[bool] = None


async def read_avatar(avatar: Optional[UploadFile], max_bytes: int) -> Optional[AvatarUpload]:
    """Read at most max_bytes + 1 into memory; one byte over the limit is enough to reject the upload.

    The multipart parser has already spooled the whole file to a temp file by
    now, so this bounds memory use, not request size.
    """
    if avatar is None or not avatar.filename:
        return None
    data = await avatar.read(max_bytes + 1)
    return AvatarUpload(filename=avatar.filename, content_type=avatar.content_type or "", data=data)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def api_register(request: Request, body: RegisterBody) -> Dict[str, str]:
    register_user(get_db(request), name=body.name, email=body.email, password=body.password)
    return {"message": "User registered successfully"}


@router.post("/login")
def api_login(request: Request, body: LoginBody):
    u = authenticate(get_db(request), email=body.email, password=body.password)
    if not u:
        logger.warning("Failed API login attempt")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"message": "Invalid email or password"},
        )
    response = JSONResponse(content={"message": "Login successful", "user": u.public()})
    set_session_cookie(response, get_settings(request), u.id)
    logger.info("API login user_id=%s", u.id)
    return response


@router.post("/auth/logout")
def api_logout(request: Request):
    response = JSONResponse(content={"message": "Logged out"})
    clear_session_cookie(response, get_settings(request))
    return response


@router.get("/me")
def api_me(user: CurrentUser = Depends(require_api_user)) -> Dict[str, Any]:
    return asdict(user)


@router.get("/tasks")
def api_list_tasks(request: Request, user: CurrentUser = Depends(require_api_user)) -> List[Dict[str, Any]]:
    return [t.to_dict() for t in list_tasks(get_db(request), user.id)]


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
def api_create_task(
    request: Request,
    body: TaskCreateBody,
    user: CurrentUser = Depends(require_api_user),
) -> Dict[str, Any]:
    return create_task(get_db(request), user_id=user.id, title=body.title).to_dict()


@router.patch("/tasks/{task_id}")
def api_update_task(
    request: Request,
    task_id: str,
    body: TaskPatchBody | None = None,
    user: CurrentUser = Depends(require_api_user),
) -> Dict[str, Any]:
    """Set ``title``/``completed``; an empty body toggles completion."""
    body = body or TaskPatchBody()
    task = update_task(
        get_db(request),
        user_id=user.id,
        task_id=task_id,
        title=body.title,
        completed=body.completed,
    )
    return task.to_dict()


@router.delete("/tasks/{task_id}")
def api_delete_task(request: Request, task_id: str, user: CurrentUser = Depends(require_api_user)) -> Dict[str, str]:
    delete_task(get_db(request), user_id=user.id, task_id=task_id)
    return {"message": "Task deleted"}


@router.put("/profile")
async def api_update_profile(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    avatar: UploadFile | None = File(None),
    user: CurrentUser = Depends(require_api_user),
) -> Dict[str, Any]:
    settings = get_settings(request)
    upload = await read_avatar(avatar, settings.avatar_max_bytes)
    updated = await run_in_threadpool(
        update_profile,
        get_db(request),
        user_id=user.id,
        name=name,
        email=email,
        password=password or None,
        avatar=upload,
        upload_dir=settings.upload_dir,
        avatar_max_bytes=settings.avatar_max_bytes,
    )
    return updated.public()
