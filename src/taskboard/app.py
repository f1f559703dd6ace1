# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from taskboard.api import read_avatar, router as api_router
from taskboard.auth.users import authenticate, register_user
from taskboard.config import Settings, load_settings
from taskboard.errors import NotFoundError, PersistenceError, ValidationError
from taskboard.infra.db import Database
from taskboard.permissions import (
    CurrentUser,
    clear_session_cookie,
    current_user_optional,
    get_db,
    get_settings,
    require_user,
    safe_next,
    set_session_cookie,
)
from taskboard.services.profile_service import initials, update_profile
from taskboard.services.task_service import create_task, delete_task, list_tasks, task_summary, toggle_task

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

router = APIRouter()


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api")


def _render(request: Request, template_name: str, ctx: dict, *, status_code: int = 200):
    """TemplateResponse wrapper injecting the current user."""
    base_ctx = {"current_user": getattr(request.state, "user", None)}
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


def _render_dashboard(request: Request, user: CurrentUser, *, status_code: int = 200, **extra):
    tasks = list_tasks(get_db(request), user.id)
    completed, pending = task_summary(tasks)
    ctx = {
        "user": user,
        "user_initials": initials(user.name),
        "tasks": tasks,
        "completed_count": completed,
        "pending_count": pending,
        "task_error": "",
        "new_task": "",
        "profile_error": "",
        "profile_field": "",
        "profile_form": {"name": user.name, "email": user.email},
        "profile_open": False,
    }
    ctx.update(extra)
    return _render(request, "dashboard.html", ctx, status_code=status_code)


# ------------------ Error handlers ------------------


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        if _is_api(request):
            return JSONResponse(status_code=400, content={"error": exc.message, "field": exc.field})
        return _render(request, "error.html", {"status": 400, "message": exc.message}, status_code=400)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        if _is_api(request):
            return JSONResponse(status_code=404, content={"error": str(exc) or "Not found"})
        return _render(request, "error.html", {"status": 404, "message": str(exc) or "Not found"}, status_code=404)

    async def _persistence_error(request: Request, exc: Exception):
        logger.exception("Persistence failure on %s %s", request.method, request.url.path, exc_info=exc)
        if _is_api(request):
            return JSONResponse(status_code=500, content={"error": "Internal server error"})
        return _render(request, "error.html", {"status": 500, "message": "Internal server error"}, status_code=500)

    app.add_exception_handler(PersistenceError, _persistence_error)
    app.add_exception_handler(sqlite3.Error, _persistence_error)


# ------------------ Routes ------------------


@router.get("/")
def root():
    return RedirectResponse(url="/dashboard", status_code=303)


@router.get("/login", response_class=HTMLResponse)
def login_get(request: Request, next: str = "", user=Depends(current_user_optional)):
    if user:
        return RedirectResponse(url=safe_next(next), status_code=303)
    return _render(request, "login.html", {"next": next, "email": "", "error": ""})


@router.post("/login")
def login_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form(""),
):
    u = authenticate(get_db(request), email=email, password=password)
    if not u:
        logger.warning("Failed login attempt")
        return _render(
            request,
            "login.html",
            {"next": next, "email": email, "error": "Invalid email or password"},
            status_code=401,
        )
    resp = RedirectResponse(url=safe_next(next), status_code=303)
    set_session_cookie(resp, get_settings(request), u.id)
    logger.info("Login user_id=%s", u.id)
    return resp


@router.get("/register", response_class=HTMLResponse)
def register_get(request: Request, user=Depends(current_user_optional)):
    if user:
        return RedirectResponse(url="/dashboard", status_code=303)
    return _render(request, "register.html", {"form": {"name": "", "email": ""}, "error": "", "field": "", "message": ""})


@router.post("/register", response_class=HTMLResponse)
def register_post(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
):
    try:
        register_user(get_db(request), name=name, email=email, password=password)
    except ValidationError as e:
        return _render(
            request,
            "register.html",
            {"form": {"name": name, "email": email}, "error": e.message, "field": e.field, "message": ""},
            status_code=400,
        )
    return _render(
        request,
        "register.html",
        {"form": {"name": "", "email": ""}, "error": "", "field": "", "message": "User registered successfully"},
    )


@router.post("/logout")
def logout_post(request: Request):
    resp = RedirectResponse(url="/login", status_code=303)
    clear_session_cookie(resp, get_settings(request))
    return resp


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, user: CurrentUser = Depends(require_user)):
    return _render_dashboard(request, user)


@router.post("/tasks")
def add_task(request: Request, title: str = Form(""), user: CurrentUser = Depends(require_user)):
    try:
        create_task(get_db(request), user_id=user.id, title=title)
    except ValidationError as e:
        return _render_dashboard(request, user, status_code=400, task_error=e.message, new_task=title)
    return RedirectResponse(url="/dashboard", status_code=303)


@router.post("/tasks/{task_id}/toggle")
def toggle_task_route(request: Request, task_id: str, user: CurrentUser = Depends(require_user)):
    try:
        toggle_task(get_db(request), user_id=user.id, task_id=task_id)
    except NotFoundError as e:
        return _render_dashboard(request, user, status_code=404, task_error=str(e))
    return RedirectResponse(url="/dashboard", status_code=303)


@router.post("/tasks/{task_id}/delete")
def delete_task_route(request: Request, task_id: str, user: CurrentUser = Depends(require_user)):
    try:
        delete_task(get_db(request), user_id=user.id, task_id=task_id)
    except NotFoundError as e:
        return _render_dashboard(request, user, status_code=404, task_error=str(e))
    return RedirectResponse(url="/dashboard", status_code=303)


@router.post("/profile")
async def profile_post(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    avatar: UploadFile | None = File(None),
    user: CurrentUser = Depends(require_user),
):
    settings = get_settings(request)
    try:
        upload = await read_avatar(avatar, settings.avatar_max_bytes)
        await run_in_threadpool(
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
    except ValidationError as e:
        return await run_in_threadpool(
            _render_dashboard,
            request,
            user,
            status_code=400,
            profile_error=e.message,
            profile_field=e.field,
            profile_form={"name": name, "email": email},
            profile_open=True,
        )
    return RedirectResponse(url="/dashboard", status_code=303)


# ------------------ App factory ------------------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application. The database pool lives for the lifespan of the app."""
    settings = settings or load_settings()
    settings.upload_dir.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.db_path, pool_size=settings.db_pool_size)
        app.state.db = db
        try:
            yield
        finally:
            db.close()

    app = FastAPI(title="taskboard", lifespan=lifespan)
    app.state.settings = settings

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
    app.mount("/uploads", StaticFiles(directory=str(settings.upload_dir)), name="uploads")

    _register_error_handlers(app)
    app.include_router(router)
    app.include_router(api_router)
    return app
