# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Settings loaded from an optional YAML file plus TASKBOARD_* environment variables.

Environment variables win over the file. Only the secret key is mandatory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from taskboard.errors import ConfigError

ENV_PREFIX = "TASKBOARD"

DEFAULT_SESSION_MAX_AGE = 24 * 60 * 60
DEFAULT_AVATAR_MAX_BYTES = 2 * 1024 * 1024


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


@dataclass(frozen=True)
class Settings:
    secret_key: str
    db_path: Path = Path("data/taskboard.sqlite3")
    upload_dir: Path = Path("data/uploads")
    session_max_age: int = DEFAULT_SESSION_MAX_AGE
    cookie_name: str = "token"
    cookie_secure: bool = False
    avatar_max_bytes: int = DEFAULT_AVATAR_MAX_BYTES
    db_pool_size: int = 4
    log_level: str = "INFO"
    log_dir: Optional[Path] = None


def _as_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


def _as_int(name: str, raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return raw


def load_settings(path: Optional[Path] = None) -> Settings:
    """Build Settings from the YAML file (if any) and the environment."""
    cfg_path = path or (Path(os.environ[_k("CONFIG")]) if os.getenv(_k("CONFIG")) else None)
    values: Dict[str, Any] = _read_config_file(Path(cfg_path)) if cfg_path else {}

    env_map = {
        "secret_key": _k("SECRET_KEY"),
        "db_path": _k("DB_PATH"),
        "upload_dir": _k("UPLOAD_DIR"),
        "session_max_age": _k("SESSION_MAX_AGE"),
        "cookie_name": _k("COOKIE_NAME"),
        "cookie_secure": _k("COOKIE_SECURE"),
        "avatar_max_bytes": _k("AVATAR_MAX_BYTES"),
        "db_pool_size": _k("DB_POOL_SIZE"),
        "log_level": _k("LOG_LEVEL"),
        "log_dir": _k("LOG_DIR"),
    }
    for key, env_name in env_map.items():
        v = os.getenv(env_name)
        if v is not None and v.strip() != "":
            values[key] = v

    secret = str(values.get("secret_key") or os.getenv("SECRET_KEY") or "").strip()
    if not secret:
        raise ConfigError(f"Missing {_k('SECRET_KEY')} (or SECRET_KEY) in environment")

    defaults = Settings(secret_key=secret)
    log_dir = values.get("log_dir")
    return Settings(
        secret_key=secret,
        db_path=Path(values.get("db_path") or defaults.db_path).expanduser(),
        upload_dir=Path(values.get("upload_dir") or defaults.upload_dir).expanduser(),
        session_max_age=_as_int("session_max_age", values.get("session_max_age", defaults.session_max_age)),
        cookie_name=str(values.get("cookie_name") or defaults.cookie_name),
        cookie_secure=_as_bool(values.get("cookie_secure", defaults.cookie_secure)),
        avatar_max_bytes=_as_int("avatar_max_bytes", values.get("avatar_max_bytes", defaults.avatar_max_bytes)),
        db_pool_size=_as_int("db_pool_size", values.get("db_pool_size", defaults.db_pool_size)),
        log_level=str(values.get("log_level") or defaults.log_level).upper(),
        log_dir=Path(log_dir).expanduser() if log_dir else None,
    )
