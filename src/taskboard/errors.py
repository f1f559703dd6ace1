# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exception hierarchy shared by services and routes."""

from __future__ import annotations


class TaskboardError(Exception):
    """Base exception for taskboard."""


class ConfigError(TaskboardError):
    """Missing or unreadable configuration."""


class ValidationError(TaskboardError):
    """User input rejected; nothing was written."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)


class DuplicateEmailError(ValidationError):
    def __init__(self, message: str = "Email is already registered"):
        super().__init__("email", message)


class NotFoundError(TaskboardError):
    """Resource missing or not owned by the caller.

    Both cases share this error so a client cannot probe for ids owned by
    other users.
    """


class PersistenceError(TaskboardError):
    """The storage layer could not serve the request."""
