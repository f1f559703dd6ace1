#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from taskboard.auth.users import register_user
from taskboard.config import load_settings
from taskboard.errors import ValidationError
from taskboard.infra.db import Database


def main() -> None:
    settings = load_settings()
    db = Database(settings.db_path, pool_size=1)
    try:
        name = input("Name: ").strip()
        email = input("Email: ").strip()

        pw1 = getpass("Password: ")
        pw2 = getpass("Repeat password: ")
        if pw1 != pw2:
            raise SystemExit("Passwords do not match")

        try:
            user = register_user(db, name=name, email=email, password=pw1)
        except ValidationError as e:
            raise SystemExit(f"{e.field}: {e.message}")
        print(f"OK -> {user.email} ({user.id}) in {settings.db_path}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
