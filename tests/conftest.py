import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from taskboard.app import create_app
from taskboard.auth.users import register_user
from taskboard.config import Settings
from taskboard.infra.db import Database

SECRET = "test-secret-key"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Settings pointing every path at the per-test tmp dir."""
    return Settings(
        secret_key=SECRET,
        db_path=tmp_path / "data" / "taskboard.sqlite3",
        upload_dir=tmp_path / "uploads",
        avatar_max_bytes=1024,
    )


@pytest.fixture()
def db(settings: Settings):
    d = Database(settings.db_path, pool_size=2)
    yield d
    d.close()


@pytest.fixture()
def ada(db):
    return register_user(db, name="Ada", email="ada@example.com", password="secret123")


@pytest.fixture()
def bob(db):
    return register_user(db, name="Bob Builder", email="bob@example.com", password="hunter22")


@pytest.fixture()
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture()
def client(app):
    # Context manager so the lifespan hook opens and closes the pool.
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def login(client):
    """Log the shared client in through the JSON API."""

    def _login(email: str, password: str):
        r = client.post("/api/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return r

    return _login


# Smallest valid PNG (1x1, transparent).
PNG_1PX = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00\x1f\x15\xc4\x89"
    b"\x00\x00\x00\rIDATx\x9cc\xf8\x0f\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)


@pytest.fixture()
def png_bytes() -> bytes:
    return PNG_1PX
