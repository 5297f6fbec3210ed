import os
import tempfile
import uuid
from pathlib import Path

import pytest

# Point the app at a throw-away database before `arunika.main` is imported.
_DB_DIR = tempfile.mkdtemp(prefix="arunika-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ.setdefault("ENV", "dev")

from fastapi.testclient import TestClient  # noqa: E402

from arunika.main import app  # noqa: E402


@pytest.fixture(scope="session")
def client():
    return TestClient(app)


@pytest.fixture
def register(client):
    """Register a fresh user and return `(user_id, auth_headers, body)`."""
    def _register(name: str = "Test User", password: str = "secret123"):
        email = f"{uuid.uuid4().hex[:10]}@example.com"
        r = client.post("/api/auth/register", json={
            "email": email, "password": password, "name": name, "pendidikan": "S1", "pekerjaan": "Student",
        })
        assert r.status_code == 201, r.text
        data = r.json()["data"]
        headers = {"Authorization": f"Bearer {data['access_token']}"}
        return data["user"]["id"], headers, dict(data, email=email, password=password)
    return _register


ENVELOPE_KEYS = {"success", "data", "error", "message", "timestamp"}


def assert_envelope(response, status_code: int, success: bool):
    """Check status, the exact envelope keys and success/error consistency."""
    assert response.status_code == status_code, response.text
    body = response.json()
    assert set(body) == ENVELOPE_KEYS
    assert body["success"] is success
    assert (body["error"] is None) is success
    if not success:
        assert body["data"] is None
    return body


@pytest.fixture
def envelope():
    return assert_envelope
