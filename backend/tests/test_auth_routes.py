import logging
import time
import uuid

import jwt
from sqlmodel import Session

from arunika.config import settings
from arunika.database import engine
from arunika.repositories import ProfileRepository


def _email():
    return f"{uuid.uuid4().hex[:10]}@example.com"


def test_register_validation(client, envelope):
    body = envelope(client.post("/api/auth/register", json={"email": _email(), "password": "secret1"}), 400, False)
    assert body["error"] == "Email, password, and name are required"
    body = envelope(client.post("/api/auth/register", json={"email": _email(), "password": "123", "name": "A"}), 400, False)
    assert body["error"] == "Password must be at least 6 characters"


def test_register_creates_identity_and_profile(client, envelope, register):
    user_id, headers, data = register(name="Siti")
    assert data["profile"]["user_id"] == user_id
    assert data["profile"]["name"] == "Siti"
    assert data["profile"]["role"] == "user"
    assert data["profile"]["pendidikan"] == "S1"
    assert data["session"]["refresh_token"] == data["refresh_token"]
    assert "password_hash" not in data["user"]

    body = envelope(client.get("/api/auth/me", headers=headers), 200, True)
    assert body["data"]["auth_user"]["id"] == user_id
    assert body["data"]["profile"]["email"] == data["email"]


def test_register_duplicate_email_is_rejected(client, envelope, register):
    _, _, data = register()
    r = client.post("/api/auth/register", json={"email": data["email"], "password": "secret123", "name": "Again"})
    body = envelope(r, 400, False)
    assert body["error"] == "User already registered"


def test_login_flow(client, envelope, register):
    user_id, _, data = register()
    body = envelope(client.post("/api/auth/login", json={"email": data["email"]}), 400, False)
    assert body["error"] == "Email and password are required"

    body = envelope(client.post("/api/auth/login", json={"email": data["email"], "password": "wrong-pass"}), 401, False)
    assert body["error"] == "Invalid email or password"

    body = envelope(client.post("/api/auth/login", json={"email": data["email"], "password": data["password"]}), 200, True)
    assert body["message"] == "Login successful"
    assert body["data"]["profile"]["user_id"] == user_id
    assert body["data"]["access_token"]


def test_login_recreates_missing_profile(client, envelope, register):
    user_id, _, data = register(name="Budi")
    with Session(engine) as session:
        assert ProfileRepository(session).delete(user_id)
    body = envelope(client.post("/api/auth/login", json={"email": data["email"], "password": data["password"]}), 200, True)
    assert body["data"]["profile"]["user_id"] == user_id
    assert body["data"]["profile"]["name"] == "Budi"


def test_me_without_profile_is_404(client, envelope, register):
    user_id, headers, _ = register()
    with Session(engine) as session:
        ProfileRepository(session).delete(user_id)
    body = envelope(client.get("/api/auth/me", headers=headers), 404, False)
    assert body["error"] == "User profile not found"


def test_logout_revokes_session(client, envelope, register):
    _, headers, _ = register()
    body = envelope(client.post("/api/auth/logout", headers=headers), 200, True)
    assert body["data"] is None
    envelope(client.get("/api/auth/me", headers=headers), 401, False)


def test_refresh_rotates_tokens(client, envelope, register):
    _, _, data = register()
    envelope(client.post("/api/auth/refresh", json={}), 400, False)
    body = envelope(client.post("/api/auth/refresh", json={"refresh_token": data["refresh_token"]}), 200, True)
    new_headers = {"Authorization": f"Bearer {body['data']['access_token']}"}
    envelope(client.get("/api/auth/me", headers=new_headers), 200, True)

    body = envelope(client.post("/api/auth/refresh", json={"refresh_token": data["refresh_token"]}), 401, False)
    assert body["error"] == "Invalid refresh token"


def test_update_password(client, envelope, register):
    _, headers, data = register()
    envelope(client.put("/api/auth/update-password", json={"password": "123"}, headers=headers), 400, False)
    envelope(client.put("/api/auth/update-password", json={"password": "brand-new-pass"}, headers=headers), 200, True)
    envelope(client.post("/api/auth/login", json={"email": data["email"], "password": data["password"]}), 401, False)
    envelope(client.post("/api/auth/login", json={"email": data["email"], "password": "brand-new-pass"}), 200, True)


def test_forgot_password_does_not_disclose_accounts(client, envelope, register):
    _, _, data = register()
    envelope(client.post("/api/auth/forgot-password", json={}), 400, False)
    known = envelope(client.post("/api/auth/forgot-password", json={"email": data["email"]}), 200, True)
    unknown = envelope(client.post("/api/auth/forgot-password", json={"email": _email()}), 200, True)
    assert known["message"] == unknown["message"] == "Password reset email sent"


def test_reset_password_with_recovery_token(client, envelope, register):
    user_id, _, data = register()
    body = envelope(client.post("/api/auth/reset-password", json={"password": "another-pass"}), 400, False)
    assert body["error"] == "Reset token is required"

    bad = {"Authorization": "Bearer not-a-token"}
    envelope(client.post("/api/auth/reset-password", json={"password": "another-pass"}, headers=bad), 400, False)

    token = jwt.encode(
        {"sub": user_id, "type": "recovery", "exp": int(time.time()) + 300},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    headers = {"Authorization": f"Bearer {token}"}
    envelope(client.post("/api/auth/reset-password", json={"password": "abc"}, headers=headers), 400, False)
    envelope(client.post("/api/auth/reset-password", json={"password": "another-pass"}, headers=headers), 200, True)
    envelope(client.post("/api/auth/login", json={"email": data["email"], "password": "another-pass"}), 200, True)


def test_recovery_token_is_not_an_access_token(client, envelope, register):
    user_id, _, _ = register()
    token = jwt.encode(
        {"sub": user_id, "type": "recovery", "exp": int(time.time()) + 300},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    envelope(client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"}), 401, False)


def test_recovery_token_is_logged_only_in_development(client, register, caplog, monkeypatch):
    _, _, data = register()
    caplog.set_level(logging.INFO, logger="arunika.identity")

    monkeypatch.setattr(settings, "ENV", "production")
    assert client.post("/api/auth/forgot-password", json={"email": data["email"]}).status_code == 200
    issued = [r.getMessage() for r in caplog.records if r.name == "arunika.identity"]
    assert any("password_recovery_issued" in m for m in issued)
    assert not any("access_token=" in m for m in issued)

    caplog.clear()
    monkeypatch.setattr(settings, "ENV", "dev")
    assert client.post("/api/auth/forgot-password", json={"email": data["email"]}).status_code == 200
    assert "access_token=" in caplog.text
