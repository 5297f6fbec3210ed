import uuid

import pytest
from sqlmodel import Session

from arunika import repositories
from arunika.database import engine
from arunika.errors import UpstreamError
from arunika.identity import IdentityError
from arunika.repositories import PersonalizedRepository, ProfileRepository
from arunika.services import AccountService


def _profile(user_id, name="First"):
    return {"user_id": user_id, "name": name, "email": f"{user_id}@example.com", "role": "user"}


@pytest.mark.parametrize("dialects", [repositories.UPSERT_INSERTS, {}])
def test_ensure_keeps_the_first_profile(monkeypatch, dialects):
    # an empty mapping forces the fetch-then-insert path used for other dialects
    monkeypatch.setattr(repositories, "UPSERT_INSERTS", dialects)
    user_id = uuid.uuid4().hex
    with Session(engine) as session:
        profiles = ProfileRepository(session)
        first = profiles.ensure(_profile(user_id))
        second = profiles.ensure(_profile(user_id, name="Second"))
        assert first.user_id == second.user_id == user_id
        assert second.name == "First"
        assert profiles.count({"user_id": user_id}) == 1


class FailingIdentity:
    def admin_delete_user(self, user_id):
        raise IdentityError("identity store offline")


def test_failed_identity_delete_leaves_no_orphan_rows(client, envelope, register):
    user_id, headers, data = register()
    envelope(client.post("/api/personalized", json={"role_category": "Product Manager"}, headers=headers), 201, True)

    with Session(engine) as session:
        with pytest.raises(UpstreamError):
            AccountService(session, FailingIdentity()).delete_account(user_id)
        assert ProfileRepository(session).get(user_id) is None
        assert PersonalizedRepository(session).count({"user_id": user_id}) == 0

    # the surviving identity gets its profile back on the next login
    body = envelope(client.post("/api/auth/login", json={"email": data["email"], "password": data["password"]}),
                    200, True)
    assert body["data"]["profile"]["user_id"] == user_id
