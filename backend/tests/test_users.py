def test_list_users_is_paginated(client, envelope, register):
    register()
    register()
    _, headers, _ = register()
    body = envelope(client.get("/api/users", params={"page": 1, "limit": 2}, headers=headers), 200, True)
    assert len(body["data"]["users"]) == 2
    assert body["data"]["pagination"]["limit"] == 2
    assert body["data"]["pagination"]["page"] == 1
    assert body["data"]["pagination"]["total"] >= 3


def test_read_own_profile_only(client, envelope, register):
    a_id, a_headers, _ = register()
    b_id, _, _ = register()
    body = envelope(client.get(f"/api/users/{a_id}", headers=a_headers), 200, True)
    assert body["data"]["user"]["user_id"] == a_id
    envelope(client.get(f"/api/users/{b_id}", headers=a_headers), 403, False)


def test_update_profile(client, envelope, register):
    a_id, a_headers, _ = register()
    b_id, _, _ = register()
    body = envelope(client.put(f"/api/users/{a_id}", json={"pekerjaan": "Engineer"}, headers=a_headers), 200, True)
    assert body["data"]["user"]["pekerjaan"] == "Engineer"
    body = envelope(client.put(f"/api/users/{a_id}", json={}, headers=a_headers), 400, False)
    assert body["error"] == "No fields to update"
    envelope(client.put(f"/api/users/{b_id}", json={"name": "Hacked"}, headers=a_headers), 403, False)


def test_missing_profile_is_404_before_ownership(client, envelope, register):
    _, headers, _ = register()
    body = envelope(client.delete("/api/users/does-not-exist", headers=headers), 404, False)
    assert body["error"] == "User not found"
    envelope(client.put("/api/users/does-not-exist", json={"name": "x"}, headers=headers), 404, False)


def test_delete_other_profile_is_forbidden_and_own_succeeds(client, envelope, register):
    a_id, a_headers, a_data = register()
    b_id, b_headers, _ = register()

    envelope(client.delete(f"/api/users/{b_id}", headers=a_headers), 403, False)
    envelope(client.get("/api/auth/me", headers=b_headers), 200, True)

    body = envelope(client.delete(f"/api/users/{a_id}", headers=a_headers), 200, True)
    assert body["data"] is None
    assert body["message"] == "User deleted successfully"

    # identity is gone as well
    envelope(client.get("/api/auth/me", headers=a_headers), 401, False)
    envelope(client.post("/api/auth/login", json={"email": a_data["email"], "password": a_data["password"]}), 401, False)
    envelope(client.get(f"/api/users/{a_id}", headers=b_headers), 404, False)
