VALID = {"text": "I enjoy breaking problems into parts", "trait": "analysis", "category": "thinking",
         "role_category": "Frontend Developer"}


def _create(client, headers, **overrides):
    payload = dict(VALID, **overrides)
    r = client.post("/api/skill-questions", json=payload, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]["question"]


def test_public_list_filters_by_role_and_orders_by_id(client, envelope, register):
    _, headers, _ = register()
    front = [_create(client, headers)["id"], _create(client, headers, trait="creative")["id"]]
    _create(client, headers, role_category="Product Manager")

    r = client.get("/api/skill-questions?role_category=Frontend%20Developer")
    body = envelope(r, 200, True)
    questions = body["data"]["questions"]
    assert body["data"]["count"] == len(questions)
    assert all(q["role_category"] == "Frontend Developer" for q in questions)
    ids = [q["id"] for q in questions]
    assert ids == sorted(ids)
    assert set(front) <= set(ids)
    assert set(questions[0]) == {"id", "text", "trait", "category", "role_category"}


def test_categories_are_distinct(client, envelope, register):
    _, headers, _ = register()
    _create(client, headers, role_category="Backend Developer")
    _create(client, headers, role_category="Backend Developer")
    body = envelope(client.get("/api/skill-questions/categories"), 200, True)
    categories = body["data"]["categories"]
    assert "Backend Developer" in categories
    assert len(categories) == len(set(categories))


def test_create_validation_messages(client, envelope, register):
    _, headers, _ = register()
    body = envelope(client.post("/api/skill-questions", json={"text": "x"}, headers=headers), 400, False)
    assert body["error"] == "text, trait, category, and role_category are required"

    body = envelope(client.post("/api/skill-questions", json=dict(VALID, trait="bogus"), headers=headers), 400, False)
    assert body["error"] == "trait must be one of: analysis, innovation, collab, creative"

    body = envelope(client.post("/api/skill-questions", json=dict(VALID, role_category="Chef"), headers=headers),
                    400, False)
    assert body["error"] == (
        "role_category must be one of: Backend Developer, UI/UX Designer, Frontend Developer, Product Manager"
    )


def test_create_requires_auth_before_validation(client, envelope):
    envelope(client.post("/api/skill-questions", json=dict(VALID, trait="bogus")), 401, False)


def test_get_update_delete(client, envelope, register):
    _, headers, _ = register()
    qid = _create(client, headers)["id"]

    body = envelope(client.get(f"/api/skill-questions/{qid}"), 200, True)
    assert body["data"]["question"]["trait"] == "analysis"

    envelope(client.put(f"/api/skill-questions/{qid}", json={"trait": "bogus"}, headers=headers), 400, False)
    body = envelope(client.put(f"/api/skill-questions/{qid}", json={"trait": "collab"}, headers=headers), 200, True)
    assert body["data"]["question"]["trait"] == "collab"

    envelope(client.delete(f"/api/skill-questions/{qid}", headers=headers), 200, True)
    body = envelope(client.delete(f"/api/skill-questions/{qid}", headers=headers), 404, False)
    assert body["error"] == "Question not found"
    envelope(client.get(f"/api/skill-questions/{qid}"), 404, False)
    envelope(client.put(f"/api/skill-questions/{qid}", json={"text": "y"}, headers=headers), 404, False)


def test_update_skips_blank_values(client, envelope, register):
    _, headers, _ = register()
    qid = _create(client, headers)["id"]
    body = envelope(client.put(f"/api/skill-questions/{qid}", json={"text": "", "trait": "", "category": "new"},
                               headers=headers), 200, True)
    question = body["data"]["question"]
    assert question["text"] == VALID["text"]
    assert question["trait"] == "analysis"
    assert question["category"] == "new"
