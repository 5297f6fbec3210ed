import json
from types import SimpleNamespace

from starlette.requests import Request

from arunika.errors import AccessDenied, NotFound, ValidationError
from arunika.ownership import Ownership, holds
from arunika.pipeline import Halt, Pipeline, Principal, Proceed, Reply, RequestContext


def _ctx(principal_id="owner"):
    request = Request({"type": "http", "method": "GET", "path": "/test", "headers": [], "query_string": b""})
    principal = Principal(id=principal_id, email=None) if principal_id else None
    return RequestContext(request=request, session=None, identity=None, principal=principal)


PARENTS = {1: SimpleNamespace(id=1, user_id="owner")}
CHILDREN = {10: SimpleNamespace(id=10, personalized_id=1), 11: SimpleNamespace(id=11, personalized_id=99)}

PARENT = Ownership(fetch=lambda ctx, key: PARENTS.get(key), not_found="Parent not found", denied="Not yours")
CHILD = PARENT.through(
    fetch_child=lambda ctx, key: CHILDREN.get(key),
    parent_key_field="personalized_id",
    not_found="Child not found",
    denied="Not your child",
)


def test_holds_requires_equal_ids():
    assert holds("a", "a")
    assert not holds("a", "b")
    assert not holds(None, None)


def test_direct_ownership():
    assert isinstance(PARENT.evaluate(_ctx("owner"), 1), Proceed)
    denied = PARENT.evaluate(_ctx("intruder"), 1)
    assert isinstance(denied, Halt) and isinstance(denied.error, AccessDenied)


def test_missing_resource_is_404_even_for_intruders():
    result = PARENT.evaluate(_ctx("intruder"), 2)
    assert isinstance(result.error, NotFound)
    assert result.error.error == "Parent not found"


def test_transitive_ownership_through_parent():
    assert PARENT.evaluate(_ctx("owner"), 1).value is PARENTS[1]
    assert CHILD.evaluate(_ctx("owner"), 10).value is CHILDREN[10]
    assert isinstance(CHILD.evaluate(_ctx("intruder"), 10).error, AccessDenied)


def test_transitive_missing_parent_reports_child_not_found():
    result = CHILD.evaluate(_ctx("owner"), 11)
    assert isinstance(result.error, NotFound)
    assert result.error.error == "Child not found"
    assert CHILD.evaluate(_ctx("owner"), 12).error.error == "Child not found"


def test_pipeline_binds_values_and_replies():
    ctx = _ctx()
    seen = []

    def execute(ctx):
        seen.append(ctx.values["parent"])
        return Reply({"ok": True}, "done", status_code=201)

    response = Pipeline(PARENT.stage(1, bind="parent"), execute).run(ctx)
    assert response.status_code == 201
    assert seen == [PARENTS[1]]


def test_pipeline_short_circuits_on_halt():
    calls = []
    response = Pipeline(
        lambda ctx: Halt(ValidationError("bad input")),
        lambda ctx: calls.append("ran"),
    ).run(_ctx())
    assert response.status_code == 400
    assert calls == []
    assert json.loads(response.body)["error"] == "bad input"


def test_pipeline_converts_raised_errors():
    def boom(ctx):
        raise RuntimeError("kaboom")

    response = Pipeline(boom).run(_ctx())
    body = json.loads(response.body)
    assert response.status_code == 500
    assert body["error"] == "Internal server error"
    assert body["success"] is False


def test_pipeline_without_reply_is_internal_error():
    response = Pipeline(lambda ctx: Proceed()).run(_ctx())
    assert response.status_code == 500
