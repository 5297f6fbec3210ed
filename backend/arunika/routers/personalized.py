"""Personalization endpoints mounted under `/api/personalized`.

A personalization record belongs to the user who created it; the owner
is always taken from the token, never from the request body.
"""

from fastapi import APIRouter, Depends

from ..auth import get_context, require_auth
from ..pagination import paginate
from ..pipeline import RequestContext, Reply, run
from ..policies import PERSONALIZED
from ..repositories import PersonalizedRepository
from ..schemas import PersonalizedIn
from ..services import RecommendationService
from .. import validation

router = APIRouter(prefix="/personalized", tags=["personalized"])

EDITABLE = ["role_category", "analysis_score", "innovation_score", "collab_score", "creative_score", "summary"]


@router.get("")
def list_personalized(page: str = None, limit: str = None, ctx: RequestContext = Depends(get_context)):
    """List the caller's own personalization records, newest first."""
    def execute(ctx):
        window = paginate(page, limit)
        rows, total = PersonalizedRepository(ctx.session).page(
            {"user_id": ctx.principal.id}, window.offset, window.limit, order_by="created_at", descending=True
        )
        return Reply({"personalized": rows, "pagination": window.derive_result(total)},
                     "Personalized records fetched successfully")

    return run(ctx, require_auth, execute)


@router.post("")
def create_personalized(ctx: RequestContext = Depends(get_context)):
    def validate(ctx):
        payload = ctx.values["payload"]
        validation.require_fields(payload.model_dump(), ["role_category"])
        validation.one_of("role_category", payload.role_category, validation.ROLE_CATEGORIES)

    def execute(ctx):
        values = ctx.values["payload"].model_dump(include=set(EDITABLE))
        values["user_id"] = ctx.principal.id
        record = PersonalizedRepository(ctx.session).create(values)
        return Reply({"personalized": record}, "Personalized record created successfully", status_code=201)

    return run(ctx, require_auth, validation.body(PersonalizedIn), validate, execute)


@router.get("/{personalized_id}")
def get_personalized(personalized_id: str, ctx: RequestContext = Depends(get_context)):
    """Return one record with its job and course recommendations."""
    def execute(ctx):
        return Reply(RecommendationService(ctx.session).detail(ctx.values["personalized"]))

    return run(ctx, require_auth, PERSONALIZED.stage(personalized_id, bind="personalized"), execute)


@router.put("/{personalized_id}")
def update_personalized(personalized_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        payload = ctx.values["payload"]
        validation.one_of("role_category", payload.role_category, validation.ROLE_CATEGORIES)
        values = validation.changes(payload.model_dump(), EDITABLE)
        record = PersonalizedRepository(ctx.session).update(ctx.values["personalized"].id, values)
        return Reply({"personalized": record}, "Personalized record updated successfully")

    return run(
        ctx,
        require_auth,
        PERSONALIZED.stage(personalized_id, bind="personalized"),
        validation.body(PersonalizedIn),
        execute,
    )


@router.delete("/{personalized_id}")
def delete_personalized(personalized_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        PersonalizedRepository(ctx.session).delete_with_children(ctx.values["personalized"].id)
        return Reply(None, "Personalized record deleted successfully")

    return run(ctx, require_auth, PERSONALIZED.stage(personalized_id, bind="personalized"), execute)
