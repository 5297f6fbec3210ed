"""Skill question bank mounted under `/api/skill-questions`.

Reads are public; writes require a token. `/categories` is declared
before `/{question_id}` so it is not captured as an id.
"""

from fastapi import APIRouter, Depends

from ..auth import get_context, require_auth
from ..errors import NotFound
from ..pipeline import RequestContext, Reply, run
from ..repositories import SkillQuestionRepository
from ..schemas import SkillQuestionIn
from .. import validation

router = APIRouter(prefix="/skill-questions", tags=["skill-questions"])

FIELDS = ["text", "trait", "category", "role_category"]


def existing_question(question_id):
    def check(ctx):
        question = SkillQuestionRepository(ctx.session).get(validation.record_id("question_id", question_id))
        if question is None:
            raise NotFound("Question not found")
        ctx.values["question"] = question
    return check


def check_choices(payload: SkillQuestionIn):
    validation.one_of("trait", payload.trait, validation.TRAITS)
    validation.one_of("role_category", payload.role_category, validation.ROLE_CATEGORIES)


def public_question(question) -> dict:
    return question.model_dump(include={"id", "text", "trait", "category", "role_category"})


@router.get("/categories")
def list_categories(ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        categories = SkillQuestionRepository(ctx.session).categories()
        return Reply({"categories": categories}, "Categories fetched successfully")

    return run(ctx, execute)


@router.get("")
def list_questions(role_category: str = None, ctx: RequestContext = Depends(get_context)):
    """All questions ordered by id, optionally limited to one role category."""
    def execute(ctx):
        rows = SkillQuestionRepository(ctx.session).find({"role_category": role_category}, order_by="id")
        questions = [public_question(q) for q in rows]
        return Reply({"questions": questions, "count": len(questions)}, "Questions fetched successfully")

    return run(ctx, execute)


@router.get("/{question_id}")
def get_question(question_id: int, ctx: RequestContext = Depends(get_context)):
    return run(
        ctx,
        existing_question(question_id),
        lambda ctx: Reply({"question": public_question(ctx.values["question"])}),
    )


@router.post("")
def create_question(ctx: RequestContext = Depends(get_context)):
    def validate(ctx):
        payload = ctx.values["payload"]
        validation.require_fields(payload.model_dump(), FIELDS)
        check_choices(payload)

    def execute(ctx):
        question = SkillQuestionRepository(ctx.session).create(ctx.values["payload"].model_dump(include=set(FIELDS)))
        return Reply({"question": question}, "Question created successfully", status_code=201)

    return run(ctx, require_auth, validation.body(SkillQuestionIn), validate, execute)


@router.put("/{question_id}")
def update_question(question_id: str, ctx: RequestContext = Depends(get_context)):
    """Update the supplied fields; blank values leave the stored ones untouched."""
    def execute(ctx):
        payload = ctx.values["payload"]
        check_choices(payload)
        values = validation.changes(payload.model_dump(), FIELDS)
        question = SkillQuestionRepository(ctx.session).update(ctx.values["question"].id, values)
        return Reply({"question": question}, "Question updated successfully")

    return run(ctx, require_auth, existing_question(question_id), validation.body(SkillQuestionIn), execute)


@router.delete("/{question_id}")
def delete_question(question_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        SkillQuestionRepository(ctx.session).delete(ctx.values["question"].id)
        return Reply(None, "Question deleted successfully")

    return run(ctx, require_auth, existing_question(question_id), execute)
