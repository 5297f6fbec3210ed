"""Skill course catalogue endpoints mounted under `/api/skill-courses`."""

from fastapi import APIRouter, Depends

from ..auth import get_context, require_auth
from ..errors import NotFound
from ..pagination import paginate
from ..pipeline import RequestContext, Reply, run
from ..repositories import SkillCourseRepository
from ..schemas import SkillCourseIn
from .. import validation

router = APIRouter(prefix="/skill-courses", tags=["skill-courses"])

EDITABLE = ["title", "bidang", "level", "provider", "url", "description"]


def existing_course(course_id):
    def check(ctx):
        course = SkillCourseRepository(ctx.session).get(validation.record_id("course_id", course_id))
        if course is None:
            raise NotFound("Course not found")
        ctx.values["course"] = course
    return check


@router.get("")
def list_courses(page: str = None, limit: str = None, level: str = None, bidang: str = None,
                 ctx: RequestContext = Depends(get_context)):
    """List courses, optionally filtered by `level` and `bidang`."""
    def execute(ctx):
        window = paginate(page, limit)
        rows, total = SkillCourseRepository(ctx.session).page(
            {"level": level, "bidang": bidang}, window.offset, window.limit
        )
        return Reply({"courses": rows, "pagination": window.derive_result(total)}, "Courses fetched successfully")

    return run(ctx, execute)


@router.get("/{course_id}")
def get_course(course_id: int, ctx: RequestContext = Depends(get_context)):
    return run(ctx, existing_course(course_id), lambda ctx: Reply({"course": ctx.values["course"]}))


@router.post("")
def create_course(ctx: RequestContext = Depends(get_context)):
    def validate(ctx):
        payload = ctx.values["payload"]
        validation.require_fields(payload.model_dump(), ["title", "bidang", "level"])
        validation.one_of("level", payload.level, validation.COURSE_LEVELS)

    def execute(ctx):
        course = SkillCourseRepository(ctx.session).create(ctx.values["payload"].model_dump(include=set(EDITABLE)))
        return Reply({"course": course}, "Course created successfully", status_code=201)

    return run(ctx, require_auth, validation.body(SkillCourseIn), validate, execute)


@router.put("/{course_id}")
def update_course(course_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        payload = ctx.values["payload"]
        validation.one_of("level", payload.level, validation.COURSE_LEVELS)
        values = validation.changes(payload.model_dump(), EDITABLE)
        course = SkillCourseRepository(ctx.session).update(ctx.values["course"].id, values)
        return Reply({"course": course}, "Course updated successfully")

    return run(ctx, require_auth, existing_course(course_id), validation.body(SkillCourseIn), execute)


@router.delete("/{course_id}")
def delete_course(course_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        SkillCourseRepository(ctx.session).delete(ctx.values["course"].id)
        return Reply(None, "Course deleted successfully")

    return run(ctx, require_auth, existing_course(course_id), execute)
