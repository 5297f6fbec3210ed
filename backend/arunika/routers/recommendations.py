"""Job and course recommendations attached to a personalization record.

Recommendations have no owner of their own: every route resolves the
parent personalization record and checks that the caller owns it.

Endpoints implemented:
- GET|POST /personalized/{id}/job-recommendations
- PUT|DELETE /job-recommendations/{id}
- GET|POST /personalized/{id}/course-recommendations
- PUT|DELETE /course-recommendations/{id}
"""

from fastapi import APIRouter, Depends

from ..auth import get_context, require_auth
from ..errors import NotFound
from ..pipeline import RequestContext, Reply, run
from ..policies import COURSE_RECOMMENDATION, JOB_RECOMMENDATION, PERSONALIZED
from ..repositories import (
    CourseRecommendationRepository,
    JobRecommendationRepository,
    JobRepository,
    SkillCourseRepository,
)
from ..schemas import CourseRecommendationIn, JobRecommendationIn
from .. import validation

router = APIRouter(tags=["recommendations"])


def referenced(repo_class, field, message):
    """Stage: the catalogue row named by payload `field` must exist (skipped when unset)."""
    def check(ctx):
        key = getattr(ctx.values["payload"], field)
        if key is not None and repo_class(ctx.session).get(key) is None:
            raise NotFound(message)
    return check


# -- job recommendations ------------------------------------------------

@router.get("/personalized/{personalized_id}/job-recommendations")
def list_job_recommendations(personalized_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        rows = JobRecommendationRepository(ctx.session).find({"personalized_id": ctx.values["personalized"].id})
        return Reply({"job_recommendations": rows, "count": len(rows)})

    return run(ctx, require_auth, PERSONALIZED.stage(personalized_id, bind="personalized"), execute)


@router.post("/personalized/{personalized_id}/job-recommendations")
def create_job_recommendation(personalized_id: str, ctx: RequestContext = Depends(get_context)):
    def validate(ctx):
        validation.require_fields(ctx.values["payload"].model_dump(), ["job_id"])

    def execute(ctx):
        values = ctx.values["payload"].model_dump(include={"job_id", "match_score", "reason"})
        values["personalized_id"] = ctx.values["personalized"].id
        rec = JobRecommendationRepository(ctx.session).create(values)
        return Reply({"job_recommendation": rec}, "Job recommendation created successfully", status_code=201)

    return run(
        ctx,
        require_auth,
        PERSONALIZED.stage(personalized_id, bind="personalized"),
        validation.body(JobRecommendationIn),
        validate,
        referenced(JobRepository, "job_id", "Job not found"),
        execute,
    )


@router.put("/job-recommendations/{recommendation_id}")
def update_job_recommendation(recommendation_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        values = validation.changes(ctx.values["payload"].model_dump(), ["job_id", "match_score", "reason"])
        rec = JobRecommendationRepository(ctx.session).update(ctx.values["recommendation"].id, values)
        return Reply({"job_recommendation": rec}, "Job recommendation updated successfully")

    return run(
        ctx,
        require_auth,
        JOB_RECOMMENDATION.stage(recommendation_id, bind="recommendation"),
        validation.body(JobRecommendationIn),
        referenced(JobRepository, "job_id", "Job not found"),
        execute,
    )


@router.delete("/job-recommendations/{recommendation_id}")
def delete_job_recommendation(recommendation_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        JobRecommendationRepository(ctx.session).delete(ctx.values["recommendation"].id)
        return Reply(None, "Job recommendation deleted successfully")

    return run(ctx, require_auth, JOB_RECOMMENDATION.stage(recommendation_id, bind="recommendation"), execute)


# -- course recommendations ---------------------------------------------

@router.get("/personalized/{personalized_id}/course-recommendations")
def list_course_recommendations(personalized_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        rows = CourseRecommendationRepository(ctx.session).find({"personalized_id": ctx.values["personalized"].id})
        return Reply({"course_recommendations": rows, "count": len(rows)})

    return run(ctx, require_auth, PERSONALIZED.stage(personalized_id, bind="personalized"), execute)


@router.post("/personalized/{personalized_id}/course-recommendations")
def create_course_recommendation(personalized_id: str, ctx: RequestContext = Depends(get_context)):
    def validate(ctx):
        validation.require_fields(ctx.values["payload"].model_dump(), ["course_id"])

    def execute(ctx):
        values = ctx.values["payload"].model_dump(include={"course_id", "priority", "reason"})
        values["personalized_id"] = ctx.values["personalized"].id
        rec = CourseRecommendationRepository(ctx.session).create(values)
        return Reply({"course_recommendation": rec}, "Course recommendation created successfully", status_code=201)

    return run(
        ctx,
        require_auth,
        PERSONALIZED.stage(personalized_id, bind="personalized"),
        validation.body(CourseRecommendationIn),
        validate,
        referenced(SkillCourseRepository, "course_id", "Course not found"),
        execute,
    )


@router.put("/course-recommendations/{recommendation_id}")
def update_course_recommendation(recommendation_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        values = validation.changes(ctx.values["payload"].model_dump(), ["course_id", "priority", "reason"])
        rec = CourseRecommendationRepository(ctx.session).update(ctx.values["recommendation"].id, values)
        return Reply({"course_recommendation": rec}, "Course recommendation updated successfully")

    return run(
        ctx,
        require_auth,
        COURSE_RECOMMENDATION.stage(recommendation_id, bind="recommendation"),
        validation.body(CourseRecommendationIn),
        referenced(SkillCourseRepository, "course_id", "Course not found"),
        execute,
    )


@router.delete("/course-recommendations/{recommendation_id}")
def delete_course_recommendation(recommendation_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        CourseRecommendationRepository(ctx.session).delete(ctx.values["recommendation"].id)
        return Reply(None, "Course recommendation deleted successfully")

    return run(ctx, require_auth, COURSE_RECOMMENDATION.stage(recommendation_id, bind="recommendation"), execute)
