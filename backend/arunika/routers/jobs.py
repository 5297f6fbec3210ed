"""Job catalogue endpoints mounted under `/api/jobs`.

Reads are public. When the list is requested with a valid token, the
response also carries the job ids recommended to that user.
"""

from fastapi import APIRouter, Depends

from ..auth import get_context, optional_auth, require_auth
from ..errors import NotFound
from ..pagination import paginate
from ..pipeline import RequestContext, Reply, run
from ..repositories import JobRepository
from ..schemas import JobIn
from ..services import RecommendationService
from .. import validation

router = APIRouter(prefix="/jobs", tags=["jobs"])

EDITABLE = ["title", "company", "role_category", "description", "location", "salary_range"]


def existing_job(job_id):
    def check(ctx):
        job = JobRepository(ctx.session).get(validation.record_id("job_id", job_id))
        if job is None:
            raise NotFound("Job not found")
        ctx.values["job"] = job
    return check


@router.get("")
def list_jobs(page: str = None, limit: str = None, role_category: str = None, location: str = None,
              ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        window = paginate(page, limit)
        rows, total = JobRepository(ctx.session).page(
            {"role_category": role_category, "location": location},
            window.offset, window.limit, order_by="created_at", descending=True,
        )
        data = {"jobs": rows, "pagination": window.derive_result(total)}
        if ctx.principal is not None:
            data["recommended_job_ids"] = RecommendationService(ctx.session).recommended_job_ids(ctx.principal.id)
        return Reply(data, "Jobs fetched successfully")

    return run(ctx, optional_auth, execute)


@router.get("/{job_id}")
def get_job(job_id: int, ctx: RequestContext = Depends(get_context)):
    return run(ctx, existing_job(job_id), lambda ctx: Reply({"job": ctx.values["job"]}))


@router.post("")
def create_job(ctx: RequestContext = Depends(get_context)):
    def validate(ctx):
        payload = ctx.values["payload"]
        validation.require_fields(payload.model_dump(), ["title", "company", "role_category"])
        validation.one_of("role_category", payload.role_category, validation.ROLE_CATEGORIES)

    def execute(ctx):
        job = JobRepository(ctx.session).create(ctx.values["payload"].model_dump(include=set(EDITABLE)))
        return Reply({"job": job}, "Job created successfully", status_code=201)

    return run(ctx, require_auth, validation.body(JobIn), validate, execute)


@router.put("/{job_id}")
def update_job(job_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        payload = ctx.values["payload"]
        validation.one_of("role_category", payload.role_category, validation.ROLE_CATEGORIES)
        values = validation.changes(payload.model_dump(), EDITABLE)
        job = JobRepository(ctx.session).update(ctx.values["job"].id, values)
        return Reply({"job": job}, "Job updated successfully")

    return run(ctx, require_auth, existing_job(job_id), validation.body(JobIn), execute)


@router.delete("/{job_id}")
def delete_job(job_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        JobRepository(ctx.session).delete(ctx.values["job"].id)
        return Reply(None, "Job deleted successfully")

    return run(ctx, require_auth, existing_job(job_id), execute)
