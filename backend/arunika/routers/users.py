"""Profile endpoints mounted under `/api/users`.

Every route requires authentication; reading a single profile and all
mutations are limited to the profile's owner.
"""

from fastapi import APIRouter, Depends

from ..auth import get_context, require_auth
from ..pagination import paginate
from ..pipeline import RequestContext, Reply, run
from ..policies import PROFILE
from ..repositories import ProfileRepository
from ..schemas import ProfileIn
from ..services import AccountService
from .. import validation

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def list_users(page: str = None, limit: str = None, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        window = paginate(page, limit)
        rows, total = ProfileRepository(ctx.session).page(
            None, window.offset, window.limit, order_by="created_at", descending=True
        )
        return Reply({"users": rows, "pagination": window.derive_result(total)}, "Users fetched successfully")

    return run(ctx, require_auth, execute)


@router.get("/{user_id}")
def get_user(user_id: str, ctx: RequestContext = Depends(get_context)):
    return run(
        ctx,
        require_auth,
        PROFILE.stage(user_id, bind="profile"),
        lambda ctx: Reply({"user": ctx.values["profile"]}),
    )


@router.put("/{user_id}")
def update_user(user_id: str, ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        values = validation.changes(ctx.values["payload"].model_dump(), ["name", "pendidikan", "pekerjaan"])
        user = ProfileRepository(ctx.session).update(user_id, values)
        return Reply({"user": user}, "User updated successfully")

    return run(ctx, require_auth, PROFILE.stage(user_id, bind="profile"), validation.body(ProfileIn), execute)


@router.delete("/{user_id}")
def delete_user(user_id: str, ctx: RequestContext = Depends(get_context)):
    """Delete the caller's own account: identity, personalization data and profile."""
    def execute(ctx):
        AccountService(ctx.session, ctx.identity).delete_account(user_id)
        return Reply(None, "User deleted successfully")

    return run(ctx, require_auth, PROFILE.stage(user_id, bind="profile"), execute)
