"""Account endpoints mounted under `/api/auth`.

Endpoints implemented:
- POST /register
- POST /login
- POST /logout
- POST /refresh
- GET /me
- PUT /update-password
- POST /forgot-password
- POST /reset-password
"""

from fastapi import APIRouter, Depends

from ..auth import extract_token, get_context, require_auth
from ..config import settings
from ..errors import InvalidOrExpiredCredential, MissingCredential, UpstreamError, ValidationError
from ..identity import IdentityError
from ..pipeline import RequestContext, Reply, run
from ..schemas import ForgotPasswordIn, LoginIn, PasswordIn, RefreshIn, RegisterIn
from ..services import AccountService
from .. import validation

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register")
def register(ctx: RequestContext = Depends(get_context)):
    """Create an identity and its profile, returning a fresh session."""
    def validate(ctx):
        payload = ctx.values["payload"]
        validation.require_fields(
            payload.model_dump(), ["email", "password", "name"], "Email, password, and name are required"
        )
        validation.password_strength(payload.password)

    def execute(ctx):
        payload = ctx.values["payload"]
        data = AccountService(ctx.session, ctx.identity).register(
            payload.email, payload.password, payload.name, payload.pendidikan, payload.pekerjaan
        )
        return Reply(data, "User registered successfully", status_code=201)

    return run(ctx, validation.body(RegisterIn), validate, execute)


@router.post("/login")
def login(ctx: RequestContext = Depends(get_context)):
    def validate(ctx):
        validation.require_fields(
            ctx.values["payload"].model_dump(), ["email", "password"], "Email and password are required"
        )

    def execute(ctx):
        payload = ctx.values["payload"]
        try:
            data = AccountService(ctx.session, ctx.identity).login(payload.email, payload.password)
        except IdentityError:
            raise InvalidOrExpiredCredential("Invalid email or password")
        return Reply(data, "Login successful")

    return run(ctx, validation.body(LoginIn), validate, execute)


@router.post("/logout")
def logout(ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        ctx.identity.sign_out(ctx.principal.session_id)
        return Reply(None, "Logged out successfully")

    return run(ctx, require_auth, execute)


@router.post("/refresh")
def refresh(ctx: RequestContext = Depends(get_context)):
    """Exchange a refresh token for a new session."""
    def validate(ctx):
        validation.require_fields(ctx.values["payload"].model_dump(), ["refresh_token"], "Refresh token is required")

    def execute(ctx):
        try:
            result = ctx.identity.refresh_session(ctx.values["payload"].refresh_token)
        except IdentityError:
            raise InvalidOrExpiredCredential("Invalid refresh token")
        data = {
            "session": result.session,
            "access_token": result.session["access_token"],
            "refresh_token": result.session["refresh_token"],
        }
        return Reply(data, "Token refreshed successfully")

    return run(ctx, validation.body(RefreshIn), validate, execute)


@router.get("/me")
def me(ctx: RequestContext = Depends(get_context)):
    def execute(ctx):
        profile = AccountService(ctx.session, ctx.identity).profile_for(ctx.principal.id)
        return Reply({"auth_user": ctx.principal.identity, "profile": profile})

    return run(ctx, require_auth, execute)


@router.put("/update-password")
def update_password(ctx: RequestContext = Depends(get_context)):
    def validate(ctx):
        validation.password_strength(ctx.values["payload"].password)

    def execute(ctx):
        try:
            user = ctx.identity.update_user(ctx.principal.id, password=ctx.values["payload"].password)
        except IdentityError as exc:
            raise UpstreamError(exc.message)
        return Reply({"user": user}, "Password updated successfully")

    return run(ctx, require_auth, validation.body(PasswordIn), validate, execute)


@router.post("/forgot-password")
def forgot_password(ctx: RequestContext = Depends(get_context)):
    """Send a recovery link; unknown addresses get the same answer."""
    def validate(ctx):
        validation.require_fields(ctx.values["payload"].model_dump(), ["email"], "Email is required")

    def execute(ctx):
        try:
            ctx.identity.reset_password_for_email(
                ctx.values["payload"].email, redirect_to=f"{settings.FRONTEND_URL}/reset-password"
            )
        except IdentityError as exc:
            raise UpstreamError(exc.message)
        return Reply(None, "Password reset email sent")

    return run(ctx, validation.body(ForgotPasswordIn), validate, execute)


@router.post("/reset-password")
def reset_password(ctx: RequestContext = Depends(get_context)):
    """Set a new password using the recovery token from the reset link.

    The recovery token travels in the `Authorization: Bearer` header.
    """
    def validate(ctx):
        try:
            ctx.values["token"] = extract_token(ctx.request.headers.get("Authorization"))
        except MissingCredential:
            raise ValidationError("Reset token is required")
        validation.password_strength(ctx.values["payload"].password)

    def execute(ctx):
        try:
            identity = ctx.identity.verify_token(ctx.values["token"], purposes=("recovery", "access"))
            user = ctx.identity.update_user(identity["id"], password=ctx.values["payload"].password)
        except IdentityError as exc:
            raise UpstreamError(exc.message)
        return Reply({"user": user}, "Password reset successful")

    return run(ctx, validation.body(PasswordIn), validate, execute)
