"""Token verification and the authentication stages.

`verify_credential` turns a raw `Authorization` header into a
`Principal`. It never talks to the provider unless the header has the
form `Bearer <token>`, and it keeps provider rejections (401) apart from
provider failures (500).

`require_auth` and `optional_auth` are pipeline stages built on it;
`get_context` is the FastAPI dependency every route uses to obtain its
`RequestContext`.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from sqlmodel import Session

from .database import get_session
from .errors import InvalidOrExpiredCredential, MissingCredential, ProviderUnavailable
from .identity import IdentityError, LocalIdentityProvider
from .pipeline import Halt, Principal, Proceed, RequestContext, StageResult

logger = logging.getLogger("arunika.auth")

BEARER_PREFIX = "Bearer "


def get_identity_provider(db: Session = Depends(get_session)):
    """FastAPI dependency returning the identity provider for this request."""
    return LocalIdentityProvider(db)


async def get_context(request: Request, db: Session = Depends(get_session),
                      identity=Depends(get_identity_provider)) -> RequestContext:
    # body is read unparsed; stages decide what it means
    body = await request.body()
    return RequestContext(request=request, session=db, identity=identity, body=body)


def extract_token(header: Optional[str]) -> str:
    """Return the token of a `Bearer <token>` header or raise `MissingCredential`."""
    if not header or not header.startswith(BEARER_PREFIX):
        raise MissingCredential()
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingCredential()
    return token


def verify_credential(header: Optional[str], identity) -> Principal:
    """Resolve the principal behind an `Authorization` header value."""
    token = extract_token(header)
    try:
        record = identity.verify_token(token)
    except IdentityError as exc:
        raise InvalidOrExpiredCredential() from exc
    except Exception as exc:
        logger.exception("token_verification_failed")
        raise ProviderUnavailable(message=str(exc)) from exc
    if not record or not record.get("id"):
        raise InvalidOrExpiredCredential()
    return Principal(
        id=record["id"],
        email=record.get("email"),
        metadata=record.get("user_metadata") or {},
        session_id=record.get("session_id"),
        identity=record,
    )


def require_auth(ctx: RequestContext) -> StageResult:
    """Stage: reject the request unless it carries a valid bearer token."""
    header = ctx.request.headers.get("Authorization")
    try:
        ctx.principal = verify_credential(header, ctx.identity)
    except (MissingCredential, InvalidOrExpiredCredential, ProviderUnavailable) as exc:
        return Halt(exc)
    ctx.request.state.principal = ctx.principal
    return Proceed(ctx.principal, bind="principal")


def optional_auth(ctx: RequestContext) -> StageResult:
    """Stage: attach a principal when one can be resolved, never block."""
    header = ctx.request.headers.get("Authorization")
    try:
        ctx.principal = verify_credential(header, ctx.identity)
    except (MissingCredential, InvalidOrExpiredCredential, ProviderUnavailable):
        return Proceed()
    ctx.request.state.principal = ctx.principal
    return Proceed(ctx.principal, bind="principal")
