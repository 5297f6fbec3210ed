"""Identity provider backed by the local database.

The provider issues and validates bearer tokens and owns the
credential tables (`auth_users`, `auth_sessions`). Handlers only talk to
it through the methods below; a rejection is reported by raising
`IdentityError` with a human readable message, anything else it raises
means the provider itself failed.

Tokens are HS256 JWTs signed with `settings.JWT_SECRET`:

- access tokens carry `sub`, `email`, `sid` (session id) and
  `type="access"`; they stop verifying once their session is revoked.
- recovery tokens carry `type="recovery"` and are only accepted by the
  password reset flow.
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import jwt
from passlib.context import CryptContext
from sqlmodel import Session, select

from . import models
from .config import settings

logger = logging.getLogger("arunika.identity")

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class IdentityError(Exception):
    """The provider refused the request (bad credentials, bad token, ...)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


@dataclass
class AuthResult:
    """Identity plus the session issued for it."""
    user: dict
    session: Optional[dict]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def public_user(user: models.AuthUser) -> dict:
    """Identity record as exposed to clients (no password hash)."""
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": dict(user.user_metadata or {}),
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


class LocalIdentityProvider:
    """Sign-up, sign-in and token verification against `auth_*` tables."""

    def __init__(self, session: Session):
        self.session = session

    # -- tokens ---------------------------------------------------------

    def _encode(self, claims: dict, ttl_seconds: int) -> str:
        now = _now()
        payload = dict(claims, iat=int(now.timestamp()), exp=int((now + timedelta(seconds=ttl_seconds)).timestamp()))
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    def _decode(self, token: str) -> dict:
        try:
            return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise IdentityError("Token has expired")
        except jwt.InvalidTokenError:
            raise IdentityError("Invalid token")

    def _issue_session(self, user: models.AuthUser) -> dict:
        expires_at = _now() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        record = models.AuthSession(
            id=uuid.uuid4().hex,
            user_id=user.id,
            refresh_token=secrets.token_urlsafe(32),
            expires_at=expires_at,
        )
        self.session.add(record)
        self.session.commit()
        access_token = self._encode(
            {"sub": user.id, "email": user.email, "sid": record.id, "type": "access"},
            settings.ACCESS_TOKEN_EXPIRE_SECONDS,
        )
        return {
            "access_token": access_token,
            "refresh_token": record.refresh_token,
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_SECONDS,
            "expires_at": int((_now() + timedelta(seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS)).timestamp()),
        }

    def _user_by_email(self, email: str) -> Optional[models.AuthUser]:
        stmt = select(models.AuthUser).where(models.AuthUser.email == email.strip().lower())
        return self.session.exec(stmt).first()

    def verify_token(self, token: str, purposes: Iterable[str] = ("access",)) -> dict:
        """Return the identity record a token belongs to.

        Raises `IdentityError` for malformed, expired or revoked tokens
        and for tokens of another purpose.
        """
        claims = self._decode(token)
        if claims.get("type") not in tuple(purposes) or not claims.get("sub"):
            raise IdentityError("Invalid token")
        user = self.session.get(models.AuthUser, claims.get("sub"))
        if user is None:
            raise IdentityError("User not found")
        sid = claims.get("sid")
        if sid is not None:
            record = self.session.get(models.AuthSession, sid)
            if record is None or record.revoked:
                raise IdentityError("Session has been revoked")
        identity = public_user(user)
        identity["session_id"] = sid
        return identity

    # -- account lifecycle ----------------------------------------------

    def sign_up(self, email: str, password: str, metadata: Optional[dict] = None) -> AuthResult:
        """Create an identity and open a session for it."""
        email = email.strip().lower()
        if self._user_by_email(email) is not None:
            raise IdentityError("User already registered")
        user = models.AuthUser(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=PWD_CTX.hash(password),
            user_metadata={k: v for k, v in (metadata or {}).items() if v is not None},
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        logger.info("identity_created user_id=%s", user.id)
        return AuthResult(user=public_user(user), session=self._issue_session(user))

    def sign_in_with_password(self, email: str, password: str) -> AuthResult:
        user = self._user_by_email(email)
        if user is None or not PWD_CTX.verify(password, user.password_hash):
            raise IdentityError("Invalid login credentials")
        return AuthResult(user=public_user(user), session=self._issue_session(user))

    def sign_out(self, session_id: Optional[str]) -> None:
        """Revoke a session; its access and refresh tokens stop working."""
        if not session_id:
            return
        record = self.session.get(models.AuthSession, session_id)
        if record is None:
            return
        record.revoked = True
        self.session.add(record)
        self.session.commit()

    def refresh_session(self, refresh_token: str) -> AuthResult:
        """Exchange a refresh token for a new session; the old one is revoked."""
        stmt = select(models.AuthSession).where(models.AuthSession.refresh_token == refresh_token)
        record = self.session.exec(stmt).first()
        if record is None or record.revoked or _aware(record.expires_at) <= _now():
            raise IdentityError("Invalid Refresh Token")
        user = self.session.get(models.AuthUser, record.user_id)
        if user is None:
            raise IdentityError("User not found")
        record.revoked = True
        self.session.add(record)
        self.session.commit()
        return AuthResult(user=public_user(user), session=self._issue_session(user))

    def update_user(self, user_id: str, password: Optional[str] = None, metadata: Optional[dict] = None) -> dict:
        user = self.session.get(models.AuthUser, user_id)
        if user is None:
            raise IdentityError("User not found")
        if password is not None:
            user.password_hash = PWD_CTX.hash(password)
        if metadata:
            user.user_metadata = {**(user.user_metadata or {}), **metadata}
        user.updated_at = _now()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return public_user(user)

    def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        """Issue a recovery token for `email`.

        Unknown addresses are accepted silently. There is no mail
        transport: in development the recovery link is written to the
        log, elsewhere only the fact that one was issued.
        """
        user = self._user_by_email(email)
        if user is None:
            logger.info("password_recovery_skipped reason=unknown_email")
            return
        token = self._encode(
            {"sub": user.id, "email": user.email, "type": "recovery"},
            settings.RECOVERY_TOKEN_EXPIRE_SECONDS,
        )
        if settings.is_development:
            logger.info("password_recovery_link user_id=%s link=%s#access_token=%s", user.id, redirect_to, token)
        else:
            logger.info("password_recovery_issued user_id=%s", user.id)

    def admin_delete_user(self, user_id: str) -> None:
        user = self.session.get(models.AuthUser, user_id)
        if user is None:
            raise IdentityError("User not found")
        for record in self.session.exec(select(models.AuthSession).where(models.AuthSession.user_id == user_id)).all():
            self.session.delete(record)
        self.session.delete(user)
        self.session.commit()
        logger.info("identity_deleted user_id=%s", user_id)
