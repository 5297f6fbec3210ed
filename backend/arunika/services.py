"""Business logic services used by the routers.

Services coordinate the identity provider and the repositories for the
flows that touch both. They raise `ApiError` subclasses; the calling
pipeline turns them into envelopes.
"""

import logging
from typing import Optional

from sqlmodel import Session

from . import models, repositories
from .errors import NotFound, UpstreamError
from .identity import AuthResult, IdentityError

logger = logging.getLogger("arunika.services")


def session_payload(result: AuthResult, profile: Optional[models.UserProfile]) -> dict:
    session = result.session or {}
    return {
        "user": result.user,
        "profile": profile,
        "session": result.session,
        "access_token": session.get("access_token"),
        "refresh_token": session.get("refresh_token"),
    }


class AccountService:
    """Registration, login and account removal."""

    def __init__(self, session: Session, identity):
        self.session = session
        self.identity = identity
        self.profiles = repositories.ProfileRepository(session)

    def _profile_values(self, user: dict, name: Optional[str] = None, pendidikan: Optional[str] = None,
                        pekerjaan: Optional[str] = None) -> dict:
        meta = user.get("user_metadata") or {}
        return {
            "user_id": user["id"],
            "name": name or meta.get("name") or user.get("email"),
            "email": user.get("email"),
            "role": "user",
            "pendidikan": pendidikan or meta.get("pendidikan"),
            "pekerjaan": pekerjaan or meta.get("pekerjaan"),
        }

    def register(self, email: str, password: str, name: str, pendidikan: Optional[str] = None,
                 pekerjaan: Optional[str] = None) -> dict:
        """Create the identity, then upsert-or-fetch its profile row."""
        try:
            result = self.identity.sign_up(
                email, password, {"name": name, "pendidikan": pendidikan, "pekerjaan": pekerjaan}
            )
        except IdentityError as exc:
            raise UpstreamError(exc.message)
        if not result.user:
            raise UpstreamError("Registration failed - no user created")
        profile = self.profiles.ensure(self._profile_values(result.user, name, pendidikan, pekerjaan))
        return session_payload(result, profile)

    def login(self, email: str, password: str) -> dict:
        """Sign in; a missing profile is recreated from the identity metadata.

        Raises `IdentityError` on bad credentials so the caller can map it
        to 401.
        """
        result = self.identity.sign_in_with_password(email, password)
        profile = self.profiles.get(result.user["id"])
        if profile is None:
            logger.warning("profile_missing user_id=%s; creating", result.user["id"])
            profile = self.profiles.ensure(self._profile_values(result.user))
        return session_payload(result, profile)

    def profile_for(self, user_id: str) -> models.UserProfile:
        profile = self.profiles.get(user_id)
        if profile is None:
            raise NotFound("User profile not found")
        return profile

    def delete_account(self, user_id: str) -> None:
        """Remove the user's personalization data, the profile and then the identity.

        Local rows go first: if the identity removal fails the identity
        survives without a profile, which the next login recreates.
        """
        repositories.PersonalizedRepository(self.session).delete_for_user(user_id)
        self.profiles.delete(user_id)
        try:
            self.identity.admin_delete_user(user_id)
        except IdentityError as exc:
            raise UpstreamError(exc.message)


class RecommendationService:
    """Read helpers over personalization results."""

    def __init__(self, session: Session):
        self.personalized = repositories.PersonalizedRepository(session)
        self.job_recs = repositories.JobRecommendationRepository(session)
        self.course_recs = repositories.CourseRecommendationRepository(session)

    def recommended_job_ids(self, user_id: str) -> list:
        """Job ids recommended by the user's most recent personalization."""
        latest = self.personalized.latest_for_user(user_id)
        if latest is None:
            return []
        return self.job_recs.job_ids_for(latest.id)

    def detail(self, record: models.Personalized) -> dict:
        return {
            "personalized": record,
            "job_recommendations": self.job_recs.find({"personalized_id": record.id}),
            "course_recommendations": self.course_recs.find({"personalized_id": record.id}),
        }
