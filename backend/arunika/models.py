"""SQLModel data models.

The `auth_*` tables back the local identity provider; the remaining
tables are the career-guidance data store (profiles, the job and course
catalogues, personalization results with their recommendations, and the
skill question bank).
"""

from typing import Optional
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AuthUser(SQLModel, table=True):
    """An identity known to the identity provider.

    `id` is an opaque uuid string; `user_metadata` holds whatever the
    client supplied at sign-up (name, pendidikan, pekerjaan).
    """
    __tablename__ = "auth_users"

    id: str = Field(primary_key=True)
    email: str = Field(index=True, unique=True, nullable=False)
    password_hash: str
    user_metadata: dict = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class AuthSession(SQLModel, table=True):
    """A login session; its refresh token is single-use."""
    __tablename__ = "auth_sessions"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    refresh_token: str = Field(index=True, unique=True)
    revoked: bool = False
    created_at: datetime = Field(default_factory=_now)
    expires_at: datetime


class UserProfile(SQLModel, table=True):
    """Application profile row, keyed by the identity id."""
    __tablename__ = "users"

    user_id: str = Field(primary_key=True)
    name: str
    email: str = Field(index=True)
    role: str = "user"
    pendidikan: Optional[str] = None
    pekerjaan: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Job(SQLModel, table=True):
    __tablename__ = "jobs"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    company: str
    role_category: str = Field(index=True)
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, index=True)
    salary_range: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class SkillCourse(SQLModel, table=True):
    """A learning resource; `bidang` is the field of study it belongs to."""
    __tablename__ = "skill_courses"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    bidang: str = Field(index=True)
    level: str = Field(index=True)
    provider: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Personalized(SQLModel, table=True):
    """Result of a skill assessment for one user.

    Job and course recommendations hang off this record and inherit its
    owner.
    """
    __tablename__ = "personalized"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    role_category: str
    analysis_score: Optional[int] = None
    innovation_score: Optional[int] = None
    collab_score: Optional[int] = None
    creative_score: Optional[int] = None
    summary: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class JobRecommendation(SQLModel, table=True):
    __tablename__ = "job_recommendations"

    id: Optional[int] = Field(default=None, primary_key=True)
    personalized_id: int = Field(foreign_key="personalized.id", index=True)
    job_id: int = Field(foreign_key="jobs.id")
    match_score: Optional[float] = None
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class CourseRecommendation(SQLModel, table=True):
    __tablename__ = "course_recommendations"

    id: Optional[int] = Field(default=None, primary_key=True)
    personalized_id: int = Field(foreign_key="personalized.id", index=True)
    course_id: int = Field(foreign_key="skill_courses.id")
    priority: Optional[int] = None
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class SkillQuestion(SQLModel, table=True):
    """Assessment question scored against one of the four traits."""
    __tablename__ = "skill_questions"

    id: Optional[int] = Field(default=None, primary_key=True)
    text: str
    trait: str
    category: str
    role_category: str = Field(index=True)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
