"""Pydantic request schemas used by the API.

Routes parse their body into these schemas with the `validation.body`
stage, after authentication. Fields are optional so presence and
enumeration checks can report their own messages; a value of the wrong
type fails the parse with `"Invalid request body"`.
"""

from pydantic import BaseModel
from typing import Optional


class RegisterIn(BaseModel):
    """Payload for `POST /api/auth/register`."""
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    pendidikan: Optional[str] = None
    pekerjaan: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RefreshIn(BaseModel):
    refresh_token: Optional[str] = None


class PasswordIn(BaseModel):
    """New password for the update and reset flows."""
    password: Optional[str] = None


class ForgotPasswordIn(BaseModel):
    email: Optional[str] = None


class ProfileIn(BaseModel):
    """Editable profile fields; email and role are managed elsewhere."""
    name: Optional[str] = None
    pendidikan: Optional[str] = None
    pekerjaan: Optional[str] = None


class JobIn(BaseModel):
    title: Optional[str] = None
    company: Optional[str] = None
    role_category: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    salary_range: Optional[str] = None


class SkillCourseIn(BaseModel):
    title: Optional[str] = None
    bidang: Optional[str] = None
    level: Optional[str] = None
    provider: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None


class PersonalizedIn(BaseModel):
    """Assessment result; the owner always comes from the token."""
    role_category: Optional[str] = None
    analysis_score: Optional[int] = None
    innovation_score: Optional[int] = None
    collab_score: Optional[int] = None
    creative_score: Optional[int] = None
    summary: Optional[str] = None


class JobRecommendationIn(BaseModel):
    job_id: Optional[int] = None
    match_score: Optional[float] = None
    reason: Optional[str] = None


class CourseRecommendationIn(BaseModel):
    course_id: Optional[int] = None
    priority: Optional[int] = None
    reason: Optional[str] = None


class SkillQuestionIn(BaseModel):
    text: Optional[str] = None
    trait: Optional[str] = None
    category: Optional[str] = None
    role_category: Optional[str] = None
