"""Ownership policies for each resource family that has an owner."""

from .ownership import Ownership
from .validation import record_id
from . import repositories

PROFILE = Ownership(
    fetch=lambda ctx, user_id: repositories.ProfileRepository(ctx.session).get(user_id),
    not_found="User not found",
    denied="You can only access your own profile",
)

PERSONALIZED = Ownership(
    fetch=lambda ctx, key: repositories.PersonalizedRepository(ctx.session).get(record_id("personalized_id", key)),
    not_found="Personalized record not found",
    denied="You can only access your own personalized records",
)

JOB_RECOMMENDATION = PERSONALIZED.through(
    fetch_child=lambda ctx, key: repositories.JobRecommendationRepository(ctx.session).get(
        record_id("recommendation_id", key)
    ),
    parent_key_field="personalized_id",
    not_found="Job recommendation not found",
    denied="You can only modify recommendations on your own personalized records",
)

COURSE_RECOMMENDATION = PERSONALIZED.through(
    fetch_child=lambda ctx, key: repositories.CourseRecommendationRepository(ctx.session).get(
        record_id("recommendation_id", key)
    ),
    parent_key_field="personalized_id",
    not_found="Course recommendation not found",
    denied="You can only modify recommendations on your own personalized records",
)
