"""API routers, mounted by `arunika.main` under `/api`."""

from fastapi import APIRouter

from . import auth, courses, jobs, personalized, questions, recommendations, users

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(jobs.router)
api_router.include_router(courses.router)
api_router.include_router(personalized.router)
api_router.include_router(recommendations.router)
api_router.include_router(questions.router)
