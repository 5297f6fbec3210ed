"""FastAPI application entrypoint.

This module builds the Arunika career-guidance API: logging, CORS, the
request-id middleware, the global error handlers and the `/api`
routers. Routers are thin: each endpoint is a pipeline of
authentication, ownership, validation and execution stages that always
answers with the standard envelope.

Resource families:
- /api/auth (register, login, logout, refresh, me, password flows)
- /api/users
- /api/jobs
- /api/skill-courses
- /api/personalized and its job/course recommendations
- /api/skill-questions
"""

import json
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .config import settings
from .database import create_db_and_tables
from .envelope import utc_timestamp
from .error_handlers import register_error_handlers
from .routers import api_router

logger = logging.getLogger("arunika.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="Arunika Career Guidance API")

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()
register_error_handlers(app)


def _request_log(request: Request, req_id: str, started: float, **extra) -> str:
    return json.dumps(
        {
            "request_id": req_id,
            "path": request.url.path,
            "method": request.method,
            "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
            "client": request.client.host if request.client else "unknown",
            **extra,
        },
        ensure_ascii=True,
    )


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_failed %s", _request_log(request, req_id, started))
        raise
    response.headers["X-Request-ID"] = req_id
    logger.info("request_done %s", _request_log(request, req_id, started, status_code=response.status_code))
    return response


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {
        "status": "Server is running",
        "timestamp": utc_timestamp(),
        "environment": settings.ENV,
    }


app.include_router(api_router)
