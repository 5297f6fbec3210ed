"""Global exception handlers.

Routes answer through their pipelines, so these handlers are the final
safety net. They still produce the standard envelope:

- ApiError -> its own status and envelope
- RequestValidationError -> 400 listing the offending fields
- unmatched route (404) -> envelope plus `path` and `method`
- other HTTP errors (405, ...) -> envelope with the status text
- anything else -> 500, detail only in development mode
"""

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .envelope import build_envelope, envelope_body, error_envelope
from .errors import ApiError, public_message
from .validation import INVALID_BODY, describe_errors

logger = logging.getLogger("arunika.api")


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return error_envelope(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
        return build_envelope(
            status.HTTP_400_BAD_REQUEST,
            False,
            error=INVALID_BODY,
            message=describe_errors(exc.errors()),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return route_not_found(request)
        return build_envelope(
            exc.status_code,
            False,
            error=_status_phrase(exc.status_code),
            message=exc.detail if isinstance(exc.detail, str) else None,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True,
        )
        declared = getattr(exc, "status", None)
        code = declared if isinstance(declared, int) and 400 <= declared < 600 else status.HTTP_500_INTERNAL_SERVER_ERROR
        return build_envelope(
            code,
            False,
            error="Internal server error",
            message=public_message(exc),
        )


def route_not_found(request: Request) -> JSONResponse:
    body = envelope_body(False, error="Route not found")
    body["path"] = request.url.path
    body["method"] = request.method
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=body)


def _status_phrase(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Error"
