"""Response envelope builder.

Every route answers with the same JSON body::

    {"success": bool, "data": ..., "error": ..., "message": ..., "timestamp": "..."}

`timestamp` is taken when the response is built, i.e. when the handler
has finished, and the HTTP status only appears on the status line.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .errors import ApiError


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision (`...Z`)."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def envelope_body(success: bool, data: Any = None, error: Optional[str] = None, message: Optional[str] = None) -> dict:
    if success and error is not None:
        raise ValueError("a successful envelope cannot carry an error")
    if not success and error is None:
        raise ValueError("a failed envelope needs an error")
    return {
        "success": success,
        "data": jsonable_encoder(data),
        "error": error,
        "message": message,
        "timestamp": utc_timestamp(),
    }


def build_envelope(status_code: int, success: bool, data: Any = None, error: Optional[str] = None,
                   message: Optional[str] = None, headers: Optional[dict] = None) -> JSONResponse:
    """Build the HTTP response for a handler outcome."""
    return JSONResponse(
        status_code=status_code,
        content=envelope_body(success, data, error, message),
        headers=headers,
    )


def success_envelope(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    return build_envelope(status_code, True, data=data, message=message)


def error_envelope(exc: ApiError) -> JSONResponse:
    return build_envelope(exc.status_code, False, error=exc.error, message=exc.message)
