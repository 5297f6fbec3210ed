"""Explicit request-handling pipelines.

A route is an ordered list of stages (authenticate, authorize,
validate, execute). Each stage receives the `RequestContext` and
returns one of three results:

- `Proceed`: continue; an optional `value` is bound into `ctx.values`
  under `bind` for later stages.
- `Reply`: the request is answered successfully.
- `Halt`: the request is answered with an error envelope.

A stage that returns `None` proceeds. Stages may also raise `ApiError`
(treated as `Halt`). Any other exception is logged and answered as
`InternalError`, so every route ends in the envelope builder.

Routes do not declare typed bodies. The raw request body is kept on the
context and parsed by a stage (`validation.body`), so nothing about the
payload is examined before the authentication stage has run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .envelope import build_envelope, error_envelope
from .errors import ApiError, InternalError

logger = logging.getLogger("arunika.pipeline")


@dataclass
class Principal:
    """The authenticated identity attached to a request."""
    id: str
    email: Optional[str]
    metadata: dict = field(default_factory=dict)
    session_id: Optional[str] = None
    identity: dict = field(default_factory=dict)


@dataclass
class RequestContext:
    request: Request
    session: Session
    identity: Any
    principal: Optional[Principal] = None
    values: Dict[str, Any] = field(default_factory=dict)
    body: bytes = b""


@dataclass(frozen=True)
class Proceed:
    value: Any = None
    bind: Optional[str] = None


@dataclass(frozen=True)
class Reply:
    data: Any = None
    message: Optional[str] = None
    status_code: int = 200


@dataclass(frozen=True)
class Halt:
    error: ApiError


StageResult = Union[Proceed, Reply, Halt]
Stage = Callable[[RequestContext], StageResult]


class Pipeline:
    """Run stages in order until one replies or halts."""

    def __init__(self, *stages: Stage):
        self.stages = stages

    def run(self, ctx: RequestContext) -> JSONResponse:
        for stage in self.stages:
            result = self._step(stage, ctx)
            if isinstance(result, Halt):
                return error_envelope(result.error)
            if isinstance(result, Reply):
                return build_envelope(result.status_code, True, data=result.data, message=result.message)
            if result.bind:
                ctx.values[result.bind] = result.value
        logger.error("pipeline_without_reply path=%s", ctx.request.url.path)
        return error_envelope(InternalError(message="Request produced no response"))

    def _step(self, stage: Stage, ctx: RequestContext) -> StageResult:
        try:
            result = stage(ctx)
        except ApiError as exc:
            return Halt(exc)
        except Exception as exc:
            logger.exception("stage_failed path=%s method=%s", ctx.request.url.path, ctx.request.method)
            return Halt(InternalError.from_exception(exc))
        if result is None:
            return Proceed()
        return result


def run(ctx: RequestContext, *stages: Stage) -> JSONResponse:
    return Pipeline(*stages).run(ctx)
