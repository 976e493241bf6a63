"""Exception handlers that turn pipeline failures into HTTP error envelopes.

Every failure is answered with ``{"status": "error", "message": "..."}``.
Stage failures additionally carry ``"stage"`` so callers can tell which
generation step gave up.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repo_sitegen.domain.exceptions import (
    ConfigurationError,
    LlmError,
    PipelineStageError,
    ResponseValidationError,
    SiteGeneratorError,
)

logger = logging.getLogger(__name__)

# Starlette walks the MRO, so subclasses listed here win over the base.
STATUS_BY_ERROR: dict[type[SiteGeneratorError], int] = {
    ConfigurationError: 422,
    LlmError: 502,
    ResponseValidationError: 502,
    SiteGeneratorError: 500,
}

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def error_envelope(status_code: int, message: str, **extra: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message, **extra},
    )


def _status_handler(status_code: int):  # type: ignore[no-untyped-def]
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.warning("%s %s -> %d %s: %s", request.method, request.url.path,
                       status_code, type(exc).__name__, exc)
        return error_envelope(status_code, str(exc))

    return handler


async def _stage_failed(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, PipelineStageError)
    cause = exc.__cause__
    logger.warning(
        "Stage %s failed (%s): %s",
        exc.stage,
        type(cause).__name__ if cause else "no cause",
        exc,
    )
    return error_envelope(502, str(exc), stage=exc.stage)


async def _invalid_request(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    problems = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in exc.errors()
    ]
    return error_envelope(422, "; ".join(problems))


async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return error_envelope(500, UNEXPECTED_ERROR_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    """Attach every exception handler to *app*."""
    for exc_type, status_code in STATUS_BY_ERROR.items():
        app.add_exception_handler(exc_type, _status_handler(status_code))
    app.add_exception_handler(PipelineStageError, _stage_failed)
    app.add_exception_handler(RequestValidationError, _invalid_request)
    app.add_exception_handler(Exception, _unexpected)
