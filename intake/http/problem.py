"""Global exception handlers.

Every error leaving the app uses the same envelope as the submit endpoint:
`{"success": false, "message": ...}`. Request-validation problems map to 400
with the "Invalid form data" message.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from intake.models.submission import INVALID_MESSAGE

logger = logging.getLogger(__name__)


def error_envelope(message: str) -> dict:
    return {"success": False, "message": message}


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status_code = int(getattr(exc, "status_code", 500) or 500)
    detail = exc.detail if isinstance(exc.detail, str) and exc.detail else "Request failed"
    headers = {str(k): str(v) for k, v in (exc.headers or {}).items()}
    return JSONResponse(error_envelope(detail), status_code=status_code, headers=headers or None)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    logger.info("request_validation_failed", extra={"path": request.url.path, "errors": len(exc.errors())})
    return JSONResponse(error_envelope(INVALID_MESSAGE), status_code=400)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(error_envelope("Internal server error"), status_code=500)


__all__ = [
    "error_envelope",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
