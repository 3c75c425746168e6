"""Submit-form endpoint.

The route accepts every method so the boundary handler owns the method check
and answers non-POST requests with the JSON envelope instead of the framework
default.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from intake.logic.submit_handler import BoundaryResult, SubmitFormHandler
from intake.middleware.cors import ENDPOINT_CORS_HEADERS

router = APIRouter()
logger = logging.getLogger(__name__)

SUBMIT_PATH = "/api/submit-form"
_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",", 1)[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.info("submit_form.body_not_json", extra={"error": str(exc), "size_bytes": len(raw)})
        return None


def _to_response(result: BoundaryResult) -> Response:
    headers = {**ENDPOINT_CORS_HEADERS, **result.headers}
    if result.body is None:
        return Response(status_code=result.status_code, headers=headers)
    return JSONResponse(result.body, status_code=result.status_code, headers=headers)


@router.api_route(
    SUBMIT_PATH,
    methods=_ALL_METHODS,
    summary="Submit the lead-capture form",
    operation_id="submitForm",
    tags=["Submissions"],
)
async def submit_form(request: Request) -> Response:
    handler: SubmitFormHandler = request.app.state.submit_handler
    method = request.method.upper()
    body = await _read_json(request) if method == "POST" else None
    request_id = getattr(request.state, "request_id", None)
    result = await run_in_threadpool(
        handler.handle,
        method,
        body,
        client_address=_client_address(request),
        submission_id=f"sub_{request_id}" if request_id else None,
        user_agent=request.headers.get("user-agent"),
        origin=request.headers.get("origin"),
    )
    return _to_response(result)


__all__ = ["router", "SUBMIT_PATH"]
