"""Application factory for the intake service."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from intake.config import AppConfig, load_config
from intake.http.problem import (
    handle_http_exception,
    handle_request_validation_error,
    handle_unexpected_error,
)
from intake.http.request_id import RequestIdMiddleware
from intake.logging_setup import configure_logging
from intake.logic.error_classifier import ErrorClassifier
from intake.logic.rate_limiter import RateLimiter
from intake.logic.sheets_client import SheetsAppendClient, create_sheets_client_from_config
from intake.logic.submission_log import SubmissionLogger
from intake.logic.submit_handler import SubmitFormHandler
from intake.logic.turnstile import TurnstileVerifier
from intake.middleware.cors import apply_cors
from intake.routes import api_router

logger = logging.getLogger(__name__)


def build_submit_handler(config: AppConfig) -> SubmitFormHandler:
    """Wire the production collaborators for the submit endpoint."""
    submission_logger = SubmissionLogger()
    max_attempts = config.retry.max_attempts

    def client_factory() -> SheetsAppendClient:
        return create_sheets_client_from_config(config.sheets, submission_logger, max_attempts=max_attempts)

    return SubmitFormHandler(
        client_factory=client_factory,
        submission_logger=submission_logger,
        classifier=ErrorClassifier(submission_logger, max_attempts=max_attempts),
        rate_limiter=RateLimiter(config.rate_limit.max_requests, config.rate_limit.window_seconds),
        verifier=TurnstileVerifier(config.turnstile),
    )


def create_app(
    config: Optional[AppConfig] = None,
    *,
    submit_handler: Optional[SubmitFormHandler] = None,
) -> FastAPI:
    configure_logging()
    config = config or load_config()
    app = FastAPI(title="Sheets Intake", version="1.0.0")
    app.state.config = config
    app.state.submit_handler = submit_handler or build_submit_handler(config)

    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    apply_cors(app, origins=config.cors_allow_origins)
    # Added last so it wraps CORS preflight responses too
    app.add_middleware(RequestIdMiddleware)
    app.include_router(api_router)

    if not config.sheets.is_configured:
        logger.warning("sheets.not_configured", extra={"missing": config.sheets.missing()})
    logger.info(
        "app.created",
        extra={
            "sheet_name": config.sheets.sheet_name,
            "rate_limit_max_requests": config.rate_limit.max_requests,
            "turnstile_enabled": config.turnstile.enabled,
        },
    )
    return app


__all__ = ["build_submit_handler", "create_app"]
