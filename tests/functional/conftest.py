from __future__ import annotations

"""Functional test bootstrap for the intake service.

Provides fakes for the spreadsheet transport, the backoff sleep and the
verification service, plus an in-process app wired with them. Nothing here
touches the network or real credentials.
"""

import logging
import pathlib
from typing import Any, Callable, Dict, List, Optional

import pytest

from intake.config import AppConfig, RateLimitConfig, RetryConfig, SheetsConfig, TurnstileConfig
from intake.logic.error_classifier import ErrorClassifier
from intake.logic.rate_limiter import RateLimiter
from intake.logic.sheets_client import SheetsAppendClient
from intake.logic.submission_log import SubmissionLogger
from intake.logic.submit_handler import SubmitFormHandler

ROOT = pathlib.Path(__file__).resolve().parents[2]
SCHEMAS_DIR = ROOT / "schemas"

_ENV_KEYS = (
    "GOOGLE_SHEETS_PRIVATE_KEY",
    "GOOGLE_SHEETS_CLIENT_EMAIL",
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "GOOGLE_SHEETS_SHEET_NAME",
    "SHEETS_MAX_ATTEMPTS",
    "RATE_LIMIT_MAX_REQUESTS",
    "RATE_LIMIT_WINDOW_SECONDS",
    "TURNSTILE_SECRET_KEY",
    "TURNSTILE_VERIFY_URL",
    "TURNSTILE_TIMEOUT_SECONDS",
    "CORS_ALLOW_ORIGINS",
)


class FakeTransport:
    """Scripted transport: each call pops the next outcome (exception or dict)."""

    def __init__(self, outcomes: Optional[List[Any]] = None, *, title_error: Optional[Exception] = None) -> None:
        self.outcomes = list(outcomes or [])
        self.title_error = title_error
        self.rows: List[List[str]] = []
        self.title_calls = 0

    def append_row(self, values: List[str]) -> Dict[str, Any]:
        self.rows.append(list(values))
        outcome = self.outcomes.pop(0) if self.outcomes else {"updates": {"updatedRange": "Sheet1!A2:H2", "updatedRows": 1}}
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def fetch_title(self) -> str:
        self.title_calls += 1
        if self.title_error is not None:
            raise self.title_error
        return "Leads"


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeVerifier:
    def __init__(self, result: Any = True, *, enabled: bool = True) -> None:
        self.result = result
        self.enabled = enabled
        self.tokens: List[Optional[str]] = []

    def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        self.tokens.append(token)
        if isinstance(self.result, BaseException):
            raise self.result
        return bool(self.result)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: pathlib.Path) -> None:
    """Keep real credentials and the repo config file out of the tests."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def caplog_debug(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def valid_body() -> Dict[str, Any]:
    return {
        "name": "Jane Doe",
        "contactMethods": ["email"],
        "email": "jane@example.com",
        "socialPlatforms": ["instagram"],
        "socialMediaHandle": "@jane",
        "address": "1 Main St",
    }


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        sheets=SheetsConfig(client_email="svc@example.iam.gserviceaccount.com", private_key="k", spreadsheet_id="sheet-1"),
        retry=RetryConfig(max_attempts=3),
        rate_limit=RateLimitConfig(max_requests=5, window_seconds=60),
        turnstile=TurnstileConfig(),
    )


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_handler(sleep: RecordingSleep) -> Callable[..., SubmitFormHandler]:
    """Build a handler whose client factory returns a client over `transport`."""

    def _make(
        transport: Optional[FakeTransport] = None,
        *,
        factory_error: Optional[Exception] = None,
        rate_limiter: Optional[RateLimiter] = None,
        verifier: Any = None,
    ) -> SubmitFormHandler:
        submission_logger = SubmissionLogger()
        classifier = ErrorClassifier(submission_logger)
        fake = transport if transport is not None else FakeTransport()

        def factory() -> SheetsAppendClient:
            if factory_error is not None:
                raise factory_error
            return SheetsAppendClient(fake, submission_logger, classifier=classifier, sleep=sleep)

        return SubmitFormHandler(
            client_factory=factory,
            submission_logger=submission_logger,
            classifier=classifier,
            rate_limiter=rate_limiter,
            verifier=verifier,
        )

    return _make


def records_for(caplog: pytest.LogCaptureFixture, operation: str) -> List[logging.LogRecord]:
    return [r for r in caplog.records if getattr(r, "operation", None) == operation]


@pytest.fixture
def records() -> Callable[[pytest.LogCaptureFixture, str], List[logging.LogRecord]]:
    return records_for
