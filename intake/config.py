"""Configuration utilities for the intake service.

This module loads application configuration with the following rules:
- Primary source: `intake_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce value constraints.

Missing spreadsheet credentials are not a configuration error: the endpoint
keeps answering and the submission handler logs the condition per request.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_INTAKE_CONFIG = Path("intake_config.json")
DEFAULT_SHEET_NAME = "Sheet1"
DEFAULT_TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(key, default)
    if isinstance(value, str) and not value.strip():
        return default
    return value


def normalize_private_key(raw: Optional[str]) -> Optional[str]:
    """Return a PEM private key from an env value.

    Values that do not start with a PEM header are treated as base64 and
    decoded when that yields text; literal `\\n` escapes become newlines.
    """
    if not raw:
        return None
    key = raw.strip().strip('"')
    if not key.startswith("-----BEGIN"):
        try:
            decoded = base64.b64decode(key, validate=True).decode("utf-8")
        except (binascii.Error, ValueError, UnicodeDecodeError):
            decoded = None
        if decoded and "-----BEGIN" in decoded:
            key = decoded
    return key.replace("\\n", "\n")


class SheetsConfig(BaseModel):
    client_email: Optional[str] = None
    private_key: Optional[str] = None
    spreadsheet_id: Optional[str] = None
    sheet_name: str = DEFAULT_SHEET_NAME

    @field_validator("sheet_name")
    @classmethod
    def sheet_name_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("sheets.sheet_name must be a non-empty string")
        return v.strip()

    def missing(self) -> list[str]:
        """Names of the environment variables still required for the client."""
        out: list[str] = []
        if not self.private_key:
            out.append("GOOGLE_SHEETS_PRIVATE_KEY")
        if not self.client_email:
            out.append("GOOGLE_SHEETS_CLIENT_EMAIL")
        if not self.spreadsheet_id:
            out.append("GOOGLE_SHEETS_SPREADSHEET_ID")
        return out

    @property
    def is_configured(self) -> bool:
        return not self.missing()


class RetryConfig(BaseModel):
    max_attempts: int = Field(default=3, ge=1, le=10)


class RateLimitConfig(BaseModel):
    max_requests: int = Field(default=5, gt=0)
    window_seconds: float = Field(default=60.0, gt=0)


class TurnstileConfig(BaseModel):
    secret_key: Optional[str] = None
    verify_url: str = DEFAULT_TURNSTILE_VERIFY_URL
    timeout_seconds: float = Field(default=5.0, gt=0)

    @property
    def enabled(self) -> bool:
        return bool(self.secret_key)


class AppConfig(BaseModel):
    sheets: SheetsConfig
    retry: RetryConfig
    rate_limit: RateLimitConfig
    turnstile: TurnstileConfig
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) intake_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_INTAKE_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    # Spreadsheet credentials and target
    client_email = _env("GOOGLE_SHEETS_CLIENT_EMAIL") or _read_config_file("sheets.client_email") or _base("sheets.client_email")
    private_key = _env("GOOGLE_SHEETS_PRIVATE_KEY") or _read_config_file("sheets.private_key") or _base("sheets.private_key")
    spreadsheet_id = _env("GOOGLE_SHEETS_SPREADSHEET_ID") or _read_config_file("sheets.spreadsheet_id") or _base("sheets.spreadsheet_id")
    sheet_name = _env("GOOGLE_SHEETS_SHEET_NAME") or _read_config_file("sheets.sheet_name") or _base("sheets.sheet_name", DEFAULT_SHEET_NAME)

    # Retry / rate limiting
    max_attempts_text = _env("SHEETS_MAX_ATTEMPTS") or _read_config_file("retry.max_attempts") or _base("retry.max_attempts", "3")
    rl_max_text = _env("RATE_LIMIT_MAX_REQUESTS") or _read_config_file("rate_limit.max_requests") or _base("rate_limit.max_requests", "5")
    rl_window_text = _env("RATE_LIMIT_WINDOW_SECONDS") or _read_config_file("rate_limit.window_seconds") or _base("rate_limit.window_seconds", "60")

    # Verification
    turnstile_secret = _env("TURNSTILE_SECRET_KEY") or _read_config_file("turnstile.secret_key") or _base("turnstile.secret_key")
    turnstile_url = _env("TURNSTILE_VERIFY_URL") or _base("turnstile.verify_url", DEFAULT_TURNSTILE_VERIFY_URL)
    turnstile_timeout_text = _env("TURNSTILE_TIMEOUT_SECONDS") or _base("turnstile.timeout_seconds", "5")

    origins_text = _env("CORS_ALLOW_ORIGINS") or _read_config_file("cors.allow_origins") or _base("cors.allow_origins", "*")
    origins = [o.strip() for o in str(origins_text).split(",") if o.strip()] or ["*"]

    try:
        cfg = AppConfig(
            sheets=SheetsConfig(
                client_email=client_email,
                private_key=normalize_private_key(private_key),
                spreadsheet_id=spreadsheet_id,
                sheet_name=str(sheet_name),
            ),
            retry=RetryConfig(max_attempts=int(str(max_attempts_text).strip())),
            rate_limit=RateLimitConfig(
                max_requests=int(str(rl_max_text).strip()),
                window_seconds=float(str(rl_window_text).strip()),
            ),
            turnstile=TurnstileConfig(
                secret_key=turnstile_secret,
                verify_url=str(turnstile_url),
                timeout_seconds=float(str(turnstile_timeout_text).strip()),
            ),
            cors_allow_origins=origins,
        )
        return cfg
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "SheetsConfig",
    "RetryConfig",
    "RateLimitConfig",
    "TurnstileConfig",
    "normalize_private_key",
    "load_config",
]
