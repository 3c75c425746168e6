"""Cloudflare Turnstile token verification.

`TurnstileVerifier.verify` returns True/False for a definitive answer from the
verification service and raises `VerificationError` when the service cannot
be reached or replies with something unreadable.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from intake.config import TurnstileConfig
from intake.errors import VerificationError

logger = logging.getLogger(__name__)


class TurnstileVerifier:
    def __init__(self, config: TurnstileConfig, *, http_client: Optional[httpx.Client] = None) -> None:
        self.config = config
        self._client = http_client

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        if not token:
            logger.info("turnstile.verify.missing_token")
            return False
        data = {"secret": self.config.secret_key or "", "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip
        try:
            if self._client is not None:
                resp = self._client.post(self.config.verify_url, data=data, timeout=self.config.timeout_seconds)
            else:
                with httpx.Client(timeout=self.config.timeout_seconds) as client:
                    resp = client.post(self.config.verify_url, data=data)
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise VerificationError(f"Turnstile verification unavailable: {exc}") from exc
        success = bool(body.get("success")) if isinstance(body, dict) else False
        if not success:
            logger.info("turnstile.verify.rejected", extra={"error_codes": body.get("error-codes") if isinstance(body, dict) else None})
        return success


__all__ = ["TurnstileVerifier"]
