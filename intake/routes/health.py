"""Liveness endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", summary="Service liveness")
def health(request: Request) -> dict:
    config = request.app.state.config
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "sheetsConfigured": config.sheets.is_configured,
    }


__all__ = ["router"]
