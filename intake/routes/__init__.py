"""APIRouter registration for the intake service."""

from __future__ import annotations

from fastapi import APIRouter

from intake.routes.health import router as health_router
from intake.routes.submit_form import router as submit_form_router

api_router = APIRouter()
api_router.include_router(submit_form_router, tags=["Submissions"])
api_router.include_router(health_router, tags=["Health"])

__all__ = ["api_router"]
