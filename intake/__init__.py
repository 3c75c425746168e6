"""FastAPI application package for the Sheets Intake Service.

This package exposes the application factory used to serve the lead-capture
form endpoint. It wires only cross-cutting middleware (request-id and CORS)
and mounts the API routers. Pipeline logic lives in `intake/logic/`, route
handlers in `intake/routes/` and the form-side session in `intake/client/`.
"""

from __future__ import annotations

from intake.main import create_app

__all__ = ["create_app"]
