"""Request-scoped dependencies: services from app state and the admin gate."""

from __future__ import annotations

import secrets

from fastapi import Header, HTTPException, Request

from staffroster.core.config import AppSettings
from staffroster.services.dashboard import DashboardService
from staffroster.services.ingest import IngestService

ADMIN_HEADER = "X-Admin-Password"


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_ingest(request: Request) -> IngestService:
    return request.app.state.ingest


def get_dashboard(request: Request) -> DashboardService:
    return request.app.state.dashboard


def require_admin(
    request: Request,
    x_admin_password: str | None = Header(default=None, alias=ADMIN_HEADER),
) -> str:
    """Reject the request unless the shared admin password matches; returns the actor name."""
    expected = get_settings(request).auth.admin_password
    if not expected or not x_admin_password:
        raise HTTPException(status_code=401, detail="Admin password required")
    if not secrets.compare_digest(x_admin_password.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Invalid admin password")
    return "admin"
