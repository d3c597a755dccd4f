"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from staffroster.api.routes import assistant, faculty, health, leave, organization, upload
from staffroster.core.config import AppSettings
from staffroster.core.exceptions import (
    DepartmentStructureError,
    PartialIngestError,
    SnapshotConflictError,
    SnapshotNotFoundError,
    StaffRosterError,
    WorkbookError,
)
from staffroster.core.protocols import IFileStore, ISnapshotStore
from staffroster.parsing.labels import load_label_config
from staffroster.persistence import create_persistence
from staffroster.services.dashboard import DashboardService
from staffroster.services.ingest import IngestService

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[StaffRosterError], int]] = [
    (WorkbookError, 400),
    (DepartmentStructureError, 400),
    (SnapshotNotFoundError, 404),
    (SnapshotConflictError, 409),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings: AppSettings = app.state.settings
    logging.basicConfig(level=settings.log_level.upper())

    store, file_store = app.state.store, app.state.file_store
    if store is None:
        store, file_store = create_persistence(settings)
    labels = load_label_config(settings.parser.labels_path)

    app.state.ingest = IngestService(
        store,
        labels,
        file_store=file_store,
        tz=settings.parser.timezone,
        scan_rows=settings.parser.header_scan_rows,
    )
    app.state.dashboard = DashboardService(store, labels)
    logger.info("staffroster started (env=%s, store=%s)", settings.environment, type(store).__name__)
    yield


async def staffroster_error_handler(request: Request, exc: StaffRosterError) -> JSONResponse:
    status = next((code for cls, code in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.error("Unhandled staffroster error on %s: %s", request.url.path, exc)
    content: dict[str, Any] = {"success": False, "error": str(exc)}
    if isinstance(exc, SnapshotConflictError):
        content["currentVersion"] = exc.actual_version
    elif isinstance(exc, PartialIngestError):
        content["published"] = exc.published
    return JSONResponse(status_code=status, content=content)


def create_app(
    settings: AppSettings | None = None,
    *,
    store: ISnapshotStore | None = None,
    file_store: IFileStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Staff Roster Dashboard API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings or AppSettings()
    app.state.store = store
    app.state.file_store = file_store

    app.add_exception_handler(StaffRosterError, staffroster_error_handler)
    app.include_router(health.router)
    app.include_router(upload.router, prefix="/api/upload")
    app.include_router(faculty.router, prefix="/api/faculty")
    app.include_router(assistant.router, prefix="/api/assistant")
    app.include_router(organization.router, prefix="/api/organization")
    app.include_router(leave.router, prefix="/api/leave")
    return app
