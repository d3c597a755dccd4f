"""Assistant staffing table endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, NonNegativeInt

from staffroster.api.deps import get_dashboard, get_ingest, require_admin
from staffroster.services.dashboard import DashboardService
from staffroster.services.ingest import IngestService

router = APIRouter(tags=["assistant"])


class AllocationUpdate(BaseModel):
    """Keys are ``category|mainDept``."""

    allocations: dict[str, NonNegativeInt]


@router.get("")
def get_assistants(dashboard: DashboardService = Depends(get_dashboard)) -> dict[str, Any]:
    view = dashboard.assistant_view()
    if view is None:
        return {"success": True, "message": "No assistant data has been uploaded yet", "data": None}
    return {"success": True, "data": view.to_json_dict()}


@router.put("/allocations")
def update_allocations(
    body: AllocationUpdate,
    actor: str = Depends(require_admin),
    ingest: IngestService = Depends(get_ingest),
) -> dict[str, Any]:
    snapshot = ingest.update_allocations(body.allocations, uploaded_by=actor)
    return {
        "success": True,
        "data": {"allocations": snapshot.payload["allocations"], "version": snapshot.version},
    }
