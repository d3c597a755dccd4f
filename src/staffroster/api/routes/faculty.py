"""Faculty roster read endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from staffroster.api.deps import get_dashboard
from staffroster.services.dashboard import DashboardService

router = APIRouter(tags=["faculty"])


@router.get("/data")
def faculty_data(dashboard: DashboardService = Depends(get_dashboard)) -> dict[str, Any]:
    view = dashboard.faculty_view()
    return {"success": True, "data": view.to_json_dict()}


@router.get("/stats")
def faculty_stats(dashboard: DashboardService = Depends(get_dashboard)) -> dict[str, Any]:
    return {"success": True, "stats": dashboard.faculty_stats().to_json_dict()}
