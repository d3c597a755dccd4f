"""Merged leave/sabbatical view."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from staffroster.api.deps import get_dashboard
from staffroster.services.dashboard import DashboardService

router = APIRouter(tags=["leave"])


@router.get("")
def get_leave(dashboard: DashboardService = Depends(get_dashboard)) -> dict[str, Any]:
    return {"success": True, "data": dashboard.leave_view().to_json_dict()}
