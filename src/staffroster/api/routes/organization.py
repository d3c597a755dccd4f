"""Department structure endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from staffroster.api.deps import get_ingest, require_admin
from staffroster.services.ingest import IngestService

router = APIRouter(tags=["organization"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
    "Expires": "-1",
}


class StructureUpdate(BaseModel):
    dept_structure: list[dict[str, Any]] = Field(alias="deptStructure")


@router.get("")
def get_structure(response: Response, ingest: IngestService = Depends(get_ingest)) -> dict[str, Any]:
    response.headers.update(NO_CACHE_HEADERS)
    structure = ingest.get_department_structure()
    return {"success": True, "data": structure.to_json_dict()["deptStructure"]}


@router.put("")
def update_structure(
    body: StructureUpdate,
    response: Response,
    actor: str = Depends(require_admin),
    ingest: IngestService = Depends(get_ingest),
) -> dict[str, Any]:
    response.headers.update(NO_CACHE_HEADERS)
    structure = ingest.update_department_structure(body.dept_structure, updated_by=actor)
    return {"success": True, "data": structure.to_json_dict()["deptStructure"]}
