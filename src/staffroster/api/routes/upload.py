"""Workbook upload endpoints (admin only)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from staffroster.api.deps import get_ingest, get_settings, require_admin
from staffroster.models.snapshot import Snapshot
from staffroster.services.ingest import IngestService

router = APIRouter(tags=["upload"], dependencies=[Depends(require_admin)])


def _read_upload(request: Request, file: UploadFile) -> tuple[bytes, str]:
    limit = get_settings(request).parser.max_upload_mb * 1024 * 1024
    data = file.file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(status_code=413, detail=f"File exceeds {limit // (1024 * 1024)} MB")
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return data, file.filename or "upload.xlsx"


def _summary(snapshot: Snapshot) -> dict[str, Any]:
    payload = snapshot.payload
    out: dict[str, Any] = {
        "category": snapshot.category,
        "version": snapshot.version,
        "upload": snapshot.upload.to_json_dict(),
    }
    if "stats" in payload:
        out["stats"] = payload["stats"]
    if "warnings" in payload:
        out["warnings"] = payload["warnings"]
    if "structure" in payload:
        out["summary"] = payload["structure"].get("summary")
        out["warnings"] = payload["structure"].get("warnings")
    return out


@router.post("/faculty")
def upload_faculty(
    request: Request,
    file: UploadFile = File(...),
    uploaded_by: str = Form("admin"),
    ingest: IngestService = Depends(get_ingest),
) -> dict[str, Any]:
    data, filename = _read_upload(request, file)
    snapshot = ingest.ingest_faculty(data, filename, uploaded_by)
    return {"success": True, "data": _summary(snapshot)}


@router.post("/research-leave")
def upload_research_leave(
    request: Request,
    file: UploadFile = File(...),
    uploaded_by: str = Form("admin"),
    ingest: IngestService = Depends(get_ingest),
) -> dict[str, Any]:
    data, filename = _read_upload(request, file)
    snapshot = ingest.ingest_research_leave(data, filename, uploaded_by)
    return {"success": True, "data": _summary(snapshot)}


@router.post("/appointment")
def upload_appointment(
    request: Request,
    file: UploadFile = File(...),
    uploaded_by: str = Form("admin"),
    ingest: IngestService = Depends(get_ingest),
) -> dict[str, Any]:
    data, filename = _read_upload(request, file)
    appointment, assistant = ingest.ingest_appointments(data, filename, uploaded_by)
    return {
        "success": True,
        "data": {"appointment": _summary(appointment), "assistant": _summary(assistant)},
    }


@router.post("/assistant")
def upload_assistant(
    request: Request,
    file: UploadFile = File(...),
    uploaded_by: str = Form("admin"),
    ingest: IngestService = Depends(get_ingest),
) -> dict[str, Any]:
    data, filename = _read_upload(request, file)
    snapshot = ingest.ingest_assistants(data, filename, uploaded_by)
    return {"success": True, "data": _summary(snapshot)}
