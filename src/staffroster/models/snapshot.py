"""Snapshot envelope: the single latest document stored per data category."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import Field

from staffroster.models.base import CamelModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


class SnapshotCategory(StrEnum):
    FACULTY = "faculty"
    ASSISTANT = "assistant"
    APPOINTMENT = "appointment"
    RESEARCH_LEAVE = "research_leave"
    ORGANIZATION = "organization"


class UploadInfo(CamelModel):
    filename: str = ""
    file_size: int = 0
    uploaded_by: str = "admin"
    uploaded_at: datetime = Field(default_factory=_utcnow)


class Snapshot(CamelModel):
    category: str
    version: int
    payload: dict[str, Any]
    upload: UploadInfo = Field(default_factory=UploadInfo)
    updated_at: datetime = Field(default_factory=_utcnow)
