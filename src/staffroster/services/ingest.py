"""Upload ingestion: decode, parse, then swap the category snapshot.

Every upload is decoded and parsed completely before anything is written,
so a format error leaves all stored snapshots untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from staffroster.core.exceptions import (
    DepartmentStructureError,
    PartialIngestError,
    SnapshotConflictError,
    SnapshotNotFoundError,
    StoreError,
)
from staffroster.core.protocols import IFileStore, ISnapshotStore
from staffroster.core.types import Grid
from staffroster.models.assistant import AssistantRoster, AssistantSnapshot, AssistantStructure
from staffroster.models.department import DepartmentStructure, DepartmentUnit
from staffroster.models.labels import LabelConfig
from staffroster.models.snapshot import Snapshot, SnapshotCategory, UploadInfo
from staffroster.parsing.appointment import AppointmentLeaveParser
from staffroster.parsing.assistant import (
    AssistantRosterParser,
    AssistantStructureParser,
    merge_allocations,
)
from staffroster.parsing.decoder import decode_workbook
from staffroster.parsing.faculty import FacultyRosterParser
from staffroster.parsing.headers import DEFAULT_SCAN_ROWS
from staffroster.parsing.research_leave import ResearchLeaveParser

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def current_structure(store: ISnapshotStore, labels: LabelConfig) -> DepartmentStructure:
    """Stored department structure, or the built-in default when none was saved."""
    snapshot = store.get_latest(SnapshotCategory.ORGANIZATION)
    if snapshot is None:
        return DepartmentStructure(dept_structure=list(labels.default_department_structure))
    return DepartmentStructure.model_validate(snapshot.payload)


def validate_structure(units: Sequence[DepartmentUnit | Mapping[str, Any]]) -> list[DepartmentUnit]:
    """Validate an administrator-submitted structure: non-empty, unique unit names."""
    if not units:
        raise DepartmentStructureError("Department structure must contain at least one unit")
    try:
        parsed = [u if isinstance(u, DepartmentUnit) else DepartmentUnit.model_validate(u) for u in units]
    except ValidationError as exc:
        raise DepartmentStructureError(f"Invalid department structure: {exc}") from exc

    seen: set[str] = set()
    for unit in parsed:
        if unit.name in seen:
            raise DepartmentStructureError(f"Duplicate department unit {unit.name!r}")
        seen.add(unit.name)
    return parsed


class IngestService:
    """Turns uploaded workbooks into category snapshots."""

    MAX_MERGE_RETRIES = 3

    def __init__(
        self,
        store: ISnapshotStore,
        labels: LabelConfig,
        *,
        file_store: IFileStore | None = None,
        tz: str = "Asia/Seoul",
        scan_rows: int = DEFAULT_SCAN_ROWS,
        today: Callable[[], date] | None = None,
    ) -> None:
        self._store = store
        self._labels = labels
        self._file_store = file_store
        self._tz = ZoneInfo(tz)
        self._today = today or (lambda: datetime.now(self._tz).date())

        self._faculty = FacultyRosterParser(labels, scan_rows=scan_rows)
        self._appointments = AppointmentLeaveParser(labels, scan_rows=scan_rows)
        self._research = ResearchLeaveParser(labels, scan_rows=scan_rows)
        self._roster = AssistantRosterParser(labels, scan_rows=scan_rows)
        self._structure = AssistantStructureParser(labels, scan_rows=scan_rows)

    # ---- helpers ----

    def _upload_info(self, data: bytes, filename: str, uploaded_by: str) -> UploadInfo:
        return UploadInfo(filename=filename, file_size=len(data), uploaded_by=uploaded_by)

    def _archive(self, category: str, data: bytes, filename: str) -> None:
        if self._file_store is None:
            return
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
        path = self._file_store.write(f"uploads/{category}/{stamp}_{filename}", data, XLSX_CONTENT_TYPE)
        logger.info("Archived upload %s", path)

    def _parse_assistants(self, grid: Grid) -> tuple[AssistantRoster, AssistantStructure]:
        return self._roster.parse(grid), self._structure.parse(grid)

    def _store_assistants(
        self, roster: AssistantRoster, structure: AssistantStructure, upload: UploadInfo,
    ) -> Snapshot:
        """Merge stored allocations into the new structure and swap it in.

        The swap is conditioned on the version the allocations were read
        from, so an allocation edit landing in between forces a re-merge
        instead of being overwritten.
        """
        attempt = 0
        while True:
            previous = self._store.get_latest(SnapshotCategory.ASSISTANT)
            stored = AssistantSnapshot.model_validate(previous.payload).allocations if previous else None
            snapshot = AssistantSnapshot(
                roster=roster,
                structure=structure,
                allocations=merge_allocations(stored, structure),
            )
            try:
                return self._store.replace(
                    SnapshotCategory.ASSISTANT, snapshot.to_json_dict(), upload,
                    expected_version=previous.version if previous else 0,
                )
            except SnapshotConflictError as exc:
                attempt += 1
                if attempt >= self.MAX_MERGE_RETRIES:
                    raise
                logger.warning("Assistant snapshot changed during merge (%s); retrying", exc)

    # ---- uploads ----

    def ingest_faculty(self, data: bytes, filename: str, uploaded_by: str = "admin") -> Snapshot:
        grid = decode_workbook(data, filename)
        structure = current_structure(self._store, self._labels)
        result = self._faculty.parse(grid, structure.dept_structure)
        self._archive(SnapshotCategory.FACULTY, data, filename)
        snapshot = self._store.replace(
            SnapshotCategory.FACULTY, result.to_snapshot_payload(), self._upload_info(data, filename, uploaded_by),
        )
        logger.info(
            "Faculty upload %s: %d active, %d placed, %d unmapped positions",
            filename, result.stats.total, result.stats.processed, len(result.warnings.unmapped_positions),
        )
        return snapshot

    def ingest_research_leave(self, data: bytes, filename: str, uploaded_by: str = "admin") -> Snapshot:
        grid = decode_workbook(data, filename)
        result = self._research.parse(grid, today=self._today())
        self._archive(SnapshotCategory.RESEARCH_LEAVE, data, filename)
        return self._store.replace(
            SnapshotCategory.RESEARCH_LEAVE, result.to_json_dict(),
            self._upload_info(data, filename, uploaded_by),
        )

    def ingest_appointments(
        self, data: bytes, filename: str, uploaded_by: str = "admin",
    ) -> tuple[Snapshot, Snapshot]:
        """Appointment exports feed both the leave history and the assistant table."""
        grid = decode_workbook(data, filename)
        leave = self._appointments.parse(grid, today=self._today())
        roster, structure = self._parse_assistants(grid)
        upload = self._upload_info(data, filename, uploaded_by)

        self._archive(SnapshotCategory.APPOINTMENT, data, filename)
        # The merged table is the write that can conflict, so it goes first.
        assistant = self._store_assistants(roster, structure, upload)
        try:
            appointment = self._store.replace(SnapshotCategory.APPOINTMENT, leave.to_json_dict(), upload)
        except StoreError as exc:
            logger.error("Appointment upload %s stored the assistant table only: %s", filename, exc)
            raise PartialIngestError([SnapshotCategory.ASSISTANT], SnapshotCategory.APPOINTMENT, exc) from exc
        logger.info("Appointment upload %s: %d currently on leave", filename, len(leave.leave))
        return appointment, assistant

    def ingest_assistants(self, data: bytes, filename: str, uploaded_by: str = "admin") -> Snapshot:
        roster, structure = self._parse_assistants(decode_workbook(data, filename))
        self._archive(SnapshotCategory.ASSISTANT, data, filename)
        return self._store_assistants(roster, structure, self._upload_info(data, filename, uploaded_by))

    # ---- administrator edits ----

    def update_allocations(self, allocations: Mapping[str, int], uploaded_by: str = "admin") -> Snapshot:
        """Replace the allocation map on the latest assistant snapshot."""
        latest = self._store.get_latest(SnapshotCategory.ASSISTANT)
        if latest is None:
            raise SnapshotNotFoundError(SnapshotCategory.ASSISTANT)
        payload = AssistantSnapshot.model_validate(latest.payload)
        payload.allocations = dict(allocations)
        upload = latest.upload.model_copy(update={"uploaded_by": uploaded_by})
        return self._store.replace(
            SnapshotCategory.ASSISTANT, payload.to_json_dict(), upload, expected_version=latest.version,
        )

    def get_department_structure(self) -> DepartmentStructure:
        return current_structure(self._store, self._labels)

    def update_department_structure(
        self,
        units: Sequence[DepartmentUnit | Mapping[str, Any]],
        updated_by: str = "admin",
    ) -> DepartmentStructure:
        structure = DepartmentStructure(dept_structure=validate_structure(units), updated_by=updated_by)
        self._store.replace(
            SnapshotCategory.ORGANIZATION,
            structure.to_json_dict(),
            UploadInfo(filename="", file_size=0, uploaded_by=updated_by),
        )
        logger.info("Department structure updated by %s (%d units)", updated_by, len(structure.dept_structure))
        return structure
