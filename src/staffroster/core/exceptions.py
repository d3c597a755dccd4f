"""staffroster exception hierarchy."""

from __future__ import annotations


class StaffRosterError(Exception):
    """Base exception for all staffroster errors."""


class WorkbookError(StaffRosterError):
    """An uploaded workbook cannot be turned into a grid."""


class UnsupportedFormatError(WorkbookError):
    """File extension or signature is neither xls nor xlsx."""

    def __init__(self, filename: str | None, detail: str = "") -> None:
        self.filename = filename
        message = f"Unsupported spreadsheet format: {filename or '<buffer>'}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class EmptyWorkbookError(WorkbookError):
    """Workbook has no sheets, or its first sheet has no rows."""


class WorkbookReadError(WorkbookError):
    """The spreadsheet library failed to read the payload."""


class StoreError(StaffRosterError):
    """Snapshot store operation failed."""


class SnapshotConflictError(StoreError):
    """A concurrent writer swapped the snapshot first.

    ``actual_version`` is the version found in the store (0 when the
    category is empty, None when it could not be determined).
    """

    def __init__(
        self, category: str, expected_version: int | None, actual_version: int | None = None,
    ) -> None:
        self.category = category
        self.expected_version = expected_version
        self.actual_version = actual_version
        message = f"Snapshot {category!r} changed concurrently (expected version {expected_version}"
        if actual_version is not None:
            message = f"{message}, found {actual_version}"
        super().__init__(f"{message})")


class PartialIngestError(StoreError):
    """An upload feeding several categories was only partly published."""

    def __init__(self, published: list[str], failed: str, cause: Exception) -> None:
        self.published = published
        self.failed = failed
        super().__init__(
            f"Upload published {', '.join(published) or 'nothing'} but failed to store {failed}: {cause}"
        )


class SnapshotNotFoundError(StaffRosterError):
    """No snapshot has been uploaded for a category yet."""

    def __init__(self, category: str) -> None:
        self.category = category
        super().__init__(f"No {category} data has been uploaded yet")


class DepartmentStructureError(StaffRosterError):
    """Submitted department structure is malformed."""


class LabelConfigError(StaffRosterError):
    """Label configuration asset is missing or invalid."""
