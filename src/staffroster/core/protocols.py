"""Protocol interfaces for staffroster abstractions.

All inter-layer communication uses these Protocols: structural typing,
no inheritance required, easy to test with isinstance().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from staffroster.models.snapshot import Snapshot, UploadInfo


# ---------------------------------------------------------------------------
# Persistence: Snapshot Store
# ---------------------------------------------------------------------------

@runtime_checkable
class ISnapshotStore(Protocol):
    """Latest-snapshot-per-category document store.

    ``replace`` is an atomic swap: readers see either the previous snapshot
    or the new one, never an empty category.
    """

    def get_latest(self, category: str) -> Snapshot | None: ...

    def replace(
        self,
        category: str,
        payload: dict[str, Any],
        upload: UploadInfo,
        expected_version: int | None = None,
    ) -> Snapshot: ...


# ---------------------------------------------------------------------------
# Persistence: File Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IFileStore(Protocol):
    """S3-compatible archive for raw uploaded workbooks."""

    def read(self, path: str) -> bytes: ...

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str: ...

    def list_files(self, prefix: str) -> list[str]: ...
