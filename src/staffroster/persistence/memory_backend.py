"""In-memory backends: the default store for a single process, and test fakes."""

from __future__ import annotations

import threading
from typing import Any

from staffroster.core.exceptions import SnapshotConflictError
from staffroster.models.snapshot import Snapshot, UploadInfo


class MemorySnapshotStore:
    """Dict-backed ISnapshotStore.

    Versions are appended and the latest pointer moved under one lock; the
    superseded version is dropped in the same critical section.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._versions: dict[tuple[str, int], Snapshot] = {}
        self._latest: dict[str, int] = {}

    def get_latest(self, category: str) -> Snapshot | None:
        with self._lock:
            version = self._latest.get(category)
            if version is None:
                return None
            return self._versions[(category, version)].model_copy(deep=True)

    def replace(
        self,
        category: str,
        payload: dict[str, Any],
        upload: UploadInfo,
        expected_version: int | None = None,
    ) -> Snapshot:
        with self._lock:
            current = self._latest.get(category)
            if expected_version is not None and (current or 0) != expected_version:
                raise SnapshotConflictError(category, expected_version, current or 0)

            version = (current or 0) + 1
            snapshot = Snapshot(category=category, version=version, payload=payload, upload=upload)
            self._versions[(category, version)] = snapshot.model_copy(deep=True)
            self._latest[category] = version
            if current is not None:
                self._versions.pop((category, current), None)
            return snapshot

    def versions(self, category: str) -> list[int]:
        with self._lock:
            return sorted(v for c, v in self._versions if c == category)


class MemoryFileStore:
    """Dict-backed IFileStore."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    def read(self, path: str) -> bytes:
        return self._files[path]

    def write(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        self._files[path] = data
        return path

    def list_files(self, prefix: str) -> list[str]:
        return [k for k in self._files if k.startswith(prefix)]
