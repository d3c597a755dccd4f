"""Shared test doubles: re-export memory backends and the workbook builder."""

from __future__ import annotations

from staffroster.persistence.memory_backend import MemoryFileStore, MemorySnapshotStore
from tests.fakes.workbooks import xlsx_bytes

__all__ = ["MemoryFileStore", "MemorySnapshotStore", "xlsx_bytes"]
