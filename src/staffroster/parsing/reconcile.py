"""Read-time merge of leave entries from the three uploaded sources."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from staffroster.models.leave import LeaveEntry, LeaveSource

logger = logging.getLogger(__name__)

UNASSIGNED_DEPT = "미배정"


@dataclass
class MergedLeave:
    entries: list[LeaveEntry] = field(default_factory=list)
    sources: dict[str, LeaveSource] = field(default_factory=dict)


def _clean(entry: LeaveEntry, unassigned: str) -> LeaveEntry:
    return LeaveEntry(
        dept=(entry.dept or "").strip() or unassigned,
        name=entry.name.strip(),
        period=entry.period or "",
        remarks=entry.remarks or "",
    )


def reconcile_leave(
    faculty: Iterable[LeaveEntry] = (),
    research: Iterable[LeaveEntry] = (),
    appointment: Iterable[LeaveEntry] = (),
    *,
    unassigned: str = UNASSIGNED_DEPT,
) -> MergedLeave:
    """Fold the three leave lists into one entry per name.

    The roster's own leave rows are the base; the dispatch list only fills
    in names not yet present; the appointment history overwrites
    unconditionally since it carries the most detailed history.
    """
    merged: dict[str, LeaveEntry] = {}
    sources: dict[str, LeaveSource] = {}

    for entry in faculty:
        if not entry.name.strip():
            continue
        cleaned = _clean(entry, unassigned)
        merged[cleaned.name] = cleaned
        sources[cleaned.name] = LeaveSource.FACULTY

    for entry in research:
        cleaned = _clean(entry, unassigned)
        if not cleaned.name or cleaned.name in merged:
            continue
        merged[cleaned.name] = cleaned
        sources[cleaned.name] = LeaveSource.RESEARCH

    for entry in appointment:
        cleaned = _clean(entry, unassigned)
        if not cleaned.name:
            continue
        merged[cleaned.name] = cleaned
        sources[cleaned.name] = LeaveSource.APPOINTMENT

    logger.debug("Merged leave view: %d entries", len(merged))
    return MergedLeave(entries=list(merged.values()), sources=sources)
