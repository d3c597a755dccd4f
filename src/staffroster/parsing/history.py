"""Current-record selection over a person's dated history.

Appointment and dispatch exports both list every historical record of a
person; the dashboard shows only the record in force today and folds the
rest into a remarks string.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Generic, Optional, TypeVar

from staffroster.parsing.dates import contains_day

T = TypeVar("T")
K = TypeVar("K")

DateGetter = Callable[[T], Optional[date]]


def group_by(records: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group records by ``key``, keeping groups in first-seen order."""
    groups: dict[K, list[T]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


@dataclass
class CurrentSelection(Generic[T]):
    current: T
    history: list[T] = field(default_factory=list)  # oldest first


def select_current(
    records: list[T],
    *,
    start: DateGetter,
    end: DateGetter,
    today: date,
) -> CurrentSelection[T] | None:
    """Pick the record whose [start, end] range contains ``today``.

    Records are considered most recent first; one missing either date is
    never current. Returns None when no range contains ``today``. The
    history holds the remaining records that carry both dates, oldest first.
    """
    ordered = sorted(
        records,
        key=lambda r: (start(r) is None, -(start(r) or date.min).toordinal()),
    )
    current = next((r for r in ordered if contains_day(start(r), end(r), today)), None)
    if current is None:
        return None

    history = [
        r for r in reversed(ordered)
        if r is not current and start(r) is not None and end(r) is not None
    ]
    return CurrentSelection(current=current, history=history)
