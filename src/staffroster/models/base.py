"""Shared model base and field types for dashboard-facing records."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, PlainSerializer
from pydantic.alias_generators import to_camel

from staffroster.parsing.dates import format_date, parse_date


def _coerce_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if value is None or isinstance(value, date):
        return value
    parsed = parse_date(value)
    return parsed if parsed is not None else value


# Held as a real date; rendered as YYYY.MM.DD only when dumped to JSON.
DisplayDate = Annotated[
    date,
    BeforeValidator(_coerce_date),
    PlainSerializer(format_date, return_type=str, when_used="json"),
]


class CamelModel(BaseModel):
    """Base for records serialized to the dashboard with camelCase keys."""

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
