"""Label vocabulary loading and position lookup.

The vocabulary ships as ``core/labels.json``; operators point
``STAFFROSTER_PARSER_LABELS_PATH`` at a copy to extend it without a release.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError

from staffroster.core.exceptions import LabelConfigError
from staffroster.models.faculty import PositionTier
from staffroster.models.labels import LabelConfig

logger = logging.getLogger(__name__)

DEFAULT_LABELS_PATH = Path(__file__).resolve().parent.parent / "core" / "labels.json"

_WHITESPACE_RE = re.compile(r"\s+")


def load_label_config(path: str | Path | None = None) -> LabelConfig:
    """Load and validate a label asset (the packaged one when ``path`` is None)."""
    source = Path(path) if path else DEFAULT_LABELS_PATH
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise LabelConfigError(f"Label config not found: {source}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise LabelConfigError(f"Cannot read label config {source}: {exc}") from exc

    try:
        config = LabelConfig.model_validate(raw)
    except ValidationError as exc:
        raise LabelConfigError(f"Invalid label config {source}: {exc}") from exc

    logger.info(
        "Loaded label config from %s (%d aliases, %d special units)",
        source, len(config.positions.aliases), len(config.faculty.special_units),
    )
    return config


@lru_cache(maxsize=4)
def default_label_config() -> LabelConfig:
    return load_label_config()


def _squash(text: str) -> str:
    return _WHITESPACE_RE.sub("", text)


@dataclass(frozen=True)
class PositionMatch:
    tier: PositionTier
    canonical: str
    mapped: bool


class PositionLookup:
    """Single lookup service folding raw position labels into canonical tiers."""

    def __init__(self, config: LabelConfig) -> None:
        positions = config.positions
        self._unclassified = positions.unclassified
        self._tiers: dict[str, PositionTier] = {}
        for label in positions.other:
            self._tiers[label] = PositionTier.OTHER
        for label in positions.part_time:
            self._tiers[label] = PositionTier.PART_TIME
        for label in positions.full_time:
            self._tiers[label] = PositionTier.FULL_TIME

        self._tables = (positions.aliases, positions.other_aliases)
        self._squashed = tuple(
            {_squash(raw): canonical for raw, canonical in table.items()}
            for table in self._tables
        )
        self._skipped = {_squash(label) for label in positions.skipped}

    def tier_of(self, canonical: str) -> PositionTier:
        return self._tiers.get(canonical, PositionTier.UNCLASSIFIED)

    def is_skipped(self, raw: str) -> bool:
        return _squash(raw) in self._skipped

    def lookup(self, raw: str) -> PositionMatch:
        text = (raw or "").strip()
        if text:
            for table in self._tables:
                if text in table:
                    return self._match(table[text])
            squashed = _squash(text)
            for table in self._squashed:
                if squashed in table:
                    return self._match(table[squashed])
        return PositionMatch(PositionTier.UNCLASSIFIED, self._unclassified, False)

    def _match(self, canonical: str) -> PositionMatch:
        tier = self.tier_of(canonical)
        return PositionMatch(tier, canonical, tier is not PositionTier.UNCLASSIFIED)
