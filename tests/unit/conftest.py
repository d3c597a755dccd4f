"""Unit test fixtures shared across parser, service and API tests."""

from __future__ import annotations

import pytest

from staffroster.models.labels import LabelConfig
from staffroster.parsing.labels import default_label_config


@pytest.fixture
def labels() -> LabelConfig:
    return default_label_config()


@pytest.fixture
def structure(labels):
    return list(labels.default_department_structure)
