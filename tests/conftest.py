"""Pytest configuration and fixtures for specreport testing.

Fixtures build aggregators rooted in a per-test temporary directory and an
EventFactory that plays the runner's side of the lifecycle protocol with
fixed timestamps, so rendered reports are byte-for-byte reproducible.
"""

from pathlib import Path

import pytest
from support import EventFactory

from specreport.config import ReporterSettings
from specreport.core.aggregator import SpecAggregator
from specreport.core.model import WorkerInfo


@pytest.fixture
def settings(tmp_path: Path) -> ReporterSettings:
    return ReporterSettings(root_dir=tmp_path, report_dir=".specreport-test")


@pytest.fixture
def aggregator(settings: ReporterSettings) -> SpecAggregator:
    return SpecAggregator(settings, WorkerInfo.for_index(3))


@pytest.fixture
def events() -> EventFactory:
    return EventFactory()
