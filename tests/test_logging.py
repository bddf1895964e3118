"""Tests for loguru handler configuration."""

import io
import sys

import pytest
from loguru import logger

from specreport.config import ReporterSettings
from specreport.core.gate import GateTable
from specreport.core.logging import configure_from_settings, configure_logging


@pytest.fixture
def sink():
    buffer = io.StringIO()
    yield buffer
    logger.remove()
    logger.add(sys.stderr)


def resolve_twice() -> None:
    gates: GateTable[str] = GateTable("spec")
    gates.resolve("a")
    gates.resolve("a")


def test_level_filters_debug(sink: io.StringIO):
    configure_logging("INFO", sink=sink)
    logger.debug("hidden detail")
    logger.info("visible line")

    output = sink.getvalue()
    assert "visible line" in output
    assert "hidden detail" not in output
    assert "| INFO     |" in output


def test_debug_scope_opts_module_in(sink: io.StringIO):
    handler_ids = configure_logging("INFO", debug_scopes=["core.gate"], sink=sink)
    assert len(handler_ids) == 2

    resolve_twice()
    logger.debug("outside any scope")

    output = sink.getvalue()
    assert "specreport.core.gate" in output
    assert "outside any scope" not in output


def test_blank_scopes_are_ignored(sink: io.StringIO):
    assert len(configure_logging("WARNING", debug_scopes=["", "  "], sink=sink)) == 1


def test_configure_from_settings(sink: io.StringIO, tmp_path):
    settings = ReporterSettings(root_dir=tmp_path, log_level="WARNING")
    handler_ids = configure_from_settings(settings)
    assert len(handler_ids) == 1
