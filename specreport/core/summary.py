"""Read a finished run directory back into per-spec counts."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path

import orjson
from loguru import logger
from pydantic import ValidationError

from specreport.serialization import JsonSerializer

from .emitter import CONFIG_FILENAME, INSTANCES_DIRNAME
from .exceptions import ReportDirectoryError
from .model import InstanceReport, RunConfigReport


@dataclass(frozen=True, slots=True)
class SpecSummary:
    group_id: str
    spec: str
    tests: int
    passes: int
    failures: int
    skipped: int
    flaky: int
    duration_ms: float


@dataclass(slots=True)
class RunSummary:
    run_dir: Path
    config: RunConfigReport | None
    specs: list[SpecSummary] = field(default_factory=list)

    @property
    def total_tests(self) -> int:
        return sum(spec.tests for spec in self.specs)

    @property
    def total_failures(self) -> int:
        return sum(spec.failures for spec in self.specs)

    @property
    def total_flaky(self) -> int:
        return sum(spec.flaky for spec in self.specs)

    def to_dict(self) -> dict:
        return {
            "runDir": self.run_dir.as_posix(),
            "config": self.config.to_wire() if self.config else None,
            "specs": [asdict(spec) for spec in self.specs],
        }


def read_instance_report(path: Path, serializer: JsonSerializer) -> InstanceReport:
    try:
        return InstanceReport.model_validate(serializer.deserialize(path.read_bytes()))
    except (OSError, orjson.JSONDecodeError, ValidationError) as e:
        logger.error(f"Error reading report at {path}: {e}")
        raise


def load_run_summary(
    run_dir: Path, serializer: JsonSerializer | None = None
) -> RunSummary:
    serializer = serializer or JsonSerializer()
    instances_dir = run_dir / INSTANCES_DIRNAME
    if not instances_dir.is_dir():
        raise ReportDirectoryError(run_dir, f"no {INSTANCES_DIRNAME}/ directory")

    config = None
    config_path = run_dir / CONFIG_FILENAME
    if config_path.is_file():
        config = RunConfigReport.model_validate(
            serializer.deserialize(config_path.read_bytes())
        )

    summary = RunSummary(run_dir=run_dir, config=config)
    for path in sorted(instances_dir.glob("*.json")):
        report = read_instance_report(path, serializer)
        stats = report.results.stats
        summary.specs.append(
            SpecSummary(
                group_id=report.group_id,
                spec=report.spec,
                tests=stats.tests,
                passes=stats.passes,
                failures=stats.failures,
                skipped=stats.skipped,
                flaky=stats.flaky,
                duration_ms=stats.wall_clock_duration,
            )
        )

    if not summary.specs:
        raise ReportDirectoryError(run_dir, "no instance reports found")

    summary.specs.sort(key=lambda spec: (spec.group_id, spec.spec))
    return summary
