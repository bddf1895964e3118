"""
Wire models for runner events and persisted report artifacts.

Field names are snake_case in Python and camelCase on the wire, so payloads
produced by a JavaScript test runner validate directly and artifacts keep the
shape the reporting backend expects.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from specreport.datastructures.type_aliases import (
    DurationMilliseconds,
    EpochMilliseconds,
    FailureMessage,
    IsoTimestamp,
    OutcomeStatus,
    ParallelIndex,
    WorkerIndex,
)


class WireModel(BaseModel):
    """Base for every model that crosses the runner or backend boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CaseMode(StrEnum):
    """Run intent declared for a test case."""

    NORMAL = "normal"
    SKIP = "skip"
    TODO = "todo"

    @classmethod
    def from_runner(cls, mode: str | None) -> CaseMode:
        """Map a runner block mode (skip, todo, only or unset) to a run intent."""
        if mode == "skip":
            return cls.SKIP
        if mode == "todo":
            return cls.TODO
        return cls.NORMAL


class WorkerInfo(WireModel):
    """Which runner worker observed an event."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    worker_index: WorkerIndex = 1
    parallel_index: ParallelIndex = 1

    @classmethod
    def for_index(cls, index: WorkerIndex) -> WorkerInfo:
        return cls(worker_index=index, parallel_index=index)


# Worker snapshot used for tests that never executed on any worker.
SKIPPED_WORKER = WorkerInfo.for_index(-1)


class CaseOutcome(WireModel):
    """Raw outcome of one test case attempt as reported by the runner."""

    title: str
    ancestor_titles: list[str] = Field(default_factory=list)
    full_name: str | None = None
    status: OutcomeStatus = "failed"
    duration: DurationMilliseconds | None = None
    failure_messages: list[FailureMessage] = Field(default_factory=list)
    invocations: int | None = None

    @property
    def title_path(self) -> tuple[str, ...]:
        return (*self.ancestor_titles, self.title)


class PerfStats(WireModel):
    start: EpochMilliseconds
    end: EpochMilliseconds


class FileResult(WireModel):
    """File level result: every declared test plus timing and counters."""

    test_results: list[CaseOutcome] = Field(default_factory=list)
    perf_stats: PerfStats
    num_passing_tests: int | None = None
    num_failing_tests: int | None = None
    num_pending_tests: int | None = None
    num_todo_tests: int | None = None


class ErrorLocation(WireModel):
    file: str
    line: int
    column: int


class ReportError(WireModel):
    message: str
    stack: str | None = None
    location: ErrorLocation | None = None


class ReportAttempt(WireModel):
    attempt: int
    worker_index: WorkerIndex
    parallel_index: ParallelIndex
    start_time: IsoTimestamp
    steps: list[dict] = Field(default_factory=list)
    duration: DurationMilliseconds = 0
    status: str
    stdout: list[str] = Field(default_factory=list)
    stderr: list[str] = Field(default_factory=list)
    errors: list[ReportError] = Field(default_factory=list)
    error: ReportError | None = None


class ReportTest(WireModel):
    test_id: str
    title: list[str]
    state: str
    is_flaky: bool
    expected_status: str
    timeout: int = 0
    location: ErrorLocation
    retries: int
    attempts: list[ReportAttempt]


class ReportStats(WireModel):
    suites: int = 1
    tests: int
    passes: int
    pending: int
    skipped: int
    failures: int
    flaky: int
    wall_clock_started_at: IsoTimestamp
    wall_clock_ended_at: IsoTimestamp
    wall_clock_duration: DurationMilliseconds


class ReportResults(WireModel):
    stats: ReportStats
    tests: list[ReportTest]


class InstanceReport(WireModel):
    """Finalized, write-once report for one spec file."""

    group_id: str
    spec: str
    worker: WorkerInfo
    start_time: IsoTimestamp
    results: ReportResults


class RunConfigReport(WireModel):
    """Run configuration written once at run start."""

    framework: str
    framework_version: str | None = None
    reporter_version: str
    root_dir: str
    total_specs: int
    worker_index: WorkerIndex
    created_at: IsoTimestamp
