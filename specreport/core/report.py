"""Render a settled spec record into its finalized instance report."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import PurePath

from specreport.datastructures.identity import TestCaseKey, test_case_id
from specreport.datastructures.type_aliases import EpochMilliseconds, IsoTimestamp

from .errors import format_failures
from .model import (
    ErrorLocation,
    FileResult,
    InstanceReport,
    ReportAttempt,
    ReportResults,
    ReportStats,
    ReportTest,
    WorkerInfo,
)
from .records import SpecRecord, TestCaseRecord
from .status import (
    CaseState,
    attempt_status,
    coarse_status,
    is_flaky,
    raw_status,
    retries,
)


def iso_from_millis(millis: EpochMilliseconds) -> IsoTimestamp:
    """Format epoch milliseconds the way JavaScript's toISOString does."""
    moment = datetime.fromtimestamp(millis / 1000, tz=UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def ordered_test_cases(
    record: SpecRecord, file_result: FileResult
) -> list[TestCaseRecord]:
    """Declared tests in runner order, then any undeclared ones by id.

    Arrival order never leaks into the report, so the same events delivered
    in a different interleaving render identically.
    """
    ordered: list[TestCaseRecord] = []
    seen: set[TestCaseKey] = set()

    for outcome in file_result.test_results:
        key = TestCaseKey(record.key, test_case_id(record.spec_name, outcome.title_path))
        test_case = record.test_cases.get(key)
        if test_case is not None and key not in seen:
            ordered.append(test_case)
            seen.add(key)

    leftovers = sorted(
        (key for key in record.test_cases if key not in seen),
        key=lambda key: key.test_id,
    )
    ordered.extend(record.test_cases[key] for key in leftovers)
    return ordered


def _render_attempts(
    test_case: TestCaseRecord,
    spec_start: IsoTimestamp,
    root_dir: str | PurePath,
    spec_name: str,
) -> list[ReportAttempt]:
    attempts = []
    for index, outcome in enumerate(test_case.attempts):
        errors = format_failures(outcome.failure_messages, root_dir, spec_name)
        if index < len(test_case.timestamps):
            start_time = iso_from_millis(test_case.timestamps[index])
        else:
            start_time = spec_start

        attempts.append(
            ReportAttempt(
                attempt=outcome.invocations or index + 1,
                worker_index=test_case.worker.worker_index,
                parallel_index=test_case.worker.parallel_index,
                start_time=start_time,
                duration=outcome.duration or 0,
                status=attempt_status(outcome),
                stderr=list(outcome.failure_messages),
                errors=errors,
                error=errors[0] if errors else None,
            )
        )
    return attempts


def render_test(
    test_case: TestCaseRecord,
    spec_start: IsoTimestamp,
    root_dir: str | PurePath,
    spec_name: str,
) -> ReportTest:
    return ReportTest(
        test_id=test_case.id,
        title=list(test_case.title),
        state=coarse_status(test_case.attempts),
        is_flaky=is_flaky(test_case.attempts),
        expected_status=raw_status(test_case.attempts),
        location=ErrorLocation(file=spec_name, line=1, column=1),
        retries=retries(test_case.attempts),
        attempts=_render_attempts(test_case, spec_start, root_dir, spec_name),
    )


def build_instance_report(
    record: SpecRecord,
    file_result: FileResult,
    worker: WorkerInfo,
    root_dir: str | PurePath,
) -> InstanceReport:
    perf = file_result.perf_stats
    start_time = iso_from_millis(perf.start)
    end_time = iso_from_millis(perf.end)

    tests = [
        render_test(test_case, start_time, root_dir, record.spec_name)
        for test_case in ordered_test_cases(record, file_result)
    ]

    def _count(state: CaseState) -> int:
        return sum(1 for test in tests if test.state == state)

    if file_result.num_pending_tests is None and file_result.num_todo_tests is None:
        skipped = _count(CaseState.PENDING)
    else:
        skipped = (file_result.num_pending_tests or 0) + (
            file_result.num_todo_tests or 0
        )

    stats = ReportStats(
        suites=1,
        tests=len(file_result.test_results),
        passes=(
            file_result.num_passing_tests
            if file_result.num_passing_tests is not None
            else _count(CaseState.PASSED)
        ),
        pending=0,
        skipped=skipped,
        failures=(
            file_result.num_failing_tests
            if file_result.num_failing_tests is not None
            else _count(CaseState.FAILED)
        ),
        flaky=sum(1 for test in tests if test.is_flaky),
        wall_clock_started_at=start_time,
        wall_clock_ended_at=end_time,
        wall_clock_duration=perf.end - perf.start,
    )

    return InstanceReport(
        group_id=record.project_id,
        spec=record.spec_name,
        worker=worker,
        start_time=start_time,
        results=ReportResults(stats=stats, tests=tests),
    )
