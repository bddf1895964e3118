"""Runner-side helpers shared by the test suite."""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import orjson

from specreport.core.aggregator import SpecAggregator
from specreport.core.model import CaseOutcome, FileResult, PerfStats, WorkerInfo
from specreport.datastructures.identity import DEFAULT_PROJECT_ID, test_case_id

FIXED_TIME_BASE_MS = 1_700_000_000_000.0  # 2023-11-14T22:13:20.000Z
SPEC_NAME = "tests/sum.test.js"


class EventFactory:
    """Builds runner payloads and drives an aggregator the way a runner would."""

    def __init__(
        self,
        spec_name: str = SPEC_NAME,
        project_id: str = DEFAULT_PROJECT_ID,
        ancestors: tuple[str, ...] = ("sum",),
    ) -> None:
        self.spec_name = spec_name
        self.project_id = project_id
        self.ancestors = ancestors

    def for_spec(self, spec_name: str, project_id: str | None = None) -> "EventFactory":
        return EventFactory(spec_name, project_id or self.project_id, self.ancestors)

    def title_path(self, title: str) -> tuple[str, ...]:
        return (*self.ancestors, title)

    def test_id(self, title: str) -> str:
        return test_case_id(self.spec_name, self.title_path(title))

    def outcome(
        self,
        title: str,
        status: str = "passed",
        *,
        duration: float = 5.0,
        failure_messages: Iterable[str] = (),
        invocations: int | None = None,
    ) -> CaseOutcome:
        return CaseOutcome(
            title=title,
            ancestor_titles=list(self.ancestors),
            full_name=" ".join(self.title_path(title)),
            status=status,
            duration=duration,
            failure_messages=list(failure_messages),
            invocations=invocations,
        )

    def file_result(
        self,
        outcomes: Iterable[CaseOutcome],
        *,
        start: float = FIXED_TIME_BASE_MS,
        end: float = FIXED_TIME_BASE_MS + 1500,
        **counts: int,
    ) -> FileResult:
        return FileResult(
            test_results=list(outcomes),
            perf_stats=PerfStats(start=start, end=end),
            **counts,
        )

    async def file_start(self, aggregator: SpecAggregator) -> None:
        await aggregator.on_file_start(self.project_id, self.spec_name)

    async def case_start(
        self,
        aggregator: SpecAggregator,
        title: str,
        *,
        started_at: float = FIXED_TIME_BASE_MS,
        mode: str | None = None,
    ) -> None:
        await aggregator.on_case_start(
            self.project_id,
            self.spec_name,
            self.test_id(title),
            started_at=started_at,
            title_path=self.title_path(title),
            mode=mode,
        )

    async def case_result(self, aggregator: SpecAggregator, outcome: CaseOutcome) -> None:
        await aggregator.on_case_result(
            self.project_id,
            self.spec_name,
            test_case_id(self.spec_name, outcome.title_path),
            outcome,
        )

    async def finish(
        self, aggregator: SpecAggregator, file_result: FileResult
    ) -> Path | None:
        return await aggregator.on_file_result(
            self.project_id, self.spec_name, file_result
        )


def read_json(path: Path) -> Any:
    return orjson.loads(path.read_bytes())


def outcome_payload(title: str, status: str = "passed") -> dict:
    return {"title": title, "ancestorTitles": ["sum"], "status": status, "duration": 3}


def event_lines(*events: dict) -> list[bytes]:
    return [orjson.dumps(event) for event in events]


# One spec as a runner may deliver it: the "adds" result arrives before its
# start, and the file result arrives before the "subtracts" result is flushed.
RACY_RUN = [
    {"event": "runStart", "totalSpecCount": 1},
    {"event": "fileStart", "specName": SPEC_NAME},
    {
        "event": "caseStart",
        "specName": SPEC_NAME,
        "title": "subtracts",
        "ancestorTitles": ["sum"],
        "startedAt": FIXED_TIME_BASE_MS + 5,
    },
    {"event": "caseResult", "specName": SPEC_NAME, "outcome": outcome_payload("adds")},
    {
        "event": "fileResult",
        "specName": SPEC_NAME,
        "result": {
            "testResults": [
                outcome_payload("adds"),
                outcome_payload("subtracts"),
                outcome_payload("later", "todo"),
            ],
            "perfStats": {"start": FIXED_TIME_BASE_MS, "end": FIXED_TIME_BASE_MS + 20},
        },
    },
    {
        "event": "caseStart",
        "specName": SPEC_NAME,
        "title": "adds",
        "ancestorTitles": ["sum"],
        "startedAt": FIXED_TIME_BASE_MS,
    },
    {
        "event": "caseResult",
        "specName": SPEC_NAME,
        "outcome": outcome_payload("subtracts"),
    },
    {"event": "runComplete"},
]
