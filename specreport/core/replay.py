"""
Replay a recorded runner event log through an aggregator.

The log is JSON lines, one lifecycle event per line, discriminated by its
``event`` field. Every event is dispatched as its own task in log order, so
only the aggregator's gates decide which handler observes what.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path
from typing import Annotated, Literal

import aiofiles
import orjson
from loguru import logger
from pydantic import Field, TypeAdapter, ValidationError, model_validator

from specreport.datastructures.identity import (
    SpecKey,
    project_id_for,
    spec_name_for,
    test_case_id,
)
from specreport.serialization import JsonSerializer

from .aggregator import SpecAggregator
from .exceptions import EventLogError
from .model import CaseOutcome, FileResult, WireModel, WorkerInfo


class RunStartEvent(WireModel):
    event: Literal["runStart"] = "runStart"
    total_spec_count: int


class SpecEvent(WireModel):
    """An event for one spec file.

    The spec is named directly (``specName``/``projectId``) or the way the
    runner reports it: an absolute ``testPath`` and the project's
    ``displayName``.
    """

    project_id: str | None = None
    display_name: str | None = None
    spec_name: str | None = None
    test_path: str | None = None

    @model_validator(mode="after")
    def _require_spec(self) -> SpecEvent:
        if self.spec_name is None and self.test_path is None:
            raise ValueError("either specName or testPath is required")
        return self

    def spec_key(self, root_dir: Path) -> SpecKey:
        if self.spec_name is not None:
            spec_name = self.spec_name
        else:
            spec_name = spec_name_for(self.test_path, root_dir)
        return SpecKey(self.project_id or project_id_for(self.display_name), spec_name)


class FileStartEvent(SpecEvent):
    event: Literal["fileStart"] = "fileStart"


class CaseStartEvent(SpecEvent):
    event: Literal["caseStart"] = "caseStart"
    title: str
    ancestor_titles: list[str] = Field(default_factory=list)
    started_at: float | None = None
    mode: str | None = None
    worker: WorkerInfo | None = None

    @property
    def title_path(self) -> tuple[str, ...]:
        return (*self.ancestor_titles, self.title)


class CaseResultEvent(SpecEvent):
    event: Literal["caseResult"] = "caseResult"
    outcome: CaseOutcome


class FileResultEvent(SpecEvent):
    event: Literal["fileResult"] = "fileResult"
    result: FileResult


class RunCompleteEvent(WireModel):
    event: Literal["runComplete"] = "runComplete"


RunnerEvent = Annotated[
    RunStartEvent
    | FileStartEvent
    | CaseStartEvent
    | CaseResultEvent
    | FileResultEvent
    | RunCompleteEvent,
    Field(discriminator="event"),
]

_EVENT_ADAPTER: TypeAdapter[RunnerEvent] = TypeAdapter(RunnerEvent)
_serializer = JsonSerializer()


def parse_event_log(lines: Iterable[str | bytes]) -> list[RunnerEvent]:
    events: list[RunnerEvent] = []
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            payload = _serializer.deserialize(line)
            events.append(_EVENT_ADAPTER.validate_python(payload))
        except orjson.JSONDecodeError as e:
            raise EventLogError(line_number, f"invalid JSON: {e}") from e
        except ValidationError as e:
            raise EventLogError(line_number, f"invalid event: {e}") from e
    return events


async def load_event_log(path: Path) -> list[RunnerEvent]:
    async with aiofiles.open(path, "rb") as f:
        content = await f.read()
    return parse_event_log(content.splitlines())


async def dispatch(aggregator: SpecAggregator, event: RunnerEvent) -> None:
    if isinstance(event, SpecEvent):
        spec = event.spec_key(aggregator.settings.root_dir)

    match event:
        case RunStartEvent():
            await aggregator.on_run_start(event.total_spec_count)
        case FileStartEvent():
            await aggregator.on_file_start(spec.project_id, spec.spec_name)
        case CaseStartEvent():
            await aggregator.on_case_start(
                spec.project_id,
                spec.spec_name,
                test_case_id(spec.spec_name, event.title_path),
                started_at=event.started_at,
                title_path=event.title_path,
                mode=event.mode,
                worker=event.worker,
            )
        case CaseResultEvent():
            await aggregator.on_case_result(
                spec.project_id,
                spec.spec_name,
                test_case_id(spec.spec_name, event.outcome.title_path),
                event.outcome,
            )
        case FileResultEvent():
            await aggregator.on_file_result(spec.project_id, spec.spec_name, event.result)
        case RunCompleteEvent():
            await aggregator.on_run_complete()


async def replay_events(
    aggregator: SpecAggregator, events: Iterable[RunnerEvent]
) -> None:
    """Dispatch every event concurrently and wait for all handlers to finish.

    ``runComplete`` is held back until every other handler has returned, the
    way a runner only signals completion after its workers drain. A failing
    handler does not cancel the others; the first failure is re-raised once
    the run has completed.
    """
    events = list(events)
    completions = [e for e in events if isinstance(e, RunCompleteEvent)]
    handlers = [e for e in events if not isinstance(e, RunCompleteEvent)]
    tasks = [
        asyncio.create_task(dispatch(aggregator, event), name=f"{event.event}-{index}")
        for index, event in enumerate(handlers)
    ]
    logger.debug(f"Replaying {len(tasks)} runner events")

    def _abort_without_run_dir(task: asyncio.Task) -> None:
        # Every other handler waits on the run gate this task never resolves.
        if not task.cancelled() and task.exception() is not None:
            for other in tasks:
                if not other.done():
                    other.cancel()

    for task, event in zip(tasks, handlers):
        if isinstance(event, RunStartEvent):
            task.add_done_callback(_abort_without_run_dir)

    try:
        results = await asyncio.gather(*tasks, return_exceptions=True)
    except asyncio.CancelledError:
        for task in tasks:
            if not task.done():
                task.cancel()
        raise

    failures = []
    for task, result in zip(tasks, results):
        if isinstance(result, asyncio.CancelledError):
            continue
        if isinstance(result, BaseException):
            logger.error(f"Replay handler {task.get_name()} failed: {result}")
            failures.append(result)

    for event in completions:
        await dispatch(aggregator, event)

    if failures:
        raise failures[0]
