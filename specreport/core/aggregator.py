"""
Event aggregation for one runner worker process.

The runner calls the six lifecycle handlers concurrently and only partially
ordered: a case result may arrive before its case start, a file result before
the last case result of that file, and different spec files interleave
freely. Each handler therefore waits on an explicit gate for the key it
depends on instead of trusting delivery order:

- run gate: resolved by ``on_run_start``; file starts wait on it
- spec gate: resolved when a spec record is first created; case results wait on it
- case gate: resolved when a test case record is first created
- attempt gate: one per (case, attempt index); resolved when that attempt's
  result is recorded; the file result waits on every opened attempt

All state mutation between two ``await`` points is synchronous, so the maps
below need no locking.
"""

from __future__ import annotations

import asyncio
import time
from enum import StrEnum
from pathlib import Path
from typing import TypeAlias

from loguru import logger

from specreport._version import __version__
from specreport.config import ReporterSettings
from specreport.datastructures.identity import SpecKey, TestCaseKey, test_case_id
from specreport.datastructures.type_aliases import (
    AttemptIndex,
    EpochMilliseconds,
    ProjectId,
    SpecCount,
    SpecName,
    TestId,
)

from .emitter import ReportEmitter
from .gate import DeferredGate, GateTable
from .model import (
    SKIPPED_WORKER,
    CaseMode,
    CaseOutcome,
    FileResult,
    RunConfigReport,
    WorkerInfo,
)
from .records import SpecRecord, TestCaseRecord
from .report import build_instance_report, iso_from_millis

AttemptKey: TypeAlias = tuple[TestCaseKey, AttemptIndex]


class SpecState(StrEnum):
    UNSEEN = "unseen"
    STARTED = "started"
    FINALIZED = "finalized"


def mode_for_outcome(outcome: CaseOutcome) -> CaseMode:
    """Run intent for a case the runner reported without ever starting it."""
    if outcome.status == "todo":
        return CaseMode.TODO
    if outcome.status in ("skipped", "pending", "disabled"):
        return CaseMode.SKIP
    return CaseMode.NORMAL


class SpecAggregator:
    """Reconciles runner lifecycle events into one report per spec file."""

    def __init__(
        self,
        settings: ReporterSettings | None = None,
        worker: WorkerInfo | None = None,
        emitter: ReportEmitter | None = None,
    ) -> None:
        self.settings = settings or ReporterSettings()
        self.worker = worker or WorkerInfo()
        self.emitter = emitter or ReportEmitter(
            self.settings.root_dir, self.settings.report_dir
        )
        self.total_specs: SpecCount = 0
        self.specs: dict[SpecKey, SpecRecord] = {}

        timeout = self.settings.gate_timeout
        self._run_gate = DeferredGate("run")
        self._spec_gates: GateTable[SpecKey] = GateTable("spec", timeout)
        self._case_gates: GateTable[TestCaseKey] = GateTable("case", timeout)
        self._attempt_gates: GateTable[AttemptKey] = GateTable("attempt", timeout)

        # Finalizing is claimed before the file result suspends so a duplicate
        # call can never emit twice; finalized marks the report as rendered.
        self._finalizing: set[SpecKey] = set()
        self._finalized: set[SpecKey] = set()

    @property
    def run_dir(self) -> Path | None:
        return self.emitter.run_dir

    def spec_state(self, spec_key: SpecKey) -> SpecState:
        if spec_key in self._finalized:
            return SpecState.FINALIZED
        if spec_key in self.specs:
            return SpecState.STARTED
        return SpecState.UNSEEN

    def _ensure_spec(self, spec_key: SpecKey) -> SpecRecord:
        record = self.specs.get(spec_key)
        if record is None:
            record = SpecRecord(key=spec_key, worker=self.worker)
            self.specs[spec_key] = record
            self._spec_gates.resolve(spec_key)
        return record

    def _unstarted_case(self, test_id: TestId, outcome: CaseOutcome) -> TestCaseRecord:
        """Record for a case whose result arrived without any start."""
        mode = mode_for_outcome(outcome)
        return TestCaseRecord(
            id=test_id,
            title=list(outcome.title_path),
            mode=mode,
            worker=self.worker if mode is CaseMode.NORMAL else SKIPPED_WORKER,
        )

    def _drop_late(self, spec_key: SpecKey, event: str) -> bool:
        if spec_key in self._finalized:
            logger.warning(
                f"[specreport]: [{spec_key.spec_name}] {event} arrived after the "
                "spec was finalized; ignoring it"
            )
            return True
        return False

    async def on_run_start(self, total_spec_count: SpecCount) -> Path:
        logger.debug("Run started")
        self.total_specs = total_spec_count

        config = RunConfigReport(
            framework=self.settings.framework,
            framework_version=self.settings.framework_version,
            reporter_version=__version__,
            root_dir=self.settings.root_dir.as_posix(),
            total_specs=total_spec_count,
            worker_index=self.worker.worker_index,
            created_at=iso_from_millis(time.time() * 1000),
        )
        run_dir = await self.emitter.prepare_run(config)

        logger.info("[specreport]: Run started")
        logger.info(f"[specreport]: Report directory is set to - {run_dir}")
        logger.debug(f"Report config: {config}")

        self._run_gate.resolve()
        return run_dir

    async def on_file_start(self, project_id: ProjectId, spec_name: SpecName) -> None:
        spec_key = SpecKey(project_id, spec_name)
        await self._run_gate.wait(self.settings.gate_timeout)

        if self._drop_late(spec_key, "file start"):
            return

        record = self._ensure_spec(spec_key)
        logger.debug(f"Spec execution started [{spec_name}]: {record}")

    async def on_case_start(
        self,
        project_id: ProjectId,
        spec_name: SpecName,
        test_id: TestId,
        started_at: EpochMilliseconds | None = None,
        title_path: tuple[str, ...] | list[str] = (),
        mode: CaseMode | str | None = None,
        worker: WorkerInfo | None = None,
    ) -> None:
        case_key = TestCaseKey(SpecKey(project_id, spec_name), test_id)
        if self._drop_late(case_key.spec, "case start"):
            return

        # A case start may race ahead of its file start.
        record = self._ensure_spec(case_key.spec)
        timestamp = started_at if started_at is not None else time.time() * 1000

        test_case = record.test_cases.get(case_key)
        if test_case is None:
            test_case = TestCaseRecord(
                id=test_id,
                title=list(title_path),
                mode=CaseMode.from_runner(mode),
                worker=worker or self.worker,
                timestamps=[timestamp],
            )
            record.test_cases[case_key] = test_case
            self._case_gates.resolve(case_key)
        elif test_case.declared_only and not test_case.timestamps:
            # First real start of a case the file result declared ahead of it.
            test_case.mode = CaseMode.from_runner(mode)
            test_case.worker = worker or self.worker
            test_case.timestamps.append(timestamp)
        else:
            # Repeat attempt (retry) of a known case.
            test_case.timestamps.append(timestamp)

        self._attempt_gates.ensure((case_key, test_case.opened_attempts - 1))
        logger.debug(f"Test case execution started [{test_id}]: {test_case}")

    async def on_case_result(
        self,
        project_id: ProjectId,
        spec_name: SpecName,
        test_id: TestId,
        outcome: CaseOutcome,
    ) -> None:
        case_key = TestCaseKey(SpecKey(project_id, spec_name), test_id)
        await self._spec_gates.wait(case_key.spec)

        if self._drop_late(case_key.spec, "case result"):
            return

        record = self.specs[case_key.spec]
        if case_key not in self._case_gates:
            record.test_cases[case_key] = self._unstarted_case(test_id, outcome)
            self._case_gates.resolve(case_key)
            logger.debug(
                f"Test case result without a start [{test_id}]: "
                f"{record.test_cases[case_key]}"
            )
        else:
            await self._case_gates.wait(case_key)

        test_case = record.test_cases[case_key]
        if test_case.declared_only:
            # The placeholder attempt already resolved gate 0; take its place.
            if not test_case.timestamps:
                executed = self._unstarted_case(test_id, outcome)
                test_case.mode = executed.mode
                test_case.worker = executed.worker
            test_case.attempts = [outcome]
            test_case.declared_only = False
        else:
            test_case.attempts.append(outcome)
            self._attempt_gates.resolve((case_key, len(test_case.attempts) - 1))
        logger.debug(f"Test case execution completed [{test_id}]: {test_case}")

    async def on_file_result(
        self,
        project_id: ProjectId,
        spec_name: SpecName,
        file_result: FileResult,
    ) -> Path | None:
        """Settle every declared test, then render and persist the spec report.

        Returns the artifact path, or None when the spec was already finalized.
        """
        spec_key = SpecKey(project_id, spec_name)
        if spec_key in self._finalizing:
            logger.warning(
                f"[specreport]: [{spec_name}] duplicate file result ignored"
            )
            return None
        self._finalizing.add(spec_key)

        logger.debug(
            f"Spec execution completed [{spec_name}], runner result: {file_result}"
        )

        await self._run_gate.wait(self.settings.gate_timeout)
        await self._spec_gates.wait(spec_key)

        record = self.specs[spec_key]
        settling = []
        for outcome in file_result.test_results:
            test_id = test_case_id(spec_name, outcome.title_path)
            case_key = TestCaseKey(spec_key, test_id)
            test_case = record.test_cases.get(case_key)

            if test_case is None:
                record.test_cases[case_key] = TestCaseRecord(
                    id=test_id,
                    title=list(outcome.title_path),
                    mode=CaseMode.SKIP,
                    worker=SKIPPED_WORKER,
                    attempts=[outcome],
                    declared_only=True,
                )
                self._case_gates.resolve(case_key)
                self._attempt_gates.resolve((case_key, 0))
                logger.debug(
                    f"Spec execution completed [{spec_name}][{test_id}], "
                    "adding skipped test"
                )
                continue

            opened = max(test_case.opened_attempts, len(test_case.attempts))
            settling.extend(
                self._attempt_gates.wait((case_key, index)) for index in range(opened)
            )

        if settling:
            await asyncio.gather(*settling)

        record.worker = self.worker
        record.spec_result = file_result
        report = build_instance_report(
            record, file_result, self.worker, self.settings.root_dir
        )
        self._finalized.add(spec_key)
        logger.debug(f"Spec execution completed [{spec_name}], result payload: {report}")

        return await self.emitter.persist(spec_key, report)

    async def on_run_complete(self) -> list[SpecKey]:
        """Log completion; returns specs that were observed but never finalized."""
        unfinished = [key for key in self.specs if key not in self._finalized]
        logger.info(
            f"[specreport]: Run completed "
            f"[{self.emitter.processed_specs}/{self.total_specs}]"
        )

        if unfinished:
            logger.warning(
                f"[specreport]: {len(unfinished)} spec(s) never finalized: "
                + ", ".join(str(key) for key in unfinished)
            )
        pending_attempts = self._attempt_gates.pending()
        if pending_attempts:
            logger.warning(
                f"[specreport]: {len(pending_attempts)} test attempt(s) never "
                "received a result"
            )
        return unfinished
