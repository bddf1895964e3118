"""Mutable per-run state owned by the aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field

from specreport.datastructures.identity import SpecKey, TestCaseKey
from specreport.datastructures.type_aliases import EpochMilliseconds, TestId

from .model import CaseMode, CaseOutcome, FileResult, WorkerInfo


@dataclass(slots=True)
class TestCaseRecord:
    """Observed history of one logical test case across its attempts."""

    __test__ = False

    id: TestId
    title: list[str]
    mode: CaseMode
    worker: WorkerInfo
    timestamps: list[EpochMilliseconds] = field(default_factory=list)
    attempts: list[CaseOutcome] = field(default_factory=list)
    # Built from the file result's declared list; its single attempt is the
    # runner's summary and gives way to a real start or result.
    declared_only: bool = False

    @property
    def opened_attempts(self) -> int:
        """Attempts announced by a case start, whether or not resulted yet."""
        return len(self.timestamps)


@dataclass(slots=True)
class SpecRecord:
    """Everything observed for one spec file during the run."""

    key: SpecKey
    worker: WorkerInfo
    test_cases: dict[TestCaseKey, TestCaseRecord] = field(default_factory=dict)
    spec_result: FileResult | None = None

    @property
    def project_id(self) -> str:
        return self.key.project_id

    @property
    def spec_name(self) -> str:
        return self.key.spec_name
