"""
specreport core.

The aggregation engine and everything it needs at runtime: gates, records,
status reduction, report rendering and persistence, and event-log replay.
"""

from .aggregator import SpecAggregator, SpecState
from .emitter import ReportEmitter
from .exceptions import (
    EventLogError,
    GateTimeoutError,
    ReportDirectoryError,
    SpecReportError,
)
from .gate import DeferredGate, GateTable
from .model import (
    CaseMode,
    CaseOutcome,
    FileResult,
    InstanceReport,
    PerfStats,
    RunConfigReport,
    WorkerInfo,
)
from .records import SpecRecord, TestCaseRecord
from .status import (
    CaseState,
    ExpectedStatus,
    coarse_status,
    is_flaky,
    raw_status,
    retries,
)

__all__ = [
    # Aggregation
    "SpecAggregator",
    "SpecState",
    "SpecRecord",
    "TestCaseRecord",
    # Synchronization
    "DeferredGate",
    "GateTable",
    # Persistence
    "ReportEmitter",
    # Models
    "CaseMode",
    "CaseOutcome",
    "FileResult",
    "InstanceReport",
    "PerfStats",
    "RunConfigReport",
    "WorkerInfo",
    # Status reduction
    "CaseState",
    "ExpectedStatus",
    "coarse_status",
    "is_flaky",
    "raw_status",
    "retries",
    # Exceptions
    "SpecReportError",
    "GateTimeoutError",
    "ReportDirectoryError",
    "EventLogError",
]
