"""
specreport - test runner event aggregation and report emission.

A test runner calls six lifecycle handlers (run start, file start, case start,
case result, file result, run complete) concurrently across its workers and
only partially ordered. specreport reconciles that stream per worker process
and writes one deterministic JSON report per spec file.

## Quick Start

```python
from specreport import ReporterSettings, SpecAggregator, WorkerInfo

aggregator = SpecAggregator(
    ReporterSettings(root_dir=project_root),
    worker=WorkerInfo.for_index(1),
)

await aggregator.on_run_start(total_spec_count=1)
await aggregator.on_file_start("default", "tests/sum.test.js")
...
await aggregator.on_file_result("default", "tests/sum.test.js", file_result)
await aggregator.on_run_complete()
```
"""

from ._version import __version__
from .config import ReporterSettings
from .core import (
    CaseOutcome,
    DeferredGate,
    FileResult,
    InstanceReport,
    ReportEmitter,
    SpecAggregator,
    WorkerInfo,
)
from .datastructures import SpecKey, TestCaseKey, test_case_id
from .serialization import JsonSerializer

__all__ = [
    "__version__",
    "ReporterSettings",
    "SpecAggregator",
    "DeferredGate",
    "ReportEmitter",
    "CaseOutcome",
    "FileResult",
    "InstanceReport",
    "WorkerInfo",
    "SpecKey",
    "TestCaseKey",
    "test_case_id",
    "JsonSerializer",
]
