"""
Semantic type aliases for specreport datastructures.

These aliases keep signatures self-documenting where raw str/int/float would
otherwise hide what a value means (a spec path versus a project id, epoch
milliseconds versus seconds).
"""

from typing import Any, TypeAlias

# Time and timestamp types
EpochMilliseconds: TypeAlias = float
DurationMilliseconds: TypeAlias = float
DurationSeconds: TypeAlias = float
IsoTimestamp: TypeAlias = str

# Identity types
ProjectId: TypeAlias = str
SpecName: TypeAlias = str
TestId: TypeAlias = str
TitlePath: TypeAlias = tuple[str, ...]
ShortHash: TypeAlias = str

# Worker types
WorkerIndex: TypeAlias = int
ParallelIndex: TypeAlias = int

# Outcome types
OutcomeStatus: TypeAlias = str
FailureMessage: TypeAlias = str

# Progress types
SpecCount: TypeAlias = int
AttemptIndex: TypeAlias = int

# Serialization types
JsonDict: TypeAlias = dict[str, Any]
