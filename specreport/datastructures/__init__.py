"""
specreport datastructures.

Value types shared across the aggregation engine:

- SpecKey / TestCaseKey: composite identity keys compared by value
- Identity helpers: spec names, project ids and retry-independent test ids
"""

from __future__ import annotations

from .identity import (
    SpecKey,
    TestCaseKey,
    generate_short_hash,
    project_id_for,
    spec_name_for,
    test_case_id,
)

__all__ = [
    "SpecKey",
    "TestCaseKey",
    "generate_short_hash",
    "project_id_for",
    "spec_name_for",
    "test_case_id",
]
