"""
Identity resolution for spec files and test cases.

Every handler in the aggregator looks state up through these keys, so two
events describing the same logical test must always land on the same key no
matter which worker sent them, in what order, or on which retry.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path, PurePath

from .type_aliases import ProjectId, ShortHash, SpecName, TestId

DEFAULT_PROJECT_ID: ProjectId = "default"
SHORT_HASH_LENGTH = 16

# Joins title segments before hashing; a control character cannot occur in a
# test title, so ("a b", "c") and ("a", "b c") never collide.
_TITLE_SEPARATOR = "\x1f"


@dataclass(frozen=True, slots=True)
class SpecKey:
    """Identity of one spec file within one runner project."""

    project_id: ProjectId
    spec_name: SpecName

    def __str__(self) -> str:
        return f"{self.project_id}:{self.spec_name}"


@dataclass(frozen=True, slots=True)
class TestCaseKey:
    """Identity of one logical test case, independent of the attempt number."""

    __test__ = False  # not a pytest test class

    spec: SpecKey
    test_id: TestId

    @property
    def project_id(self) -> ProjectId:
        return self.spec.project_id

    @property
    def spec_name(self) -> SpecName:
        return self.spec.spec_name

    def __str__(self) -> str:
        return f"{self.spec}:{self.test_id}"


def generate_short_hash(value: str, length: int = SHORT_HASH_LENGTH) -> ShortHash:
    """Return a deterministic hex digest prefix of ``value``."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]


def test_case_id(spec_name: SpecName, title_path: tuple[str, ...] | list[str]) -> TestId:
    """Derive a retry-independent test id from the spec path and title chain."""
    return generate_short_hash(_TITLE_SEPARATOR.join((spec_name, *title_path)))


test_case_id.__test__ = False  # type: ignore[attr-defined]


def spec_name_for(test_path: str | PurePath, root_dir: str | PurePath) -> SpecName:
    """Spec name is the test file path relative to the runner root, POSIX style."""
    path = Path(test_path)
    root = Path(root_dir)
    try:
        relative = path.relative_to(root)
    except ValueError:
        relative = path
    return relative.as_posix()


def project_id_for(display_name: str | None) -> ProjectId:
    if display_name and display_name.strip():
        return display_name.strip()
    return DEFAULT_PROJECT_ID
