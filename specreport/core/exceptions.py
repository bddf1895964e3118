"""Exception types raised by the specreport engine and its CLI."""

from __future__ import annotations

from pathlib import Path

from specreport.datastructures.type_aliases import DurationSeconds


class SpecReportError(Exception):
    """Base class for all specreport errors."""


class GateTimeoutError(SpecReportError):
    """A deferred gate was not resolved within the configured bound."""

    def __init__(self, gate_name: str, timeout: DurationSeconds) -> None:
        self.gate_name = gate_name
        self.timeout = timeout
        super().__init__(
            f"Gate '{gate_name}' was not resolved within {timeout:.3f}s; "
            "the event that opens it never arrived"
        )


class ReportDirectoryError(SpecReportError):
    """A run directory is missing or holds no readable instance reports."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"{path}: {reason}")


class EventLogError(SpecReportError):
    """A recorded runner event log line could not be parsed."""

    def __init__(self, line_number: int, reason: str) -> None:
        self.line_number = line_number
        super().__init__(f"line {line_number}: {reason}")
