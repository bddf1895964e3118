"""Turn raw runner failure messages into structured report errors."""

from __future__ import annotations

import re
from pathlib import Path, PurePath

from .model import ErrorLocation, ReportError

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
_STACK_FRAME = re.compile(r"^\s+at\s")
_FRAME_LOCATION = re.compile(r"\(?(?P<file>[^\s()]+?):(?P<line>\d+):(?P<column>\d+)\)?\s*$")


def strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE.sub("", text)


def _relativize(text: str, root_dir: str | PurePath) -> str:
    root = str(root_dir).rstrip("/\\")
    if not root:
        return text
    return text.replace(root + "/", "").replace(root + "\\", "")


def _find_location(stack_lines: list[str], spec_name: str) -> ErrorLocation | None:
    for line in stack_lines:
        match = _FRAME_LOCATION.search(line)
        if match is None:
            continue
        file = Path(match["file"]).as_posix()
        if file == spec_name or file.endswith("/" + spec_name):
            return ErrorLocation(
                file=spec_name,
                line=int(match["line"]),
                column=int(match["column"]),
            )
    return None


def format_failure(
    failure_message: str, root_dir: str | PurePath, spec_name: str
) -> ReportError:
    """Split a failure message into message, stack and spec-file location.

    Absolute paths under ``root_dir`` are made relative so artifacts produced
    on different machines compare equal.
    """
    text = _relativize(strip_ansi(failure_message), root_dir)
    lines = text.splitlines()

    split_at = next(
        (index for index, line in enumerate(lines) if _STACK_FRAME.match(line)),
        len(lines),
    )
    message = "\n".join(lines[:split_at]).strip()
    stack_lines = lines[split_at:]

    return ReportError(
        message=message or text.strip(),
        stack=text if stack_lines else None,
        location=_find_location(stack_lines, spec_name),
    )


def format_failures(
    failure_messages: list[str], root_dir: str | PurePath, spec_name: str
) -> list[ReportError]:
    return [
        format_failure(message, root_dir, spec_name) for message in failure_messages
    ]
