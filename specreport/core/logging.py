"""Logging setup for specreport processes."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, TextIO

from loguru import logger

if TYPE_CHECKING:  # pragma: no cover - typing only
    from specreport.config import ReporterSettings

DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} - {message}"
)


def _in_scope(record_name: str, scope: str) -> bool:
    if record_name.startswith(scope):
        return True
    # Bare scopes like "core.aggregator" are shorthand for our own modules.
    return not scope.startswith("specreport.") and record_name.startswith(
        f"specreport.{scope}"
    )


def _scoped_debug_filter(scopes: tuple[str, ...]):
    def _filter(record: Mapping[str, Any]) -> bool:
        if getattr(record.get("level"), "name", None) != "DEBUG":
            return False
        name = record.get("name") or ""
        return any(_in_scope(name, scope) for scope in scopes)

    return _filter


def configure_logging(
    level: str,
    *,
    debug_scopes: Iterable[str] = (),
    colorize: bool = False,
    sink: TextIO | None = None,
) -> tuple[int, ...]:
    """Replace loguru's default handler; ``debug_scopes`` opt modules into DEBUG.

    ``sink`` defaults to whatever ``sys.stderr`` is at call time.
    """
    if sink is None:
        sink = sys.stderr
    logger.remove()
    handler_ids = [
        logger.add(sink, level=level, format=DEFAULT_LOG_FORMAT, colorize=colorize)
    ]

    scopes = tuple(scope.strip() for scope in debug_scopes if scope.strip())
    if scopes and level.upper() != "DEBUG":
        handler_ids.append(
            logger.add(
                sink,
                level="DEBUG",
                format=DEFAULT_LOG_FORMAT,
                colorize=colorize,
                filter=_scoped_debug_filter(scopes),
            )
        )

    return tuple(handler_ids)


def configure_from_settings(
    settings: ReporterSettings, *, colorize: bool = False
) -> tuple[int, ...]:
    return configure_logging(
        settings.log_level, debug_scopes=settings.debug_scopes, colorize=colorize
    )
