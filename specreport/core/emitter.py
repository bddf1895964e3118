"""
Report persistence.

Owns the run directory layout::

    <root_dir>/<report_dir>-<timestamp>-<ulid>/
        config.json
        instances/<short-hash>.json

Every write lands in a temporary sibling first and is renamed into place, so
an artifact is either complete or absent.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from pathlib import Path

import aiofiles
import aiofiles.os
import ulid
from loguru import logger

from specreport.datastructures.identity import SpecKey, generate_short_hash
from specreport.datastructures.type_aliases import SpecCount
from specreport.serialization import JsonSerializer, Serializer

from .model import InstanceReport, RunConfigReport

CONFIG_FILENAME = "config.json"
INSTANCES_DIRNAME = "instances"


def generate_unique_dir_name(base_name: str) -> str:
    timestamp = datetime.now(UTC).isoformat(timespec="milliseconds")
    timestamp = timestamp.replace("+00:00", "Z").replace(":", "-").replace(".", "-")
    return f"{base_name}-{timestamp}-{ulid.new()}"


def instance_filename(spec_key: SpecKey) -> str:
    return f"{generate_short_hash(str(spec_key))}.json"


async def create_folder(folder_path: Path) -> Path:
    try:
        await aiofiles.os.makedirs(folder_path, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create folder at {folder_path}: {e}")
        raise
    logger.debug(f"Folder created {folder_path}")
    return folder_path


async def write_file_atomic(folder: Path, filename: str, content: bytes) -> Path:
    """Write ``content`` to ``folder/filename`` all-or-nothing."""
    path = folder / filename
    temp_path = folder / f".{filename}.{os.getpid()}.tmp"
    try:
        async with aiofiles.open(temp_path, "wb") as f:
            await f.write(content)
        await aiofiles.os.replace(temp_path, path)
    except OSError as e:
        logger.error(f"Error writing file at {path}: {e}")
        if await aiofiles.os.path.exists(temp_path):
            await aiofiles.os.remove(temp_path)
        raise
    logger.debug(f"File created {path}")
    return path


class ReportEmitter:
    """Writes the run configuration and one artifact per finalized spec."""

    def __init__(
        self,
        root_dir: Path,
        report_dir: str,
        serializer: Serializer | None = None,
    ) -> None:
        self.root_dir = Path(root_dir)
        self.report_dir = report_dir
        self.serializer = serializer or JsonSerializer()
        self.run_dir: Path | None = None
        self.instances_dir: Path | None = None
        self.total_specs: SpecCount = 0
        self.processed_specs: SpecCount = 0
        self.written: dict[SpecKey, Path] = {}

    async def prepare_run(self, config: RunConfigReport) -> Path:
        """Create a fresh run directory and write its configuration."""
        self.total_specs = config.total_specs
        run_dir = await create_folder(
            self.root_dir / generate_unique_dir_name(self.report_dir)
        )
        self.instances_dir = await create_folder(run_dir / INSTANCES_DIRNAME)
        await write_file_atomic(
            run_dir, CONFIG_FILENAME, self.serializer.serialize(config.to_wire())
        )
        self.run_dir = run_dir
        return run_dir

    async def persist(self, spec_key: SpecKey, report: InstanceReport) -> Path:
        if self.instances_dir is None:
            raise RuntimeError("Report emitter used before the run was prepared")

        path = await write_file_atomic(
            self.instances_dir,
            instance_filename(spec_key),
            self.serializer.serialize(report.to_wire()),
        )
        self.written[spec_key] = path
        self.processed_specs += 1
        logger.info(
            f"[specreport]: [{spec_key.spec_name}] - spec results written to file: "
            f"{path} [{self.processed_specs}/{self.total_specs}]"
        )
        return path
