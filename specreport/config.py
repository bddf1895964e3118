from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReporterSettings(BaseSettings):
    """specreport configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="SPECREPORT_", env_file=".env", extra="ignore"
    )

    root_dir: Path = Field(
        default_factory=Path.cwd,
        description="Runner root directory; spec names are relative to it.",
    )
    report_dir: str = Field(
        ".specreport",
        description="Base name of the per-run report directory created under root_dir.",
    )
    gate_timeout: float | None = Field(
        None,
        description="Seconds a handler may wait on a gate before failing. None waits forever.",
    )
    framework: str = Field("jest", description="Name of the observed test runner.")
    framework_version: str | None = Field(
        None, description="Version of the observed test runner, if known."
    )
    log_level: str = Field("INFO", description="Minimum log level for stderr output.")
    debug_scopes: tuple[str, ...] = Field(
        (),
        description="Module prefixes that log at DEBUG even when log_level is higher.",
    )
