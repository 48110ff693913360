"""Configuration models for settle.

Defines Pydantic v2 models for the eventual-assertion engine, bound port
discovery and logging. A full configuration can be loaded from YAML:

    config = SettleConfig.from_yaml(Path("settle.yaml"))
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from settle.core.constants import (
    BIND_DEFAULT_TIMEOUT_SECONDS,
    BIND_TOOL,
    BIND_TOOL_SEARCH_PATHS,
    EVENTUALLY_DEFAULT_TIMEOUT_SECONDS,
)


class EventuallyConfig(BaseModel):
    """Configuration for eventual assertions.

    The backoff law between attempts is fixed and not configurable.
    """

    default_timeout_seconds: float = Field(
        default=EVENTUALLY_DEFAULT_TIMEOUT_SECONDS,
        ge=0.0,
        description="Deadline used by assert_eventually when no timeout is passed",
    )
    break_on_failure: bool = Field(
        default=False,
        description="Escalate every reported failure to an unconditional abort. "
        "Suspended while a probe runs inside a sandbox.",
    )


class BindConfig(BaseModel):
    """Configuration for discovering the port a process is bound to."""

    tool: str = Field(
        default=BIND_TOOL,
        description="Name of the diagnostic tool to run",
    )
    search_paths: list[Path] = Field(
        default_factory=lambda: [Path(p) for p in BIND_TOOL_SEARCH_PATHS],
        description="Directories checked for the tool before falling back to PATH",
    )
    default_timeout_seconds: float = Field(
        default=BIND_DEFAULT_TIMEOUT_SECONDS,
        ge=0.0,
        description="Deadline used when no timeout is passed",
    )

    @field_validator("tool")
    @classmethod
    def _validate_tool(cls, v: str) -> str:
        """Reject empty tool names and names with a directory part."""
        if not v or "/" in v:
            raise ValueError("tool must be a bare executable name")
        return v


class LogConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum log level to capture",
    )
    format: Literal["json", "console", "both"] = Field(
        default="console",
        description="Output format: json for structured, console for human-readable, "
        "both for console to stderr and JSON to file",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path for log file output (required if format='both')",
    )
    max_file_size_mb: int = Field(
        default=50,
        gt=0,
        le=1000,
        description="Maximum log file size before rotation (MB)",
    )
    backup_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Number of rotated log files to keep",
    )

    @model_validator(mode="after")
    def _check_file_path_required(self) -> LogConfig:
        """Validate that file_path is set when format requires file output."""
        if self.format == "both" and self.file_path is None:
            raise ValueError(f"file_path is required when format='{self.format}'")
        return self


class SettleConfig(BaseModel):
    """Top-level settle configuration."""

    eventually: EventuallyConfig = Field(default_factory=EventuallyConfig)
    bind: BindConfig = Field(default_factory=BindConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> SettleConfig:
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> SettleConfig:
        """Load configuration from a YAML string."""
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data or {})


__all__ = ["BindConfig", "EventuallyConfig", "LogConfig", "SettleConfig"]
