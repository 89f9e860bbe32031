"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (JESTEXPLORER__SECTION__KEY)
3. Workspace YAML (.jestexplorer/config.yaml)
4. Global YAML (~/.config/jestexplorer/config.yaml)
5. Built-in defaults (this file)

Examples:
    JESTEXPLORER__LOGGING__LEVEL=DEBUG
    JESTEXPLORER__EXPLORER__HIDE_EMPTY_PROJECTS=false
    JESTEXPLORER__RUNNER__TIMEOUT_SEC=120
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        JESTEXPLORER__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ExplorerConfig(BaseModel):
    """Test tree and discovery configuration.

    Env vars:
        JESTEXPLORER__EXPLORER__HIDE_EMPTY_PROJECTS: Hide projects without test files
        JESTEXPLORER__EXPLORER__PATH_TO_JEST: Override the Jest command
        JESTEXPLORER__EXPLORER__PATH_TO_CONFIG: Override the Jest config file
    """

    hide_empty_projects: bool = Field(
        default=True,
        description="Hide projects that contain no test files from the projected tree.",
    )
    path_to_jest: str | None = Field(
        default=None,
        description="Jest command to use instead of the discovered one "
        "(e.g. 'npx jest' or a path to node_modules/.bin/jest).",
    )
    path_to_config: str | None = Field(
        default=None,
        description="Jest config file passed via --config for the standard layout.",
    )


class WatcherConfig(BaseModel):
    """File watcher configuration.

    Env vars:
        JESTEXPLORER__WATCHER__DEBOUNCE_SEC: Quiet window before a batch is flushed
        JESTEXPLORER__WATCHER__POLL_INTERVAL_SEC: Poll interval for cross-filesystem mounts
    """

    debounce_sec: float = Field(
        default=0.5,
        description="Sliding debounce window before changes are delivered.",
    )
    max_debounce_wait_sec: float = Field(
        default=2.0,
        description="Maximum delay before a continuously changing batch is flushed.",
    )
    poll_interval_sec: float = Field(
        default=1.0,
        description="mtime polling interval for cross-filesystem mounts (WSL /mnt/*).",
    )

    @field_validator("debounce_sec", "max_debounce_wait_sec", "poll_interval_sec")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v


class RunnerConfig(BaseModel):
    """Jest runner configuration.

    Env vars:
        JESTEXPLORER__RUNNER__TIMEOUT_SEC: Kill Jest after this many seconds
    """

    timeout_sec: float = Field(
        default=600.0,
        description="Maximum duration of a single Jest invocation.",
    )
    settings_timeout_sec: float = Field(
        default=30.0,
        description="Maximum duration of 'jest --showConfig'.",
    )
    extra_args: list[str] = Field(
        default_factory=list,
        description="Additional arguments appended to every Jest invocation.",
    )
    test_location_in_results: bool = Field(
        default=True,
        description="Pass --testLocationInResults so failures map to source lines.",
    )

    @field_validator("timeout_sec", "settings_timeout_sec")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Timeout must be positive, got {v}")
        return v


class JestExplorerConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    explorer: ExplorerConfig = Field(default_factory=ExplorerConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
