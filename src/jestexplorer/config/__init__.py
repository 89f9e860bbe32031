"""Config module exports."""

from jestexplorer.config.loader import load_config
from jestexplorer.config.models import (
    ExplorerConfig,
    JestExplorerConfig,
    LoggingConfig,
    RunnerConfig,
    WatcherConfig,
)

__all__ = [
    "load_config",
    "ExplorerConfig",
    "JestExplorerConfig",
    "LoggingConfig",
    "RunnerConfig",
    "WatcherConfig",
]
