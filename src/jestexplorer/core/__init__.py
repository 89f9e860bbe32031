"""Core module exports."""

from jestexplorer.core.errors import (
    ConfigError,
    DiscoveryError,
    ErrorCode,
    InternalError,
    JestExplorerError,
    RunError,
    TreeError,
)
from jestexplorer.core.logging import (
    configure_logging,
    get_logger,
    get_run_id,
    run_context,
)

__all__ = [
    # Errors
    "ConfigError",
    "DiscoveryError",
    "ErrorCode",
    "InternalError",
    "JestExplorerError",
    "RunError",
    "TreeError",
    # Logging
    "configure_logging",
    "get_logger",
    "get_run_id",
    "run_context",
]
