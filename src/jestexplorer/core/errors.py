"""Jest explorer error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Tree
- 4xxx: Discovery
- 7xxx: Run
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Tree (3xxx)
    TREE_FILE_OUTSIDE_ROOT = 3001

    # Discovery (4xxx)
    DISCOVERY_SETTINGS_FAILED = 4001

    # Run (7xxx)
    RUN_FAILED = 7001
    RUN_CANCELLED = 7002
    RUN_OUTPUT_MISSING = 7003
    RUN_TIMEOUT = 7004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class JestExplorerError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'RUN_CANCELLED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(JestExplorerError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class TreeError(JestExplorerError):
    """Errors raised while building or editing the test tree."""

    @classmethod
    def file_outside_root(cls, file: str, root_path: str) -> "TreeError":
        return cls(
            code=ErrorCode.TREE_FILE_OUTSIDE_ROOT,
            message=f"File {file} is not under project root {root_path}",
            details={"file": file, "root_path": root_path},
        )


class DiscoveryError(JestExplorerError):
    """Project and Jest settings discovery errors."""

    @classmethod
    def settings_failed(cls, root_path: str, reason: str) -> "DiscoveryError":
        return cls(
            code=ErrorCode.DISCOVERY_SETTINGS_FAILED,
            message=f"Could not read Jest settings for {root_path}: {reason}",
            retryable=True,
            details={"root_path": root_path, "reason": reason},
        )


class RunError(JestExplorerError):
    """Errors from invoking the Jest runner."""

    @classmethod
    def failed(cls, command: list[str], reason: str) -> "RunError":
        return cls(
            code=ErrorCode.RUN_FAILED,
            message=f"Jest run failed: {reason}",
            retryable=True,
            details={"command": command, "reason": reason},
        )

    @classmethod
    def cancelled(cls) -> "RunError":
        return cls(
            code=ErrorCode.RUN_CANCELLED,
            message="Jest run was cancelled",
        )

    @classmethod
    def output_missing(cls, output_path: str, reason: str) -> "RunError":
        return cls(
            code=ErrorCode.RUN_OUTPUT_MISSING,
            message=f"Jest produced no usable results at {output_path}: {reason}",
            details={"output_path": output_path, "reason": reason},
        )

    @classmethod
    def timeout(cls, timeout_sec: float) -> "RunError":
        return cls(
            code=ErrorCode.RUN_TIMEOUT,
            message=f"Jest run exceeded {timeout_sec}s",
            retryable=True,
            details={"timeout_sec": timeout_sec},
        )


class InternalError(JestExplorerError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
