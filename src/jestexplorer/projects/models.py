"""Project discovery models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """How to find and run the Jest tests of one project in the workspace.

    Attributes:
        project_name: Display name, unique within the workspace.
        root_path: Absolute directory all of the project's test files live under.
        jest_command: Command line prefix used to launch Jest.
        jest_execution_directory: Working directory Jest is launched from.
        jest_config: Jest config file passed via --config, if any.
        setup_file: Jest setup file, if one was found.
        ts_config: tsconfig used by the project, if any.
    """

    project_name: str
    root_path: str
    jest_command: str
    jest_execution_directory: str
    jest_config: str | None = None
    setup_file: str | None = None
    ts_config: str | None = None


ProjectChangeKind = Literal["added", "removed"]


@dataclass(frozen=True, slots=True)
class ProjectChangeEvent:
    """A project appeared in or disappeared from the workspace."""

    kind: ProjectChangeKind
    root_path: str
    config: ProjectConfig | None = None

    @classmethod
    def added(cls, config: ProjectConfig) -> ProjectChangeEvent:
        return cls(kind="added", root_path=config.root_path, config=config)

    @classmethod
    def removed(cls, root_path: str) -> ProjectChangeEvent:
        return cls(kind="removed", root_path=root_path)
