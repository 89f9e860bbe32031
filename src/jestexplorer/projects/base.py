"""Repo parser base class and registry.

A repo parser recognizes one workspace layout (Nx, Create React App, plain
Jest...) and turns it into ProjectConfigs. Parsers are tried in priority
order and the first match owns the workspace.
"""

from __future__ import annotations

import abc
import os

from jestexplorer.core.events import EventEmitter
from jestexplorer.projects.models import ProjectChangeEvent, ProjectConfig

# =============================================================================
# Repo Parser Base Class
# =============================================================================


class RepoParser(abc.ABC):
    """Base class for workspace layout parsers.

    Each parser defines:
    - How to detect whether it owns a workspace
    - How to list the workspace's Jest projects

    The project_change emitter is owned by the parser and disposed with it.
    """

    type: str
    priority: int = 100
    """Lower values are tried first."""

    def __init__(self, workspace_root: str, path_to_jest: str) -> None:
        self.workspace_root = workspace_root
        self.path_to_jest = path_to_jest
        self.project_change: EventEmitter[ProjectChangeEvent] = EventEmitter(
            f"{self.type}.project_change"
        )

    @abc.abstractmethod
    async def is_match(self) -> bool:
        """Check if this parser understands the workspace."""

    @abc.abstractmethod
    async def get_projects(self) -> list[ProjectConfig]:
        """List the Jest projects of the workspace."""

    def jest_command_and_directory(self) -> tuple[str, str]:
        """Command prefix and working directory for a plain Jest install."""
        if self.path_to_jest == "jest":
            return "jest", self.workspace_root
        return os.path.relpath(self.path_to_jest, self.workspace_root), self.workspace_root

    def dispose(self) -> None:
        self.project_change.dispose()


# =============================================================================
# Repo Parser Registry
# =============================================================================


class RepoParserRegistry:
    """Registry of available repo parsers."""

    def __init__(self) -> None:
        self._parsers: list[type[RepoParser]] = []

    def register(self, parser_class: type[RepoParser]) -> type[RepoParser]:
        if parser_class not in self._parsers:
            self._parsers.append(parser_class)
        return parser_class

    def all(self) -> list[type[RepoParser]]:
        """Registered parsers, highest priority first."""
        return sorted(self._parsers, key=lambda p: p.priority)

    def create_all(self, workspace_root: str, path_to_jest: str) -> list[RepoParser]:
        return [p(workspace_root, path_to_jest) for p in self.all()]


# Global registry instance
repo_parser_registry = RepoParserRegistry()
