"""Nx workspaces: one Jest project per workspace project with a Jest builder."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog

from jestexplorer.projects.base import RepoParser, repo_parser_registry
from jestexplorer.projects.helpers import read_json
from jestexplorer.projects.models import ProjectConfig

logger = structlog.get_logger()

JEST_BUILDERS: frozenset[str] = frozenset({"@nrwl/jest:jest", "@nx/jest:jest"})


class NxdevBase(RepoParser):
    """Reads projects from an Nx workspace file next to nx.json."""

    config_file_name: str

    async def is_match(self) -> bool:
        root = Path(self.workspace_root)
        return (root / self.config_file_name).is_file() and (root / "nx.json").is_file()

    async def get_projects(self) -> list[ProjectConfig]:
        config_path = Path(self.workspace_root) / self.config_file_name
        data = read_json(config_path)
        projects = data.get("projects") if data else None
        if not isinstance(projects, dict):
            logger.warning("nx_projects_missing", path=str(config_path))
            return []

        result: list[ProjectConfig] = []
        for name, project in projects.items():
            options = _jest_options(project)
            if options is None:
                continue
            result.append(self._to_project_config(name, options))
        return result

    def _resolve(self, relative: str | None) -> str | None:
        if not relative:
            return None
        return os.path.normpath(os.path.join(self.workspace_root, relative))

    def _to_project_config(self, name: str, options: dict[str, Any]) -> ProjectConfig:
        jest_config = options["jestConfig"]
        jest_command, execution_directory = self.jest_command_and_directory()
        return ProjectConfig(
            project_name=name,
            # The project root is taken to be the Jest config's directory.
            root_path=os.path.normpath(os.path.join(self.workspace_root, os.path.dirname(jest_config))),
            jest_command=jest_command,
            jest_execution_directory=execution_directory,
            jest_config=self._resolve(jest_config),
            setup_file=self._resolve(options.get("setupFile")),
            ts_config=self._resolve(options.get("tsConfig")),
        )


def _jest_options(project: Any) -> dict[str, Any] | None:
    """The test target options of a project built by Jest, else None."""
    if not isinstance(project, dict):
        return None
    targets = project.get("architect") or project.get("targets")
    if not isinstance(targets, dict):
        return None
    test = targets.get("test")
    if not isinstance(test, dict):
        return None
    builder = test.get("builder") or test.get("executor")
    options = test.get("options")
    if builder not in JEST_BUILDERS or not isinstance(options, dict):
        return None
    if not isinstance(options.get("jestConfig"), str):
        return None
    return options


@repo_parser_registry.register
class NxdevAngular(NxdevBase):
    type = "Nx.dev Angular"
    priority = 10
    config_file_name = "angular.json"


@repo_parser_registry.register
class NxdevReact(NxdevBase):
    type = "Nx.dev React"
    priority = 20
    config_file_name = "workspace.json"
