"""Create React App workspaces, where Jest runs through react-scripts."""

from __future__ import annotations

import structlog

from jestexplorer.projects.base import RepoParser, repo_parser_registry
from jestexplorer.projects.helpers import (
    get_jest_config_in_directory,
    get_project_name,
    get_ts_config,
    has_dependency,
    read_package_json,
)
from jestexplorer.projects.models import ProjectConfig

logger = structlog.get_logger()


@repo_parser_registry.register
class CreateReactAppParser(RepoParser):
    type = "Create React App"
    priority = 30

    async def is_match(self) -> bool:
        package_json = read_package_json(self.workspace_root)
        return package_json is not None and has_dependency(package_json, "react-scripts")

    async def get_projects(self) -> list[ProjectConfig]:
        package_json = read_package_json(self.workspace_root)
        if package_json is None:
            logger.info("package_json_missing", parser=self.type, workspace_root=self.workspace_root)
            return []

        scripts = package_json.get("scripts")
        if isinstance(scripts, dict) and scripts.get("test"):
            jest_command = "npm run test --"
        else:
            jest_command = "npx react-scripts test --"

        return [
            ProjectConfig(
                project_name=get_project_name(self.workspace_root),
                root_path=self.workspace_root,
                jest_command=jest_command,
                jest_execution_directory=self.workspace_root,
                jest_config=get_jest_config_in_directory(self.workspace_root),
                ts_config=get_ts_config(self.workspace_root),
            )
        ]
