"""Plain Jest workspaces: a single project at the workspace root."""

from __future__ import annotations

from jestexplorer.projects.base import RepoParser, repo_parser_registry
from jestexplorer.projects.helpers import (
    get_jest_config_in_directory,
    get_jest_setup_file,
    get_project_name,
    get_ts_config,
    has_dependency,
    read_package_json,
)
from jestexplorer.projects.models import ProjectConfig


@repo_parser_registry.register
class StandardParser(RepoParser):
    """Matches a package.json that depends on Jest or sits beside a Jest config."""

    type = "default"

    async def is_match(self) -> bool:
        package_json = read_package_json(self.workspace_root)
        if package_json is None:
            return False
        if has_dependency(package_json, "jest"):
            return True
        return get_jest_config_in_directory(self.workspace_root) is not None

    async def get_projects(self) -> list[ProjectConfig]:
        jest_config = get_jest_config_in_directory(self.workspace_root)
        jest_command, execution_directory = self.jest_command_and_directory()
        return [
            ProjectConfig(
                project_name=get_project_name(self.workspace_root),
                root_path=self.workspace_root,
                jest_command=jest_command,
                jest_execution_directory=execution_directory,
                jest_config=jest_config,
                setup_file=get_jest_setup_file(jest_config),
                ts_config=get_ts_config(self.workspace_root),
            )
        ]
