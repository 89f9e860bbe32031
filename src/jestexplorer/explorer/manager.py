"""Workspace-level coordination of projects and their test loaders.

The ProjectManager picks the repo parser for the workspace, creates one
TestLoader per project and keeps the combined WorkspaceRootNode current as
projects come and go and as their files change. Every change to the
workspace tree is published on ``projects_changed``.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable
from dataclasses import replace

import structlog

from jestexplorer.config.models import JestExplorerConfig
from jestexplorer.core.events import EventEmitter, Subscription
from jestexplorer.daemon.watcher import FileChange
from jestexplorer.explorer.events import (
    ApplicationChangedEvent,
    EnvironmentChangedEvent,
    ProjectAddedEvent,
    ProjectAppUpdatedEvent,
    ProjectRemovedEvent,
    ProjectsChangedEvent,
    ProjectTestsChangedEvent,
    ProjectTestsUpdatedEvent,
    WorkspaceTestState,
)
from jestexplorer.explorer.loader import TestLoader
from jestexplorer.projects.base import RepoParser
from jestexplorer.projects.discovery import get_repo_parser
from jestexplorer.projects.helpers import path_to_jest
from jestexplorer.projects.models import ProjectChangeEvent, ProjectConfig
from jestexplorer.projects.standard import StandardParser
from jestexplorer.testing.parser import BlockParser
from jestexplorer.testing.settings import get_settings_or_default
from jestexplorer.tree.ids import same_path
from jestexplorer.tree.nodes import WorkspaceRootNode, count_files

logger = structlog.get_logger()


class ProjectManager:
    """Own the projects of one workspace folder."""

    def __init__(
        self,
        workspace_root: str,
        config: JestExplorerConfig | None = None,
        block_parser: BlockParser | None = None,
    ) -> None:
        self.workspace_root = workspace_root
        self.config = config or JestExplorerConfig()
        self.projects_changed: EventEmitter[ProjectsChangedEvent] = EventEmitter("projects_changed")
        self._block_parser = block_parser
        self._repo_parser: RepoParser | None = None
        self._loaders: list[TestLoader] = []
        self._subscriptions: list[Subscription] = []
        self._workspace = WorkspaceRootNode(label=self.label)
        self._init_task: asyncio.Task[None] | None = None
        self._initialised = False

    @property
    def label(self) -> str:
        return os.path.basename(os.path.normpath(self.workspace_root)) or self.workspace_root

    @property
    def repo_parser(self) -> RepoParser | None:
        return self._repo_parser

    @property
    def loaders(self) -> tuple[TestLoader, ...]:
        return tuple(self._loaders)

    @property
    def workspace(self) -> WorkspaceRootNode:
        """The most recent workspace tree."""
        return self._workspace

    async def get_test_state(self) -> WorkspaceTestState:
        """Reload every project and return the combined tree."""
        await self.ensure_initialised()
        if self._repo_parser is None:
            logger.info("no_repo_parser", workspace_root=self.workspace_root)
            return WorkspaceTestState(suite=self._workspace)

        states = await asyncio.gather(*(loader.get_test_state(force_reload=True) for loader in self._loaders))
        self._workspace = WorkspaceRootNode(
            label=self.label,
            projects=tuple(state.suite for state in states),
        )
        logger.info(
            "workspace_tests_loaded",
            workspace_root=self.workspace_root,
            projects=len(states),
            test_files=sum(count_files(p) for p in self._workspace.projects),
        )
        return WorkspaceTestState(suite=self._workspace)

    async def ensure_initialised(self) -> None:
        """Discover projects once. Concurrent callers share one discovery."""
        if self._initialised:
            return
        if self._init_task is None:
            self._init_task = asyncio.create_task(self._initialise())
        await asyncio.shield(self._init_task)

    async def _initialise(self) -> None:
        jest_path = path_to_jest(self.workspace_root, self.config.explorer.path_to_jest)
        try:
            parser = await get_repo_parser(self.workspace_root, jest_path)
            if parser is not None:
                self._repo_parser = parser
                self._subscriptions.append(parser.project_change.listen(self._handle_project_change))
                projects = await parser.get_projects()
                loaders = await asyncio.gather(*(self._create_test_loader(p) for p in projects))
                for loader in loaders:
                    self._register_test_loader(loader)
            self._initialised = True
        finally:
            self._init_task = None

    async def handle_file_changes(self, changes: Iterable[FileChange]) -> None:
        """Route a batch of file changes to every project."""
        batch = list(changes)
        for loader in list(self._loaders):
            await loader.handle_file_changes(batch)

    # =========================================================================
    # Loaders
    # =========================================================================

    def _apply_overrides(self, project: ProjectConfig) -> ProjectConfig:
        path_to_config = self.config.explorer.path_to_config
        if path_to_config and isinstance(self._repo_parser, StandardParser):
            return replace(project, jest_config=path_to_config)
        return project

    async def _create_test_loader(self, project: ProjectConfig) -> TestLoader:
        project = self._apply_overrides(project)
        settings = await get_settings_or_default(project, self.config.runner.settings_timeout_sec)
        if len(settings.configs) > 1:
            logger.info("multiple_jest_configs", project=project.project_name, count=len(settings.configs))
        elif len(settings.configs[0].test_regex) > 1:
            logger.info("multiple_test_regexes", project=project.project_name)
        return TestLoader(project, settings, self._block_parser)

    def _register_test_loader(self, loader: TestLoader) -> None:
        self._loaders.append(loader)
        self._subscriptions.append(loader.environment_change.listen(self._handle_environment_change))

    # =========================================================================
    # Event handlers
    # =========================================================================

    def _handle_environment_change(self, event: EnvironmentChangedEvent) -> None:
        if isinstance(event, ApplicationChangedEvent):
            # Only application code changed; the tree itself is unaffected.
            logger.info("application_changed", invalidated=list(event.invalidated_test_ids))
            self.projects_changed.fire(
                ProjectAppUpdatedEvent(
                    suite=self._workspace,
                    invalidated_test_ids=event.invalidated_test_ids,
                )
            )
        elif isinstance(event, ProjectTestsChangedEvent):
            updated = event.updated_suite
            self._workspace = replace(
                self._workspace,
                projects=tuple(updated if p.id == updated.id else p for p in self._workspace.projects),
            )
            logger.info(
                "project_tests_changed",
                project=updated.id,
                added=list(event.added_test_files),
                modified=list(event.modified_test_files),
                removed=list(event.removed_test_files),
            )
            self.projects_changed.fire(ProjectTestsUpdatedEvent(suite=self._workspace, test_event=event))

    async def _handle_project_change(self, event: ProjectChangeEvent) -> None:
        if event.kind == "added" and event.config is not None:
            loader = await self._create_test_loader(event.config)
            self._register_test_loader(loader)
            state = await loader.get_test_state()
            self._workspace = replace(
                self._workspace,
                projects=tuple(sorted((*self._workspace.projects, state.suite), key=lambda p: p.id)),
            )
            logger.info("project_added", project=state.suite.id, root_path=event.root_path)
            self.projects_changed.fire(ProjectAddedEvent(suite=self._workspace, added_project=state.suite))

        elif event.kind == "removed":
            for loader in [lo for lo in self._loaders if same_path(lo.project.root_path, event.root_path)]:
                self._loaders.remove(loader)
                loader.dispose()
            self._workspace = replace(
                self._workspace,
                projects=tuple(
                    p for p in self._workspace.projects if not same_path(p.config.root_path, event.root_path)
                ),
            )
            logger.info("project_removed", root_path=event.root_path)
            self.projects_changed.fire(ProjectRemovedEvent(suite=self._workspace))

    def dispose(self) -> None:
        for loader in self._loaders:
            loader.dispose()
        self._loaders = []
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []
        if self._repo_parser is not None:
            self._repo_parser.dispose()
        self.projects_changed.dispose()
