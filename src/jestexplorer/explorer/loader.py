"""Per-project test loading and incremental updates.

A TestLoader owns the tree of one project. The full tree is built by a
complete parse of the project root; afterwards file changes are applied one
file at a time with the tree editor and announced on ``environment_change``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from enum import Enum

import structlog

from jestexplorer.core.errors import TreeError
from jestexplorer.core.events import EventEmitter
from jestexplorer.daemon.watcher import FileChange, FileChangeKind
from jestexplorer.explorer.events import (
    ApplicationChangedEvent,
    EnvironmentChangedEvent,
    ProjectTestsChangedEvent,
    ProjectTestState,
)
from jestexplorer.projects.models import ProjectConfig
from jestexplorer.testing.matcher import classify_file
from jestexplorer.testing.models import ParseOutcome
from jestexplorer.testing.parser import BlockParser, TestParser
from jestexplorer.testing.settings import JestSettings
from jestexplorer.testing.treesitter import TreeSitterBlockParser
from jestexplorer.tree.builder import build_project_tree
from jestexplorer.tree.editor import delete_file, insert_file
from jestexplorer.tree.ids import path_id
from jestexplorer.tree.nodes import ProjectRootNode

logger = structlog.get_logger()


class LoaderState(Enum):
    """Test loader state."""

    IDLE = "idle"
    LOADING = "loading"


class TestLoader:
    """Load and maintain the test tree of one project."""

    def __init__(
        self,
        project: ProjectConfig,
        settings: JestSettings,
        block_parser: BlockParser | None = None,
    ) -> None:
        self.project = project
        self.settings = settings
        self.environment_change: EventEmitter[EnvironmentChangedEvent] = EventEmitter(
            f"{project.project_name}.environment_change"
        )
        self._parser = TestParser(project.root_path, settings, block_parser or TreeSitterBlockParser())
        self._state = LoaderState.IDLE
        self._tree: ProjectRootNode | None = None
        self._test_files: set[str] = set()
        self._load_task: asyncio.Task[ProjectTestState] | None = None
        # Bumped by every completed full load
        self._generation = 0

    @property
    def state(self) -> LoaderState:
        return self._state

    @property
    def parser(self) -> TestParser:
        return self._parser

    async def get_test_state(self, force_reload: bool = False) -> ProjectTestState:
        """Return the project's tree, loading it first if needed.

        Concurrent callers share a single in-flight load, so two overlapping
        force reloads parse the project once.
        """
        if self._load_task is None:
            if self._tree is not None and not force_reload:
                return self._current_state()
            self._load_task = asyncio.create_task(self._load())
        return await asyncio.shield(self._load_task)

    async def _load(self) -> ProjectTestState:
        self._state = LoaderState.LOADING
        try:
            outcomes = await self._parser.parse_all()
            self._tree = build_project_tree(self.project, outcomes)
            self._test_files = {o.file for o in outcomes}
            self._generation += 1
            logger.info(
                "tests_loaded",
                project=self.project.project_name,
                test_files=len(self._test_files),
            )
            return self._current_state()
        finally:
            self._state = LoaderState.IDLE
            self._load_task = None

    def _current_state(self) -> ProjectTestState:
        assert self._tree is not None
        return ProjectTestState(test_files=tuple(sorted(self._test_files)), suite=self._tree)

    async def handle_file_changes(self, changes: Iterable[FileChange]) -> None:
        """Apply a batch of file changes to the tree and announce the result."""
        if self._tree is None:
            logger.debug("file_changes_before_load", project=self.project.project_name)
            return

        # Last change per path wins.
        latest: dict[str, FileChangeKind] = {}
        for change in changes:
            latest.pop(change.path, None)
            latest[change.path] = change.kind

        test_changes: dict[str, FileChangeKind] = {}
        app_changed = False
        extra_config_files = (self.project.jest_config, self.project.setup_file, self.project.ts_config)
        for path, kind in latest.items():
            file_type = classify_file(
                path,
                self.project.root_path,
                self._parser.matcher,
                extra_config_files=extra_config_files,
            )
            if file_type == "Test":
                test_changes[path] = kind
            elif file_type == "App":
                app_changed = True
            elif file_type == "Config":
                logger.info("config_change_ignored", project=self.project.project_name, file=path)

        if test_changes:
            event = await self._apply_test_changes(test_changes)
            if event is not None:
                self.environment_change.fire(event)

        if app_changed:
            logger.debug("application_files_changed", project=self.project.project_name)
            self.environment_change.fire(ApplicationChangedEvent())

    async def _apply_test_changes(
        self, changes: dict[str, FileChangeKind]
    ) -> ProjectTestsChangedEvent | None:
        if self._load_task is not None:
            # Edits never race a full load; wait for it, failures included.
            await asyncio.wait({self._load_task})
        generation = self._generation

        parsed: dict[str, list[ParseOutcome]] = {}
        for path, kind in changes.items():
            if kind != "deleted":
                parsed[path] = await self._parser.parse_files([path])

        if self._generation != generation:
            # A full load finished while parsing and already read these files.
            logger.info(
                "file_changes_superseded_by_reload",
                project=self.project.project_name,
                files=len(changes),
            )
            return None

        # No awaits from here on: the edits apply to the current tree.
        assert self._tree is not None
        tree = self._tree
        added: list[str] = []
        modified: list[str] = []
        removed: list[str] = []

        for path, kind in changes.items():
            if kind == "deleted":
                tree = delete_file(tree, path)
                if path in self._test_files:
                    self._test_files.discard(path)
                    removed.append(path)
                continue

            for outcome in parsed[path]:
                try:
                    tree = insert_file(tree, outcome)
                except TreeError as e:
                    logger.error("file_outside_project_root", file=outcome.file, error=str(e))
                    continue
                if outcome.file in self._test_files:
                    modified.append(outcome.file)
                else:
                    self._test_files.add(outcome.file)
                    added.append(outcome.file)

        if not (added or modified or removed):
            return None

        self._tree = tree
        logger.info(
            "test_files_changed",
            project=self.project.project_name,
            added=len(added),
            modified=len(modified),
            removed=len(removed),
        )
        return ProjectTestsChangedEvent(
            test_files=tuple(sorted(self._test_files)),
            added_test_files=tuple(added),
            modified_test_files=tuple(modified),
            removed_test_files=tuple(removed),
            updated_suite=tree,
            invalidated_test_ids=tuple(
                path_id(tree.id, f) for f in (*added, *modified, *removed)
            ),
        )

    def dispose(self) -> None:
        self.environment_change.dispose()
