"""Test adapter facade for one workspace folder.

JestTestAdapter is what a test UI talks to. It loads the workspace tree,
runs the requested tests project by project and reports progress on three
emitters:

- ``tests``: load started/finished, with the projected suite
- ``test_states``: run started, suite/test progress, run finished
- ``retire``: results that are stale after a file change

Optionally it watches the workspace and keeps the tree current.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import structlog

from jestexplorer.config.constants import ROOT_ID
from jestexplorer.config.models import JestExplorerConfig
from jestexplorer.core.errors import ErrorCode, RunError
from jestexplorer.core.events import EventEmitter, Subscription
from jestexplorer.daemon.watcher import ChangeDispatcher, FileWatcher
from jestexplorer.explorer.events import (
    ProjectAppUpdatedEvent,
    ProjectsChangedEvent,
    ProjectTestsUpdatedEvent,
    RetireEvent,
    TestLoadEvent,
    TestLoadFinishedEvent,
    TestLoadStartedEvent,
    TestRunEvent,
    TestRunFinishedEvent,
    TestRunStartedEvent,
)
from jestexplorer.explorer.manager import ProjectManager
from jestexplorer.explorer.projection import TestSuiteInfo, map_workspace_root_to_suite
from jestexplorer.explorer.reporting import emit_test_complete_root_node, map_jest_test_results_to_test_events
from jestexplorer.testing.filters import map_test_ids_to_test_filter
from jestexplorer.testing.parser import BlockParser
from jestexplorer.testing.runner import JestRunner
from jestexplorer.tree.filter import filter_tree
from jestexplorer.tree.ids import decode_id
from jestexplorer.tree.merge import merge_runtime_results
from jestexplorer.tree.nodes import ProjectRootNode, count_files

logger = structlog.get_logger()


class JestTestAdapter:
    """Load, run and watch the Jest tests of a workspace folder."""

    def __init__(
        self,
        workspace_root: str,
        config: JestExplorerConfig | None = None,
        block_parser: BlockParser | None = None,
    ) -> None:
        self.workspace_root = workspace_root
        self.config = config or JestExplorerConfig()
        self.tests: EventEmitter[TestLoadEvent] = EventEmitter("tests")
        self.test_states: EventEmitter[TestRunEvent] = EventEmitter("test_states")
        self.retire: EventEmitter[RetireEvent] = EventEmitter("retire")
        self.project_manager = ProjectManager(workspace_root, self.config, block_parser)
        self._subscriptions: list[Subscription] = [
            self.project_manager.projects_changed.listen(self._handle_projects_changed)
        ]
        self._runners: set[JestRunner] = set()
        self._watcher: FileWatcher | None = None
        self._dispatcher: ChangeDispatcher | None = None
        logger.info("jest_adapter_initialized", workspace_root=workspace_root)

    @property
    def is_watching(self) -> bool:
        return self._watcher is not None and self._watcher.is_running

    def _project_suite(self) -> TestSuiteInfo | None:
        return map_workspace_root_to_suite(
            self.project_manager.workspace,
            hide_empty_projects=self.config.explorer.hide_empty_projects,
        )

    # =========================================================================
    # Load
    # =========================================================================

    async def load(self) -> TestSuiteInfo | None:
        """Discover the workspace's tests and publish the projected suite."""
        logger.info("tests_load_started", workspace_root=self.workspace_root)
        self.tests.fire(TestLoadStartedEvent())
        try:
            await self.project_manager.get_test_state()
        except Exception as e:
            logger.exception("tests_load_failed", workspace_root=self.workspace_root)
            self.tests.fire(TestLoadFinishedEvent(error_message=str(e)))
            return None

        suite = self._project_suite()
        self.tests.fire(TestLoadFinishedEvent(suite=suite))
        return suite

    # =========================================================================
    # Run
    # =========================================================================

    async def run(self, test_ids: Sequence[str]) -> None:
        """Run the requested tests. ``["root"]`` runs everything."""
        tests = tuple(test_ids)
        logger.info("tests_run_requested", tests=list(tests))
        self.test_states.fire(TestRunStartedEvent(tests=tests))
        try:
            if not self.project_manager.workspace.projects:
                await self.project_manager.get_test_state()
            workspace = filter_tree(self.project_manager.workspace, tests)
            for project in workspace.projects:
                if count_files(project) == 0:
                    continue
                try:
                    await self._run_project(project, tests)
                except RunError as e:
                    if e.code == ErrorCode.RUN_CANCELLED:
                        raise
                    logger.error("jest_run_failed", project=project.id, error=str(e))
        except RunError as e:
            logger.info("tests_run_cancelled", error=str(e))
        finally:
            self.test_states.fire(TestRunFinishedEvent())

    async def _run_project(self, project: ProjectRootNode, test_ids: tuple[str, ...]) -> None:
        if ROOT_ID in test_ids:
            requested: list[str] = []
        else:
            requested = [t for t in test_ids if decode_id(t).project_id == project.id]

        runner = JestRunner(project.config, self.config.runner)
        self._runners.add(runner)
        try:
            response = await runner.run(map_test_ids_to_test_filter(requested))
        finally:
            self._runners.discard(runner)

        merged = merge_runtime_results(project, response.results.test_results)
        events = map_jest_test_results_to_test_events(response, merged)
        emit_test_complete_root_node(merged, events, self.test_states.fire)

    def cancel(self) -> None:
        """Kill every running Jest process. The pending run finishes without results."""
        if self._runners:
            logger.info("closing_jest_processes", runners=len(self._runners))
        for runner in list(self._runners):
            runner.close_all_active_processes()

    # =========================================================================
    # Watch
    # =========================================================================

    async def start_watching(self) -> None:
        """Keep the tree current as files change on disk."""
        if self._watcher is not None:
            return
        watcher_config = self.config.watcher
        self._dispatcher = ChangeDispatcher(self.project_manager.handle_file_changes)
        self._dispatcher.start()
        self._watcher = FileWatcher(
            root=Path(self.workspace_root),
            on_change=self._dispatcher.submit,
            poll_interval=watcher_config.poll_interval_sec,
            debounce_window=watcher_config.debounce_sec,
            max_debounce_wait=watcher_config.max_debounce_wait_sec,
        )
        await self._watcher.start()

    async def stop_watching(self) -> None:
        if self._watcher is not None:
            await self._watcher.stop()
            self._watcher = None
        if self._dispatcher is not None:
            await self._dispatcher.stop()
            self._dispatcher = None

    def _handle_projects_changed(self, event: ProjectsChangedEvent) -> None:
        if isinstance(event, ProjectAppUpdatedEvent):
            self._retire(event.invalidated_test_ids)
            return

        self.tests.fire(TestLoadStartedEvent())
        self.tests.fire(
            TestLoadFinishedEvent(
                suite=map_workspace_root_to_suite(
                    event.suite,
                    hide_empty_projects=self.config.explorer.hide_empty_projects,
                )
            )
        )
        if isinstance(event, ProjectTestsUpdatedEvent):
            self._retire(event.test_event.invalidated_test_ids)

    def _retire(self, test_ids: tuple[str, ...]) -> None:
        self.retire.fire(RetireEvent(tests=None if ROOT_ID in test_ids else test_ids))

    async def dispose(self) -> None:
        self.cancel()
        await self.stop_watching()
        for subscription in self._subscriptions:
            subscription.dispose()
        self._subscriptions = []
        self.project_manager.dispose()
        self.tests.dispose()
        self.test_states.dispose()
        self.retire.dispose()
