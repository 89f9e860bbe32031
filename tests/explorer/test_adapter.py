"""Tests for the test adapter facade."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from conftest import FakeBlockParser, write_file, write_jest_package

from jestexplorer.core.errors import RunError
from jestexplorer.explorer.adapter import JestTestAdapter
from jestexplorer.explorer.events import (
    ProjectAppUpdatedEvent,
    ProjectTestsChangedEvent,
    ProjectTestsUpdatedEvent,
    RetireEvent,
    TestEvent,
    TestLoadEvent,
    TestLoadFinishedEvent,
    TestLoadStartedEvent,
    TestRunEvent,
    TestRunFinishedEvent,
    TestRunStartedEvent,
)
from jestexplorer.explorer.manager import ProjectManager
from jestexplorer.testing.models import JestTotalResults, TestFilter
from jestexplorer.testing.reconciler import TestReconciler
from jestexplorer.testing.runner import JestResponse, JestRunner
from jestexplorer.tree.nodes import iter_file_nodes, iter_test_nodes

pytestmark = pytest.mark.usefixtures("default_jest_settings")


@pytest.fixture
def shop_root(tmp_path: Path) -> Path:
    root = tmp_path / "shop"
    write_jest_package(root, "shop")
    write_file(root / "src" / "cart.test.js")
    return root


@pytest.fixture
def adapter(shop_root: Path) -> JestTestAdapter:
    return JestTestAdapter(str(shop_root), block_parser=FakeBlockParser())


@pytest.fixture
def run_events(adapter: JestTestAdapter) -> list[TestRunEvent]:
    received: list[TestRunEvent] = []
    adapter.test_states.listen(received.append)
    return received


class FakeJest:
    """Stands in for JestRunner.run and records the filters it was given."""

    def __init__(self, shop_root: Path) -> None:
        self.cart = str(shop_root / "src" / "cart.test.js")
        self.filters: list[TestFilter | None] = []
        self.error: RunError | None = None

    async def run(self, runner: JestRunner, test_filter: TestFilter | None = None) -> JestResponse:
        self.filters.append(test_filter)
        if self.error is not None:
            raise self.error
        results = JestTotalResults.from_dict(
            {
                "success": True,
                "testResults": [
                    {
                        "name": self.cart,
                        "status": "passed",
                        "assertionResults": [
                            {"title": "works", "status": "passed", "ancestorTitles": ["suite"]}
                        ],
                    }
                ],
            }
        )
        return JestResponse(results=results, reconciler=TestReconciler(results))


@pytest.fixture
def fake_jest(monkeypatch: pytest.MonkeyPatch, shop_root: Path) -> FakeJest:
    fake = FakeJest(shop_root)

    async def run(self: JestRunner, test_filter: TestFilter | None = None) -> JestResponse:
        return await fake.run(self, test_filter)

    monkeypatch.setattr(JestRunner, "run", run)
    return fake


def works_id(adapter: JestTestAdapter) -> str:
    (project,) = adapter.project_manager.workspace.projects
    (file,) = iter_file_nodes(project)
    (test,) = iter_test_nodes(file)
    return test.id


class TestLoad:
    """Loading publishes the projected suite."""

    @pytest.mark.asyncio
    async def test_load_fires_started_and_finished(self, adapter: JestTestAdapter) -> None:
        events: list[TestLoadEvent] = []
        adapter.tests.listen(events.append)

        suite = await adapter.load()

        assert suite is not None
        assert suite.label == "shop"
        started, finished = events
        assert isinstance(started, TestLoadStartedEvent)
        assert isinstance(finished, TestLoadFinishedEvent)
        assert finished.suite == suite
        assert finished.error_message is None

    @pytest.mark.asyncio
    async def test_load_failure_is_reported(
        self, adapter: JestTestAdapter, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        async def explode(self: ProjectManager) -> Any:
            raise OSError("disk gone")

        monkeypatch.setattr(ProjectManager, "get_test_state", explode)
        events: list[TestLoadEvent] = []
        adapter.tests.listen(events.append)

        assert await adapter.load() is None
        assert events[-1] == TestLoadFinishedEvent(error_message="disk gone")


class TestRun:
    """Runs are reported between started and finished events."""

    @pytest.mark.asyncio
    async def test_run_everything(
        self, adapter: JestTestAdapter, fake_jest: FakeJest, run_events: list[TestRunEvent]
    ) -> None:
        await adapter.load()

        await adapter.run(["root"])

        assert run_events[0] == TestRunStartedEvent(tests=("root",))
        assert isinstance(run_events[-1], TestRunFinishedEvent)
        assert fake_jest.filters == [None]
        results = [e for e in run_events if isinstance(e, TestEvent) and e.state != "running"]
        assert [(e.test_id, e.state) for e in results] == [(works_id(adapter), "passed")]

    @pytest.mark.asyncio
    async def test_run_loads_first_when_nothing_loaded(
        self, adapter: JestTestAdapter, fake_jest: FakeJest, run_events: list[TestRunEvent]
    ) -> None:
        await adapter.run(["root"])

        assert adapter.project_manager.workspace.projects
        assert len(fake_jest.filters) == 1

    @pytest.mark.asyncio
    async def test_given_single_test_when_run_then_filter_narrows_to_it(
        self, adapter: JestTestAdapter, fake_jest: FakeJest
    ) -> None:
        # Given
        await adapter.load()
        test_id = works_id(adapter)

        # When
        await adapter.run([test_id])

        # Then
        (test_filter,) = fake_jest.filters
        assert test_filter is not None
        assert test_filter.test_name_pattern == "suite works"
        assert test_filter.test_file_name_pattern is not None
        assert "cart" in test_filter.test_file_name_pattern

    @pytest.mark.asyncio
    async def test_failed_jest_still_finishes_run(
        self, adapter: JestTestAdapter, fake_jest: FakeJest, run_events: list[TestRunEvent]
    ) -> None:
        await adapter.load()
        fake_jest.error = RunError.failed(["jest"], "jest not installed")

        await adapter.run(["root"])

        assert isinstance(run_events[0], TestRunStartedEvent)
        assert isinstance(run_events[-1], TestRunFinishedEvent)
        assert not any(isinstance(e, TestEvent) for e in run_events)

    @pytest.mark.asyncio
    async def test_cancelled_run_still_finishes(
        self, adapter: JestTestAdapter, fake_jest: FakeJest, run_events: list[TestRunEvent]
    ) -> None:
        await adapter.load()
        fake_jest.error = RunError.cancelled()

        await adapter.run(["root"])

        assert len(run_events) == 2
        assert isinstance(run_events[-1], TestRunFinishedEvent)


class TestProjectsChanged:
    """Workspace changes become reloads and retirements."""

    @pytest.mark.asyncio
    async def test_app_change_retires_everything(self, adapter: JestTestAdapter) -> None:
        await adapter.load()
        retired: list[RetireEvent] = []
        adapter.retire.listen(retired.append)

        adapter.project_manager.projects_changed.fire(
            ProjectAppUpdatedEvent(suite=adapter.project_manager.workspace, invalidated_test_ids=("root",))
        )

        assert retired == [RetireEvent(tests=None)]

    @pytest.mark.asyncio
    async def test_given_test_change_when_published_then_tree_reloads_and_results_retire(
        self, adapter: JestTestAdapter
    ) -> None:
        # Given
        await adapter.load()
        loads: list[TestLoadEvent] = []
        retired: list[RetireEvent] = []
        adapter.tests.listen(loads.append)
        adapter.retire.listen(retired.append)
        workspace = adapter.project_manager.workspace
        changed = ProjectTestsChangedEvent(
            test_files=(),
            added_test_files=(),
            modified_test_files=("/x.test.js",),
            removed_test_files=(),
            updated_suite=workspace.projects[0],
            invalidated_test_ids=("shop::project::/x.test.js",),
        )

        # When
        adapter.project_manager.projects_changed.fire(ProjectTestsUpdatedEvent(suite=workspace, test_event=changed))

        # Then
        assert [type(e) for e in loads] == [TestLoadStartedEvent, TestLoadFinishedEvent]
        assert retired == [RetireEvent(tests=("shop::project::/x.test.js",))]


class TestDispose:
    @pytest.mark.asyncio
    async def test_dispose_closes_emitters(self, adapter: JestTestAdapter) -> None:
        await adapter.load()

        await adapter.dispose()

        assert adapter.tests.disposed
        assert adapter.test_states.disposed
        assert adapter.retire.disposed
        assert adapter.project_manager.projects_changed.disposed
        assert not adapter.is_watching
