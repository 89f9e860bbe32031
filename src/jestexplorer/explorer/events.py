"""Events published by the explorer.

Three families:

- Host events: what a test UI consumes (load progress, run progress, per-test
  results, retirement of stale results).
- Environment events: a single project's files changed on disk.
- Projects-changed events: the workspace tree changed as a whole.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from jestexplorer.config.constants import ROOT_ID
from jestexplorer.explorer.projection import TestInfo, TestSuiteInfo
from jestexplorer.tree.nodes import ProjectRootNode, WorkspaceRootNode

TestState = Literal["running", "completed", "passed", "failed", "skipped", "errored"]

# Jest reports more assertion statuses than a test UI distinguishes.
_ASSERTION_STATES: dict[str, TestState] = {
    "passed": "passed",
    "failed": "failed",
    "pending": "skipped",
    "skipped": "skipped",
    "todo": "skipped",
    "disabled": "skipped",
}


def map_assertion_status(status: str) -> TestState:
    return _ASSERTION_STATES.get(status, "errored")


# =============================================================================
# Host Events
# =============================================================================


@dataclass(frozen=True, slots=True)
class TestDecoration:
    """A message pinned to a source line. ``line`` is 0-based."""

    line: int
    message: str
    hover: str | None = None


@dataclass(frozen=True, slots=True)
class TestLoadStartedEvent:
    type: Literal["started"] = field(default="started", init=False)


@dataclass(frozen=True, slots=True)
class TestLoadFinishedEvent:
    """Load result. ``suite`` is None when there is nothing to show."""

    suite: TestSuiteInfo | None = None
    error_message: str | None = None
    type: Literal["finished"] = field(default="finished", init=False)


@dataclass(frozen=True, slots=True)
class TestRunStartedEvent:
    tests: tuple[str, ...]
    type: Literal["started"] = field(default="started", init=False)


@dataclass(frozen=True, slots=True)
class TestRunFinishedEvent:
    type: Literal["finished"] = field(default="finished", init=False)


@dataclass(frozen=True, slots=True)
class TestSuiteEvent:
    """Suite progress. A full record is sent for suites the UI has not seen yet."""

    suite: str | TestSuiteInfo
    state: Literal["running", "completed", "errored"]
    message: str | None = None
    type: Literal["suite"] = field(default="suite", init=False)


@dataclass(frozen=True, slots=True)
class TestEvent:
    """Test progress. A full record is sent for tests the UI has not seen yet."""

    test: str | TestInfo
    state: TestState
    message: str | None = None
    decorations: tuple[TestDecoration, ...] = ()
    type: Literal["test"] = field(default="test", init=False)

    @property
    def test_id(self) -> str:
        return self.test if isinstance(self.test, str) else self.test.id


@dataclass(frozen=True, slots=True)
class RetireEvent:
    """Previous results are stale. ``tests`` of None retires everything."""

    tests: tuple[str, ...] | None = None


TestLoadEvent: TypeAlias = TestLoadStartedEvent | TestLoadFinishedEvent
TestRunEvent: TypeAlias = TestRunStartedEvent | TestRunFinishedEvent | TestSuiteEvent | TestEvent


# =============================================================================
# Environment Events
# =============================================================================


@dataclass(frozen=True, slots=True)
class ProjectTestsChangedEvent:
    """Test files of one project were added, modified or removed."""

    test_files: tuple[str, ...]
    added_test_files: tuple[str, ...]
    modified_test_files: tuple[str, ...]
    removed_test_files: tuple[str, ...]
    updated_suite: ProjectRootNode
    invalidated_test_ids: tuple[str, ...]
    type: Literal["Test"] = field(default="Test", init=False)


@dataclass(frozen=True, slots=True)
class ApplicationChangedEvent:
    """Application code changed; every result of the project may be stale."""

    invalidated_test_ids: tuple[str, ...] = (ROOT_ID,)
    type: Literal["App"] = field(default="App", init=False)


EnvironmentChangedEvent: TypeAlias = ProjectTestsChangedEvent | ApplicationChangedEvent


@dataclass(frozen=True, slots=True)
class ProjectTestState:
    test_files: tuple[str, ...]
    suite: ProjectRootNode


@dataclass(frozen=True, slots=True)
class WorkspaceTestState:
    suite: WorkspaceRootNode


# =============================================================================
# Projects-Changed Events
# =============================================================================


@dataclass(frozen=True, slots=True)
class ProjectAddedEvent:
    suite: WorkspaceRootNode
    added_project: ProjectRootNode
    type: Literal["projectAdded"] = field(default="projectAdded", init=False)


@dataclass(frozen=True, slots=True)
class ProjectRemovedEvent:
    suite: WorkspaceRootNode
    type: Literal["projectRemoved"] = field(default="projectRemoved", init=False)


@dataclass(frozen=True, slots=True)
class ProjectAppUpdatedEvent:
    suite: WorkspaceRootNode
    invalidated_test_ids: tuple[str, ...]
    type: Literal["projectAppUpdated"] = field(default="projectAppUpdated", init=False)


@dataclass(frozen=True, slots=True)
class ProjectTestsUpdatedEvent:
    suite: WorkspaceRootNode
    test_event: ProjectTestsChangedEvent
    type: Literal["projectTestsUpdated"] = field(default="projectTestsUpdated", init=False)


ProjectsChangedEvent: TypeAlias = (
    ProjectAddedEvent | ProjectRemovedEvent | ProjectAppUpdatedEvent | ProjectTestsUpdatedEvent
)
