"""Turn a Jest run into the progress events a test UI consumes.

Reporting happens in two steps. map_jest_test_results_to_test_events builds
one TestEvent per reported assertion. emit_test_complete_root_node then walks
the (filtered, runtime-merged) tree depth first and replays those events
wrapped in running/completed suite events, so the UI sees a consistent
nesting even though Jest reports results per file.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from jestexplorer.config.constants import DESCRIBE_ID_SEPARATOR, TEST_ID_SEPARATOR
from jestexplorer.explorer.events import (
    TestDecoration,
    TestEvent,
    TestRunEvent,
    TestSuiteEvent,
    map_assertion_status,
)
from jestexplorer.explorer.projection import map_describe_block_to_test_suite, map_test_to_test_info
from jestexplorer.testing.models import JestAssertionResult, JestFileResult, TestAssertionStatus
from jestexplorer.testing.reconciler import strip_ansi
from jestexplorer.testing.runner import JestResponse
from jestexplorer.tree.ids import lower_case_drive_letter, path_id, same_path
from jestexplorer.tree.nodes import (
    DescribeNode,
    FileLikeNode,
    FileNode,
    FileWithParseErrorNode,
    FolderNode,
    ProjectRootNode,
    TestNode,
    WorkspaceRootNode,
    iter_file_nodes,
    iter_test_nodes,
)

UNKNOWN_MESSAGE = "UNKNOWN"

Emit = Callable[[TestRunEvent], None]


# =============================================================================
# Results -> Events
# =============================================================================


def map_assertion_result_to_test_id(
    assertion: JestAssertionResult,
    file_name: str,
    project_id: str,
) -> str:
    """Rebuild the tree id of a reported assertion from its file and titles."""
    test_id = path_id(project_id, file_name)
    for title in assertion.ancestor_titles:
        test_id += DESCRIBE_ID_SEPARATOR + title
    return test_id + TEST_ID_SEPARATOR + assertion.title


def _first_line(text: str) -> str:
    return text.split("\n", 1)[0]


def get_hover_message(assertion: TestAssertionStatus) -> str:
    """Prefer the short message, then the terse one, then the full message."""
    return assertion.short_message or assertion.terse_message or assertion.message or UNKNOWN_MESSAGE


def get_decoration_message(assertion: TestAssertionStatus) -> str:
    """Prefer the terse message, then the first line of the short or full message."""
    if assertion.terse_message:
        return assertion.terse_message
    if assertion.short_message:
        return _first_line(assertion.short_message)
    if assertion.message:
        return _first_line(assertion.message)
    return UNKNOWN_MESSAGE


def map_jest_assertion_to_test_decorations(
    assertion: JestAssertionResult,
    assertions: Sequence[TestAssertionStatus] | None,
) -> tuple[TestDecoration, ...]:
    """Decorations for one assertion, given the reconciled statuses of its file.

    Only failed assertions are decorated.
    """
    if not assertions:
        return ()
    matching = next(
        (
            a
            for a in assertions
            if a.title == assertion.title and a.ancestor_titles == assertion.ancestor_titles
        ),
        None,
    ) or next((a for a in assertions if a.title == assertion.title), None)
    if matching is None or matching.status != "failed" or not matching.line:
        return ()
    return (
        TestDecoration(
            line=matching.line - 1,
            message=get_decoration_message(matching),
            hover=get_hover_message(matching),
        ),
    )


def map_jest_test_results_to_test_events(
    response: JestResponse,
    tree: ProjectRootNode,
) -> list[TestEvent]:
    events: list[TestEvent] = []
    for file_result in response.results.test_results:
        # A file that failed without reporting assertions did not run at all
        # (syntax error, failing import...).
        if file_result.status == "passed" or file_result.assertion_results:
            events.extend(_assertion_events(response, file_result, tree.id))
        else:
            events.extend(_file_error_events(file_result, tree))
    return events


def _assertion_events(response: JestResponse, file_result: JestFileResult, project_id: str) -> list[TestEvent]:
    statuses = response.reconciler.assertions_for_test_file(file_result.name)
    return [
        TestEvent(
            test=map_assertion_result_to_test_id(assertion, file_result.name, project_id),
            state=map_assertion_status(assertion.status),
            message="\n".join(strip_ansi(m) for m in assertion.failure_messages) or None,
            decorations=map_jest_assertion_to_test_decorations(assertion, statuses),
        )
        for assertion in file_result.assertion_results
    ]


def _file_error_events(file_result: JestFileResult, tree: ProjectRootNode) -> list[TestEvent]:
    file_name = lower_case_drive_letter(file_result.name)
    node = next((f for f in iter_file_nodes(tree) if same_path(f.file, file_name)), None)
    if not isinstance(node, FileNode):
        return []

    message = strip_ansi(file_result.message)
    return [
        TestEvent(
            test=test.id,
            state="errored",
            message=message,
            decorations=(
                (TestDecoration(line=test.line, message=_first_line(message), hover=message),)
                if test.line is not None
                else ()
            ),
        )
        for test in iter_test_nodes(node)
    ]


# =============================================================================
# Tree Walk
# =============================================================================


def emit_test_complete_root_node(
    root: WorkspaceRootNode | ProjectRootNode,
    events: Sequence[TestEvent],
    emit: Emit,
) -> None:
    """Replay test events in tree order, wrapped in suite progress events.

    Tests without an event are skipped. Runtime-discovered describes and tests
    are announced with full records so the UI can add them.
    """
    by_id: dict[str, TestEvent] = {}
    for event in events:
        by_id.setdefault(event.test_id, event)

    if isinstance(root, WorkspaceRootNode):
        emit(TestSuiteEvent(suite=root.id, state="running"))
        for project in root.projects:
            _emit_container(project, by_id, emit)
        emit(TestSuiteEvent(suite=root.id, state="completed"))
    else:
        _emit_container(root, by_id, emit)


def _emit_container(container: ProjectRootNode | FolderNode, by_id: dict[str, TestEvent], emit: Emit) -> None:
    emit(TestSuiteEvent(suite=container.id, state="running"))
    for file in container.files:
        _emit_file(file, by_id, emit)
    for folder in container.folders:
        _emit_container(folder, by_id, emit)
    emit(TestSuiteEvent(suite=container.id, state="completed"))


def _emit_file(file: FileLikeNode, by_id: dict[str, TestEvent], emit: Emit) -> None:
    emit(TestSuiteEvent(suite=file.id, state="running"))
    if not isinstance(file, FileWithParseErrorNode):
        for test in file.tests:
            _emit_test(test, by_id, emit)
        for describe in file.describe_blocks:
            _emit_describe(describe, by_id, emit)
    emit(TestSuiteEvent(suite=file.id, state="completed"))


def _emit_describe(describe: DescribeNode, by_id: dict[str, TestEvent], emit: Emit) -> None:
    suite = map_describe_block_to_test_suite(describe) if describe.runtime_discovered else describe.id
    emit(TestSuiteEvent(suite=suite, state="running"))
    for test in describe.tests:
        _emit_test(test, by_id, emit)
    for child in describe.describe_blocks:
        _emit_describe(child, by_id, emit)
    emit(TestSuiteEvent(suite=describe.id, state="completed"))


def _emit_test(test: TestNode, by_id: dict[str, TestEvent], emit: Emit) -> None:
    event = by_id.get(test.id)
    if event is None:
        return
    emit(TestEvent(test=map_test_to_test_info(test) if test.runtime_discovered else test.id, state="running"))
    emit(event)
