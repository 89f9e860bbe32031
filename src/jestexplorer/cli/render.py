"""Rich renderings of suites and run results."""

from __future__ import annotations

import os

from rich.markup import escape
from rich.tree import Tree

from jestexplorer.core.progress import pluralize, style_prefix
from jestexplorer.explorer.events import TestEvent, TestState
from jestexplorer.explorer.projection import TestInfo, TestSuiteInfo
from jestexplorer.tree.ids import decode_id

_STATE_STYLES: dict[TestState, str] = {
    "passed": "success",
    "failed": "error",
    "errored": "error",
    "skipped": "skipped",
}


def build_suite_tree(suite: TestSuiteInfo) -> Tree:
    tree = Tree(f"[bold]{escape(suite.label)}[/bold]")
    _add_children(tree, suite)
    return tree


def _add_children(branch: Tree, suite: TestSuiteInfo) -> None:
    for child in suite.children:
        if isinstance(child, TestInfo):
            branch.add(escape(child.label))
            continue
        if child.errored:
            branch.add(f"[red]{escape(child.label)}[/red] [dim]({escape(child.message or 'error')})[/dim]")
            continue
        _add_children(branch.add(f"[cyan]{escape(child.label)}[/cyan]"), child)


def count_tests(suite: TestSuiteInfo) -> int:
    return sum(1 if isinstance(c, TestInfo) else count_tests(c) for c in suite.children)


def describe_test_id(test_id: str, workspace_root: str) -> str:
    """Human-readable "file › describe › test" form of a test id."""
    decoded = decode_id(test_id)
    if decoded.file_name is None:
        return decoded.project_id
    parts = [os.path.relpath(decoded.file_name, workspace_root)]
    parts.extend(decoded.describe_ids or ())
    if decoded.test_id is not None:
        parts.append(decoded.test_id)
    return " › ".join(parts)


def format_test_result(event: TestEvent, workspace_root: str) -> str:
    prefix = style_prefix(_STATE_STYLES.get(event.state, "info"))
    return f"{prefix}{escape(describe_test_id(event.test_id, workspace_root))}"


def format_summary(counts: dict[str, int]) -> str:
    parts = [pluralize(counts.get("passed", 0), "test") + " passed"]
    for state in ("failed", "errored", "skipped"):
        if counts.get(state):
            parts.append(f"{counts[state]} {state}")
    return ", ".join(parts)
