"""Overlay runtime-discovered tests onto a statically parsed tree.

Static parsing cannot see dynamically named tests (``test.each`` tables,
names built from variables). After a run, every assertion Jest reported is
walked down its ancestor titles; missing describes and tests are appended
and tagged ``runtime_discovered``. Existing nodes are never removed or
duplicated, and merging the same results twice is a no-op.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import TypeVar

import structlog

from jestexplorer.testing.models import JestFileResult
from jestexplorer.tree.ids import child_describe_id, child_test_id, same_path
from jestexplorer.tree.nodes import (
    DescribeNode,
    FileLikeNode,
    FileNode,
    FileWithParseErrorNode,
    FolderNode,
    ProjectRootNode,
    TestNode,
)

logger = structlog.get_logger()

C = TypeVar("C", ProjectRootNode, FolderNode)
B = TypeVar("B", FileNode, DescribeNode)


def merge_runtime_results(
    project: ProjectRootNode,
    file_results: Iterable[JestFileResult],
) -> ProjectRootNode:
    """Ensure every reported assertion has a node in the project tree.

    Results for files that are not in the tree are ignored.
    """
    for result in file_results:
        if not result.assertion_results:
            continue
        project = _map_file(project, result)
    return project


def _map_file(container: C, result: JestFileResult) -> C:
    files = tuple(
        _merge_file(f, result) if same_path(f.file, result.name) else f for f in container.files
    )
    folders = tuple(_map_file(f, result) for f in container.folders)
    if all(a is b for a, b in zip(files, container.files, strict=True)) and all(
        a is b for a, b in zip(folders, container.folders, strict=True)
    ):
        return container
    return replace(container, folders=folders, files=files)


def _merge_file(node: FileLikeNode, result: JestFileResult) -> FileLikeNode:
    target: FileNode
    if isinstance(node, FileWithParseErrorNode):
        # Jest ran the file even though the block parser could not read it.
        target = FileNode(id=node.id, label=node.label, file=node.file, line=node.line)
    else:
        target = node

    merged = target
    for assertion in result.assertion_results:
        merged = _merge_assertion(merged, list(assertion.ancestor_titles), assertion.title)

    if merged is target:
        return node
    if isinstance(node, FileWithParseErrorNode):
        logger.info("parse_error_file_populated_from_run", file=node.file)
    return merged


def _merge_assertion(container: B, ancestor_titles: list[str], title: str) -> B:
    if ancestor_titles:
        name = ancestor_titles[0]
        existing = next((d for d in container.describe_blocks if d.label == name), None)
        describe = existing or DescribeNode(
            id=child_describe_id(container.id, name),
            label=name,
            file=container.file,
            line=None,
            runtime_discovered=True,
        )
        updated = _merge_assertion(describe, ancestor_titles[1:], title)
        if updated is existing:
            return container
        if existing is None:
            describe_blocks = (*container.describe_blocks, updated)
        else:
            describe_blocks = tuple(
                updated if d is existing else d for d in container.describe_blocks
            )
        return replace(container, describe_blocks=describe_blocks)

    if any(t.label == title for t in container.tests):
        return container
    test = TestNode(
        id=child_test_id(container.id, title),
        label=title,
        file=container.file,
        line=None,
        runtime_discovered=True,
    )
    return replace(container, tests=(*container.tests, test))
