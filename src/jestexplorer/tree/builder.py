"""Build project trees from static parse outcomes.

Files are spliced into the folder hierarchy one at a time. Folders are looked
up by their computed id before being created, so the final tree does not
depend on the order outcomes arrive in. Within a file, describe and test
blocks are nested by source-position containment.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import TypeVar

import structlog

from jestexplorer.core.errors import TreeError
from jestexplorer.projects.models import ProjectConfig
from jestexplorer.testing.models import ParsedBlock, ParseFailure, ParseOutcome
from jestexplorer.tree.ids import child_describe_id, child_test_id, lower_case_drive_letter, path_id
from jestexplorer.tree.nodes import (
    DescribeNode,
    FileLikeNode,
    FileNode,
    FileWithParseErrorNode,
    FolderNode,
    ProjectRootNode,
    TestNode,
    create_project_node,
)

logger = structlog.get_logger()

C = TypeVar("C", ProjectRootNode, FolderNode)


# =============================================================================
# Block nesting
# =============================================================================


def is_nested(inner: ParsedBlock, outer: ParsedBlock) -> bool:
    """True if outer's span contains inner's span. Equal spans count as nested."""
    return outer.start <= inner.start and outer.end >= inner.end


def _sort_key(block: ParsedBlock) -> tuple[int, int, int, int]:
    # Start ascending, end descending: an enclosing block always sorts first.
    return (block.start.line, block.start.column, -block.end.line, -block.end.column)


@dataclass
class _DescribeDraft:
    block: ParsedBlock
    children: list[_DescribeDraft] = field(default_factory=list)
    tests: list[ParsedBlock] = field(default_factory=list)


def nest_blocks(
    parent_id: str,
    file: str,
    describe_blocks: Iterable[ParsedBlock],
    it_blocks: Iterable[ParsedBlock],
) -> tuple[tuple[DescribeNode, ...], tuple[TestNode, ...]]:
    """Nest flat describe/test lists into describe and top-level test nodes.

    Each describe is attached to its innermost containing describe (or the
    top level). Each test is attached to its innermost containing describe,
    or to the top-level test list when no describe contains it.
    """
    ordered = [_DescribeDraft(b) for b in sorted(describe_blocks, key=_sort_key)]

    roots: list[_DescribeDraft] = []
    stack: list[_DescribeDraft] = []
    for draft in ordered:
        while stack and not is_nested(draft.block, stack[-1].block):
            stack.pop()
        if stack:
            stack[-1].children.append(draft)
        else:
            roots.append(draft)
        stack.append(draft)

    top_level_tests: list[ParsedBlock] = []
    for test in sorted(it_blocks, key=_sort_key):
        container: _DescribeDraft | None = None
        for draft in ordered:
            if is_nested(test, draft.block):
                container = draft
        if container is None:
            top_level_tests.append(test)
        else:
            container.tests.append(test)

    return (
        tuple(_freeze_describe(parent_id, file, d) for d in roots),
        tuple(_test_node(parent_id, file, t) for t in top_level_tests),
    )


def _test_node(parent_id: str, file: str, block: ParsedBlock) -> TestNode:
    return TestNode(
        id=child_test_id(parent_id, block.name),
        label=block.name,
        file=file,
        line=block.start.line - 1,
    )


def _freeze_describe(parent_id: str, file: str, draft: _DescribeDraft) -> DescribeNode:
    node_id = child_describe_id(parent_id, draft.block.name)
    return DescribeNode(
        id=node_id,
        label=draft.block.name,
        file=file,
        line=draft.block.start.line - 1,
        describe_blocks=tuple(_freeze_describe(node_id, file, c) for c in draft.children),
        tests=tuple(_test_node(node_id, file, t) for t in draft.tests),
    )


# =============================================================================
# File nodes
# =============================================================================


def build_file_node(project_id: str, outcome: ParseOutcome) -> FileLikeNode:
    """Build the node for a single parse outcome."""
    file = lower_case_drive_letter(outcome.file)
    file_id = path_id(project_id, file)
    label = os.path.basename(file)
    if isinstance(outcome, ParseFailure):
        return FileWithParseErrorNode(id=file_id, label=label, file=file, error=outcome.error)
    describes, tests = nest_blocks(file_id, file, outcome.describe_blocks, outcome.it_blocks)
    return FileNode(id=file_id, label=label, file=file, describe_blocks=describes, tests=tests)


def folder_segments(root_path: str, file: str) -> list[str]:
    """Folder names between the project root and the file's directory.

    Raises:
        TreeError: If the file does not live under root_path.
    """
    root = lower_case_drive_letter(os.path.normpath(root_path))
    directory = os.path.dirname(lower_case_drive_letter(os.path.normpath(file)))
    try:
        common = os.path.commonpath([root, directory])
    except ValueError:
        common = ""
    if common != root:
        raise TreeError.file_outside_root(file, root_path)
    relative = os.path.relpath(directory, root)
    if relative == os.curdir:
        return []
    return relative.split(os.sep)


# =============================================================================
# Splicing
# =============================================================================


def _replace_or_append(items: tuple, old: object | None, new: object) -> tuple:
    if old is None:
        return (*items, new)
    return tuple(new if item is old else item for item in items)


def _splice(
    container: C,
    project_id: str,
    container_path: str,
    segments: list[str],
    node: FileLikeNode,
) -> C:
    if not segments:
        existing = next((f for f in container.files if f.id == node.id), None)
        if existing == node:
            return container
        return replace(container, files=_replace_or_append(container.files, existing, node))

    name = segments[0]
    folder_path = os.path.join(container_path, name)
    folder_id = path_id(project_id, folder_path)
    existing_folder = next((f for f in container.folders if f.id == folder_id), None)
    folder = existing_folder or FolderNode(id=folder_id, label=name)
    updated = _splice(folder, project_id, folder_path, segments[1:], node)
    if updated is existing_folder:
        return container
    return replace(container, folders=_replace_or_append(container.folders, existing_folder, updated))


def splice_file_node(project: ProjectRootNode, node: FileLikeNode) -> ProjectRootNode:
    """Place a file node at its folder path, replacing a node with the same id.

    Returns the project unchanged (same object) when an equal node is already
    present.

    Raises:
        TreeError: If the file does not live under the project root.
    """
    segments = folder_segments(project.config.root_path, node.file)
    root = lower_case_drive_letter(os.path.normpath(project.config.root_path))
    return _splice(project, project.id, root, segments, node)


def merge_tree(project: ProjectRootNode, outcomes: Iterable[ParseOutcome]) -> ProjectRootNode:
    """Merge a batch of parse outcomes into an existing project tree.

    A file outside the project root is logged and skipped; the rest of the
    batch is still merged.
    """
    for outcome in outcomes:
        try:
            project = splice_file_node(project, build_file_node(project.id, outcome))
        except TreeError as e:
            logger.error("file_outside_project_root", file=outcome.file, error=str(e))
            continue
        if isinstance(outcome, ParseFailure):
            logger.warning("test_file_parse_failed", file=outcome.file, error=outcome.error)
    return project


def build_project_tree(config: ProjectConfig, outcomes: Iterable[ParseOutcome]) -> ProjectRootNode:
    """Build a fresh project tree."""
    return merge_tree(create_project_node(config), outcomes)

