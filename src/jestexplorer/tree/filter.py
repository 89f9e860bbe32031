"""Project a tree onto a set of requested test ids.

The result keeps every node whose id was requested (with all of its
descendants) and every ancestor of such a node (with only the children on a
matching path). Ancestry is decided from the ids alone: ids are built by
segment concatenation, so an ancestor's id is a boundary-aligned prefix of
its descendants' ids.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from typing import TypeVar, overload

from jestexplorer.config.constants import ROOT_ID
from jestexplorer.tree.ids import is_same_or_descendant_id
from jestexplorer.tree.nodes import (
    DescribeNode,
    FileLikeNode,
    FileNode,
    FileWithParseErrorNode,
    FolderNode,
    ProjectRootNode,
    TestNode,
    WorkspaceRootNode,
)

C = TypeVar("C", ProjectRootNode, FolderNode)
B = TypeVar("B", FileNode, DescribeNode)


@overload
def filter_tree(tree: WorkspaceRootNode, test_ids: Sequence[str]) -> WorkspaceRootNode: ...
@overload
def filter_tree(tree: ProjectRootNode, test_ids: Sequence[str]) -> ProjectRootNode: ...


def filter_tree(
    tree: WorkspaceRootNode | ProjectRootNode,
    test_ids: Sequence[str],
) -> WorkspaceRootNode | ProjectRootNode:
    """Return the minimal sub-tree covering the requested ids.

    An empty request, or one containing "root", returns the tree itself.
    When filtering a workspace, each project is filtered independently and a
    project without matches is kept with no children.
    """
    if not test_ids or ROOT_ID in test_ids:
        return tree
    if isinstance(tree, WorkspaceRootNode):
        return replace(tree, projects=tuple(_filter_project(p, test_ids) for p in tree.projects))
    return _filter_project(tree, test_ids)


def _is_relevant(node_id: str, test_ids: Sequence[str], *, path_boundary: bool = True) -> bool:
    return any(is_same_or_descendant_id(node_id, r, path_boundary=path_boundary) for r in test_ids)


def _filter_project(project: ProjectRootNode, test_ids: Sequence[str]) -> ProjectRootNode:
    if project.id in test_ids:
        return project
    return _filter_container(project, test_ids)


def _filter_container(container: C, test_ids: Sequence[str]) -> C:
    return replace(
        container,
        folders=tuple(
            _filter_folder(f, test_ids) for f in container.folders if _is_relevant(f.id, test_ids)
        ),
        files=tuple(
            _filter_file(f, test_ids) for f in container.files if _is_relevant(f.id, test_ids)
        ),
    )


def _filter_folder(folder: FolderNode, test_ids: Sequence[str]) -> FolderNode:
    if folder.id in test_ids:
        return folder
    return _filter_container(folder, test_ids)


def _filter_file(file: FileLikeNode, test_ids: Sequence[str]) -> FileLikeNode:
    if isinstance(file, FileWithParseErrorNode) or file.id in test_ids:
        return file
    return _filter_blocks(file, test_ids)


def _filter_blocks(container: B, test_ids: Sequence[str]) -> B:
    return replace(
        container,
        describe_blocks=tuple(
            _filter_describe(d, test_ids)
            for d in container.describe_blocks
            if _is_relevant(d.id, test_ids, path_boundary=False)
        ),
        tests=tuple(t for t in container.tests if _test_requested(t, test_ids)),
    )


def _filter_describe(describe: DescribeNode, test_ids: Sequence[str]) -> DescribeNode:
    if describe.id in test_ids:
        return describe
    return _filter_blocks(describe, test_ids)


def _test_requested(test: TestNode, test_ids: Sequence[str]) -> bool:
    return _is_relevant(test.id, test_ids, path_boundary=False)
