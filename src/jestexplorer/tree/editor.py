"""Incremental single-file edits of a project tree.

Every edit returns a new project root that shares all untouched subtrees with
the previous one. An edit that changes nothing returns the input object.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TypeVar

import structlog

from jestexplorer.testing.models import ParseOutcome
from jestexplorer.tree.builder import build_file_node, splice_file_node
from jestexplorer.tree.ids import same_path
from jestexplorer.tree.nodes import FolderNode, ProjectRootNode

logger = structlog.get_logger()

C = TypeVar("C", ProjectRootNode, FolderNode)


def insert_file(project: ProjectRootNode, outcome: ParseOutcome) -> ProjectRootNode:
    """Insert or replace the node for one re-parsed file.

    Handles transitions between a parsed file and a file with a parse error
    in both directions: the node is replaced wholesale, never merged.

    Raises:
        TreeError: If the file does not live under the project root.
    """
    return splice_file_node(project, build_file_node(project.id, outcome))


def delete_file(project: ProjectRootNode, file_path: str) -> ProjectRootNode:
    """Remove a file node and prune the folders it leaves empty.

    The project root itself is never pruned. Deleting a file that is not in
    the tree returns the project unchanged.
    """
    updated = _remove_file(project, file_path)
    if updated is not project:
        logger.debug("test_file_removed_from_tree", project=project.id, file=file_path)
    return updated


def _remove_file(container: C, file_path: str) -> C:
    files = tuple(f for f in container.files if not same_path(f.file, file_path))
    changed = len(files) != len(container.files)

    folders: list[FolderNode] = []
    for folder in container.folders:
        updated = _remove_file(folder, file_path)
        if updated is folder:
            folders.append(folder)
            continue
        changed = True
        if updated.files or updated.folders:
            folders.append(updated)

    if not changed:
        return container
    return replace(container, folders=tuple(folders), files=files)
