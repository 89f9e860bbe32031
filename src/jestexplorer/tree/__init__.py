"""Immutable test tree: model, id codec and edit algorithms."""

from jestexplorer.tree.builder import build_file_node, build_project_tree, merge_tree, nest_blocks
from jestexplorer.tree.editor import delete_file, insert_file
from jestexplorer.tree.filter import filter_tree
from jestexplorer.tree.ids import TestId, decode_id, encode_id
from jestexplorer.tree.merge import merge_runtime_results
from jestexplorer.tree.nodes import (
    DescribeNode,
    FileNode,
    FileWithParseErrorNode,
    FolderNode,
    ProjectRootNode,
    TestNode,
    WorkspaceRootNode,
)

__all__ = [
    "DescribeNode",
    "FileNode",
    "FileWithParseErrorNode",
    "FolderNode",
    "ProjectRootNode",
    "TestId",
    "TestNode",
    "WorkspaceRootNode",
    "build_file_node",
    "build_project_tree",
    "decode_id",
    "delete_file",
    "encode_id",
    "filter_tree",
    "insert_file",
    "merge_runtime_results",
    "merge_tree",
    "nest_blocks",
]
