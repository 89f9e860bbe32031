"""Test tree node types.

The tree is built from immutable records: every edit produces new parent
records that reuse unchanged children by reference. Each node carries a
``type`` tag mirroring its class so serialized trees stay self-describing.

Hierarchy:
    WorkspaceRootNode
      ProjectRootNode
        FolderNode (nested)
          FileNode | FileWithParseErrorNode
            DescribeNode (nested)
              TestNode
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from jestexplorer.config.constants import ROOT_ID
from jestexplorer.projects.models import ProjectConfig


@dataclass(frozen=True, slots=True)
class TestNode:
    """A single it()/test() block."""

    id: str
    label: str
    file: str
    line: int | None  # 0-based; None when only known from a run
    runtime_discovered: bool = False
    type: Literal["test"] = field(default="test", init=False)


@dataclass(frozen=True, slots=True)
class DescribeNode:
    """A describe() block and its nested blocks."""

    id: str
    label: str
    file: str
    line: int | None
    describe_blocks: tuple[DescribeNode, ...] = ()
    tests: tuple[TestNode, ...] = ()
    runtime_discovered: bool = False
    type: Literal["describe"] = field(default="describe", init=False)


@dataclass(frozen=True, slots=True)
class FileNode:
    id: str
    label: str
    file: str
    line: int = 0
    describe_blocks: tuple[DescribeNode, ...] = ()
    tests: tuple[TestNode, ...] = ()
    type: Literal["file"] = field(default="file", init=False)


@dataclass(frozen=True, slots=True)
class FileWithParseErrorNode:
    """A test file the block parser could not read. Never has children."""

    id: str
    label: str
    file: str
    error: str
    line: int = 0
    type: Literal["fileWithParseError"] = field(default="fileWithParseError", init=False)


FileLikeNode: TypeAlias = FileNode | FileWithParseErrorNode


@dataclass(frozen=True, slots=True)
class FolderNode:
    id: str
    label: str
    folders: tuple[FolderNode, ...] = ()
    files: tuple[FileLikeNode, ...] = ()
    type: Literal["folder"] = field(default="folder", init=False)


@dataclass(frozen=True, slots=True)
class ProjectRootNode:
    id: str
    label: str
    config: ProjectConfig
    folders: tuple[FolderNode, ...] = ()
    files: tuple[FileLikeNode, ...] = ()
    type: Literal["projectRootNode"] = field(default="projectRootNode", init=False)


@dataclass(frozen=True, slots=True)
class WorkspaceRootNode:
    id: str = ROOT_ID
    label: str = "Jest"
    projects: tuple[ProjectRootNode, ...] = ()
    type: Literal["workspaceRootNode"] = field(default="workspaceRootNode", init=False)


ContainerNode: TypeAlias = ProjectRootNode | FolderNode
BlockContainerNode: TypeAlias = FileNode | DescribeNode
Node: TypeAlias = (
    WorkspaceRootNode
    | ProjectRootNode
    | FolderNode
    | FileNode
    | FileWithParseErrorNode
    | DescribeNode
    | TestNode
)


def create_project_node(config: ProjectConfig) -> ProjectRootNode:
    """Create an empty project root. The project name doubles as its id."""
    return ProjectRootNode(id=config.project_name, label=config.project_name, config=config)


def iter_file_nodes(container: ContainerNode) -> list[FileLikeNode]:
    """All file nodes under a project or folder, depth first."""
    result: list[FileLikeNode] = list(container.files)
    for folder in container.folders:
        result.extend(iter_file_nodes(folder))
    return result


def iter_test_nodes(container: BlockContainerNode) -> list[TestNode]:
    """All tests under a file or describe block, in document order of nesting."""
    result: list[TestNode] = []
    for describe in container.describe_blocks:
        result.extend(iter_test_nodes(describe))
    result.extend(container.tests)
    return result


def count_files(container: ContainerNode) -> int:
    return len(iter_file_nodes(container))
