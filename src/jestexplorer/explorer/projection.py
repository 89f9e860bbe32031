"""Project the test tree onto the suite/test records a test UI displays."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from jestexplorer.config.constants import PARSE_ERROR_TOOLTIP
from jestexplorer.tree.nodes import (
    DescribeNode,
    FileLikeNode,
    FileWithParseErrorNode,
    FolderNode,
    ProjectRootNode,
    TestNode,
    WorkspaceRootNode,
    count_files,
)


@dataclass(frozen=True, slots=True)
class TestInfo:
    id: str
    label: str
    file: str | None = None
    line: int | None = None
    type: Literal["test"] = field(default="test", init=False)


@dataclass(frozen=True, slots=True)
class TestSuiteInfo:
    """A suite record. Errored suites carry the error as ``message``."""

    id: str
    label: str
    children: tuple[TestSuiteInfo | TestInfo, ...] = ()
    file: str | None = None
    line: int | None = None
    errored: bool = False
    message: str | None = None
    tooltip: str | None = None
    type: Literal["suite"] = field(default="suite", init=False)


def map_workspace_root_to_suite(
    root: WorkspaceRootNode,
    hide_empty_projects: bool = True,
) -> TestSuiteInfo | None:
    """Project the workspace tree.

    Returns None when no project is left to show. A single visible project is
    returned as the top-level suite itself.
    """
    projects = root.projects
    if hide_empty_projects:
        projects = tuple(p for p in projects if count_files(p) > 0)

    if not projects:
        return None
    if len(projects) == 1:
        return map_project_root_to_suite(projects[0])
    return TestSuiteInfo(
        id=root.id,
        label=root.label,
        children=tuple(map_project_root_to_suite(p) for p in projects),
    )


def map_project_root_to_suite(project: ProjectRootNode) -> TestSuiteInfo:
    return TestSuiteInfo(
        id=project.id,
        label=project.label,
        children=(
            *(map_folder_to_suite(f) for f in project.folders),
            *(map_file_to_suite(f) for f in project.files),
        ),
    )


def map_folder_to_suite(folder: FolderNode) -> TestSuiteInfo:
    return TestSuiteInfo(
        id=folder.id,
        label=folder.label,
        children=(
            *(map_folder_to_suite(f) for f in folder.folders),
            *(map_file_to_suite(f) for f in folder.files),
        ),
    )


def map_file_to_suite(file: FileLikeNode) -> TestSuiteInfo:
    if isinstance(file, FileWithParseErrorNode):
        return TestSuiteInfo(
            id=file.id,
            label=file.label,
            file=file.file,
            errored=True,
            message=file.error,
            tooltip=PARSE_ERROR_TOOLTIP,
        )
    return TestSuiteInfo(
        id=file.id,
        label=file.label,
        file=file.file,
        children=(
            *(map_describe_block_to_test_suite(d) for d in file.describe_blocks),
            *(map_test_to_test_info(t) for t in file.tests),
        ),
    )


def map_describe_block_to_test_suite(describe: DescribeNode) -> TestSuiteInfo:
    return TestSuiteInfo(
        id=describe.id,
        label=describe.label,
        file=describe.file,
        line=describe.line,
        children=(
            *(map_describe_block_to_test_suite(d) for d in describe.describe_blocks),
            *(map_test_to_test_info(t) for t in describe.tests),
        ),
    )


def map_test_to_test_info(test: TestNode) -> TestInfo:
    return TestInfo(id=test.id, label=test.label, file=test.file, line=test.line)
