"""Tests for projecting the tree onto suite records."""

from __future__ import annotations

from conftest import block, make_project_config

from jestexplorer.config.constants import PARSE_ERROR_TOOLTIP
from jestexplorer.explorer.projection import (
    TestInfo,
    TestSuiteInfo,
    map_describe_block_to_test_suite,
    map_test_to_test_info,
    map_workspace_root_to_suite,
)
from jestexplorer.testing.models import ParseFailure, ParseSuccess
from jestexplorer.tree.builder import build_project_tree
from jestexplorer.tree.nodes import ProjectRootNode, WorkspaceRootNode, create_project_node


def project_with_tests(root: str, name: str) -> ProjectRootNode:
    return build_project_tree(
        make_project_config(root, name),
        [
            ParseSuccess(
                file=f"{root}/src/math.test.js",
                describe_blocks=(block("math", (1, 0), (10, 2)),),
                it_blocks=(
                    block("adds", (2, 2), (4, 4)),
                    block("top level", (12, 0), (14, 2)),
                ),
            ),
            ParseSuccess(file=f"{root}/root.test.js", it_blocks=(block("root", (1, 0), (1, 20)),)),
        ],
    )


class TestMapWorkspaceRootToSuite:
    """Workspace projection and project collapsing."""

    def test_no_projects(self) -> None:
        assert map_workspace_root_to_suite(WorkspaceRootNode()) is None

    def test_single_project_collapses_to_project_suite(self) -> None:
        project = project_with_tests("/ws/app", "app")

        suite = map_workspace_root_to_suite(WorkspaceRootNode(projects=(project,)))

        assert suite is not None
        assert suite.id == "app"
        assert suite.label == "app"

    def test_multiple_projects_nest_under_root(self) -> None:
        root = WorkspaceRootNode(
            label="ws",
            projects=(project_with_tests("/ws/app", "app"), project_with_tests("/ws/lib", "lib")),
        )

        suite = map_workspace_root_to_suite(root)

        assert suite is not None
        assert suite.id == "root"
        assert suite.label == "ws"
        assert [c.id for c in suite.children] == ["app", "lib"]

    def test_given_empty_project_when_hidden_then_remaining_project_collapses(self) -> None:
        # Given
        empty = create_project_node(make_project_config("/ws/empty", "empty"))
        root = WorkspaceRootNode(projects=(empty, project_with_tests("/ws/app", "app")))

        # When
        suite = map_workspace_root_to_suite(root, hide_empty_projects=True)

        # Then
        assert suite is not None
        assert suite.id == "app"

    def test_empty_projects_shown_when_not_hidden(self) -> None:
        empty = create_project_node(make_project_config("/ws/empty", "empty"))
        root = WorkspaceRootNode(projects=(empty, project_with_tests("/ws/app", "app")))

        suite = map_workspace_root_to_suite(root, hide_empty_projects=False)

        assert suite is not None
        assert [c.id for c in suite.children] == ["empty", "app"]

    def test_only_empty_projects(self) -> None:
        empty = create_project_node(make_project_config("/ws/empty", "empty"))
        assert map_workspace_root_to_suite(WorkspaceRootNode(projects=(empty,))) is None


class TestSuiteShape:
    """Child ordering and file records."""

    def test_folders_before_files_and_describes_before_tests(self) -> None:
        suite = map_workspace_root_to_suite(WorkspaceRootNode(projects=(project_with_tests("/ws/app", "app"),)))
        assert suite is not None

        folder, root_file = suite.children
        assert isinstance(folder, TestSuiteInfo)
        assert folder.label == "src"
        assert root_file.label == "root.test.js"

        (math_file,) = folder.children
        assert isinstance(math_file, TestSuiteInfo)
        assert math_file.file == "/ws/app/src/math.test.js"
        describe, top_level = math_file.children
        assert isinstance(describe, TestSuiteInfo)
        assert describe.label == "math"
        assert isinstance(top_level, TestInfo)
        assert top_level.label == "top level"

    def test_parse_error_file_becomes_errored_suite(self) -> None:
        project = build_project_tree(
            make_project_config("/ws/app"),
            [ParseFailure(file="/ws/app/broken.test.js", error="SyntaxError: Unexpected token")],
        )

        suite = map_workspace_root_to_suite(WorkspaceRootNode(projects=(project,)))

        assert suite is not None
        (file_suite,) = suite.children
        assert isinstance(file_suite, TestSuiteInfo)
        assert file_suite.errored is True
        assert file_suite.message == "SyntaxError: Unexpected token"
        assert file_suite.tooltip == PARSE_ERROR_TOOLTIP
        assert file_suite.children == ()


class TestNodeMapping:
    def test_describe_keeps_position(self) -> None:
        project = project_with_tests("/ws/app", "app")
        describe = project.folders[0].files[0].describe_blocks[0]

        suite = map_describe_block_to_test_suite(describe)

        assert suite.id == describe.id
        assert suite.line == 0
        assert suite.file == "/ws/app/src/math.test.js"
        assert [c.label for c in suite.children] == ["adds"]

    def test_test_info(self) -> None:
        project = project_with_tests("/ws/app", "app")
        test = project.files[0].tests[0]

        info = map_test_to_test_info(test)

        assert info == TestInfo(id=test.id, label="root", file="/ws/app/root.test.js", line=0)
        assert info.type == "test"
