"""Hierarchical test identifiers.

An id is built by strict concatenation of its position in the tree:

    <project>::project::<path>[::describe::<name>...][::test::<name>]

Folder and file nodes share the project separator followed by their absolute
path, so a folder id is always a prefix of the ids of everything beneath it.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from jestexplorer.config.constants import (
    DESCRIBE_ID_SEPARATOR,
    PROJECT_ID_SEPARATOR,
    TEST_ID_SEPARATOR,
)

_SEPARATORS = (PROJECT_ID_SEPARATOR, DESCRIBE_ID_SEPARATOR, TEST_ID_SEPARATOR)
_SEPARATOR_RE = re.compile("(" + "|".join(re.escape(s) for s in _SEPARATORS) + ")")
_PATH_SEPARATORS = ("/", "\\")


@dataclass(frozen=True, slots=True)
class TestId:
    """Decoded form of a node id. Absent trailing fields are None."""

    project_id: str
    file_name: str | None = None
    describe_ids: tuple[str, ...] | None = None
    test_id: str | None = None


def encode_id(test_id: TestId) -> str:
    """Join the fields of an id. Describe and test names only exist under a file."""
    result = test_id.project_id
    if test_id.file_name is None:
        return result
    result += PROJECT_ID_SEPARATOR + test_id.file_name
    if test_id.describe_ids:
        result += DESCRIBE_ID_SEPARATOR + DESCRIBE_ID_SEPARATOR.join(test_id.describe_ids)
    if test_id.test_id is not None:
        result += TEST_ID_SEPARATOR + test_id.test_id
    return result


def decode_id(id_: str) -> TestId:
    """Split an id into its fields in a single pass.

    Never raises. A separator that appears out of order (e.g. a describe
    separator before any file) is kept as literal text of the preceding field.
    """
    parts = _SEPARATOR_RE.split(id_)
    project_id = parts[0]
    file_name: str | None = None
    describe_ids: list[str] = []
    test_name: str | None = None

    for separator, segment in zip(parts[1::2], parts[2::2], strict=True):
        if separator == PROJECT_ID_SEPARATOR and file_name is None:
            file_name = segment
        elif separator == DESCRIBE_ID_SEPARATOR and file_name is not None and test_name is None:
            describe_ids.append(segment)
        elif separator == TEST_ID_SEPARATOR and file_name is not None and test_name is None:
            test_name = segment
        elif test_name is not None:
            test_name += separator + segment
        elif describe_ids:
            describe_ids[-1] += separator + segment
        elif file_name is not None:
            file_name += separator + segment
        else:
            project_id += separator + segment

    return TestId(
        project_id=project_id,
        file_name=file_name,
        describe_ids=tuple(describe_ids) if describe_ids else None,
        test_id=test_name,
    )


def path_id(project_id: str, path: str) -> str:
    """Id of the folder or file at an absolute path inside a project.

    The drive letter is lowercased so ids built from walked paths and from
    Jest's reported file names agree on Windows.
    """
    return project_id + PROJECT_ID_SEPARATOR + lower_case_drive_letter(path)


def child_describe_id(parent_id: str, name: str) -> str:
    return parent_id + DESCRIBE_ID_SEPARATOR + name


def child_test_id(parent_id: str, name: str) -> str:
    return parent_id + TEST_ID_SEPARATOR + name


def is_same_or_descendant_id(
    node_id: str,
    requested_id: str,
    *,
    path_boundary: bool = True,
) -> bool:
    """Check whether requested_id names node_id itself or something beneath it.

    A plain prefix test would treat "add" as an ancestor of "addAll"; the
    remainder must start at a segment boundary. Path separators only count
    as a boundary for folder-level nodes (path_boundary=True).
    """
    if requested_id == node_id:
        return True
    if not requested_id.startswith(node_id):
        return False
    rest = requested_id[len(node_id) :]
    if rest.startswith(_SEPARATORS):
        return True
    return path_boundary and rest.startswith(_PATH_SEPARATORS)


def lower_case_drive_letter(path: str) -> str:
    """Normalize a Windows drive letter ("C:\\x" -> "c:\\x"). Other paths pass through."""
    if len(path) > 1 and path[1] == ":" and path[0].isalpha():
        return path[0].lower() + path[1:]
    return path


def same_path(a: str, b: str) -> bool:
    return os.path.normpath(lower_case_drive_letter(a)) == os.path.normpath(
        lower_case_drive_letter(b)
    )
