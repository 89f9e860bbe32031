"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
provides small builders for parse outcomes and project configs.
"""

import json
import os
import sys
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local jestexplorer package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of jestexplorer modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("jestexplorer"):
        del sys.modules[module_name]

from jestexplorer.projects.models import ProjectConfig  # noqa: E402
from jestexplorer.testing.models import Location, ParsedBlock, ParsedFile  # noqa: E402
from jestexplorer.testing.settings import JestSettings, default_settings  # noqa: E402


def block(name: str, start: tuple[int, int], end: tuple[int, int]) -> ParsedBlock:
    """Build a parsed block from (line, column) pairs. Lines are 1-based."""
    return ParsedBlock(
        name=name,
        start=Location(line=start[0], column=start[1]),
        end=Location(line=end[0], column=end[1]),
    )


def make_project_config(root_path: str, name: str = "app") -> ProjectConfig:
    return ProjectConfig(
        project_name=name,
        root_path=root_path,
        jest_command="jest",
        jest_execution_directory=root_path,
    )


@pytest.fixture
def app_config() -> ProjectConfig:
    """Project rooted at /ws/app."""
    return make_project_config("/ws/app")


class FakeBlockParser:
    """Block parser that never reads the file.

    Every file holds a describe "suite" wrapping a single test "works"; files
    whose name contains "broken" raise a SyntaxError.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []

    def parse(self, path: str) -> ParsedFile:
        self.calls.append(path)
        name = os.path.basename(path)
        if "broken" in name:
            raise SyntaxError(f"Unexpected token in {name}")
        return ParsedFile(
            describe_blocks=(block("suite", (1, 0), (5, 2)),),
            it_blocks=(block("works", (2, 2), (4, 4)),),
        )


def write_file(path: Path, content: str = "") -> str:
    """Create a file (and its parents) and return its path as a string."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return str(path)


def write_jest_package(root: Path, name: str) -> None:
    """Make root a plain Jest workspace named name."""
    write_file(root / "package.json", json.dumps({"name": name, "devDependencies": {"jest": "29"}}))


@pytest.fixture
def default_jest_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Use Jest's defaults instead of asking Jest for its settings."""

    async def fake_settings(project: ProjectConfig, timeout_sec: float = 30.0) -> JestSettings:
        return default_settings(project.root_path)

    monkeypatch.setattr("jestexplorer.explorer.manager.get_settings_or_default", fake_settings)
