"""Tests for Jest settings discovery."""

from __future__ import annotations

import json
import shlex
import sys
from pathlib import Path

import pytest

from jestexplorer.config.constants import DEFAULT_TEST_MATCH, DEFAULT_TEST_PATH_IGNORE_PATTERNS
from jestexplorer.core.errors import DiscoveryError, ErrorCode
from jestexplorer.projects.models import ProjectConfig
from jestexplorer.testing.settings import (
    JestProjectSettings,
    JestSettings,
    default_settings,
    get_settings,
    get_settings_or_default,
    show_config_command,
)

SHOW_CONFIG = {
    "version": "29.7.0",
    "configs": [
        {
            "rootDir": "/ws/app",
            "testMatch": [],
            "testRegex": "(/__tests__/.*|\\.spec)\\.[jt]sx?$",
            "testPathIgnorePatterns": ["/node_modules/", "<rootDir>/dist/"],
        }
    ],
    "globalConfig": {},
}


def script_project(tmp_path: Path, body: str) -> ProjectConfig:
    path = tmp_path / "fake_jest.py"
    path.write_text(body, encoding="utf-8")
    return ProjectConfig(
        project_name="app",
        root_path=str(tmp_path),
        jest_command=f"{shlex.quote(sys.executable)} {shlex.quote(str(path))}",
        jest_execution_directory=str(tmp_path),
    )


class TestFromShowConfig:
    """Parsing of the showConfig document."""

    def test_regex_config(self) -> None:
        settings = JestSettings.from_show_config(SHOW_CONFIG, "/fallback")

        assert settings.jest_version_major == 29
        config = settings.configs[0]
        assert config.root_dir == "/ws/app"
        assert config.test_regex == ("(/__tests__/.*|\\.spec)\\.[jt]sx?$",)
        assert config.test_match == ()
        assert config.test_path_ignore_patterns == ("/node_modules/", "<rootDir>/dist/")

    def test_missing_fields_use_jest_defaults(self) -> None:
        settings = JestSettings.from_show_config({"configs": [{}]}, "/ws/app")

        config = settings.configs[0]
        assert config.root_dir == "/ws/app"
        assert config.test_match == DEFAULT_TEST_MATCH
        assert config.test_regex == ()
        assert config.test_path_ignore_patterns == DEFAULT_TEST_PATH_IGNORE_PATTERNS
        assert settings.jest_version_major is None

    def test_legacy_single_config(self) -> None:
        data = {"config": {"rootDir": "/ws/app", "testMatch": ["**/*.spec.ts"]}, "version": "23.6.0"}

        settings = JestSettings.from_show_config(data, "/fallback")

        assert settings.configs[0].test_match == ("**/*.spec.ts",)
        assert settings.jest_version_major == 23

    def test_empty_document_yields_defaults(self) -> None:
        settings = JestSettings.from_show_config({}, "/ws/app")
        assert settings.configs == (JestProjectSettings(root_dir="/ws/app"),)

    def test_regex_list(self) -> None:
        config = JestProjectSettings.from_dict({"testRegex": ["a", "b"]}, "/r")
        assert config.test_regex == ("a", "b")


class TestShowConfigCommand:
    def test_appends_show_config(self, app_config: ProjectConfig) -> None:
        assert show_config_command(app_config) == ["jest", "--showConfig"]

    def test_passes_config_path(self) -> None:
        project = ProjectConfig(
            project_name="app",
            root_path="/ws/app",
            jest_command="node node_modules/.bin/jest",
            jest_execution_directory="/ws",
            jest_config="/ws/app/jest.config.js",
        )
        assert show_config_command(project) == [
            "node",
            "node_modules/.bin/jest",
            "--showConfig",
            "--config",
            "/ws/app/jest.config.js",
        ]


class TestGetSettings:
    """Asking a stand-in Jest for its settings."""

    @pytest.mark.asyncio
    async def test_reads_json_after_banner(self, tmp_path: Path) -> None:
        body = f"print('> app@1.0.0 test')\nprint({json.dumps(json.dumps(SHOW_CONFIG))})\n"
        project = script_project(tmp_path, body)

        settings = await get_settings(project)

        assert settings.configs[0].root_dir == "/ws/app"
        assert settings.jest_version_major == 29

    @pytest.mark.asyncio
    async def test_no_json_raises(self, tmp_path: Path) -> None:
        body = "import sys\nsys.stderr.write('jest: command not found\\n')\nsys.exit(127)\n"
        project = script_project(tmp_path, body)

        with pytest.raises(DiscoveryError) as exc_info:
            await get_settings(project)

        assert exc_info.value.code == ErrorCode.DISCOVERY_SETTINGS_FAILED
        assert "jest: command not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_executable_raises(self, tmp_path: Path) -> None:
        project = ProjectConfig(
            project_name="app",
            root_path=str(tmp_path),
            jest_command=str(tmp_path / "missing"),
            jest_execution_directory=str(tmp_path),
        )

        with pytest.raises(DiscoveryError):
            await get_settings(project)

    @pytest.mark.asyncio
    async def test_timeout_raises(self, tmp_path: Path) -> None:
        project = script_project(tmp_path, "import time\ntime.sleep(30)\n")

        with pytest.raises(DiscoveryError) as exc_info:
            await get_settings(project, timeout_sec=0.5)

        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_or_default_falls_back(self, tmp_path: Path) -> None:
        project = script_project(tmp_path, "print('nothing useful')\n")

        settings = await get_settings_or_default(project)

        assert settings == default_settings(str(tmp_path))
