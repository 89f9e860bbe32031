"""Tests for JestRunner using a stand-in Jest script."""

from __future__ import annotations

import asyncio
import json
import shlex
import sys
from pathlib import Path

import pytest
import structlog

from jestexplorer.config.models import RunnerConfig
from jestexplorer.core.errors import ErrorCode, RunError
from jestexplorer.core.logging import get_run_id
from jestexplorer.projects.models import ProjectConfig
from jestexplorer.testing.models import TestFilter
from jestexplorer.testing.runner import JestRunner

REPORT = {
    "success": False,
    "numTotalTests": 2,
    "numPassedTests": 1,
    "numFailedTests": 1,
    "numPendingTests": 0,
    "testResults": [
        {
            "name": "/ws/app/src/a.test.js",
            "status": "failed",
            "message": "",
            "assertionResults": [
                {
                    "title": "adds",
                    "status": "passed",
                    "ancestorTitles": ["math"],
                    "fullName": "math adds",
                    "failureMessages": [],
                    "location": {"line": 2, "column": 2},
                },
                {
                    "title": "subtracts",
                    "status": "failed",
                    "ancestorTitles": ["math"],
                    "fullName": "math subtracts",
                    "failureMessages": ["Error: expected 1\n    at Object.<anonymous> (/ws/app/src/a.test.js:7:5)"],
                    "location": {"line": 5, "column": 2},
                },
            ],
        }
    ],
}

WRITES_REPORT = """
import json, sys
args = sys.argv[1:]
out = next(a.split("=", 1)[1] for a in args if a.startswith("--outputFile="))
report = json.loads({report!r})
report["args"] = args
with open(out, "w", encoding="utf-8") as f:
    json.dump(report, f)
"""

WRITES_NOTHING = """
import sys
sys.stderr.write("Cannot find module 'jest'\\n")
sys.exit(1)
"""

SLEEPS = """
import time
time.sleep(30)
"""

WRITES_GARBAGE = """
import sys
out = next(a.split("=", 1)[1] for a in sys.argv[1:] if a.startswith("--outputFile="))
with open(out, "w", encoding="utf-8") as f:
    f.write("not json")
"""


def fake_project(tmp_path: Path, script: str, jest_config: str | None = None) -> ProjectConfig:
    path = tmp_path / "fake_jest.py"
    path.write_text(script, encoding="utf-8")
    return ProjectConfig(
        project_name="app",
        root_path=str(tmp_path),
        jest_command=f"{shlex.quote(sys.executable)} {shlex.quote(str(path))}",
        jest_execution_directory=str(tmp_path),
        jest_config=jest_config,
    )


class TestBuildCommand:
    """Command-line construction tests."""

    def test_default_arguments(self, app_config: ProjectConfig) -> None:
        cmd = JestRunner(app_config).build_command(None, Path("/tmp/out.json"))

        assert cmd[0] == "jest"
        assert "--json" in cmd
        assert "--outputFile=/tmp/out.json" in cmd
        assert "--watchAll=false" in cmd
        assert "--testLocationInResults" in cmd
        assert "--testPathPattern" not in cmd
        assert "--testNamePattern" not in cmd

    def test_filter_and_config(self, tmp_path: Path) -> None:
        project = ProjectConfig(
            project_name="app",
            root_path="/ws/app",
            jest_command="npx jest",
            jest_execution_directory="/ws",
            jest_config="/ws/app/jest.config.js",
        )
        runner = JestRunner(project, RunnerConfig(extra_args=["--ci"]))

        cmd = runner.build_command(
            TestFilter(test_file_name_pattern="a\\.test\\.js", test_name_pattern="math adds"),
            tmp_path / "out.json",
        )

        assert cmd[:2] == ["npx", "jest"]
        assert cmd[cmd.index("--config") + 1] == "/ws/app/jest.config.js"
        assert cmd[cmd.index("--testPathPattern") + 1] == "a\\.test\\.js"
        assert cmd[cmd.index("--testNamePattern") + 1] == "math adds"
        assert cmd[-1] == "--ci"

    def test_location_flag_can_be_disabled(self, app_config: ProjectConfig) -> None:
        runner = JestRunner(app_config, RunnerConfig(test_location_in_results=False))
        assert "--testLocationInResults" not in runner.build_command(None, Path("/tmp/o.json"))


class TestRun:
    """End-to-end runs against a stand-in Jest."""

    @pytest.mark.asyncio
    async def test_run_reads_report(self, tmp_path: Path) -> None:
        """Given a Jest that writes its report, when run, then results are parsed."""
        # Given
        runner = JestRunner(fake_project(tmp_path, WRITES_REPORT.format(report=json.dumps(REPORT))))

        # When
        response = await runner.run(TestFilter(test_file_name_pattern="a\\.test\\.js"))

        # Then
        assert response.results.num_failed_tests == 1
        assert [r.name for r in response.results.test_results] == ["/ws/app/src/a.test.js"]
        statuses = response.reconciler.assertions_for_test_file("/ws/app/src/a.test.js")
        assert statuses is not None
        assert [s.status for s in statuses] == ["passed", "failed"]
        assert statuses[1].line == 7
        assert not runner.is_running

    @pytest.mark.asyncio
    async def test_run_is_tagged_with_run_id_and_project(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seen: dict[str, object] = {}

        async def record(self: JestRunner, test_filter: TestFilter | None) -> None:
            seen["run_id"] = get_run_id()
            seen["context"] = structlog.contextvars.get_contextvars()

        monkeypatch.setattr(JestRunner, "_run", record)

        await JestRunner(fake_project(tmp_path, WRITES_NOTHING)).run()

        assert isinstance(seen["run_id"], str)
        assert seen["context"] == {"project": "app"}
        assert get_run_id() is None
        assert structlog.contextvars.get_contextvars() == {}

    @pytest.mark.asyncio
    async def test_missing_output_raises(self, tmp_path: Path) -> None:
        runner = JestRunner(fake_project(tmp_path, WRITES_NOTHING))

        with pytest.raises(RunError) as exc_info:
            await runner.run()

        assert exc_info.value.code == ErrorCode.RUN_OUTPUT_MISSING
        assert "Cannot find module 'jest'" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_unreadable_output_raises(self, tmp_path: Path) -> None:
        runner = JestRunner(fake_project(tmp_path, WRITES_GARBAGE))

        with pytest.raises(RunError) as exc_info:
            await runner.run()

        assert exc_info.value.code == ErrorCode.RUN_OUTPUT_MISSING

    @pytest.mark.asyncio
    async def test_missing_executable_raises(self, tmp_path: Path) -> None:
        project = ProjectConfig(
            project_name="app",
            root_path=str(tmp_path),
            jest_command=str(tmp_path / "no-such-jest"),
            jest_execution_directory=str(tmp_path),
        )

        with pytest.raises(RunError) as exc_info:
            await JestRunner(project).run()

        assert exc_info.value.code == ErrorCode.RUN_FAILED

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, tmp_path: Path) -> None:
        runner = JestRunner(fake_project(tmp_path, SLEEPS), RunnerConfig(timeout_sec=0.5))

        with pytest.raises(RunError) as exc_info:
            await runner.run()

        assert exc_info.value.code == ErrorCode.RUN_TIMEOUT
        assert not runner.is_running

    @pytest.mark.asyncio
    async def test_close_all_active_processes_cancels_run(self, tmp_path: Path) -> None:
        """Given a running Jest, when all processes are closed, then the run is cancelled."""
        # Given
        runner = JestRunner(fake_project(tmp_path, SLEEPS))
        task = asyncio.create_task(runner.run())
        for _ in range(200):
            if runner.is_running:
                break
            await asyncio.sleep(0.05)
        assert runner.is_running

        # When
        runner.close_all_active_processes()

        # Then
        with pytest.raises(RunError) as exc_info:
            await task
        assert exc_info.value.code == ErrorCode.RUN_CANCELLED
        assert not runner.is_running

    def test_close_with_nothing_running_is_noop(self, app_config: ProjectConfig) -> None:
        runner = JestRunner(app_config)
        runner.close_all_active_processes()
        assert not runner.is_running
