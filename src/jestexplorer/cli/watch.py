"""jexp watch command - keep the test tree current while files change."""

import asyncio
import contextlib
from collections.abc import Awaitable
from pathlib import Path

import click
from rich.console import Console

from jestexplorer.cli.render import count_tests
from jestexplorer.cli.utils import load_workspace_config
from jestexplorer.config.constants import ROOT_ID
from jestexplorer.config.models import JestExplorerConfig
from jestexplorer.core.progress import pluralize, status
from jestexplorer.explorer.adapter import JestTestAdapter
from jestexplorer.explorer.events import RetireEvent, TestLoadEvent, TestLoadFinishedEvent


async def watch_workspace(
    workspace_root: Path,
    config: JestExplorerConfig,
    console: Console,
    *,
    run_on_change: bool = False,
    timeout: float | None = None,
) -> None:
    """Watch until cancelled, or until timeout seconds have passed."""
    adapter = JestTestAdapter(str(workspace_root), config)
    run_lock = asyncio.Lock()

    def on_load(event: TestLoadEvent) -> None:
        if isinstance(event, TestLoadFinishedEvent):
            total = count_tests(event.suite) if event.suite is not None else 0
            console.print(f"Tests updated: {pluralize(total, 'test')}", highlight=False)

    async def rerun(test_ids: list[str]) -> None:
        async with run_lock:
            await adapter.run(test_ids)

    def on_retire(event: RetireEvent) -> Awaitable[None] | None:
        if event.tests is None:
            console.print("All results invalidated", highlight=False)
        else:
            console.print(f"{pluralize(len(event.tests), 'result')} invalidated", highlight=False)
        if run_on_change:
            return rerun(list(event.tests) if event.tests is not None else [ROOT_ID])
        return None

    try:
        suite = await adapter.load()
        on_load(TestLoadFinishedEvent(suite=suite))
        adapter.tests.listen(on_load)
        adapter.retire.listen(on_retire)
        await adapter.start_watching()
        status(f"Watching {workspace_root}", style="success")
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(asyncio.Event().wait(), timeout=timeout)
    finally:
        await adapter.dispose()


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option("--run-on-change", is_flag=True, help="Re-run invalidated tests after each change")
@click.option("--timeout", type=float, default=None, help="Stop watching after this many seconds")
@click.pass_context
def watch_command(ctx: click.Context, path: Path, run_on_change: bool, timeout: float | None) -> None:
    """Watch a workspace and report test tree changes until interrupted.

    PATH is the workspace root (default: current directory).
    """
    workspace_root = path.resolve()
    config = load_workspace_config(ctx, workspace_root)
    console = Console()

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(
            watch_workspace(
                workspace_root,
                config,
                console,
                run_on_change=run_on_change,
                timeout=timeout,
            )
        )
    status("Stopped watching")
