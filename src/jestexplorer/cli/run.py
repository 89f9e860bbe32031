"""jexp run command - run tests and report results."""

import asyncio
from collections import Counter
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from jestexplorer.cli.render import format_summary, format_test_result
from jestexplorer.cli.utils import load_workspace_config
from jestexplorer.config.constants import ROOT_ID
from jestexplorer.config.models import JestExplorerConfig
from jestexplorer.explorer.adapter import JestTestAdapter
from jestexplorer.explorer.events import TestEvent, TestRunEvent


async def run_tests(
    workspace_root: Path,
    config: JestExplorerConfig,
    test_ids: list[str],
    console: Console,
) -> Counter[str]:
    """Load the workspace, run the given ids and print each result as it arrives."""
    counts: Counter[str] = Counter()

    def on_state(event: TestRunEvent) -> None:
        if not isinstance(event, TestEvent) or event.state == "running":
            return
        counts[event.state] += 1
        console.print(format_test_result(event, str(workspace_root)), highlight=False)
        if event.state in ("failed", "errored") and event.message:
            console.print(f"[dim]{escape(event.message)}[/dim]", highlight=False)

    adapter = JestTestAdapter(str(workspace_root), config)
    adapter.test_states.listen(on_state)
    try:
        await adapter.load()
        await adapter.run(test_ids)
    finally:
        await adapter.dispose()
    return counts


@click.command()
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("test_ids", nargs=-1)
@click.pass_context
def run_command(ctx: click.Context, path: Path, test_ids: tuple[str, ...]) -> None:
    """Run Jest tests and report the results.

    PATH is the workspace root (default: current directory). TEST_IDS narrow the
    run to the given tree ids (see 'jexp list --json'); without them every test
    runs. Exits with status 1 if any test failed.
    """
    workspace_root = path.resolve()
    config = load_workspace_config(ctx, workspace_root)
    console = Console()

    counts = asyncio.run(run_tests(workspace_root, config, list(test_ids) or [ROOT_ID], console))

    console.print(format_summary(counts), highlight=False)
    if counts["failed"] or counts["errored"]:
        ctx.exit(1)
