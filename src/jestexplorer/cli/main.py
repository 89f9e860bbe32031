"""Jest explorer CLI - jexp command."""

import click

from jestexplorer.cli.list_tests import list_command
from jestexplorer.cli.run import run_command
from jestexplorer.cli.watch import watch_command
from jestexplorer.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="jexp")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Jest explorer - discover, run and watch Jest tests across workspace projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(list_command, name="list")
cli.add_command(run_command, name="run")
cli.add_command(watch_command, name="watch")


if __name__ == "__main__":
    cli()
