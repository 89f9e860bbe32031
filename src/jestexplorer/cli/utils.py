"""CLI utilities."""

from pathlib import Path

import click

from jestexplorer.config.loader import load_config
from jestexplorer.config.models import JestExplorerConfig
from jestexplorer.core.errors import ConfigError
from jestexplorer.core.logging import configure_logging


def load_workspace_config(ctx: click.Context, workspace_root: Path) -> JestExplorerConfig:
    """Load the workspace's configuration and apply its logging section.

    --verbose on the command line takes precedence over the configured level.

    Raises:
        click.ClickException: If the configuration is invalid.
    """
    try:
        config = load_config(workspace_root)
    except ConfigError as e:
        raise click.ClickException(e.message) from e

    verbose = bool(ctx.obj and ctx.obj.get("verbose"))
    if not verbose:
        configure_logging(config=config.logging)
    return config
