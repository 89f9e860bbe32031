"""Pick the repo parser that owns a workspace."""

from __future__ import annotations

import asyncio

import structlog

# Imported for registration.
from jestexplorer.projects import create_react_app, nxdev, standard  # noqa: F401
from jestexplorer.projects.base import RepoParser, repo_parser_registry

logger = structlog.get_logger()


async def get_repo_parser(workspace_root: str, path_to_jest: str) -> RepoParser | None:
    """Return the highest-priority parser that matches, or None."""
    parsers = repo_parser_registry.create_all(workspace_root, path_to_jest)
    matches = await asyncio.gather(*(p.is_match() for p in parsers))

    selected: RepoParser | None = None
    for parser, matched in zip(parsers, matches, strict=True):
        if matched and selected is None:
            selected = parser
        else:
            parser.dispose()

    if selected is None:
        logger.info("repo_parser_not_found", workspace_root=workspace_root)
    else:
        logger.info("repo_parser_selected", workspace_root=workspace_root, parser=selected.type)
    return selected
