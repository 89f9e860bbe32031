"""Structured logging for discovery, watching and Jest runs.

Every event logged inside ``run_context`` carries the run's ``run_id`` and
``project`` so the interleaved output of concurrent project runs can be
told apart. Outputs (console or file, JSON or key/value) are configured
through ``LoggingConfig``; the CLI sends them to stderr so stdout stays
free for command output.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from jestexplorer.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)

# Third-party loggers that are chatty below WARNING
_QUIET_LOGGERS = ("watchfiles.main", "watchfiles.watcher", "asyncio")

_LEVELS = logging.getLevelNamesMapping()


def get_run_id() -> str | None:
    return _run_id.get()


@contextmanager
def run_context(project: str, run_id: str | None = None) -> Iterator[str]:
    """Tag every event logged in the block with a run id and project name.

    Yields the run id (generated when not given). The previous context is
    restored on exit, so nested or sequential runs never leak ids.
    """
    rid = run_id or uuid4().hex[:12]
    token = _run_id.set(rid)
    try:
        with structlog.contextvars.bound_contextvars(project=project):
            yield rid
    finally:
        _run_id.reset(token)


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := _run_id.get():
        event_dict.setdefault("run_id", rid)
    return event_dict


def _level(name: str | None, default: int) -> int:
    if not name:
        return default
    return _LEVELS.get(name.upper(), default)


def _make_formatter(
    output: LogOutputConfig,
    pre_chain: list[structlog.types.Processor],
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        renderer = structlog.dev.ConsoleRenderer(
            colors=output.destination in ("stderr", "stdout") and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)


def _make_handler(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog on top of stdlib handlers.

    Pass ``config`` for multiple outputs with their own levels; otherwise a
    single stderr output is created from ``json_format`` and ``level``.
    Safe to call repeatedly: previous handlers are closed and replaced.
    """
    from jestexplorer.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level, logging.INFO)

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_run_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration (e.g. -v after the workspace config) must take effect
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    for output in config.outputs:
        handler = _make_handler(output.destination)
        handler.setLevel(_level(output.level or config.level, root_level))
        handler.setFormatter(_make_formatter(output, pre_chain))
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
