"""User-facing console output for CLI commands.

Usage::

    from jestexplorer.core.progress import status, spinner

    status("Discovering projects...")
    status("3 tests passed", style="success")  # ✓ 3 tests passed

    with spinner("Running Jest"):
        await adapter.run(["root"])
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console

# Console for output
_console = Console(stderr=True)

# Style prefixes
_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "skipped": "[dim]○[/dim] ",
    "info": "  ",
    "none": "",
}


def _is_tty() -> bool:
    """Check if stderr is a TTY."""
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


def style_prefix(style: str) -> str:
    return _STYLES.get(style, "")


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status message to stderr."""
    padding = " " * indent
    _console.print(f"{padding}{style_prefix(style)}{message}", highlight=False)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Args:
        count: The number of items
        singular: Singular form (e.g., "test")
        plural: Plural form (default: singular + "s")

    Returns:
        Formatted string like "1 test" or "3 tests"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


@contextmanager
def spinner(message: str, *, indent: int = 0) -> Iterator[None]:
    """Show a spinner while the block runs. Non-TTY output prints the message once."""
    padding = " " * indent
    if _is_tty():
        with _console.status(f"{padding}[cyan]{message}[/cyan]", spinner="dots"):
            yield
    else:
        _console.print(f"{padding}{message}...")
        yield
