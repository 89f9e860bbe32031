"""File watcher using watchfiles for async filesystem monitoring.

Design:
- Python walks the workspace tree skipping prunable dirs (node_modules...)
- Builds an explicit list of directories to watch
- Passes them to awatch with recursive=False (one inotify watch per dir)
- Reacts immediately to new directory creation by restarting awatch
- Falls back to mtime polling for cross-filesystem mounts (WSL /mnt/*)

Batches are delivered to a single ChangeDispatcher task through a queue, so
edits are applied in the order they were observed. Within one batch only the
last change to each path is kept.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from collections import Counter
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import structlog
from watchfiles import Change, awatch

from jestexplorer.core.excludes import should_prune_dir

logger = structlog.get_logger()

FileChangeKind = Literal["added", "modified", "deleted"]

_CHANGE_KINDS: dict[Change, FileChangeKind] = {
    Change.added: "added",
    Change.modified: "modified",
    Change.deleted: "deleted",
}


@dataclass(frozen=True, slots=True)
class FileChange:
    kind: FileChangeKind
    path: str


def _collect_watch_dirs(root: Path) -> list[Path]:
    """Walk the workspace and collect all directories to watch.

    Returns a flat list of directories. The root itself is always included.
    Each directory gets a single non-recursive inotify watch.
    """
    dirs: list[Path] = [root]
    try:
        for dirpath, dirnames, _filenames in os.walk(root):
            dirnames[:] = [d for d in dirnames if not should_prune_dir(d)]
            for d in dirnames:
                dirs.append(Path(dirpath) / d)
    except OSError:
        pass
    return dirs


def _is_cross_filesystem(path: Path) -> bool:
    """Detect if path is on a cross-filesystem mount (WSL /mnt/*, network drives, etc.)."""
    path_str = str(path.resolve())
    # WSL accessing Windows filesystem: /mnt/c/, /mnt/d/, etc.
    if (
        path_str.startswith("/mnt/")
        and len(path_str) > 6
        and path_str[5].isalpha()
        and path_str[6] == "/"
    ):
        return True
    return path_str.startswith(("/run/user/", "/media/", "/net/"))


def _summarize_changes_by_type(paths: list[str]) -> str:
    """Summarize file changes by extension, e.g. "2 TypeScript files, 1 JSON file"."""
    ext_names: dict[str, str] = {
        ".js": "JavaScript",
        ".cjs": "JavaScript",
        ".mjs": "JavaScript",
        ".ts": "TypeScript",
        ".mts": "TypeScript",
        ".cts": "TypeScript",
        ".jsx": "JSX",
        ".tsx": "TSX",
        ".json": "JSON",
        ".css": "CSS",
        ".scss": "SCSS",
        ".html": "HTML",
        ".md": "Markdown",
        ".snap": "snapshot",
    }

    ext_counts: Counter[str] = Counter(Path(p).suffix.lower() for p in paths)

    parts: list[str] = []
    for ext, count in ext_counts.most_common(3):
        name = ext_names.get(ext, ext.lstrip(".").upper() if ext else "other")
        word = "file" if count == 1 else "files"
        parts.append(f"{count} {name} {word}")

    shown_count = sum(count for _, count in ext_counts.most_common(3))
    remaining = len(paths) - shown_count
    if remaining > 0:
        word = "other" if remaining == 1 else "others"
        parts.append(f"{remaining} {word}")

    return ", ".join(parts)


# Debouncing configuration
DEBOUNCE_WINDOW_SEC = 0.5  # Sliding window for batching rapid changes
MAX_DEBOUNCE_WAIT_SEC = 2.0  # Maximum wait before forcing flush


@dataclass
class FileWatcher:
    """
    Async file watcher with sliding-window debouncing.

    Design:
    - Python walks the workspace to build an explicit directory list
    - Uses watchfiles with recursive=False (one inotify watch per dir)
    - Reacts immediately to new directory creation by restarting awatch
    - Falls back to mtime polling for cross-filesystem mounts
    - Changes are buffered until debounce_window of quiet time
    - max_debounce_wait caps the delay for rapid-fire changes
    - Notifies on_change with the batch, one FileChange per path
    """

    root: Path
    on_change: Callable[[list[FileChange]], None]
    poll_interval: float = 1.0  # Seconds between mtime polls (cross-filesystem)
    debounce_window: float = DEBOUNCE_WINDOW_SEC
    max_debounce_wait: float = MAX_DEBOUNCE_WAIT_SEC
    force_polling: bool = False

    _watch_task: asyncio.Task[None] | None = field(default=None, init=False)
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    _is_cross_fs: bool = field(init=False)
    # Debouncing state; insertion order is arrival order
    _pending_changes: dict[str, FileChangeKind] = field(default_factory=dict, init=False)
    _last_change_time: float = field(default=0.0, init=False)
    _first_change_time: float = field(default=0.0, init=False)
    _debounce_task: asyncio.Task[None] | None = field(default=None, init=False)
    _dir_scan_task: asyncio.Task[None] | None = field(default=None, init=False)
    _watched_dirs: set[Path] = field(default_factory=set, init=False)

    def __post_init__(self) -> None:
        self._is_cross_fs = self.force_polling or _is_cross_filesystem(self.root)

    @property
    def is_running(self) -> bool:
        return self._watch_task is not None

    async def start(self) -> None:
        """Start watching for file changes."""
        if self._watch_task is not None:
            return

        self._stop_event.clear()
        if self._is_cross_fs:
            self._watch_task = asyncio.create_task(self._poll_loop())
            logger.info(
                "file_watcher_started",
                root=str(self.root),
                mode="polling",
                interval=self.poll_interval,
                debounce_window=self.debounce_window,
            )
        else:
            self._watch_task = asyncio.create_task(self._watch_loop())
            # Periodic safety-net scan for directory changes we might have missed
            self._dir_scan_task = asyncio.create_task(self._periodic_dir_scan())
            logger.info(
                "file_watcher_started",
                root=str(self.root),
                mode="native_nonrecursive",
                debounce_window=self.debounce_window,
            )

    async def stop(self) -> None:
        """Stop watching and deliver any pending changes."""
        self._stop_event.set()

        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._debounce_task
            self._debounce_task = None

        if self._dir_scan_task is not None and not self._dir_scan_task.done():
            self._dir_scan_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._dir_scan_task
            self._dir_scan_task = None

        if self._pending_changes:
            self._flush_pending()

        if self._watch_task is not None:
            self._watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._watch_task, timeout=2.0)
            self._watch_task = None

        logger.info("file_watcher_stopped", root=str(self.root))

    def _queue_change(self, kind: FileChangeKind, path: str) -> None:
        """Queue a change for debounced delivery. A later change to a path replaces an earlier one."""
        now = time.monotonic()

        if not self._pending_changes:
            self._first_change_time = now

        self._pending_changes.pop(path, None)
        self._pending_changes[path] = kind
        self._last_change_time = now

    def _should_flush(self) -> bool:
        if not self._pending_changes:
            return False

        now = time.monotonic()
        time_since_last = now - self._last_change_time
        time_since_first = now - self._first_change_time

        return time_since_last >= self.debounce_window or time_since_first >= self.max_debounce_wait

    def _flush_pending(self) -> None:
        if not self._pending_changes:
            return

        changes = [FileChange(kind=kind, path=path) for path, kind in self._pending_changes.items()]
        self._pending_changes.clear()
        self._first_change_time = 0.0
        self._last_change_time = 0.0

        summary = _summarize_changes_by_type([c.path for c in changes])
        logger.info("changes_detected", count=len(changes), summary=summary)

        self.on_change(changes)

    async def _debounce_flush_loop(self) -> None:
        """Background task that flushes when the debounce window elapses."""
        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(0.1)

                if self._should_flush():
                    self._flush_pending()
        except asyncio.CancelledError:
            pass

    async def _watch_loop(self) -> None:
        """Main watch loop using watchfiles with non-recursive inotify.

        Recursive watches would descend into node_modules, which exhausts
        inotify watches and silently degrades to polling.
        """
        self._debounce_task = asyncio.create_task(self._debounce_flush_loop())

        try:
            while not self._stop_event.is_set():
                watch_dirs = _collect_watch_dirs(self.root)
                self._watched_dirs = set(watch_dirs)

                logger.info("watch_dirs_collected", count=len(watch_dirs), root=str(self.root))

                try:
                    async for changes in awatch(
                        *watch_dirs,
                        recursive=False,
                        step=500,
                        rust_timeout=10_000,
                        stop_event=self._stop_event,
                        ignore_permission_denied=True,
                    ):
                        if self._handle_changes(changes):
                            logger.info("watcher_restart_requested", reason="new_directories")
                            break
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if self._stop_event.is_set():
                        return
                    logger.error("watcher_error", error=str(e))
                    await asyncio.sleep(1.0)
        except asyncio.CancelledError:
            pass
        finally:
            if self._debounce_task:
                self._debounce_task.cancel()

    async def _periodic_dir_scan(self) -> None:
        """Safety-net rescan for directories created while awatch was restarting."""
        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(30.0)
                current_dirs = set(_collect_watch_dirs(self.root))
                if current_dirs != self._watched_dirs:
                    logger.info(
                        "dir_scan_drift_detected",
                        new_count=len(current_dirs - self._watched_dirs),
                        removed_count=len(self._watched_dirs - current_dirs),
                    )
                    if self._watch_task and not self._watch_task.done():
                        self._watch_task.cancel()
                        with contextlib.suppress(asyncio.CancelledError):
                            await self._watch_task
                        self._watch_task = asyncio.create_task(self._watch_loop())
        except asyncio.CancelledError:
            pass

    async def _poll_loop(self) -> None:
        """Poll loop using mtime checks, for mounts where inotify does not work."""
        mtimes = self._scan_mtimes()

        self._debounce_task = asyncio.create_task(self._debounce_flush_loop())

        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(self.poll_interval)

                try:
                    current_mtimes = self._scan_mtimes()
                    self._diff_mtimes(mtimes, current_mtimes)
                    mtimes = current_mtimes
                except Exception as e:
                    logger.error("poll_error", error=str(e))
        finally:
            if self._debounce_task:
                self._debounce_task.cancel()

    def _diff_mtimes(self, previous: dict[str, float], current: dict[str, float]) -> None:
        for path, mtime in current.items():
            old_mtime = previous.get(path)
            if old_mtime is None:
                self._queue_change("added", path)
            elif mtime > old_mtime:
                self._queue_change("modified", path)

        for path in previous:
            if path not in current:
                self._queue_change("deleted", path)

    def _scan_mtimes(self) -> dict[str, float]:
        """Scan the workspace for file mtimes, skipping prunable dirs."""
        mtimes: dict[str, float] = {}
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [d for d in dirnames if not should_prune_dir(d)]

            for filename in filenames:
                file_path = os.path.join(dirpath, filename)
                with contextlib.suppress(OSError):
                    mtimes[file_path] = os.stat(file_path).st_mtime

        return mtimes

    def _handle_changes(self, changes: set[tuple[Change, str]]) -> bool:
        """Queue a batch of raw changes.

        Returns True if a watcher restart is needed (new directories detected).
        """
        needs_restart = False

        for change_type, path_str in changes:
            path = Path(path_str)

            try:
                rel_path = path.relative_to(self.root)
            except ValueError:
                continue

            if any(should_prune_dir(part) for part in rel_path.parts[:-1]):
                continue

            if change_type == Change.added and path.is_dir():
                if not should_prune_dir(path.name) and path not in self._watched_dirs:
                    logger.info("new_directory_detected", path=str(rel_path))
                    needs_restart = True
                continue

            self._queue_change(_CHANGE_KINDS[change_type], path_str)
            logger.debug("path_queued", path=str(rel_path), change_type=change_type.name)

        return needs_restart


ChangeHandler = Callable[[list[FileChange]], Awaitable[None]]


class ChangeDispatcher:
    """Single consumer of file-change batches.

    Batches are handled one at a time in submission order. A failing handler
    is logged and the next batch is still processed.
    """

    def __init__(self, handler: ChangeHandler) -> None:
        self._handler = handler
        self._queue: asyncio.Queue[list[FileChange]] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def submit(self, changes: list[FileChange]) -> None:
        if changes:
            self._queue.put_nowait(changes)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._consume())

    async def join(self) -> None:
        """Wait until every submitted batch has been handled."""
        await self._queue.join()

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _consume(self) -> None:
        while True:
            changes = await self._queue.get()
            try:
                await self._handler(changes)
            except Exception:
                logger.exception("file_changes_handler_failed", count=len(changes))
            finally:
                self._queue.task_done()
