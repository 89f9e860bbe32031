"""Filesystem watching for incremental tree updates."""

from jestexplorer.daemon.watcher import ChangeDispatcher, FileChange, FileWatcher

__all__ = ["ChangeDispatcher", "FileChange", "FileWatcher"]
