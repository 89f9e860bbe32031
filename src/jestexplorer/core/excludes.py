"""Directory exclusion tiers for test discovery and file watching.

Tier 0 (HARDCODED_DIRS): Never traversed.
    - VCS internals and our own data directory

Tier 1 (DEFAULT_PRUNABLE_DIRS): Dependencies, caches and build outputs of
    JavaScript toolchains. Test files living under these are never collected.

PRUNABLE_DIRS = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS.
"""

from __future__ import annotations

HARDCODED_DIRS: frozenset[str] = frozenset(
    (
        # VCS internals
        ".git",
        ".svn",
        ".hg",
        ".bzr",
        # Explorer data
        ".jestexplorer",
    )
)

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        # -------------------------------------------------------------------------
        # Package managers
        # -------------------------------------------------------------------------
        "node_modules",
        ".npm",
        ".yarn",
        ".pnpm-store",
        "bower_components",
        # -------------------------------------------------------------------------
        # Framework build output and caches
        # -------------------------------------------------------------------------
        ".next",
        ".nuxt",
        ".turbo",
        ".angular",
        ".nx",
        ".cache",
        ".parcel-cache",
        "coverage",
        # -------------------------------------------------------------------------
        # Editors
        # -------------------------------------------------------------------------
        ".idea",
        ".vscode-test",
    )
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def should_prune_dir(dirname: str) -> bool:
    """Check if a directory name is never traversed during discovery."""
    return dirname in PRUNABLE_DIRS
