"""File probing shared by the repo parsers."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

import structlog

from jestexplorer.config.constants import JEST_CONFIG_FILES

logger = structlog.get_logger()

DEFAULT_PROJECT_NAME = "default"

# Searched in order after the dedicated jest.config.* files.
JEST_RC_FILES: tuple[str, ...] = (".jestrc", ".jestrc.json", ".jestrc.yaml", ".jestrc.yml")

DEPENDENCY_KEYS: tuple[str, ...] = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)


def read_json(path: Path) -> dict[str, Any] | None:
    """Load a JSON object from disk. None if missing, unreadable or not an object."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning("json_file_unreadable", path=str(path), error=str(e))
        return None
    return data if isinstance(data, dict) else None


def read_package_json(directory: str | Path) -> dict[str, Any] | None:
    return read_json(Path(directory) / "package.json")


def has_dependency(package_json: dict[str, Any], name: str) -> bool:
    """True if name appears in any dependency block of package.json."""
    for key in DEPENDENCY_KEYS:
        deps = package_json.get(key)
        if isinstance(deps, dict) and name in deps:
            return True
    return False


def get_project_name(directory: str | Path) -> str:
    """package.json displayName, then name, then "default"."""
    package_json = read_package_json(directory)
    if package_json is None:
        return DEFAULT_PROJECT_NAME
    return package_json.get("displayName") or package_json.get("name") or DEFAULT_PROJECT_NAME


def get_ts_config(directory: str | Path) -> str | None:
    path = Path(directory) / "tsconfig.json"
    return str(path) if path.is_file() else None


def get_jest_config_in_directory(directory: str | Path) -> str | None:
    """Locate the Jest config that applies to directory, without searching upward.

    Dedicated config files win; a package.json counts only when it has a
    ``jest`` key.
    """
    root = Path(directory)
    for name in (*JEST_CONFIG_FILES, *JEST_RC_FILES):
        candidate = root / name
        if candidate.is_file():
            return str(candidate)

    package_json = read_package_json(root)
    if package_json is not None and isinstance(package_json.get("jest"), dict):
        return str(root / "package.json")
    return None


def get_jest_setup_file(jest_config: str | None) -> str | None:
    """First setupFiles (else setupFilesAfterEnv) entry of a JSON Jest config.

    JavaScript configs cannot be evaluated here and yield None.
    """
    if not jest_config:
        return None
    path = Path(jest_config)
    if path.suffix != ".json" and path.name != ".jestrc":
        return None

    data = read_json(path)
    if data is None:
        return None
    if path.name == "package.json":
        data = data.get("jest") if isinstance(data.get("jest"), dict) else {}

    for key in ("setupFiles", "setupFilesAfterEnv"):
        entries = data.get(key)
        if isinstance(entries, list) and entries:
            root_dir = str(data.get("rootDir") or path.parent)
            setup = str(entries[0]).replace("<rootDir>", root_dir)
            return os.path.normpath(os.path.join(path.parent, setup))
    return None


def local_jest_executable(root_dir: str | Path) -> str:
    name = "jest.cmd" if sys.platform == "win32" else "jest"
    return os.path.normpath(os.path.join(os.path.abspath(root_dir), "node_modules", ".bin", name))


def path_to_jest(workspace_root: str | Path, configured: str | None = None) -> str:
    """Resolve the Jest executable for a workspace.

    An explicitly configured path wins; otherwise the workspace's local
    ``node_modules/.bin/jest`` if installed, else a global ``jest``.
    """
    if configured:
        return configured
    local = local_jest_executable(workspace_root)
    if os.path.exists(local):
        return local
    return "jest"
