"""Explorer layer: per-project loading, workspace coordination and run reporting."""

from jestexplorer.explorer.adapter import JestTestAdapter
from jestexplorer.explorer.loader import LoaderState, TestLoader
from jestexplorer.explorer.manager import ProjectManager
from jestexplorer.explorer.projection import TestInfo, TestSuiteInfo, map_workspace_root_to_suite

__all__ = [
    "JestTestAdapter",
    "LoaderState",
    "ProjectManager",
    "TestInfo",
    "TestLoader",
    "TestSuiteInfo",
    "map_workspace_root_to_suite",
]
