"""Project discovery: which Jest projects a workspace contains and how to run them."""

from jestexplorer.projects.models import ProjectChangeEvent, ProjectConfig

__all__ = ["ProjectChangeEvent", "ProjectConfig"]
