"""Project persistence for tui-forge.

Saved designs are stored per user in a SQLite database.

Example:
    >>> from tuiforge.projects import get_project_manager
    >>> manager = get_project_manager()
    >>> project = manager.save_tree("local", "Dashboard", tree)
    >>> [p.title for p in manager.list_projects("local")]
    ['Dashboard']
"""

from .lib import (
    ProjectManager,
    close_project_manager,
    get_project_manager,
)
from .models import TITLE_MAX_LENGTH, Project, drop_none, validate_title
from .storage import ProjectStorage, SQLiteProjectStorage

__all__ = [
    # Manager
    "ProjectManager",
    "get_project_manager",
    "close_project_manager",
    # Models
    "Project",
    "TITLE_MAX_LENGTH",
    "drop_none",
    "validate_title",
    # Storage
    "ProjectStorage",
    "SQLiteProjectStorage",
]
