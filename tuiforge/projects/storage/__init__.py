"""Storage backends for project persistence.

Available backends:
- SQLiteProjectStorage: File-based SQLite database (recommended for local use)
"""

from .protocol import ProjectStorage
from .sqlite import SQLiteProjectStorage

__all__ = [
    "ProjectStorage",
    "SQLiteProjectStorage",
]
