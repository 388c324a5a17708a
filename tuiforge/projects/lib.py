"""Project Manager for tui-forge.

Provides project persistence for design trees: create, list, update and
delete saved designs, plus helpers that move snapshots between a
``TreeStore`` and storage.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from tuiforge.config import get_db_path
from tuiforge.schema import DesignTree

from .models import Project, drop_none, validate_title
from .storage import SQLiteProjectStorage
from .storage.protocol import ProjectStorage

logger = logging.getLogger(__name__)


class ProjectManager:
    """Manager for saved design projects.

    Example:
        >>> manager = ProjectManager(db_path="projects.db")
        >>> project = manager.save_tree("user-1", "Dashboard", tree)
        >>> manager.open_tree(project.id).root_id
        'root'

    Args:
        storage: Storage backend to use. If None, creates SQLiteProjectStorage.
        db_path: Path to database file (only used if storage is None).
    """

    def __init__(
        self,
        storage: ProjectStorage | None = None,
        db_path: Path | str | None = None,
    ):
        if storage:
            self._storage = storage
        else:
            self._storage = SQLiteProjectStorage(get_db_path(db_path))

        self._storage.initialize()

    def close(self) -> None:
        """Close storage connections."""
        self._storage.close()

    # =========================================================================
    # Project CRUD
    # =========================================================================

    def create_project(
        self,
        user_id: str,
        title: str,
        design_data: DesignTree | dict[str, Any],
        is_public: bool = False,
    ) -> Project:
        """Create and store a new project.

        Args:
            user_id: Owner of the project.
            title: Project title (1-100 characters).
            design_data: Snapshot to store.
            is_public: Whether the project is shared.

        Returns:
            Created project.

        Raises:
            ValueError: If the title is invalid.
        """
        project = Project.create(
            user_id=user_id,
            title=title,
            design_data=_design_dict(design_data),
            is_public=is_public,
        )
        self._storage.create_project(project)
        logger.debug(f"Created project {project.id} for {user_id}")
        return project

    def get_project(self, project_id: str) -> Project | None:
        """Get a project by ID.

        Args:
            project_id: Project identifier.

        Returns:
            Project if found, None otherwise.
        """
        return self._storage.get_project(project_id)

    def list_projects(
        self,
        user_id: str,
        limit: int = 20,
        start_after: datetime | None = None,
    ) -> list[Project]:
        """List a user's projects, most recently updated first.

        Pass the ``updated_at`` of the last project of a page as
        ``start_after`` to fetch the next page.

        Args:
            user_id: Owner to list for.
            limit: Maximum projects to return.
            start_after: Pagination cursor.

        Returns:
            List of projects.

        Raises:
            ValueError: If limit is not positive.
        """
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit}")
        return self._storage.list_projects(
            user_id, limit=limit, start_after=start_after
        )

    def update_project(
        self,
        project_id: str,
        title: str | None = None,
        design_data: DesignTree | dict[str, Any] | None = None,
        is_public: bool | None = None,
    ) -> Project:
        """Update fields of an existing project.

        Only the given fields change; ``updated_at`` always advances.

        Raises:
            KeyError: If the project does not exist.
            ValueError: If the title is invalid.
        """
        project = self._storage.get_project(project_id)
        if project is None:
            raise KeyError(f"Project not found: {project_id}")

        if title is not None:
            project.title = validate_title(title)
        if design_data is not None:
            project.design_data = _design_dict(design_data)
        if is_public is not None:
            project.is_public = is_public
        project.touch()

        return self._storage.update_project(project)

    def delete_project(self, project_id: str) -> bool:
        """Delete a project.

        Returns:
            True if deleted, False if not found.
        """
        deleted = self._storage.delete_project(project_id)
        if deleted:
            logger.debug(f"Deleted project {project_id}")
        return deleted

    # =========================================================================
    # Design snapshots
    # =========================================================================

    def save_tree(
        self,
        user_id: str,
        title: str,
        tree: DesignTree,
        project_id: str | None = None,
    ) -> Project:
        """Save a design snapshot.

        Updates ``project_id`` when given, otherwise creates a new private
        project.

        Args:
            user_id: Owner of a new project.
            title: Project title.
            tree: Snapshot to save.
            project_id: Existing project to overwrite.

        Returns:
            The saved project.
        """
        if project_id:
            return self.update_project(project_id, title=title, design_data=tree)
        return self.create_project(user_id, title, tree)

    def open_tree(self, project_id: str) -> DesignTree:
        """Load the design snapshot of a project.

        Raises:
            KeyError: If the project does not exist.
            pydantic.ValidationError: If the stored design is malformed.
        """
        project = self._storage.get_project(project_id)
        if project is None:
            raise KeyError(f"Project not found: {project_id}")
        return DesignTree.from_dict(project.design_data)

    def get_stats(self, user_id: str | None = None) -> dict[str, Any]:
        """Storage statistics."""
        return {"project_count": self._storage.count_projects(user_id)}


def _design_dict(design: DesignTree | dict[str, Any]) -> dict[str, Any]:
    if isinstance(design, DesignTree):
        return design.to_dict()
    return drop_none(design)


# Global instance for convenience
_global_manager: ProjectManager | None = None


def get_project_manager(db_path: Path | str | None = None) -> ProjectManager:
    """Get or create the global project manager.

    Args:
        db_path: Database path (only used on first call).

    Returns:
        Global ProjectManager instance.
    """
    global _global_manager
    if _global_manager is None:
        _global_manager = ProjectManager(db_path=db_path)
    return _global_manager


def close_project_manager() -> None:
    """Close and clear the global project manager."""
    global _global_manager
    if _global_manager:
        _global_manager.close()
        _global_manager = None


__all__ = [
    "ProjectManager",
    "get_project_manager",
    "close_project_manager",
]
