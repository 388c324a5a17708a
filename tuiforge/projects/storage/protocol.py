"""Storage protocol for project persistence.

Defines the interface that all storage backends must implement.
"""

from datetime import datetime
from typing import Protocol

from ..models import Project


class ProjectStorage(Protocol):
    """Protocol defining the storage interface for project persistence.

    All storage backends must implement this interface to be compatible
    with ProjectManager.
    """

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> None:
        """Initialize storage (create tables, indexes, etc.)."""
        ...

    def close(self) -> None:
        """Close storage connections and clean up resources."""
        ...

    # =========================================================================
    # Project Operations
    # =========================================================================

    def create_project(self, project: Project) -> Project:
        """Store a new project.

        Args:
            project: Project to store.

        Returns:
            Stored project.
        """
        ...

    def get_project(self, project_id: str) -> Project | None:
        """Get a project by ID.

        Args:
            project_id: Project identifier.

        Returns:
            Project if found, None otherwise.
        """
        ...

    def list_projects(
        self,
        user_id: str,
        limit: int = 20,
        start_after: datetime | None = None,
    ) -> list[Project]:
        """List a user's projects, newest first.

        Args:
            user_id: Owner to list for.
            limit: Maximum projects to return.
            start_after: Cursor; only projects updated strictly before it.

        Returns:
            List of projects ordered by updated_at descending.
        """
        ...

    def update_project(self, project: Project) -> Project:
        """Persist changes to an existing project.

        Args:
            project: Project with updated fields.

        Returns:
            Updated project.
        """
        ...

    def delete_project(self, project_id: str) -> bool:
        """Delete a project.

        Args:
            project_id: Project to delete.

        Returns:
            True if deleted, False if not found.
        """
        ...

    def count_projects(self, user_id: str | None = None) -> int:
        """Count stored projects, optionally for one user."""
        ...
