"""Project persistence tools for MCP server.

Saved projects live in the project database; an opened project becomes a
regular open design in the workspace.
"""

import logging
from datetime import datetime
from typing import Any

from tuiforge.projects import Project, get_project_manager

from ..workspace import get_workspace

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "local"


def _project_summary(project: Project) -> dict[str, Any]:
    return {
        "project_id": project.id,
        "title": project.title,
        "is_public": project.is_public,
        "created_at": project.created_at.isoformat(),
        "updated_at": project.updated_at.isoformat(),
        "node_count": len(project.design_data.get("nodes", {})),
    }


def save_project(
    design_id: str,
    title: str | None = None,
    user_id: str = DEFAULT_USER_ID,
) -> dict[str, Any]:
    """Save an open design as a project.

    The first save creates a project; later saves of the same design
    overwrite it.

    Args:
        design_id: Open design to save.
        title: Project title (1-100 characters). Defaults to the design title.
        user_id: Owner of a newly created project.

    Returns:
        Project summary.

    Raises:
        KeyError: If the design is not open.
        ValueError: If no valid title is available.
    """
    design = get_workspace().get(design_id)
    title = title or design.title
    if not title:
        raise ValueError("A title is required to save a design")

    tree = design.queue.snapshot().result()
    project = get_project_manager().save_tree(
        user_id, title, tree, project_id=design.project_id
    )
    design.project_id = project.id
    design.title = project.title
    design.queue.call(lambda store: store.mark_clean()).result()
    return {"design_id": design_id, **_project_summary(project)}


def open_project(project_id: str) -> dict[str, Any]:
    """Open a saved project as a new design.

    Raises:
        KeyError: If the project does not exist.
    """
    manager = get_project_manager()
    project = manager.get_project(project_id)
    if project is None:
        raise KeyError(f"Project not found: {project_id}")
    tree = manager.open_tree(project_id)
    design = get_workspace().open(tree, title=project.title, project_id=project.id)
    summary = _project_summary(project)
    return {"design_id": design.id, "root_id": tree.root_id, **summary}


def list_projects(
    user_id: str = DEFAULT_USER_ID,
    limit: int = 20,
    start_after: str | None = None,
) -> dict[str, Any]:
    """List saved projects, most recently updated first.

    Args:
        user_id: Owner to list for.
        limit: Maximum results (1-100).
        start_after: ``updated_at`` of the last project of the previous page.

    Returns:
        Dictionary with projects and the cursor for the next page.
    """
    limit = max(1, min(100, limit))
    cursor = datetime.fromisoformat(start_after) if start_after else None
    projects = get_project_manager().list_projects(
        user_id, limit=limit, start_after=cursor
    )
    summaries = [_project_summary(p) for p in projects]
    next_cursor = summaries[-1]["updated_at"] if len(summaries) == limit else None
    return {"projects": summaries, "next_start_after": next_cursor}


def delete_project(project_id: str) -> dict[str, Any]:
    """Delete a saved project. Open designs are left untouched."""
    deleted = get_project_manager().delete_project(project_id)
    return {"project_id": project_id, "deleted": deleted}
