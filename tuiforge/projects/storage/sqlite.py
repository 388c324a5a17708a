"""SQLite storage backend for project persistence."""

import json
import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..models import Project

logger = logging.getLogger(__name__)

# SQL Schema
SCHEMA_SQL = """
-- Projects table
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    design_data TEXT NOT NULL,  -- JSON
    is_public INTEGER DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Indexes for common queries
CREATE INDEX IF NOT EXISTS idx_projects_user_updated
    ON projects(user_id, updated_at);
"""


def _to_text(value: datetime) -> str:
    """Normalize a timestamp to sortable UTC ISO text."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


class SQLiteProjectStorage:
    """SQLite-based storage backend for projects.

    Timestamps are stored as fixed-width UTC ISO strings so that text
    ordering matches chronological ordering.

    Args:
        db_path: Path to SQLite database file.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection, creating if needed."""
        if self._conn is None:
            raise RuntimeError("Storage not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Initialize storage (create database, tables, directories)."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode = WAL")

        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

        logger.info(f"Initialized SQLite project storage at {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    # =========================================================================
    # Project Operations
    # =========================================================================

    def create_project(self, project: Project) -> Project:
        """Store a new project."""
        conn = self._get_conn()
        conn.execute(
            """
            INSERT INTO projects (
                id, user_id, title, design_data, is_public, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                project.id,
                project.user_id,
                project.title,
                json.dumps(project.design_data),
                int(project.is_public),
                _to_text(project.created_at),
                _to_text(project.updated_at),
            ),
        )
        conn.commit()
        return project

    def get_project(self, project_id: str) -> Project | None:
        """Get a project by ID."""
        conn = self._get_conn()
        row = conn.execute(
            "SELECT * FROM projects WHERE id = ?", (project_id,)
        ).fetchone()
        if row:
            return self._row_to_project(row)
        return None

    def list_projects(
        self,
        user_id: str,
        limit: int = 20,
        start_after: datetime | None = None,
    ) -> list[Project]:
        """List a user's projects ordered by updated_at descending."""
        conn = self._get_conn()

        query = "SELECT * FROM projects WHERE user_id = ?"
        params: list[Any] = [user_id]

        if start_after is not None:
            query += " AND updated_at < ?"
            params.append(_to_text(start_after))

        query += " ORDER BY updated_at DESC, id DESC LIMIT ?"
        params.append(limit)

        rows = conn.execute(query, params).fetchall()
        return [self._row_to_project(row) for row in rows]

    def update_project(self, project: Project) -> Project:
        """Persist changes to an existing project."""
        conn = self._get_conn()
        conn.execute(
            """
            UPDATE projects SET title = ?, design_data = ?, is_public = ?,
                                updated_at = ?
            WHERE id = ?
            """,
            (
                project.title,
                json.dumps(project.design_data),
                int(project.is_public),
                _to_text(project.updated_at),
                project.id,
            ),
        )
        conn.commit()
        return project

    def delete_project(self, project_id: str) -> bool:
        """Delete a project."""
        conn = self._get_conn()
        cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        conn.commit()
        return cursor.rowcount > 0

    def count_projects(self, user_id: str | None = None) -> int:
        """Count stored projects, optionally for one user."""
        conn = self._get_conn()
        if user_id is None:
            row = conn.execute("SELECT COUNT(*) FROM projects").fetchone()
        else:
            row = conn.execute(
                "SELECT COUNT(*) FROM projects WHERE user_id = ?", (user_id,)
            ).fetchone()
        return row[0]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _row_to_project(self, row: sqlite3.Row) -> Project:
        """Convert database row to Project object."""
        return Project(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            design_data=json.loads(row["design_data"]),
            is_public=bool(row["is_public"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
