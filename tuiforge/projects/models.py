"""Data models for project persistence.

A project is a titled, user-owned design snapshot.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

TITLE_MAX_LENGTH = 100


def validate_title(title: str) -> str:
    """Check a project title.

    Args:
        title: Proposed title.

    Returns:
        The title unchanged.

    Raises:
        ValueError: If the title is empty or longer than 100 characters.
    """
    if not isinstance(title, str) or len(title) < 1:
        raise ValueError("Project title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValueError(
            f"Project title must be at most {TITLE_MAX_LENGTH} characters"
        )
    return title


def drop_none(value: Any) -> Any:
    """Recursively remove None values from dicts (list items are kept)."""
    if isinstance(value, dict):
        return {k: drop_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [drop_none(v) for v in value]
    return value


@dataclass
class Project:
    """A saved design owned by a user.

    Attributes:
        id: Unique project identifier.
        user_id: Owner of the project.
        title: Display title (1-100 characters).
        design_data: Design snapshot in camelCase JSON form.
        is_public: Whether the project is shared.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    id: str
    user_id: str
    title: str
    design_data: dict[str, Any]
    is_public: bool = False

    # Timestamps
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def create(
        cls,
        user_id: str,
        title: str,
        design_data: dict[str, Any],
        is_public: bool = False,
    ) -> "Project":
        """Factory method to create a new project with generated ID."""
        now = datetime.now(UTC)
        return cls(
            id=str(uuid4()),
            user_id=user_id,
            title=validate_title(title),
            design_data=drop_none(design_data),
            is_public=is_public,
            created_at=now,
            updated_at=now,
        )

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        # Strictly increasing, even on coarse clocks
        self.updated_at = max(
            datetime.now(UTC), self.updated_at + timedelta(microseconds=1)
        )
