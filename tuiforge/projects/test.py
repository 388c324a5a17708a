"""Tests for project persistence module.

Tests cover:
- Data models and title validation
- SQLite storage ordering and pagination
- ProjectManager CRUD and design snapshot round-trips
"""

from datetime import UTC, datetime, timedelta

import pytest

from tuiforge.schema import DesignTree

from .lib import ProjectManager, close_project_manager, get_project_manager
from .models import Project, drop_none, validate_title
from .storage import SQLiteProjectStorage

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def storage(tmp_db_path):
    """Initialized SQLite storage in a temporary directory."""
    backend = SQLiteProjectStorage(tmp_db_path)
    backend.initialize()
    yield backend
    backend.close()


@pytest.fixture
def manager(tmp_db_path):
    """Create a ProjectManager on a temporary database."""
    mgr = ProjectManager(db_path=tmp_db_path)
    yield mgr
    mgr.close()


def make_project(user_id: str, title: str, minutes: int) -> Project:
    """Project with a fixed updated_at offset for ordering tests."""
    stamp = datetime(2026, 1, 1, tzinfo=UTC) + timedelta(minutes=minutes)
    return Project(
        id=f"{user_id}-{title}",
        user_id=user_id,
        title=title,
        design_data=DesignTree.empty().to_dict(),
        created_at=stamp,
        updated_at=stamp,
    )


# =============================================================================
# Model Tests
# =============================================================================


class TestModels:
    """Tests for data models."""

    @pytest.mark.unit
    def test_project_creation_via_factory(self):
        """Factory assigns an id and matching timestamps."""
        project = Project.create("u1", "Dashboard", {"rootId": "root", "nodes": {}})
        assert project.id
        assert project.is_public is False
        assert project.created_at == project.updated_at

    @pytest.mark.unit
    @pytest.mark.parametrize("title", ["", "x" * 101])
    def test_invalid_titles(self, title):
        """Empty and over-long titles are rejected."""
        with pytest.raises(ValueError):
            validate_title(title)
        with pytest.raises(ValueError):
            Project.create("u1", title, {})

    @pytest.mark.unit
    def test_title_boundaries(self):
        """One and one hundred characters are accepted."""
        assert validate_title("x") == "x"
        assert validate_title("x" * 100) == "x" * 100

    @pytest.mark.unit
    def test_drop_none(self):
        """None values are removed recursively from dicts."""
        data = {"a": None, "b": {"c": None, "d": 1}, "e": [{"f": None}, 2]}
        assert drop_none(data) == {"b": {"d": 1}, "e": [{}, 2]}

    @pytest.mark.unit
    def test_touch_advances(self):
        """touch always moves updated_at forward."""
        project = Project.create("u1", "T", {})
        before = project.updated_at
        project.touch()
        assert project.updated_at > before


# =============================================================================
# Storage Tests
# =============================================================================


class TestSQLiteStorage:
    """Tests for the SQLite backend."""

    @pytest.mark.unit
    def test_requires_initialize(self, tmp_db_path):
        """Operations before initialize raise RuntimeError."""
        backend = SQLiteProjectStorage(tmp_db_path)
        with pytest.raises(RuntimeError):
            backend.get_project("x")

    @pytest.mark.unit
    def test_round_trip(self, storage):
        """Stored projects come back unchanged."""
        project = make_project("u1", "a", 0)
        project.is_public = True
        storage.create_project(project)
        loaded = storage.get_project(project.id)
        assert loaded == project

    @pytest.mark.unit
    def test_ordering_and_cursor(self, storage):
        """Projects list newest first and the cursor pages strictly after."""
        for minutes, title in enumerate(["a", "b", "c", "d"]):
            storage.create_project(make_project("u1", title, minutes))
        storage.create_project(make_project("u2", "other", 10))

        first = storage.list_projects("u1", limit=2)
        assert [p.title for p in first] == ["d", "c"]

        second = storage.list_projects("u1", limit=2, start_after=first[-1].updated_at)
        assert [p.title for p in second] == ["b", "a"]

        assert storage.list_projects("u1", start_after=second[-1].updated_at) == []

    @pytest.mark.unit
    def test_delete_and_count(self, storage):
        """Delete reports whether a row was removed."""
        storage.create_project(make_project("u1", "a", 0))
        storage.create_project(make_project("u2", "b", 0))
        assert storage.count_projects() == 2
        assert storage.delete_project("u1-a") is True
        assert storage.delete_project("u1-a") is False
        assert storage.count_projects("u1") == 0


# =============================================================================
# Manager Tests
# =============================================================================


class TestProjectManager:
    """Tests for ProjectManager operations."""

    @pytest.mark.unit
    def test_save_and_open_tree(self, manager, sample_tree):
        """A saved tree reopens as an equal snapshot."""
        project = manager.save_tree("u1", "Dashboard", sample_tree)
        assert manager.open_tree(project.id) == sample_tree
        assert manager.get_project(project.id).design_data == sample_tree.to_dict()

    @pytest.mark.unit
    def test_save_existing_updates(self, manager, sample_tree):
        """Saving with a project id overwrites instead of creating."""
        project = manager.save_tree("u1", "Draft", DesignTree.empty())
        saved = manager.save_tree("u1", "Final", sample_tree, project_id=project.id)
        assert saved.id == project.id
        assert saved.title == "Final"
        assert saved.updated_at > project.created_at
        assert manager.get_stats("u1") == {"project_count": 1}

    @pytest.mark.unit
    def test_update_moves_project_to_front(self, tmp_db_path):
        """Updating a project makes it the most recent."""
        backend = SQLiteProjectStorage(tmp_db_path)
        mgr = ProjectManager(storage=backend)
        try:
            backend.create_project(make_project("u1", "first", 0))
            backend.create_project(make_project("u1", "second", 1))
            assert [p.title for p in mgr.list_projects("u1")] == ["second", "first"]

            mgr.update_project("u1-first", is_public=True)
            projects = mgr.list_projects("u1")
            assert [p.title for p in projects] == ["first", "second"]
            assert projects[0].is_public is True
        finally:
            mgr.close()

    @pytest.mark.unit
    def test_update_partial(self, manager):
        """Unspecified fields are left alone."""
        project = manager.create_project("u1", "keep", {"rootId": "r", "nodes": {}})
        updated = manager.update_project(project.id, is_public=True)
        assert updated.title == "keep"
        assert updated.design_data == {"rootId": "r", "nodes": {}}

    @pytest.mark.unit
    def test_none_values_dropped(self, manager):
        """None values never reach the stored design JSON."""
        project = manager.create_project(
            "u1", "t", {"rootId": "r", "nodes": {}, "extra": None}
        )
        assert "extra" not in manager.get_project(project.id).design_data

    @pytest.mark.unit
    def test_missing_project(self, manager):
        """Unknown ids raise KeyError on update and open."""
        with pytest.raises(KeyError):
            manager.update_project("nope", title="x")
        with pytest.raises(KeyError):
            manager.open_tree("nope")
        assert manager.get_project("nope") is None
        assert manager.delete_project("nope") is False

    @pytest.mark.unit
    def test_invalid_arguments(self, manager):
        """Bad titles and limits raise ValueError."""
        with pytest.raises(ValueError):
            manager.create_project("u1", "", DesignTree.empty())
        with pytest.raises(ValueError):
            manager.list_projects("u1", limit=0)

    @pytest.mark.unit
    def test_global_manager(self, tmp_db_path):
        """The global manager is created once and can be closed."""
        close_project_manager()
        try:
            mgr = get_project_manager(tmp_db_path)
            assert get_project_manager() is mgr
        finally:
            close_project_manager()
