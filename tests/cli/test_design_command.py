"""Tests for design and project CLI commands."""

import subprocess
import sys
from pathlib import Path

import pytest

from tuiforge.schema import DesignTree

# Get the project root directory (two levels up from this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli(*args: str) -> subprocess.CompletedProcess:
    """Run ``python . <args>`` from the project root."""
    return subprocess.run(
        [sys.executable, ".", *args],
        capture_output=True,
        text=True,
        encoding="utf-8",
        cwd=PROJECT_ROOT,
        timeout=60,
    )


@pytest.fixture
def design_file(tmp_path):
    """Initialized design file and its root id."""
    path = tmp_path / "app.json"
    result = run_cli("design", "init", str(path), "--direction", "Horizontal")
    assert result.returncode == 0, result.stderr
    return path, result.stdout.strip()


@pytest.mark.integration
class TestDesignCommand:
    """Tests for `python . design`."""

    def test_help_without_arguments(self):
        """Bare design command prints usage and fails."""
        result = run_cli("design")
        assert result.returncode == 1
        assert "usage" in result.stdout.lower()

    def test_init_writes_empty_root(self, design_file):
        """init writes a root layout with no children."""
        path, root_id = design_file
        tree = DesignTree.model_validate_json(path.read_text(encoding="utf-8"))
        assert tree.root_id == root_id
        assert tree.root.direction.value == "Horizontal"
        assert tree.root.children == []

    def test_init_refuses_overwrite(self, design_file):
        """init keeps an existing file unless --force is given."""
        path, _ = design_file
        assert run_cli("design", "init", str(path)).returncode == 1
        assert run_cli("design", "init", str(path), "--force").returncode == 0

    def test_add_resize_show(self, design_file):
        """Edits are written back and visible in the text tree."""
        path, root_id = design_file
        first = run_cli("design", "add", str(path), root_id, "List", "-t", "Menu")
        assert first.returncode == 0, first.stderr
        second = run_cli(
            "design", "add", str(path), root_id, "Paragraph", "-t", "Body"
        )
        assert second.returncode == 0, second.stderr

        resized = run_cli("design", "resize", str(path), root_id, "0", "-50")
        assert resized.returncode == 0, resized.stderr

        shown = run_cli("design", "show", str(path))
        assert shown.returncode == 0
        assert "Menu [List, 30%]" in shown.stdout
        assert "Body [Paragraph, 70%]" in shown.stdout

    def test_set_props(self, design_file):
        """set parses JSON values and plain strings."""
        path, root_id = design_file
        node_id = run_cli("design", "add", str(path), root_id, "List").stdout.strip()

        result = run_cli(
            "design", "set", str(path), node_id, "title=Files", 'items=["a","b"]'
        )
        assert result.returncode == 0, result.stderr

        tree = DesignTree.model_validate_json(path.read_text(encoding="utf-8"))
        data = tree.nodes[node_id].data
        assert data.title == "Files"
        assert data.items == ["a", "b"]

    def test_rejected_edit_leaves_file_alone(self, design_file):
        """A rejected mutation exits 1 and does not rewrite the file."""
        path, root_id = design_file
        before = path.read_text(encoding="utf-8")

        result = run_cli("design", "delete", str(path), root_id)
        assert result.returncode == 1
        assert path.read_text(encoding="utf-8") == before

    def test_generate_with_manifest(self, design_file, tmp_path):
        """generate writes main.rs and Cargo.toml side by side."""
        path, root_id = design_file
        run_cli("design", "add", str(path), root_id, "Paragraph", "-t", "Hi")

        out = tmp_path / "demo" / "src" / "main.rs"
        result = run_cli(
            "design", "generate", str(path), "-o", str(out), "--cargo", "Demo"
        )
        assert result.returncode == 0, result.stderr
        assert '.title("Hi")' in out.read_text(encoding="utf-8")
        manifest = (out.parent / "Cargo.toml").read_text(encoding="utf-8")
        assert 'name = "demo"' in manifest

    def test_missing_file(self, tmp_path):
        """Commands on a missing design file fail cleanly."""
        result = run_cli("design", "show", str(tmp_path / "nope.json"))
        assert result.returncode == 1


@pytest.mark.integration
class TestProjectCommand:
    """Tests for `python . project`."""

    def test_save_list_open_delete(self, design_file, tmp_path):
        """A design file survives a save and open round trip."""
        path, root_id = design_file
        run_cli("design", "add", str(path), root_id, "Block", "-t", "Box")
        db = str(tmp_path / "projects.db")

        saved = run_cli("project", "--db", db, "save", str(path), "My App")
        assert saved.returncode == 0, saved.stderr
        project_id = saved.stdout.strip()

        listed = run_cli("project", "--db", db, "list")
        assert project_id in listed.stdout
        assert "My App" in listed.stdout

        copy = tmp_path / "copy.json"
        opened = run_cli("project", "--db", db, "open", project_id, str(copy))
        assert opened.returncode == 0, opened.stderr
        assert DesignTree.model_validate_json(
            copy.read_text(encoding="utf-8")
        ).to_dict() == DesignTree.model_validate_json(
            path.read_text(encoding="utf-8")
        ).to_dict()

        assert run_cli("project", "--db", db, "delete", project_id).returncode == 0
        assert run_cli("project", "--db", db, "delete", project_id).returncode == 1

    def test_save_rejects_long_title(self, design_file, tmp_path):
        """Titles over 100 characters are rejected."""
        path, _ = design_file
        db = str(tmp_path / "projects.db")
        result = run_cli("project", "--db", db, "save", str(path), "x" * 101)
        assert result.returncode == 1
