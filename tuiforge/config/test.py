"""Tests for configuration management."""

from pathlib import Path

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    _find_repo_root,
    get_crate_versions,
    get_data_dir,
    get_db_path,
    get_environment,
    get_environment_info,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("TUIFORGE_NEW_SHARE", raising=False)
        assert get_environment(EnvVar.NEW_SHARE) == 20

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("TUIFORGE_MIN_SHARE", "9")
        assert get_environment(EnvVar.MIN_SHARE, override=3) == 3

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("TUIFORGE_MAX_MOVED_SHARE", "40")
        assert get_environment(EnvVar.MAX_MOVED_SHARE) == 40

    @pytest.mark.unit
    def test_int_type_conversion(self, monkeypatch):
        """Integer type conversion from string."""
        monkeypatch.setenv("MCP_PORT", "8080")
        result = get_environment(EnvVar.MCP_PORT)
        assert result == 8080
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_invalid_int_returns_default(self, monkeypatch):
        """Invalid integer value returns default."""
        monkeypatch.setenv("TUIFORGE_NEW_SHARE", "a lot")
        assert get_environment(EnvVar.NEW_SHARE) == 20

    @pytest.mark.unit
    def test_path_type_conversion(self, monkeypatch, tmp_path):
        """Path variables are converted to Path objects."""
        monkeypatch.setenv("TUIFORGE_DB_PATH", str(tmp_path / "x.db"))
        result = get_environment(EnvVar.DB_PATH)
        assert isinstance(result, Path)
        assert result.name == "x.db"

    @pytest.mark.unit
    def test_string_type(self, monkeypatch):
        """String type returns as-is."""
        monkeypatch.setenv("RATATUI_VERSION", "0.30")
        assert get_environment(EnvVar.RATATUI_VERSION) == "0.30"


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.MIN_SHARE)
        assert isinstance(info, EnvConfig)
        assert info.name == "TUIFORGE_MIN_SHARE"
        assert info.default == 5
        assert info.var_type is int
        assert info.category == "layout"

    @pytest.mark.unit
    def test_description_present(self):
        """Every variable carries a description."""
        for var in EnvVar:
            assert get_environment_info(var).description


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_list_all(self):
        """No category returns every variable."""
        assert set(list_environment_variables()) == set(EnvVar)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Category filter returns only matching variables."""
        layout_vars = list_environment_variables("layout")
        assert set(layout_vars) == {
            EnvVar.NEW_SHARE,
            EnvVar.MAX_MOVED_SHARE,
            EnvVar.MIN_SHARE,
        }

    @pytest.mark.unit
    def test_unknown_category_empty(self):
        """Unknown category yields an empty list."""
        assert list_environment_variables("nope") == []


# =============================================================================
# Tests for path helpers
# =============================================================================


class TestPaths:
    """Tests for data directory and database path resolution."""

    @pytest.mark.unit
    def test_data_dir_override(self, tmp_path):
        """Explicit override wins."""
        assert get_data_dir(tmp_path) == tmp_path

    @pytest.mark.unit
    def test_data_dir_from_env(self, monkeypatch, tmp_path):
        """TUIFORGE_DATA_DIR is honoured."""
        monkeypatch.setenv("TUIFORGE_DATA_DIR", str(tmp_path))
        assert get_data_dir() == tmp_path

    @pytest.mark.unit
    def test_db_path_defaults_under_data_dir(self, monkeypatch, tmp_path):
        """Database defaults to projects.db inside the data directory."""
        monkeypatch.delenv("TUIFORGE_DB_PATH", raising=False)
        monkeypatch.setenv("TUIFORGE_DATA_DIR", str(tmp_path))
        assert get_db_path() == tmp_path / "projects.db"

    @pytest.mark.unit
    def test_find_repo_root_marker(self, tmp_path):
        """Root detection stops at the first marker file."""
        (tmp_path / "pyproject.toml").write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert _find_repo_root(nested) == tmp_path.resolve()


class TestCrateVersions:
    """Tests for generated manifest versions."""

    @pytest.mark.unit
    def test_defaults(self, monkeypatch):
        """Defaults match the supported crate versions."""
        monkeypatch.delenv("RATATUI_VERSION", raising=False)
        monkeypatch.delenv("CROSSTERM_VERSION", raising=False)
        assert get_crate_versions() == {"crossterm": "0.28", "ratatui": "0.29"}
