"""Unit tests for MCP server module.

Tests cover:
- Server configuration
- Design workspace lifecycle
- Design and project tools (called directly)
- MCP protocol round trips
"""

import threading

import pytest

from tuiforge.schema import DesignTree

from .lib import (
    ServerConfig,
    TransportType,
    get_server_capabilities,
    get_server_version,
)
from .server import create_server, mcp
from .tools import (
    add_node,
    close_design,
    delete_node,
    delete_project,
    generate_code,
    list_projects,
    move_node,
    new_design,
    open_project,
    resize_constraint,
    save_project,
    show_design,
    update_constraint,
    update_node_props,
)
from .workspace import DesignWorkspace, get_workspace

EXPECTED_TOOLS = {
    "new_design",
    "open_project",
    "add_node",
    "delete_node",
    "move_node",
    "update_node_props",
    "update_constraint",
    "resize_constraint",
    "show_design",
    "generate_code",
    "save_project",
    "list_projects",
    "delete_project",
    "status",
}


def shares(design_id: str, parent_id: str) -> list[int]:
    """Constraint values of a layout in an open design."""
    nodes = show_design(design_id)["design"]["nodes"]
    return [c["value"] for c in nodes[parent_id]["constraints"]]


# =============================================================================
# Configuration Tests
# =============================================================================


class TestServerConfig:
    """Tests for ServerConfig dataclass."""

    @pytest.mark.unit
    def test_default_config(self):
        """Default config has expected values."""
        config = ServerConfig()

        assert config.transport == TransportType.STDIO
        assert config.host == "0.0.0.0"
        assert config.port == 18080
        assert config.path == "/mcp"
        assert config.codegen_target == "ratatui"
        assert config.url is None

    @pytest.mark.unit
    def test_from_env(self, monkeypatch):
        """from_env reads host and port from the environment."""
        monkeypatch.setenv("MCP_HOST", "127.0.0.1")
        monkeypatch.setenv("MCP_PORT", "9000")
        config = ServerConfig.from_env(transport=TransportType.HTTP)

        assert config.transport == TransportType.HTTP
        assert config.host == "127.0.0.1"
        assert config.port == 9000
        assert config.url == "http://127.0.0.1:9000/mcp"

    @pytest.mark.unit
    def test_from_env_overrides(self, monkeypatch):
        """Explicit host and port win over the environment."""
        monkeypatch.setenv("MCP_PORT", "9000")
        config = ServerConfig.from_env(
            transport=TransportType.SSE, host="localhost", port=7000
        )

        assert config.port == 7000
        assert config.url == "http://localhost:7000/sse"
        assert config.transport.is_network

    @pytest.mark.unit
    def test_describe(self, monkeypatch, tmp_db_path):
        """describe reports database, target and share policy."""
        monkeypatch.setenv("TUIFORGE_DB_PATH", str(tmp_db_path))
        monkeypatch.setenv("TUIFORGE_MIN_SHARE", "10")
        monkeypatch.delenv("TUIFORGE_NEW_SHARE", raising=False)
        monkeypatch.delenv("TUIFORGE_MAX_MOVED_SHARE", raising=False)
        info = ServerConfig.from_env().describe()

        assert info["database"] == str(tmp_db_path)
        assert info["policy"] == {
            "new_share": 20,
            "max_moved_share": 50,
            "min_share": 10,
        }

    @pytest.mark.unit
    def test_transport_from_string(self):
        """Transport can be created from string."""
        assert TransportType("stdio") == TransportType.STDIO
        assert TransportType("http") == TransportType.HTTP
        assert TransportType("sse") == TransportType.SSE

    @pytest.mark.unit
    def test_server_utilities(self):
        """Version and capabilities are reported."""
        assert len(get_server_version().split(".")) >= 2
        caps = get_server_capabilities()
        assert caps["tools"] is True
        assert caps["resources"] is True

    @pytest.mark.unit
    def test_create_server_returns_mcp(self):
        """create_server returns the module-level instance."""
        assert create_server() is mcp
        assert mcp.name == "tui-forge"


# =============================================================================
# Workspace Tests
# =============================================================================


class TestDesignWorkspace:
    """Tests for DesignWorkspace."""

    @pytest.mark.unit
    def test_create_get_close(self):
        """Designs can be created, looked up and closed."""
        workspace = DesignWorkspace()
        design = workspace.create(direction="Horizontal", title="Demo")
        assert workspace.get(design.id) is design
        assert len(workspace) == 1

        tree = design.queue.snapshot().result()
        assert tree.root.direction.value == "Horizontal"

        assert workspace.close(design.id) is True
        assert design.queue.closed
        assert workspace.close(design.id) is False
        with pytest.raises(KeyError):
            workspace.get(design.id)

    @pytest.mark.unit
    def test_open_invalid_tree(self):
        """Structurally invalid snapshots are refused."""
        tree = DesignTree(root_id="missing", nodes={})
        with pytest.raises(ValueError):
            DesignWorkspace().open(tree)

    @pytest.mark.unit
    def test_close_all(self):
        """close_all stops every writer."""
        workspace = DesignWorkspace()
        designs = [workspace.create() for _ in range(3)]
        workspace.close_all()
        assert len(workspace) == 0
        assert all(d.queue.closed for d in designs)


# =============================================================================
# Design Tool Tests
# =============================================================================


class TestDesignTools:
    """Tests for the design tool functions."""

    @pytest.mark.unit
    def test_new_design(self):
        """new_design returns ids and the text tree."""
        result = new_design(direction="Horizontal")
        assert result["tree"] == f"{result['root_id']} [Layout, horizontal]"
        assert get_workspace().get(result["design_id"])

    @pytest.mark.unit
    def test_add_defaults_to_root(self):
        """Without a parent, nodes go into the root."""
        design = new_design()
        first = add_node(design["design_id"], "Paragraph", props={"title": "A"})
        second = add_node(design["design_id"], "List")

        assert first["applied"] and second["applied"]
        assert shares(design["design_id"], design["root_id"]) == [80, 20]
        assert "├── A [Paragraph, 80%]" in second["tree"]

    @pytest.mark.unit
    def test_add_layout_with_direction(self):
        """Layouts take their direction from props."""
        design = new_design()
        result = add_node(
            design["design_id"], "Layout", props={"direction": "Horizontal"}
        )
        assert f"{result['node_id']} [Layout, horizontal, 100%]" in result["tree"]

    @pytest.mark.unit
    def test_unknown_kind_raises(self):
        """Unknown widget kinds raise ValueError."""
        design = new_design()
        with pytest.raises(ValueError):
            add_node(design["design_id"], "Sparkline")

    @pytest.mark.unit
    def test_unknown_design_raises(self):
        """Unknown design ids raise KeyError."""
        with pytest.raises(KeyError):
            show_design("nope")

    @pytest.mark.unit
    def test_rejection_is_reported(self):
        """Rejected mutations come back with their diagnostic."""
        design = new_design()
        result = delete_node(design["design_id"], design["root_id"])
        assert result["applied"] is False
        assert result["diagnostic"]["code"] == "root_protected"

    @pytest.mark.unit
    def test_edit_sequence(self):
        """Resize, move, props and constraint edits flow through the queue."""
        design = new_design()
        design_id, root = design["design_id"], design["root_id"]
        a = add_node(design_id, "Paragraph")["node_id"]
        b = add_node(design_id, "Block")["node_id"]
        column = add_node(design_id, "Layout")["node_id"]
        assert shares(design_id, root) == [64, 16, 20]

        assert resize_constraint(design_id, root, 0, -14)["applied"]
        assert shares(design_id, root) == [50, 30, 20]

        assert move_node(design_id, b, column)["applied"]
        assert shares(design_id, root) == [71, 29]
        assert shares(design_id, column) == [100]

        result = update_node_props(design_id, a, {"title": "Hi", "textColor": "#fff"})
        assert result["applied"]
        assert "Hi [Paragraph, 71%]" in result["tree"]

        assert update_constraint(design_id, root, 1, "Length", 3.4)["applied"]
        nodes = show_design(design_id)["design"]["nodes"]
        assert nodes[root]["constraints"][1] == {"type": "Length", "value": 3}

    @pytest.mark.unit
    def test_show_design(self):
        """show_design reports validity and the camelCase snapshot."""
        design = new_design(title="Demo")
        result = show_design(design["design_id"])
        assert result["valid"] is True
        assert result["errors"] == []
        assert result["design"]["rootId"] == design["root_id"]
        assert result["title"] == "Demo"

    @pytest.mark.unit
    def test_generate_code(self):
        """generate_code returns main.rs and a manifest named after the title."""
        design = new_design(title="My Dash")
        add_node(design["design_id"], "Paragraph", props={"title": "Hello"})
        result = generate_code(design["design_id"])

        assert result["target"] == "ratatui"
        assert result["filename"] == "main.rs"
        assert '.title("Hello")' in result["code"]
        assert result["manifest_filename"] == "Cargo.toml"
        assert 'name = "my_dash"' in result["manifest"]
        assert result["warnings"] == []

    @pytest.mark.unit
    def test_generate_code_without_name(self):
        """Untitled designs get no manifest."""
        design = new_design()
        result = generate_code(design["design_id"])
        assert result["manifest"] is None
        assert result["manifest_filename"] is None

    @pytest.mark.unit
    def test_concurrent_adds(self):
        """Adds from several threads are all applied and shares stay valid."""
        design = new_design()
        design_id = design["design_id"]

        def worker():
            for _ in range(3):
                add_node(design_id, "Block")

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        values = shares(design_id, design["root_id"])
        assert len(values) == 12
        assert sum(values) == 100
        assert min(values) >= 5
        assert show_design(design_id)["valid"]

    @pytest.mark.unit
    def test_close_design(self):
        """Closed designs are no longer reachable."""
        design = new_design()
        assert close_design(design["design_id"])["closed"] is True
        with pytest.raises(KeyError):
            show_design(design["design_id"])


# =============================================================================
# Project Tool Tests
# =============================================================================


class TestProjectTools:
    """Tests for the project tool functions."""

    @pytest.mark.unit
    def test_save_requires_title(self):
        """Untitled designs need a title to be saved."""
        design = new_design()
        with pytest.raises(ValueError):
            save_project(design["design_id"])

    @pytest.mark.unit
    def test_save_open_round_trip(self):
        """A saved design reopens with the same tree."""
        design = new_design()
        add_node(design["design_id"], "Table", props={"headers": ["A"]})
        saved = save_project(design["design_id"], title="Report")
        assert saved["title"] == "Report"
        assert saved["node_count"] == 2

        opened = open_project(saved["project_id"])
        assert opened["design_id"] != design["design_id"]
        original = show_design(design["design_id"])["design"]
        reopened = show_design(opened["design_id"])["design"]
        assert reopened == original

    @pytest.mark.unit
    def test_second_save_updates(self):
        """Saving the same design again overwrites its project."""
        design = new_design(title="Draft")
        first = save_project(design["design_id"])
        add_node(design["design_id"], "Block")
        second = save_project(design["design_id"], title="Final")

        assert second["project_id"] == first["project_id"]
        projects = list_projects()["projects"]
        assert [p["title"] for p in projects] == ["Final"]
        assert projects[0]["node_count"] == 2

    @pytest.mark.unit
    def test_list_pagination(self):
        """next_start_after pages through projects."""
        for title in ["a", "b", "c"]:
            save_project(new_design(title=title)["design_id"])

        page = list_projects(limit=2)
        assert len(page["projects"]) == 2
        rest = list_projects(limit=2, start_after=page["next_start_after"])
        assert len(rest["projects"]) == 1
        assert rest["next_start_after"] is None

        titles = {p["title"] for p in page["projects"] + rest["projects"]}
        assert titles == {"a", "b", "c"}

    @pytest.mark.unit
    def test_delete_and_open_missing(self):
        """Deleted projects cannot be opened."""
        saved = save_project(new_design(title="gone")["design_id"])
        assert delete_project(saved["project_id"])["deleted"] is True
        assert delete_project(saved["project_id"])["deleted"] is False
        with pytest.raises(KeyError):
            open_project(saved["project_id"])


# =============================================================================
# MCP Protocol Integration Tests (require async)
# =============================================================================


@pytest.mark.mcp
class TestMCPProtocol:
    """Integration tests using MCP client protocol."""

    @pytest.mark.asyncio
    async def test_client_can_list_tools(self, mcp_client):
        """Every design and project tool is exposed."""
        tools = await mcp_client.list_tools()
        assert {t.name for t in tools} == EXPECTED_TOOLS

    @pytest.mark.asyncio
    async def test_client_can_call_status(self, mcp_client):
        """status reports policy and targets."""
        result = await mcp_client.call_tool("status", {})
        assert result.data["status"] == "healthy"
        assert "ratatui" in result.data["targets"]
        assert result.data["policy"]["min_share"] == 5

    @pytest.mark.asyncio
    async def test_client_design_workflow(self, mcp_client):
        """A design can be built and generated over the protocol."""
        created = (await mcp_client.call_tool("new_design", {})).data
        await mcp_client.call_tool(
            "add_node",
            {
                "design_id": created["design_id"],
                "kind": "Paragraph",
                "props": {"title": 'Hello "World"'},
            },
        )
        result = await mcp_client.call_tool(
            "generate_code", {"design_id": created["design_id"]}
        )
        assert '.title("Hello \\"World\\"")' in result.data["code"]

    @pytest.mark.asyncio
    async def test_unknown_design_is_error(self, mcp_client):
        """Unknown designs surface as tool errors."""
        with pytest.raises(Exception, match="No open design"):
            await mcp_client.call_tool("show_design", {"design_id": "missing"})
