"""Unit tests for the ratatui code target."""

import pytest

from tuiforge.codegen import GenerationIssue
from tuiforge.codegen.ratatui import (
    RatatuiTarget,
    constraint_expr,
    escape_string,
    sanitize_package_name,
)
from tuiforge.schema import Constraint, DesignTree, LayoutNode, WidgetNode


@pytest.fixture
def target():
    """Create a RatatuiTarget instance."""
    return RatatuiTarget()


def single_widget_tree(widget_type, **data):
    """Root vertical layout holding one widget."""
    return DesignTree(
        root_id="root",
        nodes={
            "root": LayoutNode(
                id="root", children=["w"], constraints=[Constraint.percentage(100)]
            ),
            "w": WidgetNode(id="w", widget_type=widget_type, data=data),
        },
    )


def ui_body(code):
    """Text of the ui function after the area binding."""
    return code.split("let area = f.area();\n", 1)[1]


class TestEscapeString:
    """Tests for Rust string escaping."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw,escaped",
        [
            ('Hello "World"', 'Hello \\"World\\"'),
            ("back\\slash", "back\\\\slash"),
            ("a\nb", "a\\nb"),
            ("a\rb", "a\\rb"),
            ("a\tb", "a\\tb"),
            ("plain", "plain"),
        ],
    )
    def test_escapes(self, raw, escaped):
        """Special characters are escaped for string literals."""
        assert escape_string(raw) == escaped


class TestConstraintExpr:
    """Tests for constraint expressions."""

    @pytest.mark.unit
    def test_each_kind(self):
        """Every constraint kind maps to its ratatui variant."""
        expr = constraint_expr(Constraint.percentage(40))
        assert expr == "Constraint::Percentage(40)"
        assert constraint_expr(Constraint.length(3)) == "Constraint::Length(3)"
        assert constraint_expr(Constraint.minimum(2)) == "Constraint::Min(2)"
        assert constraint_expr(Constraint.maximum(9)) == "Constraint::Max(9)"


class TestRatatuiTarget:
    """Tests for RatatuiTarget."""

    @pytest.mark.unit
    def test_target_name(self, target):
        """Target has correct name and extension."""
        assert target.name == "ratatui"
        assert target.file_extension == ".rs"

    @pytest.mark.unit
    def test_boilerplate(self, target):
        """Output carries the terminal setup, event loop and ui function."""
        code = target.generate(DesignTree.empty())
        assert code.startswith("use crossterm::")
        assert "use ratatui::{prelude::*, widgets::*};" in code
        assert "enable_raw_mode()?;" in code
        assert "Duration::from_millis(100)" in code
        assert "KeyCode::Char('q')" in code
        assert "fn ui(f: &mut Frame) {" in code

    @pytest.mark.unit
    def test_escaped_title(self, target):
        """A title with quotes renders as an escaped string literal."""
        code = target.generate(single_widget_tree("Paragraph", title='Hello "World"'))
        assert '.title("Hello \\"World\\"")' in code

    @pytest.mark.unit
    def test_paragraph_exact(self, target):
        """A titled paragraph renders the full statement block."""
        tree = single_widget_tree("Paragraph", title="Hi", content="Body")
        expected = (
            "    let layout_0 = Layout::default()\n"
            "        .direction(Direction::Vertical)\n"
            "        .constraints([Constraint::Percentage(100)])\n"
            "        .split(area);\n"
            "\n"
            "    f.render_widget(\n"
            '        Paragraph::new("Body")\n'
            "            .block(Block::default()\n"
            '                .title("Hi")\n'
            "                .borders(Borders::ALL)\n"
            "                .border_type(BorderType::Plain)\n"
            "                .border_style(Style::default().fg(Color::White)))\n"
            "            .style(Style::default().fg(Color::White)),\n"
            "        layout_0[0],\n"
            "    );\n"
            "}\n"
        )
        assert ui_body(target.generate(tree)) == expected

    @pytest.mark.unit
    def test_no_block_without_title_or_border(self, target):
        """Untitled, unbordered widgets get no block."""
        code = target.generate(single_widget_tree("Paragraph", content="x"))
        assert ".block(" not in code

    @pytest.mark.unit
    def test_border_none_with_title(self, target):
        """An explicit None border keeps the title but draws no border."""
        code = target.generate(
            single_widget_tree("List", title="T", borderStyle="None", items=["a"])
        )
        assert ".borders(Borders::NONE))" in code
        assert "BorderType" not in ui_body(code)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "style,expected",
        [
            ("Plain", "BorderType::Plain"),
            ("Rounded", "BorderType::Rounded"),
            ("Double", "BorderType::Double"),
        ],
    )
    def test_border_types(self, target, style, expected):
        """Border styles map to ratatui border types."""
        code = target.generate(single_widget_tree("Block", borderStyle=style))
        assert f".border_type({expected})" in code

    @pytest.mark.unit
    def test_colors(self, target):
        """Hex colors become Rgb values; 3-digit forms are expanded."""
        code = target.generate(
            single_widget_tree(
                "Paragraph",
                borderStyle="Rounded",
                borderColor="#0af",
                textColor="#102030",
                backgroundColor="#000",
            )
        )
        assert ".border_style(Style::default().fg(Color::Rgb(0, 170, 255)))" in code
        assert (
            ".style(Style::default()"
            ".fg(Color::Rgb(16, 32, 48)).bg(Color::Rgb(0, 0, 0)))"
            in code
        )

    @pytest.mark.unit
    def test_invalid_color_warns(self, target):
        """Bad colors fall back to the default and produce a warning."""
        result = target.generate_with_warnings(
            single_widget_tree("Paragraph", textColor="teal")
        )
        assert ".style(Style::default().fg(Color::White))" in result.code
        assert [w.issue for w in result.warnings] == [GenerationIssue.INVALID_COLOR]
        assert result.warnings[0].node_id == "w"
        assert result.warnings[0].value == "teal"

    @pytest.mark.unit
    def test_list(self, target):
        """Lists render one ListItem per item."""
        code = target.generate(single_widget_tree("List", items=["a", 'b"c']))
        assert 'List::new([ListItem::new("a"), ListItem::new("b\\"c")])' in code

    @pytest.mark.unit
    def test_list_defaults(self, target):
        """Lists without items use placeholder items."""
        code = target.generate(single_widget_tree("List"))
        assert 'ListItem::new("Item 3")' in code

    @pytest.mark.unit
    def test_table(self, target):
        """Tables render rows, equal column widths and a bold header."""
        code = target.generate(
            single_widget_tree(
                "Table", headers=["A", "B"], rows=[["1", "2"], ["3", "4"]]
            )
        )
        assert (
            'Table::new([Row::new([Cell::from("1"), Cell::from("2")]), '
            'Row::new([Cell::from("3"), Cell::from("4")])], '
            "[Constraint::Percentage(50), Constraint::Percentage(50)])"
        ) in code
        assert (
            '.header(Row::new([Cell::from("A"), Cell::from("B")])'
            ".style(Style::default().bold()))"
        ) in code

    @pytest.mark.unit
    def test_block_default_title(self, target):
        """Blocks always render a bordered block with a title."""
        code = target.generate(single_widget_tree("Block"))
        assert 'Block::default()\n            .title("Block")' in code

    @pytest.mark.unit
    def test_input(self, target):
        """Inputs render as a bordered paragraph showing the placeholder."""
        code = target.generate(
            single_widget_tree("Input", label="Name", placeholder="Type here")
        )
        assert 'Paragraph::new("Type here")' in code
        assert '.title("Name")' in code
        assert ".style(Style::default().fg(Color::DarkGray))" in code

    @pytest.mark.unit
    def test_nested_layouts(self, target, sample_tree):
        """Nested layouts split the parent's slot with pre-order numbering."""
        code = target.generate(sample_tree)
        assert ".direction(Direction::Horizontal)" in code
        assert (
            ".constraints([Constraint::Percentage(30), Constraint::Percentage(70)])"
            in code
        )
        assert "// Nested layout in layout_0[1]" in code
        assert "let layout_1 = Layout::default()" in code
        assert ".split(layout_0[1]);" in code
        assert ".constraints([Constraint::Length(3), Constraint::Min(5)])" in code
        assert "        layout_1[1],\n" in code
        assert code.index("layout_0[0]") < code.index("let layout_1")

    @pytest.mark.unit
    def test_empty_nested_layout(self, target):
        """Empty layouts emit a comment instead of a split."""
        tree = DesignTree(
            root_id="root",
            nodes={
                "root": LayoutNode(
                    id="root", children=["e"], constraints=[Constraint.percentage(100)]
                ),
                "e": LayoutNode(id="e"),
            },
        )
        code = target.generate(tree)
        assert "// Empty layout (layout_0[0])" in code
        assert "layout_1" not in code

    @pytest.mark.unit
    def test_dangling_child(self, target):
        """Missing children emit a placeholder and a warning."""
        tree = DesignTree(
            root_id="root",
            nodes={
                "root": LayoutNode(
                    id="root",
                    children=["ghost"],
                    constraints=[Constraint.percentage(100)],
                )
            },
        )
        result = target.generate_with_warnings(tree)
        assert "// Missing node ghost (layout_0[0])" in result.code
        assert result.warnings[0].issue == GenerationIssue.MISSING_NODE

    @pytest.mark.unit
    def test_cycle_does_not_recurse(self, target):
        """A cyclic tree is rendered once with a warning."""
        tree = DesignTree(
            root_id="root",
            nodes={
                "root": LayoutNode(
                    id="root",
                    children=["root"],
                    constraints=[Constraint.percentage(100)],
                )
            },
        )
        result = target.generate_with_warnings(tree)
        assert [w.issue for w in result.warnings] == [GenerationIssue.CYCLE]

    @pytest.mark.unit
    def test_missing_root(self, target):
        """A missing root still produces a program."""
        result = target.generate_with_warnings(DesignTree(root_id="nope", nodes={}))
        assert "// Missing root layout" in result.code
        assert result.warnings[0].issue == GenerationIssue.MISSING_ROOT


class TestManifest:
    """Tests for Cargo.toml generation."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "title,expected",
        [
            ("My TUI App", "my_tui_app"),
            ("dash-board_2", "dash-board_2"),
            ("9lives", "_9lives"),
            ("Ünïcode!", "_n_code_"),
            ("", "tui_app"),
        ],
    )
    def test_sanitize(self, title, expected):
        """Package names are reduced to Cargo-safe characters."""
        assert sanitize_package_name(title) == expected

    @pytest.mark.unit
    def test_manifest_contents(self, target, monkeypatch):
        """Manifest pins the configured crate versions."""
        monkeypatch.setenv("RATATUI_VERSION", "0.30")
        monkeypatch.delenv("CROSSTERM_VERSION", raising=False)
        manifest = target.generate_manifest("Demo App")
        assert manifest.startswith("[package]\n")
        assert 'name = "demo_app"' in manifest
        assert 'edition = "2021"' in manifest
        assert 'crossterm = "0.28"' in manifest
        assert 'ratatui = "0.30"' in manifest
