"""ratatui code target.

Translates a design tree into a ``main.rs`` for ratatui driven through
crossterm: one ``Layout::split`` per layout node and one ``render_widget``
call per widget, wrapped in a fixed terminal setup and event loop.

Layout variables are numbered in pre-order (``layout_0`` splits the frame
area, nested layouts split a slot of their parent such as ``layout_0[1]``).

See: https://ratatui.rs/
"""

import logging
import re

from tuiforge.codegen.colors import parse_hex_color
from tuiforge.codegen.lib import (
    CodeTarget,
    GenerationIssue,
    GenerationResult,
    GenerationWarning,
    register_target,
)
from tuiforge.config import get_crate_versions
from tuiforge.schema import (
    BorderStyle,
    Constraint,
    ConstraintType,
    DesignTree,
    Direction,
    LayoutNode,
    WidgetNode,
    WidgetStyle,
    WidgetType,
)

logger = logging.getLogger(__name__)

INDENT = "    "

PRELUDE = """\
use crossterm::{execute, terminal::{disable_raw_mode, enable_raw_mode, EnterAlternateScreen, LeaveAlternateScreen}, event::{self, Event, KeyCode}};
use ratatui::{prelude::*, widgets::*};
use std::io::{self, stdout};

fn main() -> io::Result<()> {
    // Setup terminal
    enable_raw_mode()?;
    let mut stdout = stdout();
    execute!(stdout, EnterAlternateScreen)?;
    let backend = CrosstermBackend::new(stdout);
    let mut terminal = Terminal::new(backend)?;

    // Main loop
    loop {
        terminal.draw(|f| {
            ui(f);
        })?;

        // Handle events
        if event::poll(std::time::Duration::from_millis(100))? {
            if let Event::Key(key) = event::read()? {
                if key.code == KeyCode::Char('q') {
                    break;
                }
            }
        }
    }

    // Restore terminal
    disable_raw_mode()?;
    execute!(terminal.backend_mut(), LeaveAlternateScreen)?;

    Ok(())
}

fn ui(f: &mut Frame) {
    let area = f.area();
"""

EPILOGUE = "}\n"

DIRECTIONS = {
    Direction.VERTICAL: "Direction::Vertical",
    Direction.HORIZONTAL: "Direction::Horizontal",
}

BORDER_TYPES = {
    BorderStyle.PLAIN: "BorderType::Plain",
    BorderStyle.ROUNDED: "BorderType::Rounded",
    BorderStyle.DOUBLE: "BorderType::Double",
}

DEFAULT_FG = "Color::White"
DEFAULT_INPUT_FG = "Color::DarkGray"

DEFAULT_PARAGRAPH = "Paragraph content"
DEFAULT_ITEMS = ["Item 1", "Item 2", "Item 3"]
DEFAULT_HEADERS = ["Column 1", "Column 2", "Column 3"]
DEFAULT_ROWS = [["A", "B", "C"]]
DEFAULT_BLOCK_TITLE = "Block"
DEFAULT_PLACEHOLDER = "Enter text..."

_RUST_ESCAPES = str.maketrans(
    {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}
)


def escape_string(text: str) -> str:
    """Escape text for a Rust double-quoted string literal.

    Backslash, double quote, newline, carriage return and tab are escaped.

    Example:
        >>> escape_string('Hello "World"')
        'Hello \\\\"World\\\\"'
    """
    return text.translate(_RUST_ESCAPES)


def constraint_expr(constraint: Constraint) -> str:
    """Rust expression for one layout constraint."""
    match constraint.type:
        case ConstraintType.PERCENTAGE:
            return f"Constraint::Percentage({constraint.value})"
        case ConstraintType.LENGTH:
            return f"Constraint::Length({constraint.value})"
        case ConstraintType.MIN:
            return f"Constraint::Min({constraint.value})"
        case ConstraintType.MAX:
            return f"Constraint::Max({constraint.value})"


def sanitize_package_name(project_name: str) -> str:
    """Make a Cargo package name from a project title.

    Lowercases, replaces anything outside ``[a-z0-9_-]`` with ``_`` and
    prefixes a leading digit with ``_``.

    Example:
        >>> sanitize_package_name("My TUI App")
        'my_tui_app'
    """
    name = re.sub(r"[^a-z0-9_-]", "_", project_name.lower())
    name = re.sub(r"^[0-9]", r"_\g<0>", name)
    return name or "tui_app"


class _Emitter:
    """Accumulates statements for one ``generate`` call."""

    def __init__(self, tree: DesignTree):
        self.tree = tree
        self.statements: list[list[str]] = []
        self.warnings: list[GenerationWarning] = []
        self._layout_count = 0
        self._active: set[str] = set()

    def warn(
        self,
        issue: GenerationIssue,
        node_id: str,
        message: str,
        value: str | None = None,
    ) -> None:
        self.warnings.append(
            GenerationWarning(
                issue=issue, node_id=node_id, message=message, value=value
            )
        )

    def body(self) -> str:
        blocks = [
            "\n".join(INDENT + line if line else "" for line in statement)
            for statement in self.statements
        ]
        return "\n\n".join(blocks) + ("\n" if blocks else "")

    # -------------------------------------------------------------------------
    # Nodes
    # -------------------------------------------------------------------------

    def node(self, node_id: str, area: str) -> None:
        node = self.tree.nodes.get(node_id)
        if node is None:
            self.warn(
                GenerationIssue.MISSING_NODE,
                node_id,
                f"Child '{node_id}' is not in the tree; rendered nothing for {area}",
            )
            self.statements.append([f"// Missing node {node_id} ({area})"])
            return
        if node_id in self._active:
            self.warn(
                GenerationIssue.CYCLE,
                node_id,
                f"Node '{node_id}' contains itself; skipped at {area}",
            )
            self.statements.append([f"// Cyclic reference to {node_id} ({area})"])
            return

        if isinstance(node, LayoutNode):
            self._active.add(node_id)
            self.layout(node, area)
            self._active.discard(node_id)
        else:
            self.widget(node, area)

    def layout(self, node: LayoutNode, area: str) -> None:
        if not node.children:
            self.statements.append(
                ["// Empty layout" if area == "area" else f"// Empty layout ({area})"]
            )
            return

        if len(node.constraints) != len(node.children):
            self.warn(
                GenerationIssue.CONSTRAINT_MISMATCH,
                node.id,
                f"{len(node.children)} children but "
                f"{len(node.constraints)} constraints",
            )

        var = f"layout_{self._layout_count}"
        self._layout_count += 1
        constraints = ", ".join(constraint_expr(c) for c in node.constraints)
        self.statements.append(
            [
                f"let {var} = Layout::default()",
                f"{INDENT}.direction({DIRECTIONS[node.direction]})",
                f"{INDENT}.constraints([{constraints}])",
                f"{INDENT}.split({area});",
            ]
        )

        for index, child_id in enumerate(node.children):
            slot = f"{var}[{index}]"
            if index >= len(node.constraints):
                self.statements.append([f"// No slot for {child_id} ({slot})"])
                continue
            if isinstance(self.tree.nodes.get(child_id), LayoutNode):
                self.statements.append([f"// Nested layout in {slot}"])
            self.node(child_id, slot)

    def widget(self, node: WidgetNode, area: str) -> None:
        match node.widget_type:
            case WidgetType.PARAGRAPH:
                expr = self.render_paragraph(node)
            case WidgetType.LIST:
                expr = self.render_list(node)
            case WidgetType.TABLE:
                expr = self.render_table(node)
            case WidgetType.BLOCK:
                expr = self.render_block(node)
            case WidgetType.INPUT:
                expr = self.render_input(node)

        expr[-1] += ","
        self.statements.append(
            ["f.render_widget("]
            + [INDENT + line for line in expr]
            + [f"{INDENT}{area},", ");"]
        )

    # -------------------------------------------------------------------------
    # Widgets
    # -------------------------------------------------------------------------

    def render_paragraph(self, node: WidgetNode) -> list[str]:
        data = node.data
        content = escape_string(data.content or DEFAULT_PARAGRAPH)
        lines = [f'Paragraph::new("{content}")']
        lines += self.optional_block(node, data.title)
        lines.append(self.style(node, DEFAULT_FG))
        return lines

    def render_list(self, node: WidgetNode) -> list[str]:
        data = node.data
        items = DEFAULT_ITEMS if data.items is None else data.items
        items_code = ", ".join(f'ListItem::new("{escape_string(i)}")' for i in items)
        lines = [f"List::new([{items_code}])"]
        lines += self.optional_block(node, data.title)
        lines.append(self.style(node, DEFAULT_FG))
        return lines

    def render_table(self, node: WidgetNode) -> list[str]:
        data = node.data
        headers = DEFAULT_HEADERS if data.headers is None else data.headers
        rows = DEFAULT_ROWS if data.rows is None else data.rows

        header_cells = ", ".join(f'Cell::from("{escape_string(h)}")' for h in headers)
        rows_code = ", ".join(
            "Row::new([{}])".format(
                ", ".join(f'Cell::from("{escape_string(cell)}")' for cell in row)
            )
            for row in rows
        )
        width = 100 // len(headers) if headers else 100
        widths = ", ".join(f"Constraint::Percentage({width})" for _ in headers)

        header = f"Row::new([{header_cells}]).style(Style::default().bold())"
        lines = [
            f"Table::new([{rows_code}], [{widths}])",
            f"{INDENT}.header({header})",
        ]
        lines += self.optional_block(node, data.title)
        lines.append(self.style(node, DEFAULT_FG))
        return lines

    def render_block(self, node: WidgetNode) -> list[str]:
        data = node.data
        chain = self.block_chain(node, data.title or DEFAULT_BLOCK_TITLE)
        if data.background_color:
            chain.append(f"{INDENT}.style(Style::default().bg({self.bg(node)}))")
        return chain

    def render_input(self, node: WidgetNode) -> list[str]:
        data = node.data
        placeholder = escape_string(data.placeholder or DEFAULT_PLACEHOLDER)
        lines = [f'Paragraph::new("{placeholder}")']
        lines += self.wrap_block(self.block_chain(node, data.label or None))
        lines.append(self.style(node, DEFAULT_INPUT_FG))
        return lines

    # -------------------------------------------------------------------------
    # Shared pieces
    # -------------------------------------------------------------------------

    def optional_block(self, node: WidgetNode, title: str | None) -> list[str]:
        """Bordered container, emitted when titled or explicitly bordered."""
        style = node.data.border_style
        if not title and (style is None or style == BorderStyle.NONE):
            return []
        return self.wrap_block(self.block_chain(node, title or None))

    def block_chain(self, node: WidgetNode, title: str | None) -> list[str]:
        data: WidgetStyle = node.data
        chain = ["Block::default()"]
        if title:
            chain.append(f'{INDENT}.title("{escape_string(title)}")')
        if data.border_style == BorderStyle.NONE:
            chain.append(f"{INDENT}.borders(Borders::NONE)")
            return chain
        border_type = BORDER_TYPES[data.border_style or BorderStyle.PLAIN]
        border_color = self.color(node, "borderColor", data.border_color, DEFAULT_FG)
        chain += [
            f"{INDENT}.borders(Borders::ALL)",
            f"{INDENT}.border_type({border_type})",
            f"{INDENT}.border_style(Style::default().fg({border_color}))",
        ]
        return chain

    @staticmethod
    def wrap_block(chain: list[str]) -> list[str]:
        lines = [f"{INDENT}.block({chain[0]}"] + [INDENT + line for line in chain[1:]]
        lines[-1] += ")"
        return lines

    def style(self, node: WidgetNode, default_fg: str) -> str:
        fg = self.color(node, "textColor", node.data.text_color, default_fg)
        style = f"Style::default().fg({fg})"
        if node.data.background_color:
            style += f".bg({self.bg(node)})"
        return f"{INDENT}.style({style})"

    def bg(self, node: WidgetNode) -> str:
        return self.color(
            node, "backgroundColor", node.data.background_color, "Color::Reset"
        )

    def color(
        self, node: WidgetNode, field: str, value: str | None, default: str
    ) -> str:
        if not value:
            return default
        try:
            r, g, b = parse_hex_color(value)
        except ValueError:
            self.warn(
                GenerationIssue.INVALID_COLOR,
                node.id,
                f"{field} {value!r} is not a hex color; using {default}",
                value=value,
            )
            return default
        return f"Color::Rgb({r}, {g}, {b})"


@register_target
class RatatuiTarget(CodeTarget):
    """Generates a ratatui + crossterm ``main.rs`` from a design tree."""

    @property
    def name(self) -> str:
        return "ratatui"

    @property
    def file_extension(self) -> str:
        return ".rs"

    @property
    def manifest_filename(self) -> str:
        return "Cargo.toml"

    def generate_with_warnings(self, tree: DesignTree) -> GenerationResult:
        emitter = _Emitter(tree)
        if tree.root_id not in tree.nodes:
            emitter.warn(
                GenerationIssue.MISSING_ROOT,
                tree.root_id,
                f"Root '{tree.root_id}' is not in the tree",
            )
            emitter.statements.append(["// Missing root layout"])
        else:
            emitter.node(tree.root_id, "area")

        for warning in emitter.warnings:
            logger.debug(
                f"[{warning.issue.value}] {warning.node_id}: {warning.message}"
            )

        return GenerationResult(
            code=PRELUDE + emitter.body() + EPILOGUE,
            warnings=emitter.warnings,
            target=self.name,
        )

    def generate_manifest(self, project_name: str) -> str:
        """Generate ``Cargo.toml`` for the generated program.

        Args:
            project_name: Human-readable project name; sanitized for Cargo.

        Returns:
            Manifest text with crossterm and ratatui dependencies.
        """
        versions = get_crate_versions()
        return (
            "[package]\n"
            f'name = "{sanitize_package_name(project_name)}"\n'
            'version = "0.1.0"\n'
            'edition = "2021"\n'
            "\n"
            "[dependencies]\n"
            f'crossterm = "{versions["crossterm"]}"\n'
            f'ratatui = "{versions["ratatui"]}"\n'
        )
