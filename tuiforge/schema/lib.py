"""Authoritative Schema Module for tui-forge design trees.

This module serves as the single source of truth for the design vocabulary
shared by the tree store and the code generators. It provides:
- Layout, widget, border and constraint enums
- Pydantic node models (a tagged union of layout and widget nodes)
- Per-widget-type data models with a registry of defaults
- The persisted snapshot model (`DesignTree`) and JSON Schema export

Snapshots serialize with camelCase keys (``rootId``, ``widgetType``,
``borderStyle``) so that persisted designs stay readable by other tools.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal, Union
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class NodeKind(str, Enum):
    """Discriminator for the two node variants."""

    LAYOUT = "Layout"
    WIDGET = "Widget"


class Direction(str, Enum):
    """Split axis of a layout node.

    - VERTICAL: Children are stacked top-to-bottom
    - HORIZONTAL: Children are placed left-to-right
    """

    VERTICAL = "Vertical"
    HORIZONTAL = "Horizontal"


class WidgetType(str, Enum):
    """Renderable leaf widgets supported by the code generators."""

    PARAGRAPH = "Paragraph"
    LIST = "List"
    TABLE = "Table"
    BLOCK = "Block"
    INPUT = "Input"


class BorderStyle(str, Enum):
    """Border kinds for the optional bordered container of a widget."""

    NONE = "None"
    PLAIN = "Plain"
    ROUNDED = "Rounded"
    DOUBLE = "Double"


class ConstraintType(str, Enum):
    """Sizing rule kinds for a sibling slot.

    - PERCENTAGE: Proportional share of the parent (0-100)
    - LENGTH: Fixed size in terminal cells
    - MIN: Minimum size in terminal cells
    - MAX: Maximum size in terminal cells
    """

    PERCENTAGE = "Percentage"
    LENGTH = "Length"
    MIN = "Min"
    MAX = "Max"


def round_share(value: float) -> int:
    """Round to the nearest integer, halves rounding up.

    The target layout library has no fractional units, so every constraint
    write goes through this function. Halves round towards positive infinity
    (``2.5 -> 3``, ``-2.5 -> -2``) rather than to even.

    Args:
        value: Number to round.

    Returns:
        Rounded integer.
    """
    return math.floor(value + 0.5)


def new_node_id() -> str:
    """Generate a fresh, process-unique node identifier."""
    return str(uuid4())


class _CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Constraints
# =============================================================================


class Constraint(_CamelModel):
    """Sizing rule attached to one sibling slot of a layout node.

    Values are always integers; floats are rounded on the way in.

    Example:
        >>> Constraint.percentage(79.6)
        Constraint(type=<ConstraintType.PERCENTAGE: 'Percentage'>, value=80)
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    type: ConstraintType = Field(..., description="Constraint kind")
    value: int = Field(..., description="Integer value (percent or cells)")

    @field_validator("value", mode="before")
    @classmethod
    def _round_value(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("constraint value must be a number")
        if isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError("constraint value must be finite")
            return round_share(value)
        return value

    @model_validator(mode="after")
    def _check_range(self) -> "Constraint":
        if self.value < 0:
            raise ValueError(f"{self.type.value} value must be >= 0, got {self.value}")
        if self.type == ConstraintType.PERCENTAGE and self.value > 100:
            raise ValueError(f"Percentage value must be <= 100, got {self.value}")
        return self

    @property
    def is_percentage(self) -> bool:
        """Whether this constraint is a proportional share."""
        return self.type == ConstraintType.PERCENTAGE

    def with_value(self, value: float) -> "Constraint":
        """Return a copy of this constraint with a new (rounded) value."""
        return Constraint(type=self.type, value=value)

    @classmethod
    def percentage(cls, value: float) -> "Constraint":
        return cls(type=ConstraintType.PERCENTAGE, value=value)

    @classmethod
    def length(cls, value: float) -> "Constraint":
        return cls(type=ConstraintType.LENGTH, value=value)

    @classmethod
    def minimum(cls, value: float) -> "Constraint":
        return cls(type=ConstraintType.MIN, value=value)

    @classmethod
    def maximum(cls, value: float) -> "Constraint":
        return cls(type=ConstraintType.MAX, value=value)


# =============================================================================
# Widget Data (tagged by widget type)
# =============================================================================


class WidgetStyle(_CamelModel):
    """Fields shared by every widget variant.

    Colors are kept as entered (``#rgb`` or ``#rrggbb``); the code generator
    reports values it cannot parse instead of rejecting them here.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    title: str | None = Field(None, description="Title shown on the border")
    border_style: BorderStyle | None = Field(None, description="Border kind")
    border_color: str | None = Field(None, description="Hex border color")
    text_color: str | None = Field(None, description="Hex text color")
    background_color: str | None = Field(None, description="Hex background color")


class ParagraphData(WidgetStyle):
    """Data for a text paragraph."""

    content: str | None = Field(None, description="Paragraph text")


class ListData(WidgetStyle):
    """Data for a list of text items."""

    items: list[str] | None = Field(None, description="List item labels")


class TableData(WidgetStyle):
    """Data for a table with a header row."""

    headers: list[str] | None = Field(None, description="Column headers")
    rows: list[list[str]] | None = Field(None, description="Cell text by row")


class BlockData(WidgetStyle):
    """Data for a bare bordered block."""


class InputData(WidgetStyle):
    """Data for a single-line input field."""

    label: str | None = Field(None, description="Label shown on the border")
    placeholder: str | None = Field(None, description="Placeholder text")


WidgetData = Union[ParagraphData, ListData, TableData, BlockData, InputData]


@dataclass(frozen=True)
class WidgetMeta:
    """Registry entry describing a widget type.

    Attributes:
        type: The widget type.
        description: Human-readable description.
        data_model: Pydantic model holding this widget's data.
        defaults: Data applied to freshly created widgets of this type.
    """

    type: WidgetType
    description: str
    data_model: type[WidgetStyle]
    defaults: dict[str, Any] = field(default_factory=dict)

    @property
    def fields(self) -> frozenset[str]:
        """Data field names accepted by this widget type."""
        return frozenset(self.data_model.model_fields)

    def resolve_field(self, key: str) -> str | None:
        """Map a camelCase or snake_case key to a data field name.

        Returns:
            The field name, or None if the key is not part of this widget.
        """
        for name, info in self.data_model.model_fields.items():
            if key in (name, info.alias):
                return name
        return None


_DEFAULT_STYLE: dict[str, Any] = {
    "title": "",
    "border_style": BorderStyle.PLAIN,
    "border_color": "#e8e8e8",
    "text_color": "#e8e8e8",
}


WIDGET_REGISTRY: dict[WidgetType, WidgetMeta] = {
    WidgetType.PARAGRAPH: WidgetMeta(
        type=WidgetType.PARAGRAPH,
        description="Static block of (possibly multi-line) text",
        data_model=ParagraphData,
        defaults={**_DEFAULT_STYLE, "content": ""},
    ),
    WidgetType.LIST: WidgetMeta(
        type=WidgetType.LIST,
        description="Vertical list of text items",
        data_model=ListData,
        defaults={**_DEFAULT_STYLE, "items": ["Item 1", "Item 2", "Item 3"]},
    ),
    WidgetType.TABLE: WidgetMeta(
        type=WidgetType.TABLE,
        description="Rows of cells under a header row",
        data_model=TableData,
        defaults={
            **_DEFAULT_STYLE,
            "headers": ["Column 1", "Column 2", "Column 3"],
            "rows": [
                ["Row 1 Col 1", "Row 1 Col 2", "Row 1 Col 3"],
                ["Row 2 Col 1", "Row 2 Col 2", "Row 2 Col 3"],
            ],
        },
    ),
    WidgetType.BLOCK: WidgetMeta(
        type=WidgetType.BLOCK,
        description="Empty bordered container",
        data_model=BlockData,
        defaults=dict(_DEFAULT_STYLE),
    ),
    WidgetType.INPUT: WidgetMeta(
        type=WidgetType.INPUT,
        description="Single-line text field drawn as a bordered paragraph",
        data_model=InputData,
        defaults={**_DEFAULT_STYLE, "label": "Label", "placeholder": "Enter text..."},
    ),
}


def get_widget_meta(widget_type: WidgetType | str) -> WidgetMeta:
    """Get registry metadata for a widget type.

    Args:
        widget_type: Widget type or its string value.

    Returns:
        WidgetMeta for the type.

    Raises:
        ValueError: If the widget type is unknown.
    """
    return WIDGET_REGISTRY[WidgetType(widget_type)]


def build_widget_data(
    widget_type: WidgetType | str, data: dict[str, Any] | BaseModel | None = None
) -> WidgetStyle:
    """Build the data model matching a widget type.

    Fields that do not belong to the variant are dropped.

    Args:
        widget_type: Widget type selecting the data model.
        data: Raw data (camelCase or snake_case keys) or another data model.

    Returns:
        Instance of the widget type's data model.
    """
    model = get_widget_meta(widget_type).data_model
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_none=True)
    return model.model_validate(data or {})


# =============================================================================
# Nodes
# =============================================================================


class LayoutNode(_CamelModel):
    """Container that splits its area among ordered children along one axis.

    ``children`` and ``constraints`` are parallel lists: the constraint at
    index ``i`` sizes the child at index ``i``.

    Attributes:
        id: Unique node identifier.
        type: Always ``"Layout"``.
        direction: Split axis.
        children: Child node ids in visual order.
        constraints: One sizing rule per child.
    """

    id: str = Field(..., description="Unique node identifier")
    type: Literal["Layout"] = Field("Layout", description="Node discriminator")
    direction: Direction = Field(
        default=Direction.VERTICAL, description="Split axis for the children"
    )
    children: list[str] = Field(
        default_factory=list, description="Ordered child node ids"
    )
    constraints: list[Constraint] = Field(
        default_factory=list, description="Sizing rules parallel to children"
    )


class WidgetNode(_CamelModel):
    """Leaf node rendering a content widget.

    ``data`` is always an instance of the data model registered for
    ``widget_type``; raw dicts are coerced on validation.

    Attributes:
        id: Unique node identifier.
        type: Always ``"Widget"``.
        widget_type: Kind of widget.
        data: Widget-type specific content and styling.
    """

    id: str = Field(..., description="Unique node identifier")
    type: Literal["Widget"] = Field("Widget", description="Node discriminator")
    widget_type: WidgetType = Field(..., description="Kind of widget")
    data: WidgetData = Field(
        default_factory=BlockData, description="Widget content and styling"
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_data(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        raw_type = values.get("widgetType", values.get("widget_type"))
        try:
            widget_type = WidgetType(raw_type)
        except ValueError:
            # Let field validation report the bad widget type
            return values
        return {**values, "data": build_widget_data(widget_type, values.get("data"))}

    @model_validator(mode="after")
    def _check_data_variant(self) -> "WidgetNode":
        expected = get_widget_meta(self.widget_type).data_model
        if not isinstance(self.data, expected):
            raise ValueError(
                f"{self.widget_type.value} widget requires {expected.__name__}, "
                f"got {type(self.data).__name__}"
            )
        return self


Node = Annotated[Union[LayoutNode, WidgetNode], Field(discriminator="type")]


# =============================================================================
# Templates (nodes without identity)
# =============================================================================


class LayoutTemplate(_CamelModel):
    """Blueprint for a new, empty layout node."""

    type: Literal["Layout"] = "Layout"
    direction: Direction = Direction.VERTICAL

    def build(self, node_id: str) -> LayoutNode:
        """Create the layout node with the given identifier."""
        return LayoutNode(id=node_id, direction=self.direction)


class WidgetTemplate(_CamelModel):
    """Blueprint for a new widget node."""

    type: Literal["Widget"] = "Widget"
    widget_type: WidgetType
    data: dict[str, Any] = Field(default_factory=dict)

    def build(self, node_id: str) -> WidgetNode:
        """Create the widget node with the given identifier."""
        return WidgetNode(id=node_id, widget_type=self.widget_type, data=self.data)


NodeTemplate = Annotated[
    Union[LayoutTemplate, WidgetTemplate], Field(discriminator="type")
]


def layout_template(direction: Direction | str = Direction.VERTICAL) -> LayoutTemplate:
    """Create a template for an empty layout.

    Args:
        direction: Split axis of the new layout.

    Returns:
        LayoutTemplate ready to pass to ``TreeStore.add``.
    """
    return LayoutTemplate(direction=Direction(direction))


def widget_template(
    widget_type: WidgetType | str, use_defaults: bool = True, **data: Any
) -> WidgetTemplate:
    """Create a template for a widget.

    Args:
        widget_type: Kind of widget.
        use_defaults: Start from the registry defaults for this type.
        **data: Data fields overriding the defaults.

    Returns:
        WidgetTemplate ready to pass to ``TreeStore.add``.

    Example:
        >>> t = widget_template("Paragraph", title="Hello", content="World")
        >>> t.data["title"]
        'Hello'
    """
    meta = get_widget_meta(widget_type)
    merged = dict(meta.defaults) if use_defaults else {}
    merged.update(data)
    return WidgetTemplate(widget_type=meta.type, data=merged)


# =============================================================================
# Snapshot
# =============================================================================


class DesignTree(_CamelModel):
    """Full design state: root pointer plus flat id-to-node map.

    This is the persisted snapshot format and the input of the code
    generators. Ownership is expressed only through ``children`` lists.

    Example:
        >>> tree = DesignTree.empty()
        >>> tree.root.children
        []
    """

    root_id: str = Field(..., description="Identifier of the root layout")
    nodes: dict[str, Node] = Field(
        default_factory=dict, description="All nodes keyed by identifier"
    )

    @classmethod
    def empty(cls, direction: Direction | str = Direction.VERTICAL) -> "DesignTree":
        """Create a tree holding only an empty root layout."""
        root = LayoutNode(id=new_node_id(), direction=Direction(direction))
        return cls(root_id=root.id, nodes={root.id: root})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DesignTree":
        """Parse a snapshot dict (camelCase or snake_case keys)."""
        return cls.model_validate(data)

    @property
    def root(self) -> LayoutNode | WidgetNode:
        """The root node (a layout in any valid tree)."""
        return self.nodes[self.root_id]

    def get(self, node_id: str) -> LayoutNode | WidgetNode | None:
        """Look up a node by identifier."""
        return self.nodes.get(node_id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase form, dropping unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize to camelCase JSON text."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def export_json_schema() -> dict[str, Any]:
    """Export the DesignTree JSON Schema (camelCase keys).

    Returns:
        JSON Schema dict suitable for validation or documentation.
    """
    return DesignTree.model_json_schema(by_alias=True)


__all__ = [
    # Enums
    "NodeKind",
    "Direction",
    "WidgetType",
    "BorderStyle",
    "ConstraintType",
    # Helpers
    "round_share",
    "new_node_id",
    # Constraints
    "Constraint",
    # Widget data
    "WidgetStyle",
    "ParagraphData",
    "ListData",
    "TableData",
    "BlockData",
    "InputData",
    "WidgetData",
    "WidgetMeta",
    "WIDGET_REGISTRY",
    "get_widget_meta",
    "build_widget_data",
    # Nodes
    "LayoutNode",
    "WidgetNode",
    "Node",
    # Templates
    "LayoutTemplate",
    "WidgetTemplate",
    "NodeTemplate",
    "layout_template",
    "widget_template",
    # Snapshot
    "DesignTree",
    "export_json_schema",
]
