"""Unit tests for the design-tree schema."""

import pytest
from pydantic import TypeAdapter, ValidationError

from .lib import (
    WIDGET_REGISTRY,
    BlockData,
    BorderStyle,
    Constraint,
    ConstraintType,
    DesignTree,
    Direction,
    InputData,
    LayoutNode,
    LayoutTemplate,
    ListData,
    NodeTemplate,
    ParagraphData,
    TableData,
    WidgetNode,
    WidgetType,
    build_widget_data,
    export_json_schema,
    get_widget_meta,
    layout_template,
    new_node_id,
    round_share,
    widget_template,
)


class TestRoundShare:
    """Tests for half-up rounding."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,expected",
        [(2.5, 3), (3.5, 4), (-2.5, -2), (79.6, 80), (64.4, 64), (10, 10)],
    )
    def test_rounds_half_up(self, value, expected):
        """Halves round towards positive infinity, not to even."""
        assert round_share(value) == expected


class TestConstraint:
    """Tests for the Constraint model."""

    @pytest.mark.unit
    def test_factories(self):
        """Factory helpers set the constraint kind."""
        assert Constraint.percentage(50).type == ConstraintType.PERCENTAGE
        assert Constraint.length(3).type == ConstraintType.LENGTH
        assert Constraint.minimum(1).type == ConstraintType.MIN
        assert Constraint.maximum(9).type == ConstraintType.MAX

    @pytest.mark.unit
    def test_float_values_are_rounded(self):
        """Float input is stored as the nearest integer."""
        assert Constraint.percentage(33.5).value == 34
        assert Constraint.length(2.4).value == 2

    @pytest.mark.unit
    def test_percentage_upper_bound(self):
        """Percentages above 100 are rejected."""
        with pytest.raises(ValidationError):
            Constraint.percentage(101)

    @pytest.mark.unit
    def test_negative_rejected(self):
        """Negative values are rejected for every kind."""
        for kind in ConstraintType:
            with pytest.raises(ValidationError):
                Constraint(type=kind, value=-1)

    @pytest.mark.unit
    def test_absolute_kinds_unbounded(self):
        """Length/Min/Max accept values above 100."""
        assert Constraint.length(250).value == 250

    @pytest.mark.unit
    def test_bool_rejected(self):
        """Booleans are not accepted as numbers."""
        with pytest.raises(ValidationError):
            Constraint(type=ConstraintType.LENGTH, value=True)

    @pytest.mark.unit
    def test_frozen(self):
        """Constraints are immutable; with_value returns a copy."""
        c = Constraint.percentage(40)
        with pytest.raises(ValidationError):
            c.value = 50
        assert c.with_value(50.4).value == 50
        assert c.value == 40

    @pytest.mark.unit
    def test_camel_case_round_trip(self):
        """Serialized form uses the plain type/value keys."""
        c = Constraint.minimum(4)
        assert c.model_dump(mode="json", by_alias=True) == {"type": "Min", "value": 4}


class TestWidgetData:
    """Tests for per-widget-type data models."""

    @pytest.mark.unit
    def test_registry_covers_every_widget(self):
        """Every widget type has registry metadata."""
        assert set(WIDGET_REGISTRY) == set(WidgetType)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "widget_type,model",
        [
            (WidgetType.PARAGRAPH, ParagraphData),
            (WidgetType.LIST, ListData),
            (WidgetType.TABLE, TableData),
            (WidgetType.BLOCK, BlockData),
            (WidgetType.INPUT, InputData),
        ],
    )
    def test_build_widget_data_selects_model(self, widget_type, model):
        """Data is built with the model registered for the type."""
        assert isinstance(build_widget_data(widget_type, {}), model)

    @pytest.mark.unit
    def test_camel_case_keys_accepted(self):
        """camelCase keys from persisted snapshots populate fields."""
        data = build_widget_data(
            "Paragraph", {"borderStyle": "Rounded", "textColor": "#fff"}
        )
        assert data.border_style == BorderStyle.ROUNDED
        assert data.text_color == "#fff"

    @pytest.mark.unit
    def test_foreign_fields_dropped(self):
        """Fields from another variant are ignored on load."""
        data = build_widget_data("Block", {"title": "T", "items": ["a"]})
        assert isinstance(data, BlockData)
        assert not hasattr(data, "items")

    @pytest.mark.unit
    def test_resolve_field(self):
        """Field resolution accepts both spellings and rejects foreign keys."""
        meta = get_widget_meta(WidgetType.INPUT)
        assert meta.resolve_field("borderColor") == "border_color"
        assert meta.resolve_field("placeholder") == "placeholder"
        assert meta.resolve_field("items") is None

    @pytest.mark.unit
    def test_unknown_widget_type(self):
        """Unknown widget types raise ValueError."""
        with pytest.raises(ValueError):
            get_widget_meta("Chart")


class TestNodes:
    """Tests for node models."""

    @pytest.mark.unit
    def test_widget_node_coerces_dict_data(self):
        """Raw dict data becomes the variant's data model."""
        node = WidgetNode.model_validate(
            {
                "id": "w",
                "type": "Widget",
                "widgetType": "List",
                "data": {"items": ["x"]},
            }
        )
        assert isinstance(node.data, ListData)
        assert node.data.items == ["x"]

    @pytest.mark.unit
    def test_widget_node_rejects_mismatched_model(self):
        """A data model from another variant is converted, not kept."""
        node = WidgetNode(
            id="w",
            widget_type=WidgetType.TABLE,
            data=ParagraphData(title="T", content="c"),
        )
        assert isinstance(node.data, TableData)
        assert node.data.title == "T"

    @pytest.mark.unit
    def test_widget_node_invalid_type(self):
        """Unknown widgetType fails validation."""
        with pytest.raises(ValidationError):
            WidgetNode.model_validate({"id": "w", "widgetType": "Chart"})

    @pytest.mark.unit
    def test_layout_defaults(self):
        """Layouts default to vertical with no children."""
        node = LayoutNode(id="l")
        assert node.direction == Direction.VERTICAL
        assert node.children == []
        assert node.constraints == []

    @pytest.mark.unit
    def test_new_node_id_unique(self):
        """Generated identifiers do not repeat."""
        assert len({new_node_id() for _ in range(100)}) == 100


class TestTemplates:
    """Tests for node templates."""

    @pytest.mark.unit
    def test_widget_template_defaults(self):
        """Templates start from registry defaults."""
        template = widget_template("List")
        assert template.data["items"] == ["Item 1", "Item 2", "Item 3"]
        assert template.data["border_style"] == BorderStyle.PLAIN

    @pytest.mark.unit
    def test_widget_template_overrides(self):
        """Keyword data overrides defaults."""
        node = widget_template("Paragraph", title="Hi", content="there").build("p1")
        assert node.id == "p1"
        assert node.data.title == "Hi"
        assert node.data.content == "there"

    @pytest.mark.unit
    def test_widget_template_without_defaults(self):
        """Defaults can be skipped."""
        node = widget_template("Input", use_defaults=False).build("i1")
        assert node.data.placeholder is None

    @pytest.mark.unit
    def test_layout_template(self):
        """Layout templates build empty layouts."""
        node = layout_template("Horizontal").build("l1")
        assert node.direction == Direction.HORIZONTAL
        assert node.children == []

    @pytest.mark.unit
    def test_template_union_parses_dicts(self):
        """The template union discriminates on type."""
        adapter = TypeAdapter(NodeTemplate)
        parsed = adapter.validate_python({"type": "Layout", "direction": "Horizontal"})
        assert isinstance(parsed, LayoutTemplate)


class TestDesignTree:
    """Tests for the snapshot model."""

    @pytest.mark.unit
    def test_empty_tree(self):
        """An empty tree holds one root layout."""
        tree = DesignTree.empty("Horizontal")
        assert isinstance(tree.root, LayoutNode)
        assert tree.root.direction == Direction.HORIZONTAL
        assert list(tree.nodes) == [tree.root_id]

    @pytest.mark.unit
    def test_snapshot_round_trip(self):
        """camelCase snapshots parse and serialize back unchanged."""
        data = {
            "rootId": "r",
            "nodes": {
                "r": {
                    "id": "r",
                    "type": "Layout",
                    "direction": "Vertical",
                    "children": ["w"],
                    "constraints": [{"type": "Percentage", "value": 100}],
                },
                "w": {
                    "id": "w",
                    "type": "Widget",
                    "widgetType": "Paragraph",
                    "data": {"title": "Hello", "borderStyle": "Double"},
                },
            },
        }
        tree = DesignTree.from_dict(data)
        assert isinstance(tree.get("w"), WidgetNode)
        assert tree.to_dict() == data

    @pytest.mark.unit
    def test_missing_lookup(self):
        """get returns None for unknown ids."""
        assert DesignTree.empty().get("nope") is None

    @pytest.mark.unit
    def test_export_json_schema(self):
        """Schema export uses camelCase property names."""
        schema = export_json_schema()
        assert schema["title"] == "DesignTree"
        assert "rootId" in schema["properties"]
