"""Root pytest configuration and fixtures.

This module provides:
- Environment setup (loads .env)
- Deterministic node identity for tree tests
- Sample design trees shared by store, codegen and persistence tests
"""

from __future__ import annotations

import itertools
from pathlib import Path
from typing import Callable

import pytest
from dotenv import load_dotenv

from tuiforge.layout import LayoutPolicy
from tuiforge.schema import Constraint, DesignTree, LayoutNode, WidgetNode
from tuiforge.tree import TreeStore

# Load environment variables from .env file
load_dotenv()


# =============================================================================
# Identity Fixtures
# =============================================================================


@pytest.fixture
def sequential_ids() -> Callable[[], str]:
    """Identity generator yielding w1, w2, ... for predictable assertions."""
    counter = itertools.count(1)
    return lambda: f"w{next(counter)}"


@pytest.fixture
def store(sequential_ids: Callable[[], str]) -> TreeStore:
    """Empty TreeStore with a fixed root id and the default policy.

    Returns:
        TreeStore whose root layout is ``root`` (Vertical, no children).
    """
    tree = DesignTree(root_id="root", nodes={"root": LayoutNode(id="root")})
    return TreeStore(tree, policy=LayoutPolicy(), id_factory=sequential_ids)


# =============================================================================
# Common Test Fixtures
# =============================================================================


@pytest.fixture
def sample_tree() -> DesignTree:
    """Create a dashboard-style design tree for testing.

    Returns:
        Horizontal root with a sidebar list and a vertical main column
        holding a paragraph header and a table body.
    """
    return DesignTree(
        root_id="root",
        nodes={
            "root": LayoutNode(
                id="root",
                direction="Horizontal",
                children=["sidebar", "main"],
                constraints=[Constraint.percentage(30), Constraint.percentage(70)],
            ),
            "sidebar": WidgetNode(
                id="sidebar",
                widget_type="List",
                data={"title": "Menu", "items": ["Home", "Settings"]},
            ),
            "main": LayoutNode(
                id="main",
                direction="Vertical",
                children=["header", "body"],
                constraints=[Constraint.length(3), Constraint.minimum(5)],
            ),
            "header": WidgetNode(
                id="header",
                widget_type="Paragraph",
                data={
                    "title": "Dashboard",
                    "content": "Welcome",
                    "borderStyle": "Rounded",
                },
            ),
            "body": WidgetNode(
                id="body",
                widget_type="Table",
                data={"headers": ["Name", "Value"], "rows": [["cpu", "42%"]]},
            ),
        },
    )


@pytest.fixture
def tmp_db_path(tmp_path: Path) -> Path:
    """Path for a throwaway project database."""
    return tmp_path / "projects.db"
