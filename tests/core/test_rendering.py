# tests/core/test_rendering.py
from projecttree.core.models import TreeNode
from projecttree.core.rendering import (
    PLACEHOLDER_LABEL, clamp_menu_position, describe_node, format_rows, walk_visible
)
from projecttree.core.tree_model import TreeModel, make_placeholder


def test_only_root_children_visible_by_default(sample_tree):
    rows = list(walk_visible(TreeModel(sample_tree), {"root"}))
    assert [(r.node_id, r.depth) for r in rows] == [
        ("root", 0), ("src", 1), ("assets", 1), ("README.md", 1)
    ]

def test_expanded_empty_directory_shows_placeholder(sample_tree):
    rows = list(walk_visible(TreeModel(sample_tree), {"root", "assets"}))
    placeholder = rows[3]
    assert placeholder.node_id == "assets__empty"
    assert placeholder.label == PLACEHOLDER_LABEL
    assert placeholder.depth == 2
    assert placeholder.is_placeholder
    assert placeholder.icon is None
    assert not placeholder.chevron_visible

def test_collapsed_ancestor_hides_expanded_descendants(sample_tree):
    rows = list(walk_visible(TreeModel(sample_tree), {"root", "src/utils"}))
    assert "src/utils/helpers.ts" not in [r.node_id for r in rows]

def test_root_row(sample_tree):
    row = describe_node(sample_tree, is_expanded=True)
    assert row.toolbar_visible
    assert row.dir_path == "/work/demo"
    assert row.chevron_visible and row.is_expanded
    assert row.icon == "folder-open"

def test_directory_and_file_icons(sample_tree):
    src = sample_tree.children[0]
    row = describe_node(src, is_expanded=False, depth=1)
    assert row.icon == "folder"
    assert not row.toolbar_visible and row.dir_path is None

    readme = describe_node(sample_tree.children[2], is_expanded=False, depth=1, is_selected=True)
    assert readme.icon == "book-open"
    assert not readme.chevron_visible and not readme.is_expanded
    assert readme.is_selected

def test_custom_icon_resolver(sample_tree):
    row = describe_node(sample_tree.children[2], False, resolve=lambda name: "custom")
    assert row.icon == "custom"

def test_placeholder_row_is_bare():
    placeholder = make_placeholder(TreeNode(id="x", name="x", is_directory=True))
    row = describe_node(placeholder, is_expanded=True)
    assert row.is_placeholder and not row.is_expanded and row.icon is None

def test_format_rows(sample_tree):
    rows = walk_visible(TreeModel(sample_tree), {"root", "assets"}, {"README.md"})
    assert format_rows(rows) == [
        "v demo [/work/demo]",
        "  > src",
        "  v assets",
        "      ( empty )",
        "    README.md *",
    ]

def test_clamp_menu_position():
    assert clamp_menu_position(120, 80, 1024, 768) == (120, 80)
    assert clamp_menu_position(1000, 700, 1024, 768) == (1024 - 220 - 4, 768 - 260 - 4)
    assert clamp_menu_position(50, 50, 100, 100) == (4, 4)
    assert clamp_menu_position(10, 10, 200, 200, menu_width=50, menu_height=50) == (10, 10)
