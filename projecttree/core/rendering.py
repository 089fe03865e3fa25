# projecttree/core/rendering.py
from typing import AbstractSet, Iterable, Iterator, List, Tuple

from .icons import FOLDER_ICON, FOLDER_OPEN_ICON, IconResolver, resolve_icon
from .models import ROOT_ID, RowDescription, TreeNode
from .tree_model import TreeModel, derive_display_children

PLACEHOLDER_LABEL = "( empty )"


def describe_node(node: TreeNode,
                  is_expanded: bool,
                  resolve: IconResolver = resolve_icon,
                  depth: int = 0,
                  is_selected: bool = False) -> RowDescription:
    """Pure description of one row. Placeholders get no chevron, icon or toolbar."""
    if node.is_placeholder:
        return RowDescription(node_id=node.id, label=PLACEHOLDER_LABEL, icon=None, depth=depth, is_placeholder=True)

    if node.is_directory:
        icon = FOLDER_OPEN_ICON if is_expanded else FOLDER_ICON
    else:
        icon = resolve(node.name)
    is_root = node.id == ROOT_ID
    return RowDescription(
        node_id=node.id,
        label=node.name,
        icon=icon,
        depth=depth,
        chevron_visible=node.is_directory,
        is_expanded=node.is_directory and is_expanded,
        is_selected=is_selected,
        toolbar_visible=is_root,
        dir_path=node.dir_path if is_root else None,
        tooltip=node.dir_path if is_root and node.dir_path else (node.path or node.name),
    )


def walk_visible(model: TreeModel,
                 expanded: AbstractSet[str],
                 selected: AbstractSet[str] = frozenset(),
                 resolve: IconResolver = resolve_icon) -> Iterator[RowDescription]:
    """
    Pre-order walk yielding rows for the root and every node whose ancestors
    are all expanded. Empty expanded directories yield their placeholder row.
    """
    stack: List[Tuple[TreeNode, int]] = [(model.root, 0)]
    while stack:
        node, depth = stack.pop()
        is_expanded = node.id in expanded
        yield describe_node(node, is_expanded, resolve, depth, node.id in selected)
        if node.is_directory and is_expanded:
            for child in reversed(derive_display_children(node)):
                stack.append((child, depth + 1))


def format_rows(rows: Iterable[RowDescription], indent: str = "  ") -> List[str]:
    """Plain-text rendering: one line per row, used by the CLI."""
    lines = []
    for row in rows:
        if row.chevron_visible:
            marker = "v " if row.is_expanded else "> "
        else:
            marker = "  "
        label = row.label
        if row.dir_path:
            label = f"{label} [{row.dir_path}]"
        if row.is_selected:
            label = f"{label} *"
        lines.append(f"{indent * row.depth}{marker}{label}")
    return lines


def clamp_menu_position(x: int, y: int,
                        viewport_width: int, viewport_height: int,
                        menu_width: int = 220, menu_height: int = 260,
                        margin: int = 4) -> Tuple[int, int]:
    """
    Where to draw a menu opened at (x, y) so it stays inside the viewport.
    Display only: the menu state keeps the raw pointer coordinates.
    """
    left, top = x, y
    if left + menu_width > viewport_width:
        left = max(margin, viewport_width - menu_width - margin)
    if top + menu_height > viewport_height:
        top = max(margin, viewport_height - menu_height - margin)
    return left, top
