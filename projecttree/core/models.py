# projecttree/core/models.py
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

ROOT_ID = "root"


@dataclass(frozen=True)
class TreeNodeSnapshot:
    """Lightweight copy of a node handed to menus and action handlers."""
    id: str
    name: str
    path: Optional[str] = None


@dataclass(frozen=True)
class TreeNode:
    """Represents a file or directory in a loaded project snapshot."""
    id: str
    name: str
    is_directory: bool = False
    children: Optional[Tuple['TreeNode', ...]] = None # Only for directories, display order
    is_placeholder: bool = False # Synthetic "empty" row, never part of a snapshot
    path: Optional[str] = None # Absolute path, if the loader knows it
    dir_path: Optional[str] = None # Root only: directory shown next to the project name

    def __post_init__(self):
        if self.is_directory:
            # Accept lists from loaders/tests, store an immutable tuple
            object.__setattr__(self, "children", tuple(self.children or ()))
        elif self.children:
            raise ValueError(f"File node '{self.id}' cannot have children.")
        else:
            object.__setattr__(self, "children", None)

    @property
    def has_child_nodes(self) -> bool:
        # Directories are always expandable, even when empty (a placeholder fills them)
        return self.is_directory

    def snapshot(self) -> TreeNodeSnapshot:
        return TreeNodeSnapshot(id=self.id, name=self.name, path=self.path or self.dir_path)


@dataclass(frozen=True)
class ContextMenuState:
    visible: bool = False
    x: int = 0
    y: int = 0
    target_node: Optional[TreeNodeSnapshot] = None


CLOSED_MENU = ContextMenuState()


@dataclass(frozen=True)
class ConfirmGateState:
    is_open: bool = False
    title: str = ""
    message: str = ""
    on_confirm: Optional[Callable[[], bool]] = None
    on_cancel: Optional[Callable[[], bool]] = None
    token: Optional[str] = None


CLOSED_GATE = ConfirmGateState()


@dataclass(frozen=True)
class RowDescription:
    """Everything a renderer needs to draw one tree row."""
    node_id: str
    label: str
    icon: Optional[str]
    depth: int = 0
    chevron_visible: bool = False
    is_expanded: bool = False
    is_selected: bool = False
    is_placeholder: bool = False
    toolbar_visible: bool = False
    dir_path: Optional[str] = None
    tooltip: Optional[str] = field(default=None, compare=False)
