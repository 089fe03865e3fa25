# projecttree/config/schema.py
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

DIVIDER = "divider"


class OverlapPolicy(str, Enum):
    """What the confirm gate does when asked again while a request is pending."""
    REJECT = "reject" # Raise ConfirmDialogBusyError, keep the pending request
    OVERWRITE = "overwrite" # Replace the pending request, its result never resolves


class ContextMenuAction(str, Enum):
    NEW_FILE = "new-file"
    NEW_FOLDER = "new-folder"
    REFRESH = "refresh"
    COLLAPSE = "collapse"
    RENAME = "rename"
    DELETE = "delete"
    COPY = "copy"
    CUT = "cut"
    PASTE = "paste"
    CLOSE = "__close"


class MenuItemConfig(BaseModel):
    type: str
    label: str
    shortcut: Optional[str] = None
    danger: bool = False # Rendered in the error colour


MenuEntry = Union[Literal["divider"], MenuItemConfig]


def _default_menu_items() -> List[MenuEntry]:
    return [
        # File operations
        MenuItemConfig(type=ContextMenuAction.NEW_FILE.value, label="New File", shortcut="Ctrl+N"),
        MenuItemConfig(type=ContextMenuAction.NEW_FOLDER.value, label="New Folder", shortcut="Ctrl+Shift+N"),
        MenuItemConfig(type=ContextMenuAction.REFRESH.value, label="Refresh", shortcut="F5"),
        MenuItemConfig(type=ContextMenuAction.COLLAPSE.value, label="Collapse", shortcut="Alt+-"),
        DIVIDER,
        # Clipboard
        MenuItemConfig(type=ContextMenuAction.COPY.value, label="Copy", shortcut="Ctrl+C"),
        MenuItemConfig(type=ContextMenuAction.CUT.value, label="Cut", shortcut="Ctrl+X"),
        MenuItemConfig(type=ContextMenuAction.PASTE.value, label="Paste", shortcut="Ctrl+V"),
        DIVIDER,
        MenuItemConfig(type=ContextMenuAction.RENAME.value, label="Rename", shortcut="F2"),
        MenuItemConfig(type=ContextMenuAction.DELETE.value, label="Delete", shortcut="Del", danger=True),
        DIVIDER,
        MenuItemConfig(type=ContextMenuAction.CLOSE.value, label="Close", shortcut="Esc"),
    ]


class ProjectConfig(BaseModel):
    name: Optional[str] = None # Display name for the root row
    filepath: Optional[str] = None # Directory shown in the explorer


class TreeConfig(BaseModel):
    default_project_name: str = "Untitled Project"
    initial_expanded_keys: List[str] = Field(default_factory=lambda: ["root"])
    context_menu_items: List[MenuEntry] = Field(default_factory=_default_menu_items)
    confirm_overlap_policy: OverlapPolicy = OverlapPolicy.REJECT
    # Estimated menu size used to keep the popup inside the viewport
    menu_width: int = 220
    menu_height: int = 260


class AppConfig(BaseModel):
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    tree: TreeConfig = Field(default_factory=TreeConfig)
    window_geometry: Optional[str] = None # Base64 of QMainWindow.saveGeometry()
    ignore_patterns: List[str] = Field(default_factory=lambda: [
        # Version control
        ".git", ".svn", ".hg",
        # IDE/Editor config
        ".idea", ".vscode",
        # Python specific
        "__pycache__", "*.pyc", ".pytest_cache", ".mypy_cache",
        # Virtual environments
        "venv", ".venv",
        # Build artifacts
        "node_modules", "target", "dist",
        # OS specific
        ".DS_Store", "Thumbs.db",
    ])
