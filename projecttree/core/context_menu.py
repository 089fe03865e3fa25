# projecttree/core/context_menu.py
from enum import Enum
from typing import Callable, List, Optional, Sequence

from loguru import logger

from ..config.schema import DIVIDER, ContextMenuAction, MenuEntry, MenuItemConfig
from .models import CLOSED_MENU, ContextMenuState, TreeNode, TreeNodeSnapshot
from .observable import Observable

ActionCallback = Callable[[str, TreeNodeSnapshot], None]

ESCAPE_KEY = "Escape"


class PointerButton(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    MIDDLE = "middle"


class ContextMenuController(Observable):
    """
    Two-state machine (closed / open at a position for a target) behind the
    folder context menu.

    At most one menu is open: opening while open closes the current menu first.
    The target is stored as a snapshot, so a closed menu never holds on to tree
    nodes. Item tables are passed in per instance.
    """

    def __init__(self,
                 items: Sequence[MenuEntry],
                 on_action: Optional[ActionCallback] = None,
                 can_paste: Callable[[], bool] = lambda: False):
        super().__init__()
        self._items: List[MenuEntry] = list(items)
        self._on_action = on_action
        self._can_paste = can_paste
        self._state: ContextMenuState = CLOSED_MENU

    @property
    def state(self) -> ContextMenuState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state.visible

    @property
    def items(self) -> List[MenuEntry]:
        return list(self._items)

    def set_action_callback(self, on_action: Optional[ActionCallback]):
        self._on_action = on_action

    # --- Transitions ---

    def open(self, x: int, y: int, node: TreeNode) -> bool:
        """Secondary click on a row. Only directory rows get a menu."""
        if node.is_placeholder or not node.is_directory:
            logger.debug(f"No context menu for '{node.id}': not a folder.")
            return False
        if self._state.visible:
            self.close()
        self._state = ContextMenuState(visible=True, x=int(x), y=int(y), target_node=node.snapshot())
        logger.debug(f"Context menu opened for '{node.id}' at ({x}, {y}).")
        self._notify()
        return True

    def close(self) -> bool:
        if not self._state.visible:
            return False
        self._state = CLOSED_MENU
        logger.debug("Context menu closed.")
        self._notify()
        return True

    def handle_key(self, key: str) -> bool:
        """Returns True when the key closed the menu."""
        if key == ESCAPE_KEY:
            return self.close()
        return False

    def handle_pointer_down(self, inside_menu: bool, button: PointerButton = PointerButton.PRIMARY) -> bool:
        """A primary press outside the menu bounds dismisses it."""
        if button != PointerButton.PRIMARY or inside_menu:
            return False
        return self.close()

    # --- Items ---

    def find_item(self, item_type: str) -> Optional[MenuItemConfig]:
        for item in self._items:
            if item != DIVIDER and item.type == item_type:
                return item
        return None

    def is_item_enabled(self, item: MenuEntry) -> bool:
        if item == DIVIDER:
            return False
        if item.type == ContextMenuAction.PASTE.value:
            return bool(self._can_paste())
        return True

    def select(self, item_type: str) -> bool:
        """
        Activates a menu item. Dividers, disabled and unknown items do nothing;
        any other item is dispatched with the captured target and the menu closes.
        """
        if not self._state.visible:
            return False
        item = self.find_item(item_type)
        if item is None or not self.is_item_enabled(item):
            logger.debug(f"Ignoring menu item '{item_type}': unknown or disabled.")
            return False
        target = self._state.target_node
        try:
            if self._on_action is not None and target is not None:
                self._on_action(item.type, target)
        finally:
            self.close()
        return True
