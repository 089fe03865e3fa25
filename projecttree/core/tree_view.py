# projecttree/core/tree_view.py
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Coroutine, List, Optional, Set, Tuple

from loguru import logger

from ..config.schema import ContextMenuAction, TreeConfig
from . import plugins
from .confirm_dialog import ConfirmDialogBusyError, ConfirmDialogController
from .context_menu import ESCAPE_KEY, ContextMenuController
from .icons import IconResolver, resolve_icon
from .models import RowDescription, TreeNode, TreeNodeSnapshot
from .observable import Observable
from .rendering import describe_node, walk_visible
from .selection import SelectionExpansionController
from .tree_model import InvalidTreeError, TreeModel, empty_tree

SnapshotLoader = Callable[[], Awaitable[TreeNode]]
NameLoader = Callable[[], Awaitable[str]]
Spawner = Callable[[Coroutine[Any, Any, Any]], Any]

# Actions the tree only logs unless a handler is registered for them
HANDLER_ACTIONS = {
    ContextMenuAction.NEW_FILE.value,
    ContextMenuAction.NEW_FOLDER.value,
    ContextMenuAction.RENAME.value,
    ContextMenuAction.DELETE.value,
    ContextMenuAction.PASTE.value,
}

TOOLBAR_ACTIONS: List[Tuple[str, str, str]] = [
    # (action id, label, icon token)
    (ContextMenuAction.NEW_FILE.value, "New File", "file-text"),
    (ContextMenuAction.NEW_FOLDER.value, "New Folder", "folder-plus"),
    (ContextMenuAction.REFRESH.value, "Refresh Project Tree", "rotate-cw"),
    (ContextMenuAction.COLLAPSE.value, "Collapse All Folders", "minimize-2"),
]


@dataclass(frozen=True)
class ClipboardEntry:
    mode: str # "copy" or "cut"
    node: TreeNodeSnapshot


def _spawn_on_running_loop(coro: Coroutine[Any, Any, Any]) -> "asyncio.Task[Any]":
    return asyncio.get_running_loop().create_task(coro)


class TreeView(Observable):
    """
    Composition root of the explorer panel.

    Owns the loaded model and wires the selection/expansion controller, the
    context menu and the confirm gate together. Loaders are injected; the view
    loads name and snapshot concurrently and ignores results that arrive after
    teardown or after a newer load started.
    """

    def __init__(self,
                 load_filesystem_snapshot: SnapshotLoader,
                 load_project_name: NameLoader,
                 tree_config: Optional[TreeConfig] = None,
                 icon_resolver: IconResolver = resolve_icon,
                 spawn: Optional[Spawner] = None):
        self.config = tree_config or TreeConfig()
        self._load_snapshot = load_filesystem_snapshot
        self._load_name = load_project_name
        self._resolve_icon = icon_resolver
        self._spawn = spawn or _spawn_on_running_loop
        super().__init__()

        self.project_name: str = self.config.default_project_name
        self.model = TreeModel(empty_tree(self.project_name))
        self.clipboard: Optional[ClipboardEntry] = None
        self.loading = False
        self.ready = False
        self.error: Optional[str] = None # Message of the last load failure
        self._torn_down = False
        self._generation = 0
        self._tasks: Set["asyncio.Future[Any]"] = set()

        self.selection = SelectionExpansionController(self.config.initial_expanded_keys)
        self.selection.bind(self.model)
        self.context_menu = ContextMenuController(
            self.config.context_menu_items,
            on_action=self.dispatch_action,
            can_paste=lambda: self.clipboard is not None,
        )
        self.confirm_dialog = ConfirmDialogController(self.config.confirm_overlap_policy)
        for controller in (self.selection, self.context_menu, self.confirm_dialog):
            controller.add_listener(self._notify)

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    # --- Loading ---

    async def initialize(self) -> bool:
        """Initial fan-out load of project name and snapshot. True if the result was applied."""
        logger.info("Project tree initialization started.")
        return await self._load()

    async def refresh(self) -> bool:
        """Reloads name and snapshot; expansion and selection keep ids that still exist."""
        logger.info("Refreshing project tree.")
        return await self._load()

    async def _load(self) -> bool:
        if self._torn_down:
            return False
        self._generation += 1
        generation = self._generation
        self.loading = True
        self._notify()

        name_result, snapshot_result = await asyncio.gather(
            self._load_name(), self._load_snapshot(), return_exceptions=True)

        if self._torn_down:
            logger.debug("Tree view torn down before loading finished; discarding results.")
            return False
        if generation != self._generation:
            logger.warning("Received results from an outdated load. Ignoring.")
            return False

        self._apply_load(name_result, snapshot_result)
        self.loading = False
        self.ready = True
        self._notify()
        return True

    def _apply_load(self, name_result: Any, snapshot_result: Any):
        errors = []
        if isinstance(name_result, BaseException):
            logger.error(f"Failed to load project name: {name_result!r}")
            errors.append(f"project name: {name_result}")
            name = self.config.default_project_name
        else:
            name = name_result or self.config.default_project_name

        if isinstance(snapshot_result, BaseException):
            logger.error(f"Failed to load project files: {snapshot_result!r}")
            errors.append(f"project files: {snapshot_result}")
            snapshot = empty_tree(name)
        else:
            snapshot = snapshot_result

        try:
            model = TreeModel(snapshot).with_project_name(name)
        except InvalidTreeError as e:
            logger.error(f"Loaded snapshot is invalid: {e}")
            errors.append(f"invalid snapshot: {e}")
            model = TreeModel(empty_tree(name))

        self.project_name = name
        self.model = model
        self.error = "; ".join(errors) or None
        self.selection.reconcile(model)
        logger.info(f"Project tree loaded: '{name}' with {len(model)} nodes.")

    def teardown(self):
        """The panel went away: late load results are dropped, overlays are dismissed."""
        if self._torn_down:
            return
        self._torn_down = True
        self.context_menu.close()
        self.confirm_dialog.dismiss()
        logger.debug("Tree view torn down.")

    # --- Rendering ---

    def rows(self) -> List[RowDescription]:
        return list(walk_visible(self.model, self.selection.expanded_keys,
                                 self.selection.selected_keys, self._resolve_icon))

    def describe(self, node_id: str) -> Optional[RowDescription]:
        node = self.model.get(node_id)
        if node is None:
            return None
        return describe_node(node, self.selection.is_expanded(node_id), self._resolve_icon,
                             is_selected=self.selection.is_selected(node_id))

    def selected_node(self) -> Optional[TreeNode]:
        for node_id in self.selection.selected_keys:
            return self.model.get(node_id)
        return None

    # --- Interaction ---

    def activate(self, node_id: str) -> bool:
        return self.selection.activate(node_id)

    def select(self, node_id: str) -> bool:
        return self.selection.set_selection(node_id)

    def toggle_expansion(self, node_id: str) -> bool:
        return self.selection.toggle_expansion(node_id)

    def collapse_all(self):
        self.selection.collapse_all()

    def open_context_menu(self, node_id: str, x: int, y: int) -> bool:
        node = self.model.get(node_id)
        if node is None:
            return False
        return self.context_menu.open(x, y, node)

    def handle_key(self, key: str) -> bool:
        """Escape dismisses the confirm gate first, then the context menu."""
        if key == ESCAPE_KEY and self.confirm_dialog.is_open:
            return self.confirm_dialog.dismiss()
        return self.context_menu.handle_key(key)

    # --- Toolbar ---

    def toolbar_actions(self) -> List[Tuple[str, str, str]]:
        return list(TOOLBAR_ACTIONS)

    def run_toolbar_action(self, action_id: str) -> Optional["asyncio.Future[Any]"]:
        """Toolbar buttons act on the project root."""
        return self.dispatch_action(action_id, self.model.root.snapshot())

    def new_file(self):
        return self.run_toolbar_action(ContextMenuAction.NEW_FILE.value)

    def new_folder(self):
        return self.run_toolbar_action(ContextMenuAction.NEW_FOLDER.value)

    def request_refresh(self):
        return self.run_toolbar_action(ContextMenuAction.REFRESH.value)

    # --- Actions ---

    def dispatch_action(self, action_id: str, node: Optional[TreeNodeSnapshot]) -> Optional["asyncio.Future[Any]"]:
        """
        Runs a menu or toolbar action against `node`.
        Returns the task for actions that continue asynchronously (refresh, delete).
        """
        if self._torn_down:
            return None
        if node is None or node.id not in self.model:
            logger.debug(f"Ignoring action '{action_id}': target is missing or no longer in the tree.")
            return None

        if action_id == ContextMenuAction.REFRESH.value:
            return self._start(self.refresh())
        if action_id == ContextMenuAction.COLLAPSE.value:
            self.selection.collapse_subtree(node.id)
        elif action_id in (ContextMenuAction.COPY.value, ContextMenuAction.CUT.value):
            self.clipboard = ClipboardEntry(mode=action_id, node=node)
            logger.info(f"{action_id.capitalize()}: {node.id}")
            self._notify()
        elif action_id == ContextMenuAction.PASTE.value:
            self._paste_into(node)
        elif action_id == ContextMenuAction.DELETE.value:
            return self._start(self.confirm_delete(node))
        elif action_id == ContextMenuAction.CLOSE.value:
            pass # The menu closes itself
        else:
            self._run_handler(action_id, node)
        return None

    def _paste_into(self, node: TreeNodeSnapshot):
        entry = self.clipboard
        if entry is None:
            logger.debug("Paste requested with an empty clipboard.")
            return
        logger.info(f"Paste {entry.mode} of '{entry.node.id}' into '{node.id}'.")
        self._run_handler(ContextMenuAction.PASTE.value, node)
        if entry.mode == ContextMenuAction.CUT.value:
            self.clipboard = None
            self._notify()

    async def confirm_delete(self, node: TreeNodeSnapshot) -> bool:
        """Asks the confirm gate before handing a delete to its handler."""
        try:
            confirmed = await self.confirm_dialog.show_confirm_dialog(
                "Delete", f"Delete '{node.name}'?\nThis cannot be undone.")
        except ConfirmDialogBusyError as e:
            logger.warning(f"Delete of '{node.id}' not started: {e}")
            return False
        if not confirmed:
            logger.info(f"Delete of '{node.id}' cancelled.")
            return False
        if self._torn_down or node.id not in self.model:
            logger.debug(f"Delete of '{node.id}' dropped: target went away while confirming.")
            return False
        return self._run_handler(ContextMenuAction.DELETE.value, node)

    def _run_handler(self, action_id: str, node: TreeNodeSnapshot) -> bool:
        handler = plugins.get_handler(action_id)
        if handler is None:
            if action_id in HANDLER_ACTIONS:
                logger.info(f"Action '{action_id}' requested for '{node.id}' (not implemented).")
            else:
                logger.warning(f"Unknown action '{action_id}' for '{node.id}'.")
            return False
        try:
            handler.handle(self, node)
        except Exception as e:
            logger.exception(f"Action handler for '{action_id}' failed on '{node.id}': {e}")
            return False
        return True

    def _start(self, coro: Coroutine[Any, Any, Any]) -> Optional["asyncio.Future[Any]"]:
        try:
            task = self._spawn(coro)
        except RuntimeError as e:
            coro.close()
            logger.error(f"Cannot run {coro.__qualname__} without an event loop: {e}")
            return None
        if isinstance(task, asyncio.Future):
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        return task
