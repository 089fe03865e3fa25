# projecttree/core/selection.py
from typing import Awaitable, Callable, FrozenSet, Iterable, Optional

from loguru import logger

from .models import ROOT_ID, TreeNode
from .observable import Observable
from .tree_model import PLACEHOLDER_SUFFIX, TreeModel


class SelectionExpansionController(Observable):
    """
    Owns the expanded-id set and the selected-id set of one tree.

    Selection is single-select: the selected set holds zero or one id. When a
    model is bound, expansion is restricted to directories and placeholders can
    be neither selected nor expanded. Callers only ever see frozen copies.
    """

    def __init__(self, initial_expanded: Iterable[str] = (ROOT_ID,)):
        super().__init__()
        self._expanded = set(initial_expanded) | {ROOT_ID}
        self._selected: set = set()
        self._last_file_selection: FrozenSet[str] = frozenset()
        self._model: Optional[TreeModel] = None

    # --- Read access ---

    @property
    def expanded_keys(self) -> FrozenSet[str]:
        return frozenset(self._expanded)

    @property
    def selected_keys(self) -> FrozenSet[str]:
        return frozenset(self._selected)

    @property
    def model(self) -> Optional[TreeModel]:
        return self._model

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self._expanded

    def is_selected(self, node_id: str) -> bool:
        return node_id in self._selected

    # --- Helpers ---

    def _is_placeholder(self, node_id: str) -> bool:
        if self._model is not None:
            return self._model.is_placeholder_id(node_id)
        return node_id.endswith(PLACEHOLDER_SUFFIX)

    def _lookup(self, node_id: str) -> Optional[TreeNode]:
        return self._model.get(node_id) if self._model is not None else None

    def _can_expand(self, node_id: str) -> bool:
        if self._is_placeholder(node_id):
            return False
        if self._model is None:
            return True # Unbound: the caller vouches for directory ids
        node = self._model.get(node_id)
        return node is not None and node.is_directory

    # --- Mutations ---

    def set_selection(self, node_id: str) -> bool:
        """Replaces the selection with `node_id`. Placeholders are rejected."""
        if self._is_placeholder(node_id):
            logger.debug(f"Ignoring selection of placeholder row '{node_id}'.")
            return False
        if self._model is not None and node_id not in self._model:
            logger.debug(f"Ignoring selection of unknown node '{node_id}'.")
            return False
        if self._selected == {node_id}:
            return True
        self._selected = {node_id}
        node = self._lookup(node_id)
        if node is None or not node.is_directory:
            self._last_file_selection = frozenset(self._selected)
        logger.info(f"Tree item selected: {node_id}")
        self._notify()
        return True

    def clear_selection(self):
        if not self._selected:
            return
        self._selected = set()
        self._notify()

    def toggle_expansion(self, node_id: str) -> bool:
        """Expands a collapsed directory or collapses an expanded one. Returns the new state."""
        if not self._can_expand(node_id):
            logger.debug(f"Ignoring expansion toggle for non-directory '{node_id}'.")
            return False
        if node_id in self._expanded:
            self._expanded.discard(node_id)
            expanded = False
        else:
            self._expanded.add(node_id)
            expanded = True
        logger.debug(f"Expansion changed: {sorted(self._expanded)}")
        self._notify()
        return expanded

    def set_expanded(self, node_id: str, expanded: bool) -> bool:
        """Idempotent form of toggle_expansion, used by widgets reporting their own state."""
        if (node_id in self._expanded) == expanded:
            return expanded
        return self.toggle_expansion(node_id)

    def collapse_all(self):
        self._expanded = {ROOT_ID}
        logger.info("Collapsed all folders.")
        self._notify()

    def collapse_subtree(self, node_id: str):
        """Collapses `node_id` and every directory below it. The root stays expanded."""
        if node_id == ROOT_ID:
            self.collapse_all()
            return
        doomed = {node_id}
        if self._model is not None:
            doomed |= self._model.descendant_ids(node_id)
        if not (self._expanded & doomed):
            return
        self._expanded -= doomed
        logger.info(f"Collapsed folder: {node_id}")
        self._notify()

    def activate(self, node_id: str) -> bool:
        """
        Primary click on a row.

        Directories toggle open/closed (the root never closes this way) and keep
        the last file selection; files become the selection.
        """
        node = self._lookup(node_id)
        if node is None or not node.is_directory:
            return self.set_selection(node_id)
        if not (node_id == ROOT_ID and node_id in self._expanded):
            self.toggle_expansion(node_id)
        if self._selected != set(self._last_file_selection):
            self._selected = set(self._last_file_selection)
            self._notify()
        return True

    # --- Reload handling ---

    def bind(self, model: TreeModel):
        self._model = model

    def reconcile(self, model: TreeModel):
        """Binds a freshly loaded model and drops ids it no longer contains."""
        self.bind(model)
        present = model.ids()
        stale_expanded = self._expanded - present
        stale_selected = self._selected - present
        self._expanded &= present
        self._expanded.add(ROOT_ID)
        self._selected &= present
        self._last_file_selection = self._last_file_selection & present
        if stale_expanded or stale_selected:
            logger.debug(f"Dropped stale ids after reload. Expanded: {sorted(stale_expanded)}, selected: {sorted(stale_selected)}")
        self._notify()

    async def refresh(self,
                      load_snapshot: Callable[[], Awaitable[TreeNode]],
                      should_apply: Callable[[], bool] = lambda: True) -> Optional[TreeModel]:
        """
        Reloads the snapshot and reconciles both key sets against it.

        Returns the new model, or None when `should_apply` reports the owner went
        away while the loader was running. Loader errors propagate.
        """
        snapshot = await load_snapshot()
        if not should_apply():
            logger.debug("Discarding reloaded snapshot: owner is no longer active.")
            return None
        model = TreeModel(snapshot)
        self.reconcile(model)
        return model
