# projecttree/ui/widgets/file_tree.py
from functools import partial
from typing import Dict, List, Optional

from PySide6.QtWidgets import (
    QTreeWidget, QTreeWidgetItem, QAbstractItemView, QHeaderView, QMenu,
    QMessageBox, QStyle, QToolButton, QWidget, QHBoxLayout
)
from PySide6.QtCore import Qt, Slot, QPoint, QTimer
from PySide6.QtGui import QKeySequence, QPalette
from loguru import logger

from ...config.schema import DIVIDER
from ...core.icons import FOLDER_ICON, FOLDER_OPEN_ICON
from ...core.models import RowDescription
from ...core.rendering import clamp_menu_position
from ...core.tree_view import TreeView

NODE_ID_ROLE = Qt.ItemDataRole.UserRole

_TOOLBAR_ICONS = {
    "file-text": QStyle.StandardPixmap.SP_FileIcon,
    "folder-plus": QStyle.StandardPixmap.SP_FileDialogNewFolder,
    "rotate-cw": QStyle.StandardPixmap.SP_BrowserReload,
    "minimize-2": QStyle.StandardPixmap.SP_TitleBarShadeButton,
}


class ProjectTreeWidget(QTreeWidget):
    """
    Qt rendering of a TreeView.

    The widget holds no tree state of its own: it redraws from `view.rows()`
    whenever the view changes and forwards clicks, expansion, context menus
    and the confirm dialog to the view's controllers.
    """

    def __init__(self, view: TreeView, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.view = view
        self.setColumnCount(2) # Name, root toolbar
        self.setHeaderHidden(True)
        self.setSelectionMode(QAbstractItemView.SelectionMode.SingleSelection)
        self.setAnimated(False)
        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        header = self.header()
        header.setStretchLastSection(False)
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.ResizeToContents)

        self._items: Dict[str, QTreeWidgetItem] = {}
        self._menu: Optional[QMenu] = None
        self._confirm_box: Optional[QMessageBox] = None
        self._confirm_token: Optional[str] = None
        self._refresh_pending = False

        self.itemClicked.connect(self._on_item_clicked)
        self.itemExpanded.connect(self._on_item_expanded)
        self.itemCollapsed.connect(self._on_item_collapsed)
        self.customContextMenuRequested.connect(self._show_context_menu)
        self._remove_listener = self.view.add_listener(self._schedule_refresh)
        self.rebuild()

    # --- Rendering ---

    def _schedule_refresh(self):
        # Coalesce bursts of changes and never rebuild inside a signal emitted by an item
        if self._refresh_pending: return
        self._refresh_pending = True
        QTimer.singleShot(0, self._refresh_now)

    @Slot()
    def _refresh_now(self):
        self._refresh_pending = False
        self.rebuild()
        self._sync_confirm_dialog()

    def rebuild(self):
        rows = self.view.rows()
        self.blockSignals(True)
        try:
            self.clear(); self._items.clear()
            parents: List[QTreeWidgetItem] = []
            for row in rows:
                del parents[row.depth:]
                item = self._create_item(row, parents[-1] if parents else None)
                parents.append(item)
            for row in rows:
                item = self._items[row.node_id]
                item.setExpanded(row.is_expanded)
                if row.is_selected:
                    self.setCurrentItem(item)
        finally:
            self.blockSignals(False)
        logger.trace(f"Tree widget rebuilt with {len(rows)} rows.")

    def _create_item(self, row: RowDescription, parent_item: Optional[QTreeWidgetItem]) -> QTreeWidgetItem:
        item = QTreeWidgetItem(parent_item) if parent_item else QTreeWidgetItem(self)
        label = f"{row.label}  [{row.dir_path}]" if row.dir_path else row.label
        item.setText(0, label)
        item.setData(0, NODE_ID_ROLE, row.node_id)
        if row.tooltip: item.setToolTip(0, row.tooltip)

        if row.is_placeholder:
            item.setFlags(item.flags() & ~Qt.ItemFlag.ItemIsEnabled & ~Qt.ItemFlag.ItemIsSelectable)
            font = item.font(0); font.setItalic(True); item.setFont(0, font)
            item.setForeground(0, self.palette().color(QPalette.ColorRole.PlaceholderText))
        else:
            item.setIcon(0, self._icon_for(row.icon))
        if row.chevron_visible:
            item.setChildIndicatorPolicy(QTreeWidgetItem.ChildIndicatorPolicy.ShowIndicator)
        if row.toolbar_visible:
            self.setItemWidget(item, 1, self._build_toolbar())
        self._items[row.node_id] = item
        return item

    def _icon_for(self, token: Optional[str]):
        style = self.style()
        if token == FOLDER_OPEN_ICON: return style.standardIcon(QStyle.StandardPixmap.SP_DirOpenIcon)
        if token == FOLDER_ICON: return style.standardIcon(QStyle.StandardPixmap.SP_DirIcon)
        return style.standardIcon(QStyle.StandardPixmap.SP_FileIcon)

    def _build_toolbar(self) -> QWidget:
        container = QWidget(); layout = QHBoxLayout(container)
        layout.setContentsMargins(0, 0, 4, 0); layout.setSpacing(0)
        for action_id, label, icon in self.view.toolbar_actions():
            button = QToolButton(container)
            button.setAutoRaise(True); button.setToolTip(label)
            button.setIcon(self.style().standardIcon(_TOOLBAR_ICONS.get(icon, QStyle.StandardPixmap.SP_FileIcon)))
            button.clicked.connect(partial(self._on_toolbar_clicked, action_id))
            layout.addWidget(button)
        return container

    # --- Row interaction ---

    def _node_id(self, item: Optional[QTreeWidgetItem]) -> Optional[str]:
        return item.data(0, NODE_ID_ROLE) if item is not None else None

    @Slot(QTreeWidgetItem, int)
    def _on_item_clicked(self, item: QTreeWidgetItem, column: int):
        node_id = self._node_id(item)
        if node_id: self.view.activate(node_id)

    @Slot(QTreeWidgetItem)
    def _on_item_expanded(self, item: QTreeWidgetItem):
        node_id = self._node_id(item)
        if node_id: self.view.selection.set_expanded(node_id, True)

    @Slot(QTreeWidgetItem)
    def _on_item_collapsed(self, item: QTreeWidgetItem):
        node_id = self._node_id(item)
        if node_id: self.view.selection.set_expanded(node_id, False)

    def _on_toolbar_clicked(self, action_id: str, checked: bool = False):
        self.view.run_toolbar_action(action_id)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape and self.view.handle_key("Escape"):
            return
        super().keyPressEvent(event)

    # --- Context menu ---

    @Slot(QPoint)
    def _show_context_menu(self, pos: QPoint):
        node_id = self._node_id(self.itemAt(pos))
        if not node_id: return
        global_pos = self.viewport().mapToGlobal(pos)
        if not self.view.open_context_menu(node_id, global_pos.x(), global_pos.y()): return
        self._popup_menu()

    def _popup_menu(self):
        controller = self.view.context_menu
        state = controller.state
        menu = QMenu(self)
        title = menu.addAction(state.target_node.name if state.target_node else "(folder)")
        title.setEnabled(False)
        menu.addSeparator()
        for entry in controller.items:
            if entry == DIVIDER:
                menu.addSeparator(); continue
            action = menu.addAction(entry.label)
            if entry.shortcut:
                action.setShortcut(QKeySequence(entry.shortcut))
                action.setShortcutVisibleInContextMenu(True)
            if entry.danger:
                action.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_MessageBoxWarning))
            action.setEnabled(controller.is_item_enabled(entry))
            action.triggered.connect(partial(self._on_menu_item, entry.type))
        # Qt hides the menu before emitting triggered: sync the state one tick later
        menu.aboutToHide.connect(lambda: QTimer.singleShot(0, partial(self._on_menu_hidden, menu)))

        screen = self.screen().availableGeometry()
        left, top = clamp_menu_position(state.x - screen.x(), state.y - screen.y(),
                                        screen.width(), screen.height(),
                                        self.view.config.menu_width, self.view.config.menu_height)
        self._menu = menu
        menu.popup(QPoint(left + screen.x(), top + screen.y()))

    def _on_menu_item(self, item_type: str, checked: bool = False):
        self.view.context_menu.select(item_type)

    def _on_menu_hidden(self, menu: QMenu):
        # A newer menu may already be on screen: only the current one owns the controller state
        if self._menu is menu:
            self.view.context_menu.close()
            self._menu = None
        menu.deleteLater()

    # --- Confirm dialog ---

    def _sync_confirm_dialog(self):
        state = self.view.confirm_dialog.state
        if state.is_open and state.token != self._confirm_token:
            self._close_confirm_box()
            box = QMessageBox(QMessageBox.Icon.Warning, state.title, state.message,
                              QMessageBox.StandardButton.Ok | QMessageBox.StandardButton.Cancel, self)
            box.setDefaultButton(QMessageBox.StandardButton.Cancel)
            box.finished.connect(partial(self._on_confirm_finished, box, state.token))
            self._confirm_box = box; self._confirm_token = state.token
            box.open()
        elif not state.is_open and self._confirm_box is not None:
            self._close_confirm_box()

    def _on_confirm_finished(self, box: QMessageBox, token: str, result: int = 0):
        if box.clickedButton() is box.button(QMessageBox.StandardButton.Ok):
            self.view.confirm_dialog.confirm(token)
        else:
            self.view.confirm_dialog.cancel(token)
        if self._confirm_box is box:
            self._confirm_box = None; self._confirm_token = None
        box.deleteLater()

    def _close_confirm_box(self):
        box, self._confirm_box, self._confirm_token = self._confirm_box, None, None
        if box is not None:
            box.reject() # finished -> cancel(token), ignored if already resolved

    # --- Lifecycle ---

    def shutdown(self):
        """Detaches from the view and tears it down."""
        self._remove_listener()
        self._close_confirm_box()
        self.view.teardown()
