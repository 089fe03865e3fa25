# projecttree/ui/windows/main_window.py
from PySide6.QtWidgets import QMainWindow, QWidget, QMessageBox
from PySide6.QtGui import QKeySequence
from PySide6.QtCore import Slot, QByteArray

from loguru import logger

from ..widgets.project_panel import ProjectPanel
from ...config.loader import get_config
from ...core.tree_view import TreeView
from ... import __version__


class MainWindow(QMainWindow):
    """Main application window hosting the project explorer panel."""

    def __init__(self, view: TreeView, parent: QWidget | None = None):
        super().__init__(parent)
        self.setWindowTitle("Project Tree")
        self.view = view

        self.panel = ProjectPanel(self.view, self)
        self.setCentralWidget(self.panel)
        self._setup_menus()
        self._load_state()
        self._remove_listener = self.view.add_listener(self._update_title)
        logger.info("MainWindow initialized.")

    def _setup_menus(self):
        menubar = self.menuBar(); file_menu = menubar.addMenu("&File")
        self.refresh_action = file_menu.addAction("&Refresh", self._refresh, QKeySequence.StandardKey.Refresh)
        self.collapse_action = file_menu.addAction("&Collapse All Folders", self.view.collapse_all)
        file_menu.addSeparator(); self.quit_action = file_menu.addAction("&Quit", self.close, QKeySequence.StandardKey.Quit)
        help_menu = menubar.addMenu("&Help"); self.about_action = help_menu.addAction("&About", self._show_about_dialog)

    @Slot()
    def _refresh(self):
        self.view.request_refresh()

    def _update_title(self):
        self.setWindowTitle(f"{self.view.project_name} - Project Tree")

    def _load_state(self):
        config = get_config()
        try:
            if config.window_geometry:
                geom = QByteArray.fromBase64(config.window_geometry.encode('ascii'))
                if not self.restoreGeometry(geom):
                    logger.warning("Failed to restore window geometry."); self.resize(420, 720)
            else:
                self.resize(420, 720)
        except (ValueError, UnicodeEncodeError) as e:
            logger.error(f"Error restoring window geometry: {e}"); self.resize(420, 720)

    def update_config_before_save(self):
        """Copies the window geometry into the current config object."""
        config = get_config()
        config.window_geometry = bytes(self.saveGeometry().toBase64()).decode('ascii')

    @Slot()
    def _show_about_dialog(self):
        QMessageBox.about(self, "About Project Tree",
                          f"<b>Project Tree</b> v{__version__}<br>Project explorer panel.")

    def closeEvent(self, event):
        logger.info("Close event triggered. Tearing down the project panel.")
        self.update_config_before_save()
        self._remove_listener()
        self.panel.shutdown()
        event.accept()
