# projecttree/ui/widgets/project_panel.py
from PySide6.QtWidgets import QWidget, QVBoxLayout, QLabel, QFrame
from PySide6.QtCore import Slot, QTimer

from ...core.tree_view import TreeView
from .file_tree import ProjectTreeWidget


class ProjectPanel(QWidget):
    """Explorer panel: heading, the tree and a one-line status footer."""

    def __init__(self, view: TreeView, parent: QWidget | None = None):
        super().__init__(parent)
        self.view = view
        self._setup_ui()
        self._remove_listener = self.view.add_listener(lambda: QTimer.singleShot(0, self._update_status))
        self._update_status()

    def _setup_ui(self):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(5, 5, 5, 5)

        heading = QLabel("Project Explorer")
        heading.setStyleSheet("font-weight: bold;")
        main_layout.addWidget(heading)

        self.file_tree = ProjectTreeWidget(self.view)
        main_layout.addWidget(self.file_tree)

        separator = QFrame(); separator.setFrameShape(QFrame.Shape.HLine)
        main_layout.addWidget(separator)
        self.status_label = QLabel()
        self.status_label.setWordWrap(True)
        main_layout.addWidget(self.status_label)

    @Slot()
    def _update_status(self):
        if self.view.loading:
            text = "Loading project..."
        elif self.view.error:
            text = f"Load failed ({self.view.error}). Showing an empty project."
        else:
            selected = self.view.selected_node()
            text = f"Selected: {selected.id}" if selected else "Select a file"
        self.status_label.setText(text)

    def shutdown(self):
        self._remove_listener()
        self.file_tree.shutdown()
