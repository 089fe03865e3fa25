# projecttree/ui/application.py
import sys
from PySide6.QtWidgets import QApplication
from loguru import logger

from .windows.main_window import MainWindow
from ..config.loader import load_config, save_config, get_config
from ..core.loaders import ProjectLoaders
from ..core.tree_view import TreeView
from ..services.async_utils import EventLoopPump


def run(argv=None) -> int:
    """Initializes and runs the QApplication. Returns the exit code."""
    if argv is None:
        argv = sys.argv

    app = QApplication(argv)
    app.setApplicationName("ProjectTree")

    try:
        config = load_config()
    except Exception:
        logger.exception("Fatal error loading configuration on startup.")
        QApplication.beep()
        return 1

    pump = EventLoopPump()
    pump.start()
    loaders = ProjectLoaders(progress_callback=logger.debug, error_callback=logger.warning)
    view = TreeView(loaders.load_filesystem_snapshot, loaders.load_project_name,
                    config.tree, spawn=pump.spawn)

    try:
        main_window = MainWindow(view)
        main_window.show()
    except Exception:
        logger.exception("Fatal error creating or showing the main window.")
        QApplication.beep()
        pump.stop()
        return 1

    pump.spawn(view.initialize())

    # --- Main application loop ---
    exit_code = app.exec()

    view.teardown()
    loaders.cancel()
    pump.stop()

    # --- Save configuration on exit ---
    try:
        save_config(get_config())
    except (OSError, TypeError):
        logger.exception("Error saving configuration on exit.")

    logger.info(f"Application finished with exit code {exit_code}.")
    return exit_code
