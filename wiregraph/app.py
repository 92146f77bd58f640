"""
wiregraph application setup and main window initialization.
"""

import sys
from typing import List
import logging

from PySide6.QtWidgets import QApplication

from wiregraph import __version__
from wiregraph.config import JsonConfigManager
from wiregraph.logging_config import setup_logging


logger = logging.getLogger(__name__)


def run_app(args: List[str]) -> int:
    """Initialize and run the wiregraph routing editor."""
    log_path = setup_logging()
    config_manager = JsonConfigManager()
    logger.info("Starting wiregraph (args=%s, log_file=%s)", args, log_path)
    logger.info("Configuration directory: %s", config_manager.config_dir)

    app = QApplication(sys.argv)
    app.setApplicationName("wiregraph")
    app.setApplicationVersion(__version__)
    app.setOrganizationName("wiregraph")

    # Import here so the Qt application exists before any widget module loads
    from wiregraph.ui.main_window import MainWindow

    window = MainWindow(config_manager=config_manager)
    window.show()
    rc = app.exec()
    logger.info("Application exited with code %d", rc)
    return rc
