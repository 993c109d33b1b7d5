"""Application entry point and setup for the WPMHero typing test."""

import logging
import os
import sys
from typing import Optional

from PySide6.QtGui import QFont, QGuiApplication
from PySide6.QtWidgets import QApplication

from wpmhero.core.results import Identity, ResultStore
from wpmhero.core.words import WordRepository
from wpmhero.ui.main_window import MainWindow


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    level_name = os.environ.get("WPMHERO_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def resolve_identity() -> Optional[Identity]:
    """Signed-in user from the environment; None when signed out."""
    user_id = os.environ.get("WPMHERO_USER", "").strip()
    if not user_id:
        return None
    name = os.environ.get("WPMHERO_USER_NAME", "").strip() or None
    return Identity(user_id=user_id, display_name=name)


def run() -> None:
    """Initialize the application, load resources, and start the main window."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("WPMHero")
    app.setApplicationDisplayName("WPMHero")

    app_font = QFont("Sans Serif")
    app_font.setPointSize(11)
    QGuiApplication.setFont(app_font)

    words = WordRepository()
    result_store = ResultStore()
    identity = resolve_identity()
    if identity is None:
        logging.info("No WPMHERO_USER set; results will not be saved")

    window = MainWindow(
        words=words,
        result_store=result_store,
        identity=identity,
        word_list=os.environ.get("WPMHERO_WORDS"),
    )
    window.resize(1100, 640)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    run()
