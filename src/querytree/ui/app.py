"""
Main application entry point.

This module initializes and runs the PySide6 search builder application.
"""

import sys

from PySide6.QtWidgets import QApplication, QMainWindow
from qt_material import apply_stylesheet

from querytree import __version__
from querytree.infrastructure.logging_config import setup_logging, get_logger
from querytree.config.settings import get_settings, get_settings_manager, get_condition_catalog
from querytree.core.builder import SearchBuilder
from querytree.core.serializer import Query
from querytree.ui.widgets.search_builder_widget import SearchBuilderWidget


logger = get_logger(__name__)


class MainWindow(QMainWindow):
    """
    Main window hosting the search builder.
    """

    def __init__(self, parent=None):
        super().__init__(parent)

        settings = get_settings()
        catalog = get_condition_catalog(settings)

        self.builder = SearchBuilder.from_settings(settings, search_callback=self._query_changed)
        self.builder_widget = SearchBuilderWidget(self.builder, catalog, self)

        self.setCentralWidget(self.builder_widget)
        self.setWindowTitle(f"querytree {__version__}")
        self.resize(settings.window_width, settings.window_height)

    def _query_changed(self, query: Query):
        """Receive each compiled query, as the search orchestrator would."""
        conditions = len(self.builder.editor.items())
        self.statusBar().showMessage(f"Query updated ({conditions} condition(s))")
        get_settings_manager().add_recent_query(query)

    def apply_theme(self, theme: str):
        """
        Apply a qt-material theme to the application.

        Args:
            theme: Name of the theme to apply (with or without '.xml').
        """
        app = QApplication.instance()
        if app is None:
            return
        if not theme.endswith('.xml'):
            theme = f"{theme}.xml"
        try:
            apply_stylesheet(app, theme=theme, invert_secondary=theme.startswith('light_'))
            logger.info(f"Theme applied: {theme}")
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Failed to apply theme {theme}: {e}")


def main():
    """
    Main entry point for the GUI application.
    """
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file_path,
        log_to_file=settings.log_to_file
    )

    logger.info("Starting querytree application")

    app = QApplication(sys.argv)
    app.setApplicationName("querytree")
    app.setApplicationVersion(__version__)

    window = MainWindow()
    window.apply_theme(settings.theme)
    window.show()

    exit_code = app.exec()

    logger.info(f"Application exiting with code {exit_code}")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
