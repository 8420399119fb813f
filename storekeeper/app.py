"""Application entry point and setup for the Storekeeper game."""

import logging
import sys

from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QApplication

from storekeeper.core.configuration import ConfigurationStore
from storekeeper.core.game import Game
from storekeeper.core.levels import LevelsSetError, load_levels_set
from storekeeper.ui.main_window import MainWindow


def configure_logging() -> None:
    """Configure application-wide logging with a standard format."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def load_initial_levels_set(game: Game, argv: list) -> None:
    """Load the levels set named on the command line, or the bundled one."""
    if len(argv) > 1:
        try:
            levels_set = load_levels_set(argv[1], game.configuration.level_size)
        except (OSError, LevelsSetError) as e:
            logging.warning(f"Could not load levels set {argv[1]}: {e}")
        else:
            if game.load_levels_set(levels_set):
                return
    if not game.load_default_levels_set():
        logging.warning("Default levels set has no levels")


def run() -> None:
    """Initialize the application, load levels, and start the main window."""
    configure_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("Storekeeper")
    app.setApplicationDisplayName("Storekeeper")

    configuration_store = ConfigurationStore()
    game = Game(configuration_store.configuration)

    window = MainWindow(game=game, configuration_store=configuration_store)
    game.set_completion_listener(window.on_level_completed)
    load_initial_levels_set(game, sys.argv)

    screen = QGuiApplication.primaryScreen()
    if screen is not None:
        geometry = screen.availableGeometry()
        window.resize(min(960, geometry.width()), min(820, geometry.height()))
    window.show()

    sys.exit(app.exec())
