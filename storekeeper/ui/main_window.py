from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QAction, QCloseEvent, QKeyEvent, QKeySequence
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from storekeeper.core.configuration import ConfigurationStore
from storekeeper.core.game import GAME_STATE, LEVEL_INDEX, LEVELS_SET, Game, GameState, MovementIntent
from storekeeper.core.level import Level
from storekeeper.core.levels import LevelsSetError, load_levels_set
from storekeeper.core.levels_set import LoadState
from storekeeper.ui.board_widget import BoardWidget
from storekeeper.ui.colors import BoardColors
from storekeeper.ui.moves_history_dialog import MovesHistoryDialog
from storekeeper.ui.options_dialog import OptionsDialog

logger = logging.getLogger(__name__)

_KEY_INTENTS = {
    Qt.Key_Left: MovementIntent.LEFT,
    Qt.Key_Right: MovementIntent.RIGHT,
    Qt.Key_Up: MovementIntent.UP,
    Qt.Key_Down: MovementIntent.DOWN,
}


class MainWindow(QMainWindow):
    """Game window: toolbar, level information bar and the playing field.

    A QTimer ticks the game every ``game_cycle_time`` milliseconds; arrow
    keys set the movement intent until they are released.
    """

    def __init__(self, game: Game, configuration_store: ConfigurationStore) -> None:
        super().__init__()
        self._game = game
        self._configuration_store = configuration_store

        self._board = BoardWidget()
        self._board.set_sprite_size(game.configuration.sprite_size)
        self._level_label = QLabel(" ")
        self._moves_label = QLabel(" ")
        self._pushes_label = QLabel(" ")
        self._time_label = QLabel(" ")
        self._message_label = QLabel(" ")

        self._build_ui()
        self._build_actions()

        self._game.add_listener(self._on_game_property_changed)

        self._timer = QTimer(self)
        self._timer.setInterval(game.configuration.game_cycle_time)
        self._timer.timeout.connect(self._on_tick)
        self._timer.start()

        self._refresh()

    def _build_ui(self) -> None:
        self.setWindowTitle("Storekeeper")
        self.setStyleSheet(f"""
            QMainWindow, QWidget {{ background-color: {BoardColors.BACKGROUND}; }}
            QLabel {{ color: {BoardColors.TEXT_PRIMARY}; font-size: 13px; font-weight: 700; }}
        """)

        info_bar = QHBoxLayout()
        info_bar.addWidget(self._level_label, 1)
        info_bar.addWidget(self._moves_label)
        info_bar.addWidget(self._pushes_label)
        info_bar.addWidget(self._time_label)

        self._message_label.setStyleSheet(f"color: {BoardColors.TEXT_MUTED}; font-size: 12px;")

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(12, 8, 12, 8)
        layout.addLayout(info_bar)
        layout.addWidget(self._board, 1)
        layout.addWidget(self._message_label)
        self.setCentralWidget(central)

    def _build_actions(self) -> None:
        toolbar = QToolBar("Game", self)
        toolbar.setMovable(False)
        toolbar.setFocusPolicy(Qt.NoFocus)
        self.addToolBar(toolbar)

        def add(text: str, shortcut: QKeySequence, slot) -> QAction:
            action = QAction(text, self)
            action.setShortcut(shortcut)
            action.triggered.connect(slot)
            toolbar.addAction(action)
            return action

        add("Open…", QKeySequence.Open, self._open_levels_set)
        add("Options…", QKeySequence.Preferences, self._edit_options)
        toolbar.addSeparator()
        add("Play", QKeySequence(Qt.Key_Return), self._play)
        add("Previous", QKeySequence(Qt.Key_PageUp), self._game.go_to_previous_level)
        add("Next", QKeySequence(Qt.Key_PageDown), self._game.go_to_next_level)
        add("Restart", QKeySequence(Qt.Key_F5), self._game.restart_level)
        toolbar.addSeparator()
        add("Take back", QKeySequence.Undo, lambda: self._game.take_back(1))
        add("Repeat", QKeySequence.Redo, lambda: self._game.repeat_moves(1))
        add("Moves history…", QKeySequence(Qt.CTRL | Qt.Key_H), self._walk_moves_history)

    # -- slots --------------------------------------------------------------

    def _play(self) -> None:
        if self._game.state is GameState.PLAY:
            return
        index = self._game.levels_set.current_index
        if index < 0 and not self._game.levels_set.set_current_by_first_playable():
            self._show_message("No playable levels in this set")
            return
        if not self._game.start_level(self._game.levels_set.current_index):
            self._show_message("This level cannot be played")

    def _open_levels_set(self) -> None:
        file_name, _ = QFileDialog.getOpenFileName(
            self, "Open levels set", str(Path.home()), "Levels sets (*.yaml *.yml *.sok)"
        )
        if not file_name:
            return
        try:
            levels_set = load_levels_set(file_name, self._game.configuration.level_size)
        except (OSError, LevelsSetError) as e:
            logger.warning("Could not open levels set %s: %s", file_name, e)
            QMessageBox.warning(self, "Storekeeper", str(e))
            return
        if not self._game.load_levels_set(levels_set):
            QMessageBox.warning(self, "Storekeeper", "The file contains no levels.")

    def _edit_options(self) -> None:
        dialog = OptionsDialog(self._game.configuration, self)
        if dialog.exec() != OptionsDialog.Accepted:
            return
        chosen = dialog.configuration()
        configuration = self._configuration_store.update(**asdict(chosen))
        self._timer.setInterval(configuration.game_cycle_time)
        self._board.set_sprite_size(configuration.sprite_size)
        load_state = self._game.apply_configuration(configuration)
        if load_state is not LoadState.NOT_LOADED:
            self._report_load_state()
        self._board.set_level(self._game.current_level)
        self._refresh()

    def _walk_moves_history(self) -> None:
        level = self._game.current_level
        if self._game.state is not GameState.PLAY or level is None or level.moves_history_count == 0:
            self._show_message("No moves to walk over")
            return
        self._game.force_worker_to_move(MovementIntent.STOP)
        MovesHistoryDialog(self._game, self).exec()
        self._board.update()
        self._refresh()

    def _on_tick(self) -> None:
        self._game.tick()
        self._board.update()

    def _on_game_property_changed(self, name: str, old: Any, new: Any) -> None:
        if name in (LEVELS_SET, LEVEL_INDEX, GAME_STATE):
            self._board.set_level(self._game.current_level)
        if name == LEVELS_SET:
            self._report_load_state()
        self._refresh()

    def on_level_completed(self, level: Level) -> None:
        self._show_message(
            f"Level {level.name or level.level_id} completed: {level.moves_count} moves, {level.pushes_count} pushes",
            BoardColors.TEXT_ACCENT,
        )

    # -- view ---------------------------------------------------------------

    def _show_message(self, text: str, color: str = BoardColors.TEXT_MUTED) -> None:
        self._message_label.setStyleSheet(f"color: {color}; font-size: 12px;")
        self._message_label.setText(text)

    def _report_load_state(self) -> None:
        levels_set = self._game.levels_set
        playable = levels_set.get_playable_levels_count()
        total = levels_set.get_levels_count()
        if levels_set.load_state is LoadState.SUCCESS:
            self._show_message(f"{total} levels loaded. Press Enter to play.")
        else:
            self._show_message(f"{playable} of {total} levels are playable")

    def _refresh(self) -> None:
        levels_set = self._game.levels_set
        level = self._game.current_level
        if level is None or self._game.state is GameState.STOP:
            for label in (self._level_label, self._moves_label, self._pushes_label, self._time_label):
                label.setText(" ")
            return

        title = f"Level {levels_set.current_index + 1:03d}"
        if level.name:
            title += f" · {level.name}"
        if levels_set.name:
            title = f"{levels_set.name} · {title}"
        self._level_label.setText(title)
        self._moves_label.setText(f"Moves: {level.moves_count}")
        self._pushes_label.setText(f"Pushes: {level.pushes_count}")
        self._time_label.setText(f"Time: {self._game.get_time_string()}")

    # -- input --------------------------------------------------------------

    def keyPressEvent(self, event: QKeyEvent) -> None:
        intent = _KEY_INTENTS.get(event.key())
        if intent is None or self._game.state is not GameState.PLAY:
            super().keyPressEvent(event)
            return
        if not event.isAutoRepeat():
            self._game.force_worker_to_move(intent)

    def keyReleaseEvent(self, event: QKeyEvent) -> None:
        intent = _KEY_INTENTS.get(event.key())
        if intent is None or event.isAutoRepeat():
            super().keyReleaseEvent(event)
            return
        if intent in (MovementIntent.LEFT, MovementIntent.RIGHT):
            self._game.stop_horizontal_movement()
        else:
            self._game.stop_vertical_movement()

    def closeEvent(self, event: QCloseEvent) -> None:
        """Persist options when closing the app."""
        self._timer.stop()
        if self._configuration_store is not None:
            self._configuration_store.save()
        super().closeEvent(event)
