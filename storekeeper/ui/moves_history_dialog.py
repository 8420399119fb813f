"""Moves history dialog: walk back and forth over the current level's moves."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QLabel,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from storekeeper.core.game import Game
from storekeeper.ui.colors import BoardColors


class MovesHistoryDialog(QDialog):
    """Slider over ``[0, moves_history_count]`` starting at the current move.

    Moving the slider takes back or repeats moves right away so the board
    follows it; Cancel returns to the position the dialog was opened at.
    """

    def __init__(self, game: Game, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._game = game
        level = game.current_level
        self._initial_count = level.moves_count if level is not None else 0
        history_count = level.moves_history_count if level is not None else 0

        self.setWindowTitle("Moves history")
        self.setMinimumWidth(480)
        self.setStyleSheet(f"""
            QDialog {{ background-color: {BoardColors.BACKGROUND}; }}
            QLabel {{ color: {BoardColors.TEXT_PRIMARY}; }}
        """)

        self._slider = QSlider(Qt.Horizontal)
        self._slider.setRange(0, history_count)
        self._slider.setValue(self._initial_count)
        self._slider.setTickPosition(QSlider.TicksBelow)
        self._slider.valueChanged.connect(self._on_value_changed)

        self._hint = QLabel()
        self._buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self._buttons.accepted.connect(self.accept)
        self._buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addWidget(self._slider)
        layout.addWidget(self._hint)
        layout.addWidget(self._buttons)
        self._update_hint()

    def _on_value_changed(self, value: int) -> None:
        if self._game.seek_history(value) < 0:
            level = self._game.current_level
            self._slider.blockSignals(True)
            self._slider.setValue(level.moves_count if level is not None else self._initial_count)
            self._slider.blockSignals(False)
        self._update_hint()

    def _update_hint(self) -> None:
        shift = self._slider.value() - self._initial_count
        if shift < 0:
            self._hint.setText(f"Position will be taken back by {-shift} move(s).")
        elif shift > 0:
            self._hint.setText(f"Position will be restored by repeating {shift} move(s).")
        else:
            self._hint.setText("Position will not be changed.")
        self._buttons.button(QDialogButtonBox.Ok).setEnabled(shift != 0)

    def reject(self) -> None:
        self._game.seek_history(self._initial_count)
        super().reject()
