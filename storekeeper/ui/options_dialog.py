"""Options dialog: game speed, level size limits and sprite size."""

from __future__ import annotations

from typing import Optional

from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from storekeeper.core.configuration import (
    MAX_GAME_CYCLE_TIME,
    MIN_GAME_CYCLE_TIME,
    MIN_LEVEL_HEIGHT,
    MIN_LEVEL_WIDTH,
    SPRITE_SIZES,
    GameConfiguration,
)
from storekeeper.core.grid import LEVEL_SIZE_LIMIT
from storekeeper.ui.colors import BoardColors


def _spin_box(value: int, minimum: int, maximum: int, suffix: str = "") -> QSpinBox:
    box = QSpinBox()
    box.setRange(minimum, maximum)
    box.setValue(value)
    if suffix:
        box.setSuffix(suffix)
    return box


class OptionsDialog(QDialog):
    """Edits a copy of the configuration; read it back with ``configuration()``."""

    def __init__(self, configuration: GameConfiguration, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Options")
        self.setStyleSheet(f"""
            QDialog {{ background-color: {BoardColors.BACKGROUND}; }}
            QLabel {{ color: {BoardColors.TEXT_PRIMARY}; }}
        """)

        self._cycle_time = _spin_box(
            configuration.game_cycle_time, MIN_GAME_CYCLE_TIME, MAX_GAME_CYCLE_TIME, " ms"
        )
        self._level_width = _spin_box(configuration.level_width, MIN_LEVEL_WIDTH, LEVEL_SIZE_LIMIT.width)
        self._level_height = _spin_box(configuration.level_height, MIN_LEVEL_HEIGHT, LEVEL_SIZE_LIMIT.height)
        self._sprite_size = QComboBox()
        self._sprite_size.addItems(list(SPRITE_SIZES))
        self._sprite_size.setCurrentText(configuration.sprite_size)

        form = QFormLayout()
        form.addRow("Game cycle", self._cycle_time)
        form.addRow("Maximal level width", self._level_width)
        form.addRow("Maximal level height", self._level_height)
        form.addRow("Sprite size", self._sprite_size)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(buttons)

    def configuration(self) -> GameConfiguration:
        return GameConfiguration(
            game_cycle_time=self._cycle_time.value(),
            level_width=self._level_width.value(),
            level_height=self._level_height.value(),
            sprite_size=self._sprite_size.currentText(),
        ).adjusted()
