"""Playing field: paints the current level cell by cell."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtWidgets import QSizePolicy, QWidget

from storekeeper.core.configuration import (
    SPRITE_SIZE_LARGE,
    SPRITE_SIZE_MEDIUM,
    SPRITE_SIZE_SMALL,
)
from storekeeper.core.grid import Cell
from storekeeper.core.level import Level, MoveDirection
from storekeeper.ui.colors import CELL_COLORS, BoardColors, blend_hex

SPRITE_PIXELS = {
    SPRITE_SIZE_LARGE: 32,
    SPRITE_SIZE_MEDIUM: 24,
    SPRITE_SIZE_SMALL: 16,
}


class BoardWidget(QWidget):
    """Draws walls, goals, boxes and the worker of one level."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._level: Optional[Level] = None
        self._sprite_size = "optimal"
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.setMinimumSize(320, 320)
        self.setFocusPolicy(Qt.NoFocus)

    def set_level(self, level: Optional[Level]) -> None:
        self._level = level
        self.update()

    def set_sprite_size(self, sprite_size: str) -> None:
        self._sprite_size = sprite_size
        self.update()

    def _cell_pixels(self, columns: int, rows: int) -> int:
        fixed = SPRITE_PIXELS.get(self._sprite_size)
        if fixed is not None:
            return fixed
        return max(8, min(self.width() // max(columns, 1), self.height() // max(rows, 1)))

    def paintEvent(self, event) -> None:
        """Paint the level; the level lock is held for the whole pass."""
        super().paintEvent(event)
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(self.rect(), QColor(BoardColors.BACKGROUND))

        level = self._level
        if level is None or not level.is_playable():
            painter.end()
            return

        size = level.maximal_size
        cell = self._cell_pixels(size.width, size.height)
        left = (self.width() - cell * size.width) // 2
        top = (self.height() - cell * size.height) // 2

        with level.lock:
            for row in range(size.height):
                for column in range(size.width):
                    item = level.get_item_at(row, column)
                    if item is None:
                        continue
                    self._paint_cell(painter, item, QRectF(left + column * cell, top + row * cell, cell, cell))
            worker_x, worker_y = level.worker_location
            direction = level.worker_direction.direction
        self._paint_worker(painter, QRectF(left + worker_x * cell, top + worker_y * cell, cell, cell), direction)
        painter.end()

    def _paint_cell(self, painter: QPainter, item: Cell, rect: QRectF) -> None:
        if item is Cell.EMPTY:
            return
        if item is Cell.WALL:
            painter.setPen(QPen(QColor(BoardColors.WALL_EDGE), 1))
            painter.setBrush(QColor(BoardColors.WALL))
            painter.drawRect(rect)
            return

        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(BoardColors.FLOOR))
        painter.drawRect(rect)
        if item is Cell.GOAL:
            painter.setBrush(QColor(CELL_COLORS[Cell.GOAL]))
            painter.drawEllipse(rect.center(), rect.width() / 6, rect.height() / 6)
        elif item.is_box:
            inset = rect.width() / 8
            box = rect.adjusted(inset, inset, -inset, -inset)
            painter.setPen(QPen(QColor(BoardColors.BOX_EDGE), 2))
            painter.setBrush(QColor(CELL_COLORS[item]))
            painter.drawRoundedRect(box, inset, inset)
            painter.setPen(QPen(QColor(blend_hex(CELL_COLORS[item], BoardColors.BOX_EDGE, 0.5)), 1))
            painter.drawLine(box.topLeft(), box.bottomRight())
            painter.drawLine(box.topRight(), box.bottomLeft())

    def _paint_worker(self, painter: QPainter, rect: QRectF, direction: MoveDirection) -> None:
        inset = rect.width() / 6
        body = rect.adjusted(inset, inset, -inset, -inset)
        painter.setPen(Qt.NoPen)
        painter.setBrush(QColor(BoardColors.WORKER))
        painter.drawEllipse(body)

        dx, dy = direction.delta
        eye = body.center()
        eye.setX(eye.x() + dx * body.width() / 4)
        eye.setY(eye.y() + dy * body.height() / 4)
        painter.setBrush(QColor(BoardColors.WORKER_EYE))
        painter.drawEllipse(eye, body.width() / 8, body.height() / 8)
