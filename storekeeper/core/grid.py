"""Cell symbols, parsing and normalization of a level's grid."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Sequence

logger = logging.getLogger(__name__)


class Cell(str, Enum):
    """One square of a level.

    ``WORKER`` and ``WORKER_ON_GOAL`` only appear in parsed input; the live
    grid stores the floor under the worker and tracks the worker separately.
    """

    WALL = "#"
    GOAL = "."
    BOX = "$"
    BOX_ON_GOAL = "*"
    WORKER = "@"
    WORKER_ON_GOAL = "+"
    EMPTY = " "

    @classmethod
    def from_char(cls, ch: str) -> "Cell":
        try:
            return cls(ch)
        except ValueError:
            logger.debug("Unknown level character %r treated as empty", ch)
            return cls.EMPTY

    @property
    def is_box(self) -> bool:
        return self in (Cell.BOX, Cell.BOX_ON_GOAL)

    @property
    def is_storable(self) -> bool:
        """True for cells that may live in the playing grid."""
        return self not in (Cell.WORKER, Cell.WORKER_ON_GOAL)


LEVEL_CHARACTERS = frozenset(cell.value for cell in Cell)


@dataclass(frozen=True)
class LevelSize:
    width: int
    height: int


DEFAULT_LEVEL_SIZE = LevelSize(20, 20)
LEVEL_SIZE_LIMIT = LevelSize(40, 35)


@dataclass(frozen=True)
class GridCounts:
    """Item counts gathered while scanning the initial rows."""

    goals: int = 0
    boxes: int = 0
    boxes_on_goals: int = 0
    workers: int = 0
    worker_x: int = 0
    worker_y: int = 0
    max_line_width: int = 0


@dataclass
class NormalizedGrid:
    rows: List[List[Cell]]
    worker_x: int
    worker_y: int
    leading_rows: int
    leading_columns: int


def parse_lines(lines: Iterable[str]) -> List[List[Cell]]:
    """Turn raw text lines into rows of cells."""
    return [[Cell.from_char(ch) for ch in line] for line in lines]


def count_items(rows: Sequence[Sequence[Cell]]) -> GridCounts:
    goals = boxes = boxes_on_goals = workers = 0
    worker_x = worker_y = 0
    max_line_width = 0
    for y, row in enumerate(rows):
        max_line_width = max(max_line_width, len(row))
        for x, cell in enumerate(row):
            if cell is Cell.WORKER:
                workers += 1
                worker_x, worker_y = x, y
            elif cell is Cell.WORKER_ON_GOAL:
                workers += 1
                goals += 1
                worker_x, worker_y = x, y
            elif cell is Cell.GOAL:
                goals += 1
            elif cell is Cell.BOX:
                boxes += 1
            elif cell is Cell.BOX_ON_GOAL:
                boxes += 1
                goals += 1
                boxes_on_goals += 1
    return GridCounts(
        goals=goals,
        boxes=boxes,
        boxes_on_goals=boxes_on_goals,
        workers=workers,
        worker_x=worker_x,
        worker_y=worker_y,
        max_line_width=max_line_width,
    )


def _floor_of(cell: Cell) -> Cell:
    if cell is Cell.WORKER:
        return Cell.EMPTY
    if cell is Cell.WORKER_ON_GOAL:
        return Cell.GOAL
    return cell


def normalize(rows: Sequence[Sequence[Cell]], maximal_size: LevelSize, counts: GridCounts) -> NormalizedGrid:
    """Center *rows* inside a ``maximal_size`` grid padded with empty cells.

    The content must already fit. Extra padding goes to the bottom and right
    when the free space is odd.
    """
    width, height = maximal_size.width, maximal_size.height
    leading_rows = (height - len(rows)) // 2
    trailing_rows = height - len(rows) - leading_rows
    leading_columns = (width - counts.max_line_width) // 2

    grid: List[List[Cell]] = [[Cell.EMPTY] * width for _ in range(leading_rows)]
    for row in rows:
        line = [Cell.EMPTY] * leading_columns + [_floor_of(cell) for cell in row]
        line.extend([Cell.EMPTY] * (width - len(line)))
        grid.append(line)
    grid.extend([Cell.EMPTY] * width for _ in range(trailing_rows))

    return NormalizedGrid(
        rows=grid,
        worker_x=counts.worker_x + leading_columns,
        worker_y=counts.worker_y + leading_rows,
        leading_rows=leading_rows,
        leading_columns=leading_columns,
    )


def render_rows(rows: Sequence[Sequence[Cell]]) -> List[str]:
    return ["".join(cell.value for cell in row) for row in rows]
