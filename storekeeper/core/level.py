from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from storekeeper.core.grid import (
    DEFAULT_LEVEL_SIZE,
    LEVEL_SIZE_LIMIT,
    Cell,
    LevelSize,
    count_items,
    normalize,
    parse_lines,
    render_rows,
)

logger = logging.getLogger(__name__)


class LevelState(Enum):
    EMPTY = "empty"
    OUT_OF_BOUNDS = "out_of_bounds"
    CORRUPTED = "corrupted"
    PLAYABLE = "playable"


class MoveType(Enum):
    NOTHING = "nothing"
    WORKER = "worker"
    WORKER_AND_BOX = "worker_and_box"


class MoveDirection(Enum):
    NONE = "none"
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    @property
    def delta(self) -> Tuple[int, int]:
        """(dx, dy) of a single step in this direction."""
        return _DIRECTION_DELTA[self]

    @property
    def opposite(self) -> "MoveDirection":
        return _OPPOSITE[self]

    @property
    def is_horizontal(self) -> bool:
        return self in (MoveDirection.LEFT, MoveDirection.RIGHT)

    @classmethod
    def from_delta(cls, dx: int, dy: int) -> "MoveDirection":
        # Horizontal delta wins; callers never pass both.
        if dx > 0:
            return cls.RIGHT
        if dx < 0:
            return cls.LEFT
        if dy > 0:
            return cls.DOWN
        if dy < 0:
            return cls.UP
        return cls.NONE


_DIRECTION_DELTA = {
    MoveDirection.NONE: (0, 0),
    MoveDirection.UP: (0, -1),
    MoveDirection.RIGHT: (1, 0),
    MoveDirection.DOWN: (0, 1),
    MoveDirection.LEFT: (-1, 0),
}

_OPPOSITE = {
    MoveDirection.NONE: MoveDirection.NONE,
    MoveDirection.UP: MoveDirection.DOWN,
    MoveDirection.RIGHT: MoveDirection.LEFT,
    MoveDirection.DOWN: MoveDirection.UP,
    MoveDirection.LEFT: MoveDirection.RIGHT,
}


@dataclass(frozen=True)
class MoveInformation:
    """Outcome of a move attempt. Anything incomplete collapses to a no-op."""

    type: MoveType = MoveType.NOTHING
    direction: MoveDirection = MoveDirection.NONE

    def __post_init__(self) -> None:
        if self.type is MoveType.NOTHING or self.direction is MoveDirection.NONE:
            object.__setattr__(self, "type", MoveType.NOTHING)
            object.__setattr__(self, "direction", MoveDirection.NONE)

    @property
    def is_move(self) -> bool:
        return self.type is not MoveType.NOTHING


NO_MOVE = MoveInformation()


class Axis(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class WorkerDirection:
    """Where the worker faces.

    Both a horizontal and a vertical value are kept so a vertical move can
    still be drawn facing the last horizontal direction; ``axis`` says which
    of the two is the real one.
    """

    horizontal: MoveDirection = MoveDirection.RIGHT
    vertical: MoveDirection = MoveDirection.DOWN
    axis: Axis = Axis.VERTICAL

    def __post_init__(self) -> None:
        if self.horizontal not in (MoveDirection.LEFT, MoveDirection.RIGHT):
            raise ValueError(f"horizontal must be LEFT or RIGHT, got {self.horizontal}")
        if self.vertical not in (MoveDirection.UP, MoveDirection.DOWN):
            raise ValueError(f"vertical must be UP or DOWN, got {self.vertical}")

    @property
    def direction(self) -> MoveDirection:
        return self.horizontal if self.axis is Axis.HORIZONTAL else self.vertical

    @property
    def is_vertical_real(self) -> bool:
        return self.axis is Axis.VERTICAL

    def turned(self, direction: MoveDirection) -> "WorkerDirection":
        if direction is MoveDirection.NONE:
            return self
        if direction.is_horizontal:
            return WorkerDirection(direction, self.vertical, Axis.HORIZONTAL)
        return WorkerDirection(self.horizontal, direction, Axis.VERTICAL)


DEFAULT_WORKER_DIRECTION = WorkerDirection()


class Level:
    """A single Sokoban level: the initial rows and the live, padded grid.

    Construction only parses the text. ``initialize`` validates the content
    against the maximal size, centers it and makes the level playable.
    Every mutating call and every cell access holds ``lock``; a renderer can
    hold the same lock around a whole paint pass.
    """

    def __init__(
        self,
        lines: Union[str, Iterable[str]],
        name: str = "",
        level_id: int = 0,
        maximal_size: LevelSize = DEFAULT_LEVEL_SIZE,
    ) -> None:
        if isinstance(lines, str):
            lines = lines.splitlines()
        self._initial_rows: Tuple[Tuple[Cell, ...], ...] = tuple(tuple(row) for row in parse_lines(lines))
        self._name = name or ""
        self._level_id = level_id
        self._maximal_size = maximal_size if _fits_limit(maximal_size) else DEFAULT_LEVEL_SIZE
        self._lock = threading.RLock()

        self._state = LevelState.EMPTY
        self._grid: List[List[Cell]] = []
        self._goals_count = 0
        self._boxes_count = 0
        self._boxes_on_goals_count = 0
        self._worker_x = 0
        self._worker_y = 0
        self._worker_direction = DEFAULT_WORKER_DIRECTION
        self._moves_count = 0
        self._pushes_count = 0
        self._moves_history: List[MoveInformation] = []

    # -- metadata -----------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def level_id(self) -> int:
        return self._level_id

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def size(self) -> LevelSize:
        """Real content size before padding."""
        width = max((len(row) for row in self._initial_rows), default=0)
        return LevelSize(width, len(self._initial_rows))

    @property
    def maximal_size(self) -> LevelSize:
        return self._maximal_size

    def set_maximal_size(self, maximal_size: LevelSize) -> bool:
        """Change the bounding box used by the next ``initialize``."""
        if not _fits_limit(maximal_size):
            return False
        self._maximal_size = maximal_size
        return True

    # -- state --------------------------------------------------------------

    @property
    def state(self) -> LevelState:
        return self._state

    def is_playable(self) -> bool:
        return self._state is LevelState.PLAYABLE

    @property
    def goals_count(self) -> int:
        return self._goals_count

    @property
    def boxes_count(self) -> int:
        return self._boxes_count

    @property
    def boxes_on_goals_count(self) -> int:
        return self._boxes_on_goals_count

    @property
    def worker_x(self) -> int:
        return self._worker_x

    @property
    def worker_y(self) -> int:
        return self._worker_y

    @property
    def worker_location(self) -> Tuple[int, int]:
        with self._lock:
            return self._worker_x, self._worker_y

    @property
    def worker_direction(self) -> WorkerDirection:
        return self._worker_direction

    @property
    def moves_count(self) -> int:
        return self._moves_count

    @property
    def pushes_count(self) -> int:
        return self._pushes_count

    @property
    def moves_history_count(self) -> int:
        with self._lock:
            return len(self._moves_history)

    @property
    def moves_history(self) -> Tuple[MoveInformation, ...]:
        with self._lock:
            return tuple(self._moves_history)

    def is_completed(self) -> bool:
        return self._boxes_count == self._boxes_on_goals_count

    # -- lifecycle ----------------------------------------------------------

    def initialize(self, maximal_size: Optional[LevelSize] = None) -> bool:
        """Validate and normalize the level, resetting all play state.

        Returns True when the level ends up playable.
        """
        with self._lock:
            if maximal_size is not None and not self.set_maximal_size(maximal_size):
                logger.warning("Level %r: maximal size %s is out of range", self._name, maximal_size)
                return False

            self._state = LevelState.EMPTY
            self._grid = []
            self._goals_count = 0
            self._boxes_count = 0
            self._boxes_on_goals_count = 0
            self._worker_x = 0
            self._worker_y = 0
            self._worker_direction = DEFAULT_WORKER_DIRECTION
            self._moves_count = 0
            self._pushes_count = 0
            self._moves_history = []

            rows = self._initial_rows
            if not rows:
                return False
            width, height = self._maximal_size.width, self._maximal_size.height
            if len(rows) > height:
                self._set_state(LevelState.OUT_OF_BOUNDS)
                return False

            counts = count_items(rows)
            self._goals_count = counts.goals
            self._boxes_count = counts.boxes
            self._boxes_on_goals_count = counts.boxes_on_goals
            if counts.max_line_width > width:
                self._set_state(LevelState.OUT_OF_BOUNDS)
                return False
            if counts.boxes != counts.goals or counts.workers != 1:
                self._set_state(LevelState.CORRUPTED)
                return False

            normalized = normalize(rows, self._maximal_size, counts)
            self._grid = normalized.rows
            self._worker_x = normalized.worker_x
            self._worker_y = normalized.worker_y
            self._set_state(LevelState.PLAYABLE)
            return True

    def restart(self) -> bool:
        return self.initialize()

    def _set_state(self, state: LevelState) -> None:
        self._state = state
        logger.debug("Level %r is %s", self._name, state.value)

    # -- cells --------------------------------------------------------------

    def get_item_at(self, row: int, column: int) -> Optional[Cell]:
        """Cell at (row, column); ``WALL`` off the grid, None unless playable."""
        with self._lock:
            if self._state is not LevelState.PLAYABLE:
                return None
            return self._cell_at(row, column)

    def set_item_at(self, row: int, column: int, cell: Cell) -> bool:
        with self._lock:
            if self._state is not LevelState.PLAYABLE or not cell.is_storable:
                return False
            if not (0 <= row < len(self._grid) and 0 <= column < len(self._grid[row])):
                return False
            self._grid[row][column] = cell
            return True

    def _cell_at(self, row: int, column: int) -> Cell:
        if row < 0 or row >= len(self._grid):
            return Cell.WALL
        line = self._grid[row]
        if column < 0 or column >= len(line):
            return Cell.WALL
        return line[column]

    def to_lines(self) -> List[str]:
        """Current grid as text with the worker drawn in."""
        with self._lock:
            if self._state is not LevelState.PLAYABLE:
                return []
            lines = render_rows(self._grid)
            row = lines[self._worker_y]
            worker = Cell.WORKER_ON_GOAL if self._grid[self._worker_y][self._worker_x] is Cell.GOAL else Cell.WORKER
            lines[self._worker_y] = row[: self._worker_x] + worker.value + row[self._worker_x + 1 :]
            return lines

    # -- moves --------------------------------------------------------------

    def move(self, dx: int, dy: int) -> MoveInformation:
        """Try to step the worker by (dx, dy), pushing a box if there is one.

        Only single-axis unit steps are accepted; anything else is rejected
        without touching the level.
        """
        if dx == 0 and dy == 0:
            return NO_MOVE
        if dx not in (-1, 0, 1) or dy not in (-1, 0, 1) or (dx != 0 and dy != 0):
            logger.warning("Rejected move request (%s, %s): only single-axis unit steps are allowed", dx, dy)
            return NO_MOVE
        with self._lock:
            if self._state is not LevelState.PLAYABLE:
                return NO_MOVE
            return self._execute_move(dx, dy, is_replay=False)

    def _execute_move(self, dx: int, dy: int, is_replay: bool) -> MoveInformation:
        direction = MoveDirection.from_delta(dx, dy)
        destination_x = self._worker_x + dx
        destination_y = self._worker_y + dy
        destination = self._cell_at(destination_y, destination_x)
        if destination is Cell.WALL:
            return NO_MOVE

        move_type = MoveType.WORKER
        if destination.is_box:
            box_x = destination_x + dx
            box_y = destination_y + dy
            beyond = self._cell_at(box_y, box_x)
            if beyond is Cell.WALL or beyond.is_box:
                return NO_MOVE
            if destination is Cell.BOX_ON_GOAL:
                self._grid[destination_y][destination_x] = Cell.GOAL
                self._boxes_on_goals_count -= 1
            else:
                self._grid[destination_y][destination_x] = Cell.EMPTY
            if beyond is Cell.GOAL:
                self._grid[box_y][box_x] = Cell.BOX_ON_GOAL
                self._boxes_on_goals_count += 1
            else:
                self._grid[box_y][box_x] = Cell.BOX
            move_type = MoveType.WORKER_AND_BOX

        self._worker_x = destination_x
        self._worker_y = destination_y
        self._worker_direction = self._worker_direction.turned(direction)
        move = MoveInformation(move_type, direction)
        self.add_move_to_history(move, is_replay=is_replay)
        return move

    def add_move_to_history(self, move: MoveInformation, is_replay: bool = False) -> None:
        """Record a performed move; a fresh move drops the redo tail."""
        if not move.is_move:
            return
        with self._lock:
            if not is_replay:
                del self._moves_history[self._moves_count :]
                self._moves_history.append(move)
            self._moves_count += 1
            if move.type is MoveType.WORKER_AND_BOX:
                self._pushes_count += 1

    def take_back(self, count: int = 1) -> int:
        """Undo the last *count* moves. Returns the new moves count or -1.

        History entries are kept so they can be repeated later.
        """
        with self._lock:
            if self._state is not LevelState.PLAYABLE or count < 1 or count > self._moves_count:
                return -1
            for _ in range(count):
                move = self._moves_history[self._moves_count - 1]
                dx, dy = move.direction.delta
                if move.type is MoveType.WORKER_AND_BOX:
                    box_x = self._worker_x + dx
                    box_y = self._worker_y + dy
                    if self._grid[box_y][box_x] is Cell.BOX_ON_GOAL:
                        self._grid[box_y][box_x] = Cell.GOAL
                        self._boxes_on_goals_count -= 1
                    else:
                        self._grid[box_y][box_x] = Cell.EMPTY
                    # the box goes back to where the worker stands
                    if self._grid[self._worker_y][self._worker_x] is Cell.GOAL:
                        self._grid[self._worker_y][self._worker_x] = Cell.BOX_ON_GOAL
                        self._boxes_on_goals_count += 1
                    else:
                        self._grid[self._worker_y][self._worker_x] = Cell.BOX
                    self._pushes_count -= 1
                self._worker_x -= dx
                self._worker_y -= dy
                self._moves_count -= 1
                if self._moves_count > 0:
                    previous = self._moves_history[self._moves_count - 1]
                    self._worker_direction = self._worker_direction.turned(previous.direction)
                else:
                    self._worker_direction = DEFAULT_WORKER_DIRECTION
            return self._moves_count

    def repeat_moves(self, count: int = 1) -> int:
        """Redo *count* taken-back moves. Returns the new moves count or -1."""
        with self._lock:
            if self._state is not LevelState.PLAYABLE or count < 1:
                return -1
            if len(self._moves_history) - self._moves_count < count:
                return -1
            for move in self._moves_history[self._moves_count : self._moves_count + count]:
                dx, dy = move.direction.delta
                if not self._execute_move(dx, dy, is_replay=True).is_move:
                    logger.error("Level %r: history entry %s could not be replayed", self._name, move)
                    break
            return self._moves_count

    def __repr__(self) -> str:
        return f"Level(name={self._name!r}, id={self._level_id}, state={self._state.value})"


def _fits_limit(size: LevelSize) -> bool:
    return 1 <= size.width <= LEVEL_SIZE_LIMIT.width and 1 <= size.height <= LEVEL_SIZE_LIMIT.height
