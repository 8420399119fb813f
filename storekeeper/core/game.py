from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from storekeeper.core.configuration import GameConfiguration
from storekeeper.core.level import NO_MOVE, Level, MoveInformation
from storekeeper.core.levels import default_levels_set_path, load_levels_set
from storekeeper.core.levels_set import LevelsSet, LoadState

logger = logging.getLogger(__name__)

LEVELS_SET = "levels_set"
LEVEL_INDEX = "level_index"
GAME_STATE = "game_state"
MOVES_COUNT = "moves_count"
TIME = "time"

PropertyListener = Callable[[str, Any, Any], None]
CompletionListener = Callable[[Level], None]


class GameState(Enum):
    INTRODUCTION = "introduction"
    PLAY = "play"
    STOP = "stop"
    COMPLETED = "completed"


class MovementIntent(Enum):
    """What the player asks the worker to do on the next tick."""

    LEFT = (-1, 0)
    RIGHT = (1, 0)
    UP = (0, -1)
    DOWN = (0, 1)
    STOP = (0, 0)

    @property
    def delta(self) -> Tuple[int, int]:
        return self.value


class Game:
    """Drives one levels set: level selection, movement intents and the clock.

    The owner calls ``tick`` once per game cycle (every
    ``configuration.game_cycle_time`` milliseconds). A successful step takes
    ``cycles_per_step`` ticks; take-back and repeat are refused until the
    step is over.
    """

    def __init__(
        self,
        configuration: GameConfiguration,
        completion_listener: Optional[CompletionListener] = None,
        cycles_per_step: int = 4,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._configuration = configuration
        self._completion_listener = completion_listener
        self._cycles_per_step = max(1, cycles_per_step)
        self._clock = clock
        self._listeners: List[PropertyListener] = []

        self._levels_set = LevelsSet()
        self._is_default_levels_set_loaded = False
        self._state = GameState.INTRODUCTION
        self._intent_x = 0
        self._intent_y = 0
        self._busy_cycles = 0
        self._level_start_time = self._clock()
        self._level_time = 0

    # -- listeners ----------------------------------------------------------

    def add_listener(self, listener: PropertyListener) -> None:
        """Register a callback invoked as ``listener(name, old, new)``."""
        self._listeners.append(listener)

    def set_completion_listener(self, listener: Optional[CompletionListener]) -> None:
        self._completion_listener = listener

    def remove_listener(self, listener: PropertyListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _fire(self, name: str, old: Any, new: Any) -> None:
        for listener in list(self._listeners):
            listener(name, old, new)

    # -- properties ---------------------------------------------------------

    @property
    def configuration(self) -> GameConfiguration:
        return self._configuration

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def levels_set(self) -> LevelsSet:
        return self._levels_set

    @property
    def current_level(self) -> Optional[Level]:
        return self._levels_set.get_current_level()

    def is_default_levels_set_loaded(self) -> bool:
        return self._is_default_levels_set_loaded

    def is_levels_set_loaded(self) -> bool:
        return not self._levels_set.is_empty()

    def is_worker_busy(self) -> bool:
        return self._busy_cycles > 0

    def _set_state(self, state: GameState) -> None:
        old = self._state
        self._state = state
        if old is not state:
            logger.debug("Game state %s -> %s", old.value, state.value)
        self._fire(GAME_STATE, old, state)

    # -- levels set ---------------------------------------------------------

    def load_levels_set(self, levels_set: LevelsSet, is_default: bool = False) -> bool:
        """Replace the current levels set when *levels_set* has any level."""
        if levels_set.is_empty():
            logger.warning("Levels set %r has no levels, keeping the current one", levels_set.name)
            return False
        self.stop(switch_to_introduction=True)
        self._levels_set = levels_set
        self._is_default_levels_set_loaded = is_default
        self._fire(LEVELS_SET, None, levels_set)
        return True

    def load_default_levels_set(self) -> bool:
        levels_set = load_levels_set(default_levels_set_path(), self._configuration.level_size)
        return self.load_levels_set(levels_set, is_default=True)

    def apply_configuration(self, configuration: GameConfiguration) -> LoadState:
        """Switch to new options; levels are re-validated against the new size."""
        was_playing = self._state is GameState.PLAY
        self.stop(switch_to_introduction=not was_playing)
        self._configuration = configuration
        if self._levels_set.is_empty():
            return LoadState.NOT_LOADED
        load_state = self._levels_set.reinitialize(configuration.level_size)
        if was_playing:
            current = self._levels_set.get_current_level()
            if current is not None and current.is_playable():
                self.start_level(self._levels_set.current_index)
            elif self._levels_set.set_current_by_first_playable():
                self.start_level(self._levels_set.current_index)
        return load_state

    # -- flow ---------------------------------------------------------------

    def start_level(self, index: int) -> bool:
        """(Re)initialize level *index* and start playing it."""
        if not 0 <= index < self._levels_set.get_levels_count():
            return False
        self.stop()
        level = self._levels_set.get_level_by_index(index)
        if level is None or not level.initialize(level.maximal_size):
            return False
        old_index = self._levels_set.current_index
        if not self._levels_set.set_current_by_index(index, playable_only=True):
            return False
        if old_index != index:
            self._fire(LEVEL_INDEX, old_index, index)

        self._intent_x = 0
        self._intent_y = 0
        self._busy_cycles = 0
        self._level_start_time = self._clock()
        self._level_time = 0
        logger.info("Started level %d %r", index + 1, level.name)
        self._set_state(GameState.PLAY)
        return True

    def restart_level(self) -> bool:
        if self._state is GameState.PLAY:
            return self.start_level(self._levels_set.current_index)
        return False

    def stop(self, switch_to_introduction: bool = False) -> None:
        self._set_state(GameState.INTRODUCTION if switch_to_introduction else GameState.STOP)
        self._busy_cycles = 0

    def go_to_previous_level(self) -> bool:
        return self._go_to_level(self._levels_set.go_to_previous)

    def go_to_next_level(self) -> bool:
        return self._go_to_level(self._levels_set.go_to_next)

    def _go_to_level(self, step: Callable[[bool], bool]) -> bool:
        if self._levels_set.is_empty():
            return False
        start_new_level = self._state is GameState.PLAY
        self.stop(switch_to_introduction=self._state is GameState.INTRODUCTION)
        old_index = self._levels_set.current_index
        moved = step(True)
        self._fire(LEVEL_INDEX, old_index, self._levels_set.current_index)
        if not moved:
            return False
        if start_new_level:
            return self.start_level(self._levels_set.current_index)
        return True

    # -- history ------------------------------------------------------------

    def take_back(self, count: int = 1) -> int:
        return self._scrub(lambda level: level.take_back(count))

    def repeat_moves(self, count: int = 1) -> int:
        return self._scrub(lambda level: level.repeat_moves(count))

    def seek_history(self, target: int) -> int:
        """Take back or repeat moves in one go until *target* moves are played.

        Returns the new moves count, or -1 when the history cannot be walked.
        """
        level = self._levels_set.get_current_level()
        if level is None:
            return -1
        shift = target - level.moves_count
        if shift < 0:
            return self.take_back(-shift)
        if shift > 0:
            return self.repeat_moves(shift)
        return self._scrub(lambda current: current.moves_count)

    def _scrub(self, action: Callable[[Level], int]) -> int:
        if self._state is not GameState.PLAY or self.is_worker_busy():
            return -1
        level = self._levels_set.get_current_level()
        if level is None:
            return -1
        old_count = level.moves_count
        new_count = action(level)
        if new_count >= 0 and new_count != old_count:
            self._fire(MOVES_COUNT, old_count, new_count)
        return new_count

    # -- input --------------------------------------------------------------

    def force_worker_to_move(self, intent: MovementIntent) -> None:
        self._intent_x, self._intent_y = intent.delta

    def stop_horizontal_movement(self) -> None:
        self._intent_x = 0

    def stop_vertical_movement(self) -> None:
        self._intent_y = 0

    @property
    def intent(self) -> MovementIntent:
        return MovementIntent((self._intent_x, self._intent_y))

    # -- loop ---------------------------------------------------------------

    def tick(self, now: Optional[float] = None) -> MoveInformation:
        """Run one game cycle and return the move it made, if any."""
        if self._state is not GameState.PLAY:
            return NO_MOVE
        level = self._levels_set.get_current_level()
        if level is None:
            return NO_MOVE
        self._update_time(self._clock() if now is None else now)

        if self._busy_cycles > 0:
            self._busy_cycles -= 1
            return NO_MOVE

        if level.is_completed():
            self._complete(level)
            return NO_MOVE

        old_count = level.moves_count
        move = level.move(self._intent_x, self._intent_y)
        if move.is_move:
            self._busy_cycles = self._cycles_per_step - 1
            self._fire(MOVES_COUNT, old_count, level.moves_count)
        return move

    def _complete(self, level: Level) -> None:
        logger.info(
            "Level %r completed in %d moves, %d pushes, %s",
            level.name,
            level.moves_count,
            level.pushes_count,
            self.get_time_string(),
        )
        self._set_state(GameState.COMPLETED)
        if self._completion_listener is not None:
            self._completion_listener(level)
        self.stop()
        old_index = self._levels_set.current_index
        if not self._levels_set.go_to_next(playable_only=True):
            return
        if self._levels_set.current_index == old_index:
            # only playable level, stay stopped
            return
        self._fire(LEVEL_INDEX, old_index, self._levels_set.current_index)
        self.start_level(self._levels_set.current_index)

    def _update_time(self, now: float) -> None:
        old = self._level_time
        self._level_time = max(0, int(now - self._level_start_time))
        if self._level_time > old:
            self._fire(TIME, old, self._level_time)

    def get_time_in_seconds(self) -> int:
        return self._level_time

    def get_time_string(self) -> str:
        seconds = self._level_time % 60
        minutes = (self._level_time // 60) % 60
        hours = self._level_time // 3600
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
