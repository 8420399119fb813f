from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Tuple

from storekeeper.core.grid import LevelSize
from storekeeper.core.level import Level, LevelState

logger = logging.getLogger(__name__)


class LoadState(Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    NOT_LOADED = "not_loaded"


class LevelsSet:
    """Ordered collection of levels with a current-level cursor.

    Navigation can be restricted to playable levels. Failed navigation
    leaves the cursor at -1.
    """

    def __init__(self, name: str = "") -> None:
        self._name = name or ""
        self._levels: List[Level] = []
        self._current_index = -1
        self.load_state = LoadState.NOT_LOADED

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: Optional[str]) -> None:
        self._name = value or ""

    @property
    def levels(self) -> Tuple[Level, ...]:
        return tuple(self._levels)

    @property
    def current_index(self) -> int:
        return self._current_index

    def add_level(self, level: Optional[Level]) -> None:
        if level is None:
            return
        self._levels.append(level)
        if self._current_index < 0:
            self._current_index = 0

    def get_levels_count(self) -> int:
        return len(self._levels)

    def is_empty(self) -> bool:
        return not self._levels

    def get_level_by_index(self, index: int) -> Optional[Level]:
        if 0 <= index < len(self._levels):
            return self._levels[index]
        return None

    def get_current_level(self) -> Optional[Level]:
        return self.get_level_by_index(self._current_index)

    def get_levels_count_by_state(self, state: LevelState) -> int:
        return sum(1 for level in self._levels if level.state is state)

    def get_playable_levels_count(self) -> int:
        return self.get_levels_count_by_state(LevelState.PLAYABLE)

    def set_current_by_index(self, index: int, playable_only: bool = False) -> bool:
        """Select level *index*.

        With *playable_only* the call fails when the set has no playable level
        at all; the selected level itself is not checked.
        """
        if not 0 <= index < len(self._levels):
            self._current_index = -1
            return False
        if playable_only and self.get_playable_levels_count() == 0:
            self._current_index = -1
            return False
        self._current_index = index
        return True

    def set_current_by_first_playable(self) -> bool:
        for index, level in enumerate(self._levels):
            if level.is_playable():
                self._current_index = index
                return True
        self._current_index = -1
        return False

    def go_to_previous(self, playable_only: bool = False) -> bool:
        return self._step(-1, playable_only)

    def go_to_next(self, playable_only: bool = False) -> bool:
        return self._step(1, playable_only)

    def _step(self, offset: int, playable_only: bool) -> bool:
        count = len(self._levels)
        if not 0 <= self._current_index < count:
            self._current_index = -1
            return False
        if playable_only and self.get_playable_levels_count() == 0:
            self._current_index = -1
            return False

        index = self._current_index
        for _ in range(count):
            index = (index + offset) % count
            if not playable_only or self._levels[index].is_playable():
                self._current_index = index
                return True
        self._current_index = -1
        return False

    def evaluate_load_state(self) -> LoadState:
        playable = self.get_playable_levels_count()
        total = len(self._levels)
        if total > 0 and playable == total:
            self.load_state = LoadState.SUCCESS
        elif playable > 0:
            self.load_state = LoadState.WARNING
        else:
            self.load_state = LoadState.ERROR
        return self.load_state

    def reinitialize(self, maximal_size: LevelSize) -> LoadState:
        """Apply a new maximal size to every level and re-validate them."""
        if self.is_empty():
            self.load_state = LoadState.ERROR
            return self.load_state
        for level in self._levels:
            level.initialize(maximal_size)
        state = self.evaluate_load_state()
        logger.info(
            "Levels set %r reinitialized for %dx%d: %d of %d levels are playable",
            self._name,
            maximal_size.width,
            maximal_size.height,
            self.get_playable_levels_count(),
            len(self._levels),
        )
        return state

    def __len__(self) -> int:
        return len(self._levels)
