from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Collection, Optional

from storekeeper.core.grid import LEVEL_SIZE_LIMIT, LevelSize

logger = logging.getLogger(__name__)

MIN_GAME_CYCLE_TIME = 20
MAX_GAME_CYCLE_TIME = 80
MIN_LEVEL_WIDTH = 20
MIN_LEVEL_HEIGHT = 20

SPRITE_SIZE_OPTIMAL = "optimal"
SPRITE_SIZE_LARGE = "large"
SPRITE_SIZE_MEDIUM = "medium"
SPRITE_SIZE_SMALL = "small"
SPRITE_SIZES = (SPRITE_SIZE_OPTIMAL, SPRITE_SIZE_LARGE, SPRITE_SIZE_MEDIUM, SPRITE_SIZE_SMALL)


@dataclass
class GameConfiguration:
    game_cycle_time: int = 50
    level_width: int = 20
    level_height: int = 20
    sprite_size: str = SPRITE_SIZE_OPTIMAL

    @property
    def level_size(self) -> LevelSize:
        return LevelSize(self.level_width, self.level_height)

    def adjusted(self) -> "GameConfiguration":
        """Return a copy with every option pulled into its allowed range."""
        return replace(
            self,
            game_cycle_time=adjust_option_by_range(self.game_cycle_time, MIN_GAME_CYCLE_TIME, MAX_GAME_CYCLE_TIME),
            level_width=adjust_option_by_range(self.level_width, MIN_LEVEL_WIDTH, LEVEL_SIZE_LIMIT.width),
            level_height=adjust_option_by_range(self.level_height, MIN_LEVEL_HEIGHT, LEVEL_SIZE_LIMIT.height),
            sprite_size=adjust_option_by_set(self.sprite_size, SPRITE_SIZES, SPRITE_SIZE_OPTIMAL),
        )


def adjust_option_by_range(value: int, min_value: int, max_value: int) -> int:
    return max(min_value, min(max_value, int(value)))


def adjust_option_by_set(value: Any, allowed: Collection[Any], default: Any) -> Any:
    return value if value in allowed else default


class ConfigurationStore:
    """Game options persisted across restarts.
    File: ~/.storekeeper/configuration.json unless another path is given."""

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = file_path or Path.home() / ".storekeeper" / "configuration.json"
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._configuration = self._load()

    @property
    def configuration(self) -> GameConfiguration:
        return replace(self._configuration)

    def update(self, **options: Any) -> GameConfiguration:
        """Change options, clamp them and persist. Unknown names raise TypeError."""
        self._configuration = replace(self._configuration, **options).adjusted()
        self._save()
        return self.configuration

    def reset(self) -> None:
        self._configuration = GameConfiguration()
        self._save()

    def save(self) -> None:
        self._save()

    def _load(self) -> GameConfiguration:
        defaults = GameConfiguration()
        if not self._file_path.exists():
            return defaults
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load configuration from %s: %s", self._file_path, e)
            return defaults
        if not isinstance(payload, dict):
            logger.warning("Ignoring configuration in %s: expected a JSON object", self._file_path)
            return defaults

        try:
            configuration = GameConfiguration(
                game_cycle_time=int(payload.get("game_cycle_time", defaults.game_cycle_time)),
                level_width=int(payload.get("level_width", defaults.level_width)),
                level_height=int(payload.get("level_height", defaults.level_height)),
                sprite_size=str(payload.get("sprite_size", defaults.sprite_size)),
            )
        except (TypeError, ValueError) as e:
            logger.warning("Invalid configuration value in %s: %s", self._file_path, e)
            return defaults
        return configuration.adjusted()

    def _save(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._file_path.write_text(json.dumps(asdict(self._configuration), indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save configuration to %s: %s", self._file_path, e)
