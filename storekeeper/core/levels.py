from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

import yaml

from storekeeper.core.grid import DEFAULT_LEVEL_SIZE, LEVEL_CHARACTERS, LevelSize
from storekeeper.core.level import Level
from storekeeper.core.levels_set import LevelsSet

logger = logging.getLogger(__name__)

_SOK_LEVEL_LINE = re.compile("^[" + re.escape("".join(sorted(LEVEL_CHARACTERS))) + "]+$")


class LevelsSetError(ValueError):
    """A levels set file exists but cannot be understood."""


def default_levels_set_path() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "levels" / "classic.yaml"


def load_levels_set(path: Union[str, Path], maximal_size: LevelSize = DEFAULT_LEVEL_SIZE) -> LevelsSet:
    """Read a ``.yaml``/``.yml`` or ``.sok`` file into an initialized levels set."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Levels set file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LevelsSetError(f"{path.name}: could not be read ({e})") from e

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        levels_set = levels_set_from_yaml(text, maximal_size, source=path.name)
    elif suffix == ".sok":
        levels_set = levels_set_from_sok(text, maximal_size, name=path.stem)
    else:
        raise LevelsSetError(f"{path.name}: unsupported levels set format '{suffix}'")

    levels_set.evaluate_load_state()
    logger.info(
        "Loaded levels set %r from %s: %d of %d levels are playable",
        levels_set.name,
        path,
        levels_set.get_playable_levels_count(),
        levels_set.get_levels_count(),
    )
    return levels_set


def levels_set_from_yaml(text: str, maximal_size: LevelSize = DEFAULT_LEVEL_SIZE, source: str = "<yaml>") -> LevelsSet:
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise LevelsSetError(f"{source}: invalid YAML ({e})") from e
    if not raw or not isinstance(raw, dict):
        raise LevelsSetError(f"{source}: expected YAML with 'name' and 'levels'")
    entries = raw.get("levels")
    if not isinstance(entries, list):
        raise LevelsSetError(f"{source}: missing or invalid 'levels'")

    levels_set = LevelsSet(name=str(raw.get("name") or "").strip())
    for position, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise LevelsSetError(f"{source}: level #{position} is not a mapping")
        lines = _level_lines(entry.get("lines"))
        if not lines:
            logger.warning("%s: level #%d has no lines, skipped", source, position)
            continue
        level_id = entry.get("id", position)
        if not isinstance(level_id, int):
            raise LevelsSetError(f"{source}: level #{position} has a non-integer 'id'")
        levels_set.add_level(
            _create_level(lines, str(entry.get("name") or "").strip(), level_id, maximal_size)
        )
    return levels_set


def levels_set_from_sok(text: str, maximal_size: LevelSize = DEFAULT_LEVEL_SIZE, name: str = "") -> LevelsSet:
    """Parse the plain Sokoban text format.

    A run of lines made only of level characters is one level; the last
    non-empty line before it names it.
    """
    levels_set = LevelsSet(name=name)
    level_lines: Optional[List[str]] = None
    last_title: Optional[str] = None

    for raw_line in text.splitlines():
        line = raw_line.rstrip()
        if _SOK_LEVEL_LINE.match(line):
            if level_lines is None:
                level_lines = []
            level_lines.append(line)
            continue
        if level_lines is not None:
            levels_set.add_level(
                _create_level(level_lines, last_title or "", levels_set.get_levels_count() + 1, maximal_size)
            )
            level_lines = None
        if line:
            last_title = line.strip()

    if level_lines is not None:
        levels_set.add_level(
            _create_level(level_lines, last_title or "", levels_set.get_levels_count() + 1, maximal_size)
        )
    return levels_set


def _level_lines(content: object) -> List[str]:
    if content is None:
        return []
    if isinstance(content, list):
        lines = ["" if item is None else str(item).rstrip() for item in content]
    else:
        # allow the map as a block string
        lines = [line.rstrip() for line in str(content).splitlines()]
    while lines and not lines[0]:
        lines.pop(0)
    while lines and not lines[-1]:
        lines.pop()
    return lines


def _create_level(lines: List[str], name: str, level_id: int, maximal_size: LevelSize) -> Level:
    level = Level(lines, name=name, level_id=level_id, maximal_size=maximal_size)
    level.initialize()
    return level
