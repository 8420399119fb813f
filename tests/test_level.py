"""Tests for storekeeper.core.level – validation, moves, take-back and repeat."""

from __future__ import annotations

import threading
from typing import Optional

import pytest

from storekeeper.core.grid import Cell, LevelSize
from storekeeper.core.level import (
    DEFAULT_WORKER_DIRECTION,
    NO_MOVE,
    Axis,
    Level,
    LevelState,
    MoveDirection,
    MoveInformation,
    MoveType,
    WorkerDirection,
)

ROOM = "\n".join(
    [
        "#######",
        "#     #",
        "# @$ .#",
        "#     #",
        "#######",
    ]
)

CORRIDOR = "#####\n#@$.#\n#####"


def make_level(text: str, width: Optional[int] = None, height: Optional[int] = None) -> Level:
    lines = text.splitlines()
    size = LevelSize(width or max(len(line) for line in lines), height or len(lines))
    level = Level(lines, name="test", level_id=1, maximal_size=size)
    level.initialize()
    return level


def snapshot(level: Level):
    return (
        level.worker_location,
        level.to_lines(),
        level.moves_count,
        level.pushes_count,
        level.boxes_on_goals_count,
    )


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

class TestMoveInformation:
    def test_default_is_nothing(self):
        assert MoveInformation() == NO_MOVE
        assert not NO_MOVE.is_move

    def test_incomplete_pair_collapses(self):
        assert MoveInformation(MoveType.WORKER, MoveDirection.NONE) == NO_MOVE
        assert MoveInformation(MoveType.NOTHING, MoveDirection.LEFT) == NO_MOVE

    def test_frozen(self):
        move = MoveInformation(MoveType.WORKER, MoveDirection.UP)
        with pytest.raises(AttributeError):
            move.type = MoveType.NOTHING  # type: ignore[misc]


class TestMoveDirection:
    def test_from_delta(self):
        assert MoveDirection.from_delta(1, 0) is MoveDirection.RIGHT
        assert MoveDirection.from_delta(-1, 0) is MoveDirection.LEFT
        assert MoveDirection.from_delta(0, 1) is MoveDirection.DOWN
        assert MoveDirection.from_delta(0, -1) is MoveDirection.UP
        assert MoveDirection.from_delta(0, 0) is MoveDirection.NONE

    def test_delta_and_opposite(self):
        for direction in (MoveDirection.UP, MoveDirection.RIGHT, MoveDirection.DOWN, MoveDirection.LEFT):
            dx, dy = direction.delta
            ox, oy = direction.opposite.delta
            assert (dx + ox, dy + oy) == (0, 0)


class TestWorkerDirection:
    def test_default(self):
        assert DEFAULT_WORKER_DIRECTION.direction is MoveDirection.DOWN
        assert DEFAULT_WORKER_DIRECTION.is_vertical_real

    def test_invalid_combinations_rejected(self):
        with pytest.raises(ValueError):
            WorkerDirection(MoveDirection.UP, MoveDirection.DOWN)
        with pytest.raises(ValueError):
            WorkerDirection(MoveDirection.LEFT, MoveDirection.NONE)

    def test_turned_horizontal_keeps_vertical(self):
        turned = WorkerDirection(MoveDirection.RIGHT, MoveDirection.UP, Axis.VERTICAL).turned(MoveDirection.LEFT)
        assert turned == WorkerDirection(MoveDirection.LEFT, MoveDirection.UP, Axis.HORIZONTAL)
        assert not turned.is_vertical_real

    def test_turned_vertical_keeps_horizontal(self):
        turned = WorkerDirection(MoveDirection.LEFT, MoveDirection.DOWN, Axis.HORIZONTAL).turned(MoveDirection.UP)
        assert turned.horizontal is MoveDirection.LEFT
        assert turned.direction is MoveDirection.UP


# ---------------------------------------------------------------------------
# Construction and initialize
# ---------------------------------------------------------------------------

class TestInitialize:
    def test_construction_only_parses(self):
        level = Level(CORRIDOR.splitlines())
        assert level.state is LevelState.EMPTY
        assert level.get_item_at(0, 0) is None
        assert level.move(1, 0) == NO_MOVE

    def test_accepts_text_block(self):
        level = Level(CORRIDOR, maximal_size=LevelSize(5, 3))
        assert level.size == LevelSize(5, 3)
        assert level.initialize()

    def test_playable(self):
        level = make_level(CORRIDOR)
        assert level.state is LevelState.PLAYABLE
        assert level.is_playable()
        assert level.boxes_count == level.goals_count == 1
        assert level.boxes_on_goals_count == 0
        assert level.worker_location == (1, 1)

    def test_empty_input_stays_empty(self):
        level = Level([])
        assert level.initialize() is False
        assert level.state is LevelState.EMPTY

    def test_too_many_rows_out_of_bounds(self):
        level = Level(CORRIDOR, maximal_size=LevelSize(5, 2))
        assert level.initialize() is False
        assert level.state is LevelState.OUT_OF_BOUNDS

    def test_wider_than_maximal_width_out_of_bounds(self):
        level = Level(CORRIDOR, maximal_size=LevelSize(4, 3))
        assert level.initialize() is False
        assert level.state is LevelState.OUT_OF_BOUNDS
        assert level.get_item_at(1, 1) is None

    def test_two_workers_corrupted(self):
        level = make_level("######\n#@$.@#\n######")
        assert level.state is LevelState.CORRUPTED

    def test_no_worker_corrupted(self):
        level = make_level("#####\n# $.#\n#####")
        assert level.state is LevelState.CORRUPTED

    def test_boxes_goals_mismatch_corrupted(self):
        level = make_level("#####\n#@ .#\n#####")
        assert level.state is LevelState.CORRUPTED
        assert level.move(1, 0) == NO_MOVE

    def test_unknown_characters_degrade_to_empty(self):
        level = make_level("######\n#@?$.#\n######")
        assert level.is_playable()
        assert level.get_item_at(1, 2) is Cell.EMPTY

    def test_larger_size_makes_level_playable_again(self):
        level = Level(CORRIDOR, maximal_size=LevelSize(4, 3))
        level.initialize()
        assert level.state is LevelState.OUT_OF_BOUNDS
        assert level.initialize(LevelSize(20, 20)) is True
        assert level.state is LevelState.PLAYABLE
        # centered: (20 - 3) // 2 = 8 rows above, (20 - 5) // 2 = 7 columns left
        assert level.worker_location == (8, 9)
        assert level.get_item_at(9, 9) is Cell.BOX

    def test_invalid_maximal_size_rejected(self):
        level = make_level(CORRIDOR)
        assert level.initialize(LevelSize(0, 10)) is False
        assert level.initialize(LevelSize(41, 10)) is False
        assert level.initialize(LevelSize(10, 36)) is False
        assert level.maximal_size == LevelSize(5, 3)
        assert level.is_playable()

    def test_initialize_resets_play_state(self):
        level = make_level(ROOM)
        level.move(1, 0)
        level.move(0, 1)
        level.initialize()
        assert level.moves_count == 0
        assert level.pushes_count == 0
        assert level.moves_history_count == 0
        assert level.worker_direction == DEFAULT_WORKER_DIRECTION
        assert level.to_lines()[2] == "# @$ .#"

    def test_zero_boxes_is_completed(self):
        level = make_level("###\n#@#\n###")
        assert level.is_playable()
        assert level.is_completed()

    def test_worker_on_goal_input(self):
        level = make_level("#####\n#+  #\n# $ #\n#####")
        assert level.is_playable()
        assert level.get_item_at(1, 1) is Cell.GOAL
        assert level.to_lines()[1] == "#+  #"


# ---------------------------------------------------------------------------
# Cell access
# ---------------------------------------------------------------------------

class TestCellAccess:
    @pytest.mark.parametrize("row, column", [(-1, 0), (0, -1), (3, 0), (0, 5), (100, 100)])
    def test_outside_grid_is_wall(self, row: int, column: int):
        level = make_level(CORRIDOR)
        assert level.get_item_at(row, column) is Cell.WALL

    def test_worker_cell_stores_floor(self):
        level = make_level(CORRIDOR)
        assert level.get_item_at(1, 1) is Cell.EMPTY

    def test_set_item_at(self):
        level = make_level(ROOM)
        assert level.set_item_at(1, 1, Cell.WALL) is True
        assert level.get_item_at(1, 1) is Cell.WALL

    def test_set_item_at_rejects_worker_and_out_of_range(self):
        level = make_level(ROOM)
        assert level.set_item_at(1, 1, Cell.WORKER) is False
        assert level.set_item_at(-1, 1, Cell.WALL) is False
        assert level.set_item_at(1, 7, Cell.WALL) is False

    def test_set_item_at_requires_playable(self):
        level = Level(ROOM)
        assert level.set_item_at(1, 1, Cell.WALL) is False


# ---------------------------------------------------------------------------
# move
# ---------------------------------------------------------------------------

class TestMove:
    def test_walk_into_empty(self):
        level = make_level("######\n#@ $.#\n######")
        move = level.move(1, 0)
        assert move == MoveInformation(MoveType.WORKER, MoveDirection.RIGHT)
        assert level.moves_count == 1
        assert level.pushes_count == 0
        assert level.worker_location == (2, 1)

    def test_push_box_onto_goal_completes(self):
        level = make_level(CORRIDOR)
        assert level.boxes_on_goals_count == 0
        move = level.move(1, 0)
        assert move == MoveInformation(MoveType.WORKER_AND_BOX, MoveDirection.RIGHT)
        assert level.boxes_on_goals_count == 1
        assert level.is_completed()
        assert level.get_item_at(1, 3) is Cell.BOX_ON_GOAL
        assert level.get_item_at(1, 2) is Cell.EMPTY
        assert level.pushes_count == 1

    def test_zero_delta_is_nothing(self):
        level = make_level(ROOM)
        assert level.move(0, 0) == NO_MOVE
        assert level.moves_count == 0

    @pytest.mark.parametrize("dx, dy", [(1, 1), (-1, 1), (2, 0), (0, -3)])
    def test_malformed_delta_rejected(self, dx: int, dy: int):
        level = make_level(ROOM)
        before = snapshot(level)
        assert level.move(dx, dy) == NO_MOVE
        assert snapshot(level) == before
        assert level.moves_history_count == 0

    def test_wall_blocks(self):
        level = make_level(ROOM)
        level.move(0, -1)
        before = snapshot(level)
        assert level.move(0, -1) == NO_MOVE
        assert snapshot(level) == before

    def test_box_against_wall_blocks(self):
        level = make_level("######\n#.@$##\n######")
        before = snapshot(level)
        assert level.move(1, 0) == NO_MOVE
        assert snapshot(level) == before

    def test_box_against_box_blocks(self):
        level = make_level("#######\n#@$$..#\n#######")
        before = snapshot(level)
        assert level.move(1, 0) == NO_MOVE
        assert snapshot(level) == before

    def test_push_box_off_goal(self):
        level = make_level("#####\n#@* #\n#####")
        assert level.is_completed()
        move = level.move(1, 0)
        assert move.type is MoveType.WORKER_AND_BOX
        assert level.get_item_at(1, 2) is Cell.GOAL
        assert level.get_item_at(1, 3) is Cell.BOX
        assert level.boxes_on_goals_count == 0
        assert not level.is_completed()

    def test_walk_over_goal_keeps_goal(self):
        level = make_level("######\n#@.$*#\n######")
        level.move(1, 0)
        assert level.get_item_at(1, 2) is Cell.GOAL
        assert level.to_lines()[1] == "# +$*#"
        level.move(-1, 0)
        assert level.to_lines()[1] == "#@.$*#"

    def test_direction_updates(self):
        level = make_level(ROOM)
        level.move(0, -1)
        assert level.worker_direction == WorkerDirection(MoveDirection.RIGHT, MoveDirection.UP, Axis.VERTICAL)
        level.move(-1, 0)
        assert level.worker_direction == WorkerDirection(MoveDirection.LEFT, MoveDirection.UP, Axis.HORIZONTAL)

    def test_failed_move_keeps_direction(self):
        level = make_level(ROOM)
        level.move(-1, 0)
        direction = level.worker_direction
        level.move(-1, 0)  # wall
        assert level.worker_direction == direction

    def test_pushes_never_exceed_moves(self):
        level = make_level(ROOM)
        for dx, dy in [(1, 0), (0, 1), (1, 0), (0, -1), (-1, 0), (0, -1)]:
            level.move(dx, dy)
            assert level.pushes_count <= level.moves_count
            assert 0 <= level.boxes_on_goals_count <= level.boxes_count


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

class TestHistory:
    def test_add_move_ignores_nothing(self):
        level = make_level(ROOM)
        level.add_move_to_history(NO_MOVE)
        assert level.moves_history_count == 0
        assert level.moves_count == 0

    def test_take_back_after_push(self):
        level = make_level(CORRIDOR)
        level.move(1, 0)
        assert level.take_back(1) == 0
        assert level.get_item_at(1, 2) is Cell.BOX
        assert level.get_item_at(1, 3) is Cell.GOAL
        assert level.worker_location == (1, 1)
        assert level.boxes_on_goals_count == 0
        assert not level.is_completed()
        assert level.moves_history_count == 1
        assert level.pushes_count == 0

    def test_take_back_restores_box_on_goal(self):
        level = make_level("#####\n#@* #\n#####")
        level.move(1, 0)
        level.take_back()
        assert level.get_item_at(1, 2) is Cell.BOX_ON_GOAL
        assert level.get_item_at(1, 3) is Cell.EMPTY
        assert level.boxes_on_goals_count == 1
        assert level.is_completed()

    @pytest.mark.parametrize("count", [0, -1, 3])
    def test_take_back_out_of_range(self, count: int):
        level = make_level(ROOM)
        level.move(1, 0)
        level.move(0, 1)
        before = snapshot(level)
        assert level.take_back(count) == -1
        assert snapshot(level) == before

    def test_take_back_on_unplayable_level(self):
        level = make_level("#####\n#@ .#\n#####")
        assert level.take_back(1) == -1
        assert level.repeat_moves(1) == -1

    def test_take_back_direction_follows_previous_entry(self):
        level = make_level(ROOM)
        level.move(0, -1)
        level.move(-1, 0)
        level.take_back(1)
        assert level.worker_direction.direction is MoveDirection.UP
        level.take_back(1)
        assert level.worker_direction == DEFAULT_WORKER_DIRECTION

    def test_repeat_moves(self):
        level = make_level(CORRIDOR)
        level.move(1, 0)
        level.take_back(1)
        assert level.repeat_moves(1) == 1
        assert level.is_completed()
        assert level.pushes_count == 1
        assert level.moves_history_count == 1

    @pytest.mark.parametrize("count", [0, -2, 2])
    def test_repeat_out_of_range(self, count: int):
        level = make_level(ROOM)
        level.move(1, 0)
        level.take_back(1)
        before = snapshot(level)
        assert level.repeat_moves(count) == -1
        assert snapshot(level) == before

    def test_repeat_without_redo_tail_fails(self):
        level = make_level(ROOM)
        level.move(1, 0)
        assert level.repeat_moves(1) == -1

    def test_new_move_after_take_back_drops_redo_tail(self):
        level = make_level(ROOM)
        level.move(1, 0)
        level.move(0, 1)
        level.move(1, 0)
        level.take_back(2)
        assert level.moves_history_count == 3
        level.move(0, -1)
        assert level.moves_history_count == 2
        assert level.moves_history[-1] == MoveInformation(MoveType.WORKER, MoveDirection.UP)
        assert level.repeat_moves(1) == -1

    def test_round_trip(self):
        level = make_level(ROOM)
        moves = [(1, 0), (0, 1), (1, 0), (0, -1)]
        initial = snapshot(level)
        for dx, dy in moves:
            assert level.move(dx, dy).is_move
        after = snapshot(level)
        assert level.moves_count == 4
        assert level.pushes_count == 2
        assert level.worker_location == (4, 2)
        assert level.get_item_at(1, 4) is Cell.BOX

        assert level.take_back(len(moves)) == 0
        assert snapshot(level) == initial
        assert level.repeat_moves(len(moves)) == len(moves)
        assert snapshot(level) == after
        assert level.moves_history_count == len(moves)

    def test_partial_take_back_and_repeat(self):
        level = make_level(ROOM)
        for dx, dy in [(1, 0), (0, 1), (1, 0), (0, -1)]:
            level.move(dx, dy)
        assert level.take_back(3) == 1
        assert level.worker_location == (3, 2)
        assert level.pushes_count == 1
        assert level.repeat_moves(2) == 3
        assert level.worker_location == (4, 3)
        assert level.pushes_count == 1

    def test_restart(self):
        level = make_level(CORRIDOR)
        level.move(1, 0)
        assert level.restart() is True
        assert level.moves_count == 0
        assert not level.is_completed()


# ---------------------------------------------------------------------------
# Locking
# ---------------------------------------------------------------------------

class TestLocking:
    def test_lock_is_reentrant(self):
        level = make_level(ROOM)
        with level.lock:
            assert level.move(1, 0).is_move
            assert level.get_item_at(2, 4) is Cell.BOX

    def test_reader_never_sees_half_move(self):
        level = make_level(ROOM)
        errors = []
        done = threading.Event()

        def reader() -> None:
            while not done.is_set():
                with level.lock:
                    boxes = sum(
                        1
                        for row in range(level.maximal_size.height)
                        for column in range(level.maximal_size.width)
                        if level.get_item_at(row, column) in (Cell.BOX, Cell.BOX_ON_GOAL)
                    )
                if boxes != level.boxes_count:
                    errors.append(boxes)

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            for _ in range(200):
                level.move(1, 0)
                level.move(1, 0)
                level.take_back(2)
                level.repeat_moves(2)
                level.take_back(2)
        finally:
            done.set()
            thread.join()
        assert errors == []
