from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

from .board import BOARD_WIDTH, NORMAL_FIELD_START, Board, Position
from .errors import ErrorKind, Ok, Result, err
from .puyo import Puyo


class Rotation(IntEnum):
    UP = 0
    RIGHT = 1
    DOWN = 2
    LEFT = 3

    def rotated(self, delta: int) -> "Rotation":
        return Rotation((self.value + delta) % 4)


# Offset of the second puyo from the anchor for each rotation.
SECOND_OFFSETS: Dict[Rotation, Tuple[int, int]] = {
    Rotation.UP: (0, -1),
    Rotation.RIGHT: (1, 0),
    Rotation.DOWN: (0, 1),
    Rotation.LEFT: (-1, 0),
}

# Anchor shifts tried, in order, when a rotation into the key state is blocked.
WALL_KICKS: Dict[Rotation, Tuple[Tuple[int, int], ...]] = {
    Rotation.DOWN: ((0, -1),),
    Rotation.RIGHT: ((-1, 0),),
    Rotation.LEFT: ((1, 0),),
    Rotation.UP: ((-1, 0), (1, 0), (0, -1), (0, 1)),
}

SPAWN_X = BOARD_WIDTH // 2 - 1
SPAWN_Y = NORMAL_FIELD_START


def _second_at(anchor: Position, rotation: Rotation) -> Position:
    dx, dy = SECOND_OFFSETS[rotation]
    return Position(anchor.x + dx, anchor.y + dy)


@dataclass(frozen=True)
class PuyoPair:
    main_puyo: Puyo
    second_puyo: Puyo
    position: Position = Position(SPAWN_X, SPAWN_Y)
    rotation: Rotation = Rotation.UP

    @property
    def main_position(self) -> Position:
        return self.position

    @property
    def second_position(self) -> Position:
        return _second_at(self.position, self.rotation)

    def cells(self) -> List[Tuple[Position, Puyo]]:
        return [
            (self.main_position, self.main_puyo),
            (self.second_position, self.second_puyo),
        ]

    def fits(self, board: Board) -> bool:
        return all(board.is_free(x, y) for (x, y), _ in self.cells())

    def at(self, x: int, y: int) -> "PuyoPair":
        return replace(self, position=Position(x, y))

    # ---------- Movement ----------
    def _translate(self, board: Board, dx: int, dy: int, label: str) -> Result["PuyoPair"]:
        moved = self.at(self.position.x + dx, self.position.y + dy)
        if not moved.fits(board):
            return err(ErrorKind.INVALID_MOVE, f"Cannot move {label}")
        return Ok(moved)

    def move_left(self, board: Board) -> Result["PuyoPair"]:
        return self._translate(board, -1, 0, "left")

    def move_right(self, board: Board) -> Result["PuyoPair"]:
        return self._translate(board, 1, 0, "right")

    def move_down(self, board: Board) -> Result["PuyoPair"]:
        """Failure means the pair has landed."""
        return self._translate(board, 0, 1, "down")

    # ---------- Rotation ----------
    def _wall_kick(self, board: Board, target: Rotation) -> Optional[Position]:
        for dx, dy in WALL_KICKS[target]:
            anchor = Position(self.position.x + dx, self.position.y + dy)
            second = _second_at(anchor, target)
            if board.is_free(*anchor) and board.is_free(*second):
                return anchor
        return None

    def _rotate(self, board: Board, delta: int, label: str) -> Result["PuyoPair"]:
        target = self.rotation.rotated(delta)
        if board.is_free(*_second_at(self.position, target)):
            return Ok(replace(self, rotation=target))
        kicked = self._wall_kick(board, target)
        if kicked is None:
            return err(ErrorKind.INVALID_ROTATION, f"Cannot rotate {label}")
        return Ok(replace(self, position=kicked, rotation=target))

    def rotate_clockwise(self, board: Board) -> Result["PuyoPair"]:
        return self._rotate(board, 1, "clockwise")

    def rotate_counter_clockwise(self, board: Board) -> Result["PuyoPair"]:
        return self._rotate(board, -1, "counter-clockwise")

    def can_quick_turn(self, board: Board) -> bool:
        if self.rotation not in (Rotation.UP, Rotation.DOWN):
            return False
        x, y = self.position
        return not board.is_free(x - 1, y) and not board.is_free(x + 1, y)

    def quick_turn(self, board: Board) -> Result["PuyoPair"]:
        """Flip the pair 180 degrees when boxed in on both sides.

        The anchor moves onto the old second cell, so the two puyos trade
        places in the column.
        """
        if not self.can_quick_turn(board):
            return err(ErrorKind.INVALID_MOVE, "Cannot execute quick turn")
        flipped = Rotation.DOWN if self.rotation == Rotation.UP else Rotation.UP
        return Ok(replace(self, position=self.second_position, rotation=flipped))

    # ---------- Placement ----------
    def place_on_board(self, board: Board) -> Result[Board]:
        current = board
        for (x, y), puyo in self.cells():
            if not current.is_empty_at(x, y):
                return err(ErrorKind.INVALID_MOVE, f"Cell ({x}, {y}) is occupied")
            result = current.set(x, y, puyo)
            if not result.ok:
                return err(ErrorKind.INVALID_MOVE, f"Cannot place puyo at ({x}, {y})")
            current = result.value
        return Ok(current)

    def place_on_board_and_fall_down(self, board: Board) -> Result[Board]:
        """Place both puyos and let each fall to rest, lower one first."""
        cells = sorted(self.cells(), key=lambda cell: cell[0].y, reverse=True)
        current = board
        for (x, y), puyo in cells:
            if not current.is_free(x, y):
                return err(ErrorKind.INVALID_MOVE, f"Cannot place puyo at ({x}, {y})")
            while current.is_free(x, y + 1):
                y += 1
            result = current.set(x, y, puyo)
            if not result.ok:
                return err(ErrorKind.INVALID_MOVE, f"Cannot place puyo at ({x}, {y})")
            current = result.value
        return Ok(current)


def create_pair(
    main_puyo: Puyo,
    second_puyo: Puyo,
    x: int = SPAWN_X,
    y: int = SPAWN_Y,
    rotation: Rotation = Rotation.UP,
) -> PuyoPair:
    return PuyoPair(main_puyo, second_puyo, Position(x, y), rotation)
