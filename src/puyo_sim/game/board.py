from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, NamedTuple, Tuple

import numpy as np

from .errors import ErrorKind, Ok, Result, err
from .puyo import EMPTY, Puyo, PuyoColor

BOARD_WIDTH = 6
BOARD_HEIGHT = 12
HIDDEN_ROWS = 2
TOTAL_HEIGHT = BOARD_HEIGHT + HIDDEN_ROWS

CRANE_ROW = 0
GHOST_ROW = 1
NORMAL_FIELD_START = HIDDEN_ROWS


class Position(NamedTuple):
    x: int
    y: int


Row = Tuple[Puyo, ...]


def is_crane_row(y: int) -> bool:
    return y == CRANE_ROW


def is_ghost_row(y: int) -> bool:
    return y == GHOST_ROW


def is_inside(x: int, y: int) -> bool:
    return 0 <= x < BOARD_WIDTH and 0 <= y < TOTAL_HEIGHT


@dataclass(frozen=True)
class Board:
    """Immutable 6x14 field of puyos.

    Row 0 is the crane row (never falls, never chains), row 1 the ghost row
    (falls, never chains) and rows 2-13 the normal field. ``y`` grows
    downwards. Every mutation returns a new board; untouched rows are shared.
    """

    rows: Tuple[Row, ...]

    @classmethod
    def create_empty(cls) -> "Board":
        row: Row = tuple(EMPTY for _ in range(BOARD_WIDTH))
        return cls(rows=tuple(row for _ in range(TOTAL_HEIGHT)))

    @classmethod
    def from_strings(cls, lines: Iterable[str]) -> "Board":
        """Build a board from text rows, bottom-aligned.

        ``.`` is empty, ``r g b y p`` are colors. Fewer than 14 lines are
        padded with empty rows at the top.
        """
        parsed: List[Row] = []
        for line in lines:
            line = line.strip()
            if len(line) != BOARD_WIDTH:
                raise ValueError(f"Row {line!r} must have {BOARD_WIDTH} cells")
            row: List[Puyo] = []
            for ch in line:
                if ch == ".":
                    row.append(EMPTY)
                elif ch.lower() in _CHAR_TO_COLOR:
                    row.append(Puyo(_CHAR_TO_COLOR[ch.lower()]))
                else:
                    raise ValueError(f"Unknown cell {ch!r}")
            parsed.append(tuple(row))
        if len(parsed) > TOTAL_HEIGHT:
            raise ValueError(f"Board has at most {TOTAL_HEIGHT} rows")
        empty_row: Row = tuple(EMPTY for _ in range(BOARD_WIDTH))
        padding = tuple(empty_row for _ in range(TOTAL_HEIGHT - len(parsed)))
        return cls(rows=padding + tuple(parsed))

    @property
    def width(self) -> int:
        return BOARD_WIDTH

    @property
    def height(self) -> int:
        return TOTAL_HEIGHT

    def get(self, x: int, y: int) -> Puyo:
        if not is_inside(x, y):
            return EMPTY
        return self.rows[y][x]

    def set(self, x: int, y: int, puyo: Puyo) -> Result["Board"]:
        if not is_inside(x, y):
            return err(ErrorKind.OUT_OF_BOUNDS, f"Position ({x}, {y}) is out of bounds")
        row = self.rows[y]
        new_row = row[:x] + (puyo,) + row[x + 1:]
        return Ok(Board(rows=self.rows[:y] + (new_row,) + self.rows[y + 1:]))

    def is_empty_at(self, x: int, y: int) -> bool:
        return self.get(x, y).is_empty

    def is_free(self, x: int, y: int) -> bool:
        """In bounds and unoccupied."""
        return is_inside(x, y) and self.rows[y][x].is_empty

    def is_column_full(self, x: int) -> bool:
        return not self.is_empty_at(x, NORMAL_FIELD_START)

    def apply_gravity(self) -> Tuple["Board", bool]:
        """Drop every floating puyo by at most one row.

        Columns are scanned bottom-up, so a stack of floating puyos moves
        down together by one cell. The crane row is never moved.
        """
        grid = [list(row) for row in self.rows]
        moved = False
        for x in range(BOARD_WIDTH):
            for y in range(TOTAL_HEIGHT - 2, CRANE_ROW, -1):
                if not grid[y][x].is_empty and grid[y + 1][x].is_empty:
                    grid[y + 1][x] = grid[y][x]
                    grid[y][x] = EMPTY
                    moved = True
        if not moved:
            return self, False
        return Board(rows=tuple(tuple(row) for row in grid)), True

    def settle(self) -> "Board":
        board, moved = self.apply_gravity()
        while moved:
            board, moved = board.apply_gravity()
        return board

    def cells(self) -> Iterator[Tuple[Position, Puyo]]:
        for y, row in enumerate(self.rows):
            for x, puyo in enumerate(row):
                yield Position(x, y), puyo

    def count(self) -> int:
        return sum(1 for _, puyo in self.cells() if not puyo.is_empty)

    def to_array(self) -> np.ndarray:
        """Color codes as an int8 matrix of shape (14, 6)."""
        return np.array(
            [[int(p.color) for p in row] for row in self.rows],
            dtype=np.int8,
        )


_CHAR_TO_COLOR = {
    "r": PuyoColor.RED,
    "g": PuyoColor.GREEN,
    "b": PuyoColor.BLUE,
    "y": PuyoColor.YELLOW,
    "p": PuyoColor.PURPLE,
}

_COLOR_TO_CHAR = {color: ch for ch, color in _CHAR_TO_COLOR.items()}


def format_board(board: Board) -> str:
    lines: List[str] = []
    for y, row in enumerate(board.rows):
        cells = []
        for puyo in row:
            if puyo.is_empty:
                cells.append("·")
            else:
                ch = _COLOR_TO_CHAR[puyo.color]
                cells.append(ch.upper() if puyo.is_marked else ch)
        marker = "c" if is_crane_row(y) else "g" if is_ghost_row(y) else " "
        lines.append(marker + " " + "".join(cells))
    return "\n".join(lines)
