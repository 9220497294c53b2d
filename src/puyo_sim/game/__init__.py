"""Game module for the puyo simulator.

Exports the deterministic engine and supporting classes:
- Puyo, PuyoColor, PuyoState: cell values
- Board: immutable 6x14 field with per-tick gravity
- PuyoPair, Rotation: falling pair with wall kicks and quick turn
- SequenceProvider, PuyoSeq: seeded piece sequences
- ScoringRules: chain, connection and color bonuses
- Game, GameState, Action: snapshot state machine
- GameHistory: in-memory undo/redo
"""

from .errors import ErrorKind, GameError, Ok, Err, Result
from .puyo import Puyo, PuyoColor, PuyoState, EMPTY, PLAYABLE_COLORS, create_puyo
from .board import (
    Board,
    Position,
    BOARD_WIDTH,
    BOARD_HEIGHT,
    HIDDEN_ROWS,
    TOTAL_HEIGHT,
    CRANE_ROW,
    GHOST_ROW,
    NORMAL_FIELD_START,
    is_crane_row,
    is_ghost_row,
    format_board,
)
from .pair import PuyoPair, Rotation, create_pair
from .sequence import PuyoSeq, SequenceProvider, SEQUENCE_LENGTH, decode_color
from .rules import ScoringRules, calculate_score, chain_bonus, connection_bonus, color_bonus
from .core import (
    Action,
    ChainResult,
    Game,
    GameConfig,
    GameState,
    check_and_mark_chains,
    create_game,
    remove_marked_puyos,
    start_game,
    update_game,
)
from .history import GameHistory

__all__ = [
    "ErrorKind",
    "GameError",
    "Ok",
    "Err",
    "Result",
    "Puyo",
    "PuyoColor",
    "PuyoState",
    "EMPTY",
    "PLAYABLE_COLORS",
    "create_puyo",
    "Board",
    "Position",
    "BOARD_WIDTH",
    "BOARD_HEIGHT",
    "HIDDEN_ROWS",
    "TOTAL_HEIGHT",
    "CRANE_ROW",
    "GHOST_ROW",
    "NORMAL_FIELD_START",
    "is_crane_row",
    "is_ghost_row",
    "format_board",
    "PuyoPair",
    "Rotation",
    "create_pair",
    "PuyoSeq",
    "SequenceProvider",
    "SEQUENCE_LENGTH",
    "decode_color",
    "ScoringRules",
    "calculate_score",
    "chain_bonus",
    "connection_bonus",
    "color_bonus",
    "Action",
    "ChainResult",
    "Game",
    "GameConfig",
    "GameState",
    "check_and_mark_chains",
    "create_game",
    "remove_marked_puyos",
    "start_game",
    "update_game",
    "GameHistory",
]
