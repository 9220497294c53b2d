from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import List, Optional, Set, Tuple

from .board import NORMAL_FIELD_START, TOTAL_HEIGHT, BOARD_WIDTH, Board, Position
from .errors import ErrorKind, Ok, Result, err
from .pair import SPAWN_X, SPAWN_Y, PuyoPair, Rotation
from .puyo import EMPTY, Puyo, PuyoColor
from .rules import DEFAULT_RULES, ScoringRules
from .sequence import PuyoSeq, SequenceProvider


class GameState(str, Enum):
    IDLE = "IDLE"
    PLAYING = "PLAYING"
    DROPPING = "DROPPING"
    CHECKING_CHAINS = "CHECKING_CHAINS"
    FLASHING_PUYOS = "FLASHING_PUYOS"
    GAME_OVER = "GAME_OVER"


SETTLED_STATES = (GameState.IDLE, GameState.PLAYING, GameState.GAME_OVER)


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    QUICK_TURN = 4
    HARD_DROP = 5
    SOFT_DROP = 6
    NONE = 7


@dataclass(frozen=True)
class GameConfig:
    flash_duration: int = 500
    frame_time: int = 16
    erase_count: int = 4
    spawn_x: int = SPAWN_X
    spawn_y: int = SPAWN_Y
    rules: ScoringRules = DEFAULT_RULES


@dataclass(frozen=True)
class ChainResult:
    board: Board
    chains_found: bool
    score: int
    group_sizes: Tuple[int, ...] = ()
    colors: Tuple[PuyoColor, ...] = ()

    @property
    def puyo_count(self) -> int:
        return sum(self.group_sizes)


def _connected_group(board: Board, start: Position, visited: Set[Position]) -> List[Position]:
    color = board.get(*start).color
    group: List[Position] = []
    stack = [start]
    visited.add(start)
    while stack:
        x, y = stack.pop()
        group.append(Position(x, y))
        for nx, ny in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
            pos = Position(nx, ny)
            if pos in visited or not (0 <= nx < BOARD_WIDTH and NORMAL_FIELD_START <= ny < TOTAL_HEIGHT):
                continue
            puyo = board.get(nx, ny)
            if puyo.is_empty or puyo.is_marked or puyo.color != color:
                continue
            visited.add(pos)
            stack.append(pos)
    return group


def check_and_mark_chains(
    board: Board,
    chain: int,
    config: GameConfig = GameConfig(),
) -> ChainResult:
    """Mark every normal-field group of ``erase_count`` or more for deletion.

    ``chain`` is the 1-based index of this step in the cascade and only
    feeds the score. Crane and ghost rows never join a group.
    """
    visited: Set[Position] = set()
    groups: List[List[Position]] = []
    for y in range(NORMAL_FIELD_START, TOTAL_HEIGHT):
        for x in range(BOARD_WIDTH):
            start = Position(x, y)
            puyo = board.get(x, y)
            if start in visited or puyo.is_empty or puyo.is_marked:
                continue
            group = _connected_group(board, start, visited)
            if len(group) >= config.erase_count:
                groups.append(group)

    if not groups:
        return ChainResult(board=board, chains_found=False, score=0)

    rows = [list(row) for row in board.rows]
    colors: List[PuyoColor] = []
    for group in groups:
        color = rows[group[0].y][group[0].x].color
        if color not in colors:
            colors.append(color)
        for x, y in group:
            rows[y][x] = rows[y][x].marked()
    marked = Board(rows=tuple(tuple(row) for row in rows))

    sizes = tuple(len(group) for group in groups)
    score = config.rules.score_for_step(chain, sum(sizes), sizes, len(colors))
    return ChainResult(
        board=marked,
        chains_found=True,
        score=score,
        group_sizes=sizes,
        colors=tuple(colors),
    )


def remove_marked_puyos(board: Board) -> Board:
    if not any(p.is_marked for _, p in board.cells()):
        return board
    return Board(rows=tuple(
        tuple(EMPTY if puyo.is_marked else puyo for puyo in row)
        for row in board.rows
    ))


@dataclass(frozen=True)
class Game:
    """One immutable snapshot of a game session.

    Commands and :meth:`update` never modify the snapshot; they return a new
    one (or an ``Err`` describing why nothing happened).
    """

    board: Board = field(default_factory=Board.create_empty)
    current_pair: Optional[PuyoPair] = None
    next_pair: Optional[PuyoPair] = None
    state: GameState = GameState.IDLE
    score: int = 0
    chain_count: int = 0
    flashing_time: int = 0
    puyo_seq: Optional[PuyoSeq] = None
    move_count: int = 0
    config: GameConfig = GameConfig()

    @property
    def is_over(self) -> bool:
        return self.state == GameState.GAME_OVER

    @property
    def accepts_input(self) -> bool:
        return self.state == GameState.PLAYING and self.current_pair is not None

    # ---------- Lifecycle ----------
    def _pair_from_sequence(self, seq: PuyoSeq, pair_index: int) -> PuyoPair:
        main, second = seq.pair_colors(pair_index)
        return PuyoPair(
            Puyo(main),
            Puyo(second),
            Position(self.config.spawn_x, self.config.spawn_y),
            Rotation.UP,
        )

    def start(self, provider: SequenceProvider, seed: Optional[int] = None) -> Result["Game"]:
        """Begin a fresh game on an empty board.

        Fails with ``PuyoSeqNotLoaded`` while the provider has no table; the
        caller may load it and retry.
        """
        if seed is None:
            seed = random.randrange(1 << 16)
        seq_result = provider.create_puyo_seq(seed)
        if not seq_result.ok:
            return seq_result
        seq = seq_result.value
        fresh = Game(
            board=Board.create_empty(),
            next_pair=self._pair_from_sequence(seq, 0),
            state=GameState.PLAYING,
            puyo_seq=seq,
            move_count=1,
            config=self.config,
        )
        return Ok(fresh._spawn_next())

    def _spawn_next(self) -> "Game":
        if self.next_pair is None or self.puyo_seq is None:
            return replace(self, current_pair=None, state=GameState.GAME_OVER)
        current = self.next_pair
        following = self._pair_from_sequence(self.puyo_seq, self.move_count)
        if not current.fits(self.board):
            return replace(
                self,
                current_pair=None,
                next_pair=following,
                state=GameState.GAME_OVER,
            )
        return replace(
            self,
            current_pair=current,
            next_pair=following,
            move_count=self.move_count + 1,
            state=GameState.PLAYING,
        )

    # ---------- Player commands ----------
    def _invalid_state(self, command: str):
        return err(ErrorKind.INVALID_STATE, f"Cannot {command} in state {self.state.value}")

    def _with_pair(self, pair: PuyoPair) -> "Game":
        return replace(self, current_pair=pair)

    def move_left(self) -> Result["Game"]:
        if not self.accepts_input:
            return self._invalid_state("move left")
        result = self.current_pair.move_left(self.board)
        return Ok(self._with_pair(result.value) if result.ok else self)

    def move_right(self) -> Result["Game"]:
        if not self.accepts_input:
            return self._invalid_state("move right")
        result = self.current_pair.move_right(self.board)
        return Ok(self._with_pair(result.value) if result.ok else self)

    def rotate_clockwise(self) -> Result["Game"]:
        if not self.accepts_input:
            return self._invalid_state("rotate")
        result = self.current_pair.rotate_clockwise(self.board)
        if not result.ok:
            return result
        return Ok(self._with_pair(result.value))

    def rotate_counter_clockwise(self) -> Result["Game"]:
        if not self.accepts_input:
            return self._invalid_state("rotate")
        result = self.current_pair.rotate_counter_clockwise(self.board)
        if not result.ok:
            return result
        return Ok(self._with_pair(result.value))

    def quick_turn(self) -> Result["Game"]:
        if not self.accepts_input:
            return self._invalid_state("quick turn")
        result = self.current_pair.quick_turn(self.board)
        if not result.ok:
            return result
        return Ok(self._with_pair(result.value))

    def _lock(self, pair: PuyoPair) -> Result["Game"]:
        placed = pair.place_on_board(self.board)
        if not placed.ok:
            return err(ErrorKind.GAME_OVER, "Cannot place pair on board")
        return Ok(replace(
            self,
            board=placed.value,
            current_pair=None,
            chain_count=0,
            state=GameState.DROPPING,
        ))

    def move_down(self) -> Result["Game"]:
        """Soft drop: one row down, or lock the pair when it has landed."""
        if not self.accepts_input:
            return self._invalid_state("move down")
        result = self.current_pair.move_down(self.board)
        if result.ok:
            return Ok(self._with_pair(result.value))
        return self._lock(self.current_pair)

    def hard_drop(self) -> Result["Game"]:
        if not self.accepts_input:
            return self._invalid_state("hard drop")
        pair = self.current_pair
        while True:
            result = pair.move_down(self.board)
            if not result.ok:
                break
            pair = result.value
        return self._lock(pair)

    def apply(self, action: Action) -> Result["Game"]:
        if action == Action.NONE:
            return Ok(self)
        handlers = {
            Action.LEFT: self.move_left,
            Action.RIGHT: self.move_right,
            Action.ROTATE_CW: self.rotate_clockwise,
            Action.ROTATE_CCW: self.rotate_counter_clockwise,
            Action.QUICK_TURN: self.quick_turn,
            Action.HARD_DROP: self.hard_drop,
            Action.SOFT_DROP: self.move_down,
        }
        return handlers[Action(action)]()

    # ---------- Tick ----------
    def update(self, elapsed: Optional[int] = None) -> "Game":
        """Advance the state machine by one tick.

        ``elapsed`` is the time since the previous tick and only matters
        while puyos are flashing; it defaults to ``config.frame_time``.
        """
        if self.state == GameState.DROPPING:
            board, moved = self.board.apply_gravity()
            if moved:
                return replace(self, board=board)
            return replace(self, state=GameState.CHECKING_CHAINS)

        if self.state == GameState.CHECKING_CHAINS:
            found = check_and_mark_chains(self.board, self.chain_count + 1, self.config)
            if found.chains_found:
                return replace(
                    self,
                    board=found.board,
                    state=GameState.FLASHING_PUYOS,
                    score=self.score + found.score,
                    chain_count=self.chain_count + 1,
                    flashing_time=0,
                )
            return replace(self, chain_count=0)._spawn_next()

        if self.state == GameState.FLASHING_PUYOS:
            step = self.config.frame_time if elapsed is None else int(elapsed)
            flashing_time = self.flashing_time + step
            if flashing_time >= self.config.flash_duration:
                return replace(
                    self,
                    board=remove_marked_puyos(self.board),
                    state=GameState.DROPPING,
                    flashing_time=0,
                )
            return replace(self, flashing_time=flashing_time)

        return self

    def resolve(self, max_ticks: int = 10_000) -> "Game":
        """Tick until the game waits for input (or is over)."""
        game = self
        for _ in range(max_ticks):
            if game.state in SETTLED_STATES:
                break
            game = game.update()
        return game


def create_game(config: Optional[GameConfig] = None) -> Game:
    return Game(config=config or GameConfig())


def start_game(game: Game, provider: SequenceProvider, seed: Optional[int] = None) -> Result[Game]:
    return game.start(provider, seed)


def update_game(game: Game, elapsed: Optional[int] = None) -> Game:
    return game.update(elapsed)
