from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from puyo_sim.game import (
    Action,
    ErrorKind,
    Game,
    GameConfig,
    GameHistory,
    GameState,
    Result,
    SequenceProvider,
    create_game,
)

from .keys import KeyConfig


class GameRenderer(Protocol):
    def render(self, game: Game, undo_available: bool = False, redo_available: bool = False) -> None:
        ...

    def render_game_over(self, score: int) -> None:
        ...


@dataclass
class ControllerConfig:
    key_repeat_delay: int = 200
    key_repeat_interval: int = 50
    history_limit: int = 256


# One-shot keys act on key down; directional keys repeat while held.
ONE_SHOT_ACTIONS: Dict[str, Action] = {
    "rotate_clockwise": Action.ROTATE_CW,
    "rotate_counter_clockwise": Action.ROTATE_CCW,
    "quick_turn": Action.QUICK_TURN,
    "hard_drop": Action.HARD_DROP,
}

REPEAT_ACTIONS: Dict[str, Action] = {
    "move_left": Action.LEFT,
    "move_right": Action.RIGHT,
    "move_down": Action.SOFT_DROP,
}


class GameController:
    """Drives a game from key events and ticks and feeds a renderer.

    Times are milliseconds from any monotonic clock.
    """

    def __init__(
        self,
        renderer: GameRenderer,
        key_config: Optional[KeyConfig] = None,
        provider: Optional[SequenceProvider] = None,
        config: Optional[ControllerConfig] = None,
        game_config: Optional[GameConfig] = None,
    ) -> None:
        self.renderer = renderer
        self.key_config = key_config or KeyConfig()
        self.provider = provider or SequenceProvider()
        self.config = config or ControllerConfig()
        self.history = GameHistory(self.config.history_limit)
        self._game = create_game(game_config)
        self._last_tick: Optional[int] = None
        self._key_down: Dict[str, int] = {}
        self._last_action: Dict[str, int] = {}
        self._game_over_reported = False

    @property
    def game(self) -> Game:
        return self._game

    def start_game(self, seed: Optional[int] = None) -> Result[Game]:
        result = self._game.start(self.provider, seed)
        if not result.ok and result.kind is ErrorKind.PUYO_SEQ_NOT_LOADED:
            self.provider.load()
            result = self._game.start(self.provider, seed)
        if result.ok:
            self._game = result.value
            self.history.clear()
            self._key_down.clear()
            self._last_action.clear()
            self._last_tick = None
            self._game_over_reported = False
        return result

    def perform(self, action: Action) -> Result[Game]:
        before = self._game
        result = before.apply(action)
        if not result.ok:
            return result
        after = result.value
        if before.state == GameState.PLAYING and after.state == GameState.DROPPING:
            self.history.record(before)
        self._game = after
        return result

    def undo(self) -> bool:
        if self._game.state not in (GameState.PLAYING, GameState.GAME_OVER):
            return False
        previous = self.history.undo(self._game)
        if previous is None:
            return False
        self._game = previous
        self._game_over_reported = False
        return True

    def redo(self) -> bool:
        if self._game.state not in (GameState.PLAYING, GameState.GAME_OVER):
            return False
        following = self.history.redo(self._game)
        if following is None:
            return False
        self._game = following
        return True

    # ---------- Input ----------
    def key_down(self, key: str, now: int) -> None:
        if key not in self._key_down:
            self._key_down[key] = now
        action = self.key_config.get_action_for_key(key)
        if action in ONE_SHOT_ACTIONS:
            self.perform(ONE_SHOT_ACTIONS[action])
        elif action == "undo":
            self.undo()
        elif action == "redo":
            self.redo()

    def key_up(self, key: str) -> None:
        self._key_down.pop(key, None)
        self._last_action.pop(key, None)

    def _should_repeat(self, key: str, now: int) -> bool:
        pressed_at = self._key_down.get(key)
        if pressed_at is None:
            return False
        last = self._last_action.get(key)
        if last is None:
            return True
        held = now - pressed_at
        since_last = now - last
        if held <= self.config.key_repeat_delay:
            return since_last >= self.config.key_repeat_interval * 4
        return since_last >= self.config.key_repeat_interval

    def handle_input(self, now: int) -> None:
        if not self._game.accepts_input:
            return
        bindings = self.key_config.get_key_bindings()
        for name, action in REPEAT_ACTIONS.items():
            key = getattr(bindings, name)
            if self._should_repeat(key, now):
                self.perform(action)
                self._last_action[key] = now

    # ---------- Loop ----------
    def tick(self, now: int) -> Game:
        elapsed = None if self._last_tick is None else now - self._last_tick
        self._last_tick = now
        self.handle_input(now)
        self._game = self._game.update(elapsed)
        self.renderer.render(self._game, self.history.can_undo, self.history.can_redo)
        if self._game.is_over and not self._game_over_reported:
            self.renderer.render_game_over(self._game.score)
            self._game_over_reported = True
        return self._game
