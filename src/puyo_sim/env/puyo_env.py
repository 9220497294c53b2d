from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from puyo_sim.game import (
    BOARD_WIDTH,
    TOTAL_HEIGHT,
    Action,
    Game,
    GameConfig,
    GameState,
    PuyoColor,
    SequenceProvider,
    create_game,
)

# Discrete action index -> engine action
ACTIONS: Tuple[Action, ...] = (
    Action.LEFT,
    Action.RIGHT,
    Action.ROTATE_CW,
    Action.ROTATE_CCW,
    Action.QUICK_TURN,
    Action.HARD_DROP,
)

_CELL_COLORS = {
    PuyoColor.NONE: (30, 30, 36),
    PuyoColor.RED: (230, 60, 50),
    PuyoColor.GREEN: (60, 200, 80),
    PuyoColor.BLUE: (40, 110, 220),
    PuyoColor.YELLOW: (240, 210, 40),
    PuyoColor.PURPLE: (170, 40, 200),
}


def compute_action_mask(game: Game) -> np.ndarray:
    """True where the action would change the snapshot."""
    mask = np.zeros((len(ACTIONS),), dtype=np.bool_)
    if not game.accepts_input:
        return mask
    for idx, action in enumerate(ACTIONS):
        result = game.apply(action)
        mask[idx] = bool(result.ok and result.value is not game)
    return mask


class PuyoEnv(gym.Env):
    """One pair per decision: move/rotate freely, then hard drop.

    A hard drop resolves gravity and every chain it triggers before the step
    returns, so the agent always observes a settled board.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        provider: Optional[SequenceProvider] = None,
        render_mode: Optional[str] = None,
        score_scale: float = 0.01,
        invalid_action_penalty: float = -0.1,
        step_penalty: float = 0.0,
        terminal_penalty: float = -1.0,
        max_episode_steps: int = 10_000,
    ) -> None:
        super().__init__()
        self.provider = (provider or SequenceProvider()).load()
        self.game_config = config or GameConfig()
        self.game: Game = create_game(self.game_config)
        self.render_mode = render_mode

        # Reward shaping parameters
        self.score_scale = float(score_scale)
        self.invalid_action_penalty = float(invalid_action_penalty)
        self.step_penalty = float(step_penalty)
        self.terminal_penalty = float(terminal_penalty)
        self.max_episode_steps = int(max_episode_steps)

        n_colors = len(PuyoColor) - 1
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=0, high=n_colors, shape=(TOTAL_HEIGHT, BOARD_WIDTH), dtype=np.int8),
                "current": spaces.Box(low=0, high=n_colors, shape=(2,), dtype=np.int8),
                "next": spaces.Box(low=0, high=n_colors, shape=(2,), dtype=np.int8),
                "position": spaces.Box(
                    low=0,
                    high=np.array([BOARD_WIDTH - 1, TOTAL_HEIGHT - 1], dtype=np.int8),
                    shape=(2,),
                    dtype=np.int8,
                ),
                "rotation": spaces.Discrete(4),
            }
        )
        self.action_space = spaces.Discrete(len(ACTIONS))

        self._steps = 0
        self._last_obs: Optional[Dict[str, Any]] = None

    def _get_obs(self) -> Dict[str, Any]:
        current = np.zeros((2,), dtype=np.int8)
        nxt = np.zeros((2,), dtype=np.int8)
        position = np.zeros((2,), dtype=np.int8)
        rotation = 0
        pair = self.game.current_pair
        if pair is not None:
            current[:] = (int(pair.main_puyo.color), int(pair.second_puyo.color))
            position[:] = (pair.position.x, pair.position.y)
            rotation = int(pair.rotation)
        if self.game.next_pair is not None:
            nxt[:] = (int(self.game.next_pair.main_puyo.color), int(self.game.next_pair.second_puyo.color))
        return {
            "board": self.game.board.to_array(),
            "current": current,
            "next": nxt,
            "position": position,
            "rotation": rotation,
        }

    def _get_info(self) -> Dict[str, Any]:
        return {
            "action_mask": compute_action_mask(self.game),
            "score": self.game.score,
            "steps": self._steps,
            "state": self.game.state.value,
        }

    def get_action_mask(self) -> np.ndarray:
        return compute_action_mask(self.game)

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        game_seed = seed if seed is not None else int(self.np_random.integers(0, 1 << 16))
        self.game = create_game(self.game_config).start(self.provider, game_seed).unwrap()
        self._steps = 0
        obs = self._get_obs()
        self._last_obs = obs
        return obs, self._get_info()

    def _settle(self) -> int:
        max_chain = 0
        while self.game.state not in (GameState.PLAYING, GameState.GAME_OVER):
            self.game = self.game.update()
            max_chain = max(max_chain, self.game.chain_count)
        return max_chain

    def step(self, action: int):
        action = ACTIONS[int(action)]
        score_before = self.game.score

        reward_components: Dict[str, float] = {}
        chain = 0
        result = self.game.apply(action)
        if not result.ok or result.value is self.game:
            reward_components["invalid"] = self.invalid_action_penalty
        else:
            self.game = result.value
            if action == Action.HARD_DROP:
                chain = self._settle()
            reward_components["step"] = self.step_penalty

        gained = self.game.score - score_before
        reward_components["score"] = self.score_scale * float(gained)

        terminated = self.game.is_over
        if terminated:
            reward_components["terminal"] = self.terminal_penalty
        self._steps += 1
        truncated = self._steps >= self.max_episode_steps

        reward = float(sum(reward_components.values()))
        obs = self._get_obs()
        info = self._get_info()
        info["reward_components"] = reward_components
        info["engine_score_delta"] = float(gained)
        info["chain"] = chain
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        grid = self.game.board.to_array()
        pair = self.game.current_pair
        if pair is not None:
            for (x, y), puyo in pair.cells():
                if 0 <= y < TOTAL_HEIGHT and 0 <= x < BOARD_WIDTH:
                    grid[y, x] = int(puyo.color)
        cell = 12
        h, w = grid.shape
        img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
        for y in range(h):
            for x in range(w):
                color = _CELL_COLORS[PuyoColor(int(grid[y, x]))]
                img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
        return img

    def close(self) -> None:
        pass
