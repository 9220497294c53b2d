from __future__ import annotations

import argparse
from typing import Optional

import gymnasium as gym
import numpy as np

import puyo_sim.env  # noqa: F401


def run_random(steps: int = 200, seed: Optional[int] = None) -> float:
    env = gym.make("PuyoSim-v0")
    rng = np.random.default_rng(seed)
    obs, info = env.reset(seed=seed)
    total_reward = 0.0
    best_chain = 0
    for _ in range(steps):
        # Prefer valid actions if available
        valid = np.flatnonzero(info.get("action_mask", []))
        if valid.size > 0:
            action = int(rng.choice(valid))
        else:
            action = env.action_space.sample()
        obs, reward, terminated, truncated, info = env.step(action)
        total_reward += float(reward)
        best_chain = max(best_chain, int(info.get("chain", 0)))
        if terminated or truncated:
            print(f"episode over: score {info['score']}")
            obs, info = env.reset()
    env.close()
    print(f"Random agent total reward: {total_reward:.2f} (best chain {best_chain})")
    return total_reward


def main() -> None:
    p = argparse.ArgumentParser()
    p.add_argument("--steps", type=int, default=200)
    p.add_argument("--seed", type=int, default=None)
    args = p.parse_args()
    run_random(args.steps, args.seed)


if __name__ == "__main__":  # pragma: no cover
    main()
