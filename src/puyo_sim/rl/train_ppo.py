from __future__ import annotations

import argparse
import os
from typing import Callable, List

import gymnasium as gym

# Ensure envs are registered
import puyo_sim.env  # noqa: F401
from puyo_sim.env.wrappers import ResampleInvalidActionWrapper

ENV_ID = "PuyoSim-v0"


def mask_fn(env: gym.Env):
    return env.unwrapped.get_action_mask()


def make_env(seed: int | None = None, algo: str = "ppo") -> gym.Env:
    """Vanilla PPO resamples invalid actions; MaskablePPO reads the mask instead."""
    env = gym.make(ENV_ID)
    if algo == "maskable":
        from sb3_contrib.common.wrappers import ActionMasker

        env = ActionMasker(env, mask_fn)
    else:
        env = ResampleInvalidActionWrapper(env)
    if seed is not None:
        env.reset(seed=seed)
    return env


def env_factories(algo: str, n_envs: int, seed: int | None = None) -> List[Callable[[], gym.Env]]:
    # One seed per worker so parallel envs do not replay the same sequence
    def factory(i: int) -> Callable[[], gym.Env]:
        env_seed = None if seed is None else seed + i
        return lambda: make_env(env_seed, algo)

    return [factory(i) for i in range(n_envs)]


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--algo", choices=["ppo", "maskable"], default="ppo")
    p.add_argument("--timesteps", type=int, default=200_000)
    p.add_argument("--logdir", type=str, default="./logs/ppo")
    p.add_argument("--save_path", type=str, default="./models/ppo_puyo.zip")
    p.add_argument("--n_envs", type=int, default=4)
    p.add_argument("--seed", type=int, default=None)
    return p


def main() -> None:
    args = build_parser().parse_args()

    from stable_baselines3.common.vec_env import SubprocVecEnv, VecMonitor

    if args.algo == "maskable":
        from sb3_contrib import MaskablePPO as Algo
    else:
        from stable_baselines3 import PPO as Algo

    vec_env = VecMonitor(SubprocVecEnv(env_factories(args.algo, args.n_envs, args.seed)))
    model = Algo(
        policy="MultiInputPolicy",
        env=vec_env,
        verbose=1,
        tensorboard_log=args.logdir,
    )

    os.makedirs(os.path.dirname(args.save_path) or ".", exist_ok=True)
    model.learn(total_timesteps=args.timesteps)
    model.save(args.save_path)
    print(f"Saved model to {args.save_path}")


if __name__ == "__main__":  # pragma: no cover
    main()
