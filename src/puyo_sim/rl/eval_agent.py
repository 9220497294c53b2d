from __future__ import annotations

import argparse

import pygame

from puyo_sim.rl.train_ppo import make_env
from puyo_sim.visualization.renderer import PygameRenderer


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser()
    p.add_argument("--algo", choices=["ppo", "maskable"], default="ppo")
    p.add_argument("--model", type=str, required=True)
    p.add_argument("--steps", type=int, default=500)
    p.add_argument("--fps", type=int, default=10)
    p.add_argument("--seed", type=int, default=None)
    return p


def main() -> None:
    args = build_parser().parse_args()
    if args.algo == "maskable":
        from sb3_contrib import MaskablePPO as Algo
    else:
        from stable_baselines3 import PPO as Algo

    env = make_env(algo=args.algo)
    model = Algo.load(args.model, device="auto")

    cell_size = 28
    margin = 20
    pygame.init()
    try:
        screen = pygame.display.set_mode(PygameRenderer.window_size(cell_size, margin))
        pygame.display.set_caption("Puyo Simulator - Agent Eval")
        renderer = PygameRenderer(screen, cell_size=cell_size, margin=margin)
        clock = pygame.time.Clock()

        obs, info = env.reset(seed=args.seed)
        total_reward = 0.0
        steps = 0
        while steps < args.steps:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    return
                elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    return

            if args.algo == "maskable":
                mask = env.unwrapped.get_action_mask()
                action, _ = model.predict(obs, deterministic=True, action_masks=mask)
            else:
                action, _ = model.predict(obs, deterministic=True)

            obs, reward, terminated, truncated, info = env.step(action)
            total_reward += float(reward)
            steps += 1
            if terminated or truncated:
                print(f"episode over at step {steps}: score {info['score']}")
                obs, info = env.reset()

            renderer.render(env.unwrapped.game)
            clock.tick(args.fps)
        print(f"step {steps}/{args.steps}  reward {total_reward:.1f}")
    finally:
        pygame.quit()


if __name__ == "__main__":  # pragma: no cover
    main()
