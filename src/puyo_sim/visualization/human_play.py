from __future__ import annotations

import argparse
from typing import Optional

import pygame

from puyo_sim.game import GameState, SequenceProvider

from .controller import GameController
from .keys import KeyConfig
from .renderer import PygameRenderer


def run(seed: Optional[int] = None) -> None:
    pygame.init()
    try:
        clock = pygame.time.Clock()
        cell_size = 28
        margin = 20
        screen = pygame.display.set_mode(PygameRenderer.window_size(cell_size, margin))
        pygame.display.set_caption("Puyo Simulator - Human Play")

        renderer = PygameRenderer(screen, cell_size=cell_size, margin=margin)
        controller = GameController(renderer, KeyConfig(), SequenceProvider())
        controller.start_game(seed)

        running = True
        while running:
            now = pygame.time.get_ticks()
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_n and controller.game.state == GameState.GAME_OVER:
                        controller.start_game()
                    else:
                        controller.key_down(pygame.key.name(event.key), now)
                elif event.type == pygame.KEYUP:
                    controller.key_up(pygame.key.name(event.key))

            controller.tick(now)
            clock.tick(60)
    finally:
        pygame.quit()


def main() -> None:
    p = argparse.ArgumentParser()
    p.add_argument("--seed", type=int, default=None)
    args = p.parse_args()
    run(args.seed)


if __name__ == "__main__":  # pragma: no cover
    main()
