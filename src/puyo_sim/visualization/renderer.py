from __future__ import annotations

from typing import Optional, Tuple

import pygame

from puyo_sim.game import BOARD_WIDTH, HIDDEN_ROWS, TOTAL_HEIGHT, Game, Puyo, PuyoColor, PuyoPair


def _color_for_value(v: int) -> Tuple[int, int, int]:
    palette = {
        PuyoColor.NONE: (20, 20, 26),
        PuyoColor.RED: (255, 65, 54),
        PuyoColor.GREEN: (46, 204, 64),
        PuyoColor.BLUE: (0, 116, 217),
        PuyoColor.YELLOW: (255, 220, 0),
        PuyoColor.PURPLE: (177, 13, 201),
    }
    return palette.get(v, (200, 200, 200))


class PygameRenderer:
    """Draws game snapshots onto a pygame surface."""

    def __init__(self, screen: pygame.Surface, cell_size: int = 30, margin: int = 20) -> None:
        self.screen = screen
        self.cell_size = cell_size
        self.margin = margin
        self._font: Optional[pygame.font.Font] = None

    @staticmethod
    def window_size(cell_size: int = 30, margin: int = 20) -> Tuple[int, int]:
        side_panel = 4 * cell_size
        width = margin * 3 + BOARD_WIDTH * cell_size + side_panel
        height = margin * 2 + TOTAL_HEIGHT * cell_size
        return width, height

    @property
    def font(self) -> pygame.font.Font:
        if self._font is None:
            self._font = pygame.font.SysFont(None, 24)
        return self._font

    def _cell_rect(self, x: int, y: int, origin: Tuple[int, int]) -> pygame.Rect:
        return pygame.Rect(
            origin[0] + x * self.cell_size,
            origin[1] + y * self.cell_size,
            self.cell_size - 1,
            self.cell_size - 1,
        )

    def _draw_puyo(self, puyo: Puyo, rect: pygame.Rect, hidden: bool = False) -> None:
        if puyo.is_empty:
            return
        color = _color_for_value(puyo.color)
        if hidden:
            color = tuple(c // 2 for c in color)
        pygame.draw.ellipse(self.screen, color, rect)
        if puyo.is_marked:
            pygame.draw.ellipse(self.screen, (255, 255, 255), rect, 2)

    def _draw_board(self, game: Game) -> None:
        origin = (self.margin, self.margin)
        for y, row in enumerate(game.board.rows):
            for x, puyo in enumerate(row):
                rect = self._cell_rect(x, y, origin)
                background = (30, 30, 36) if y >= HIDDEN_ROWS else (24, 24, 40)
                pygame.draw.rect(self.screen, background, rect)
                self._draw_puyo(puyo, rect, hidden=y < HIDDEN_ROWS)

    def _draw_pair(self, pair: PuyoPair, origin: Tuple[int, int]) -> None:
        for (x, y), puyo in pair.cells():
            self._draw_puyo(puyo, self._cell_rect(x, y, origin))

    def _draw_side_panel(self, game: Game, undo_available: bool, redo_available: bool) -> None:
        x0 = self.margin * 2 + BOARD_WIDTH * self.cell_size
        y0 = self.margin
        if game.next_pair is not None:
            # Draw the next pair upright in a small box, independent of its spawn position.
            main, second = game.next_pair.main_puyo, game.next_pair.second_puyo
            self._draw_puyo(second, self._cell_rect(0, 0, (x0, y0)))
            self._draw_puyo(main, self._cell_rect(0, 1, (x0, y0)))
        lines = [
            f"Score: {game.score}",
            f"Chain: {game.chain_count}",
            f"Undo: {'on' if undo_available else 'off'}",
            f"Redo: {'on' if redo_available else 'off'}",
        ]
        for i, txt in enumerate(lines):
            img = self.font.render(txt, True, (230, 230, 230))
            self.screen.blit(img, (x0, y0 + 3 * self.cell_size + i * 20))

    def _draw_game_over(self, score: int) -> None:
        text = self.font.render(f"Game Over - Score {score} - Press N to restart", True, (255, 100, 100))
        rect = text.get_rect(center=(self.screen.get_width() // 2, self.margin // 2 + 4))
        self.screen.blit(text, rect)

    def render(self, game: Game, undo_available: bool = False, redo_available: bool = False) -> None:
        self.screen.fill((10, 10, 14))
        self._draw_board(game)
        if game.current_pair is not None:
            self._draw_pair(game.current_pair, (self.margin, self.margin))
        self._draw_side_panel(game, undo_available, redo_available)
        if game.is_over:
            self._draw_game_over(game.score)
        pygame.display.flip()

    def render_game_over(self, score: int) -> None:
        self._draw_game_over(score)
        pygame.display.flip()
