from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class ScoringRules:
    base_points: int = 10
    min_group_size: int = 4
    connection_bonus_cap: int = 10
    color_bonus_table: tuple[int, int, int, int, int] = (0, 3, 6, 12, 24)

    def chain_bonus(self, chain: int) -> int:
        if chain <= 1:
            return 0
        if chain <= 3:
            return 8 * (chain - 1)
        return 32 * (chain - 3)

    def connection_bonus(self, size: int) -> int:
        if size <= self.min_group_size:
            return 0
        if size >= 11:
            return self.connection_bonus_cap
        return size - 3

    def color_bonus(self, color_count: int) -> int:
        if 1 <= color_count <= len(self.color_bonus_table):
            return self.color_bonus_table[color_count - 1]
        return 0

    def score_for_step(
        self,
        chain: int,
        puyo_count: int,
        group_sizes: Iterable[int],
        color_count: int,
    ) -> int:
        """Points for one clear step of a chain.

        ``chain`` is the 1-based position of this step in the cascade.
        """
        bonus = (
            self.chain_bonus(chain)
            + sum(self.connection_bonus(size) for size in group_sizes)
            + self.color_bonus(color_count)
        )
        return puyo_count * self.base_points * max(1, bonus)


DEFAULT_RULES = ScoringRules()


def chain_bonus(chain: int) -> int:
    return DEFAULT_RULES.chain_bonus(chain)


def connection_bonus(size: int) -> int:
    return DEFAULT_RULES.connection_bonus(size)


def color_bonus(color_count: int) -> int:
    return DEFAULT_RULES.color_bonus(color_count)


def calculate_score(chain: int, puyo_count: int, group_sizes: Iterable[int], color_count: int) -> int:
    return DEFAULT_RULES.score_for_step(chain, puyo_count, group_sizes, color_count)
