from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum


class PuyoColor(IntEnum):
    NONE = 0
    RED = 1
    GREEN = 2
    BLUE = 3
    YELLOW = 4
    PURPLE = 5


PLAYABLE_COLORS = (
    PuyoColor.RED,
    PuyoColor.GREEN,
    PuyoColor.BLUE,
    PuyoColor.YELLOW,
    PuyoColor.PURPLE,
)


class PuyoState(IntEnum):
    NORMAL = 0
    MARKED_FOR_DELETION = 1


@dataclass(frozen=True)
class Puyo:
    color: PuyoColor = PuyoColor.NONE
    state: PuyoState = PuyoState.NORMAL

    @property
    def is_empty(self) -> bool:
        return self.color == PuyoColor.NONE

    @property
    def is_marked(self) -> bool:
        return self.state == PuyoState.MARKED_FOR_DELETION

    def can_connect_with(self, other: "Puyo") -> bool:
        return not self.is_empty and self.color == other.color

    def marked(self) -> "Puyo":
        return replace(self, state=PuyoState.MARKED_FOR_DELETION)


EMPTY = Puyo()


def create_puyo(color: PuyoColor) -> Puyo:
    return Puyo(color=color)
