from __future__ import annotations

from typing import List, Optional

from .core import Game


class GameHistory:
    """In-memory undo/redo stacks of game snapshots.

    Snapshots are recorded right before a pair is locked, so undo returns to
    the moment the player still controlled that pair.
    """

    def __init__(self, limit: int = 256) -> None:
        self.limit = int(limit)
        self._undo: List[Game] = []
        self._redo: List[Game] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def record(self, game: Game) -> None:
        self._undo.append(game)
        if len(self._undo) > self.limit:
            del self._undo[0]
        self._redo.clear()

    def undo(self, current: Game) -> Optional[Game]:
        if not self._undo:
            return None
        self._redo.append(current)
        return self._undo.pop()

    def redo(self, current: Game) -> Optional[Game]:
        if not self._redo:
            return None
        self._undo.append(current)
        return self._redo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
