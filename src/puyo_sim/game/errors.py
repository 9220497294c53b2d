from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    OUT_OF_BOUNDS = "OutOfBounds"
    INVALID_MOVE = "InvalidMove"
    INVALID_ROTATION = "InvalidRotation"
    INVALID_STATE = "InvalidState"
    GAME_OVER = "GameOver"
    PUYO_SEQ_NOT_LOADED = "PuyoSeqNotLoaded"


@dataclass(frozen=True)
class GameError:
    kind: ErrorKind
    message: str = ""

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.PUYO_SEQ_NOT_LOADED


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: GameError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    def unwrap(self):
        raise ValueError(f"{self.error.kind.value}: {self.error.message}")


Result = Union[Ok[T], Err]


def err(kind: ErrorKind, message: str = "") -> Err:
    return Err(GameError(kind, message))
