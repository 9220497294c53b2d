from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .errors import ErrorKind, Ok, Result, err
from .puyo import PuyoColor

SEQUENCE_LENGTH = 256
DEFAULT_TABLE = "esports.txt"

COLOR_CODES: Dict[str, PuyoColor] = {
    "r": PuyoColor.RED,
    "g": PuyoColor.GREEN,
    "b": PuyoColor.BLUE,
    "y": PuyoColor.YELLOW,
    "p": PuyoColor.PURPLE,
}

# Unknown codes decode to the first color instead of dropping a piece.
DEFAULT_COLOR = PuyoColor.RED


def decode_color(code: str) -> PuyoColor:
    return COLOR_CODES.get(code.lower(), DEFAULT_COLOR)


def decode_line(line: str) -> Tuple[PuyoColor, ...]:
    return tuple(decode_color(ch) for ch in line)


def parse_table(text: str) -> List[str]:
    lines: List[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line.startswith("//"):
            continue
        lines.append(line)
    return lines


@dataclass(frozen=True)
class PuyoSeq:
    seed: int
    colors: Tuple[PuyoColor, ...]

    def __len__(self) -> int:
        return len(self.colors)

    def color_at(self, index: int) -> PuyoColor:
        return self.colors[index % len(self.colors)]

    def pair_colors(self, pair_index: int) -> Tuple[PuyoColor, PuyoColor]:
        """Colors of the n-th pair: (main, second)."""
        return self.color_at(2 * pair_index), self.color_at(2 * pair_index + 1)


class SequenceProvider:
    """Seed-indexed source of puyo color sequences.

    The backing table is read once by :meth:`load`; before that every query
    fails with ``PuyoSeqNotLoaded`` so callers can retry. Decoded sequences
    are cached per table line, so a seed always maps to the same object for
    the lifetime of the provider.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        text: Optional[str] = None,
        length: int = SEQUENCE_LENGTH,
    ) -> None:
        self.path = path
        self._text = text
        self.length = int(length)
        self._lines: Optional[List[str]] = None
        self._cache: Dict[int, Tuple[PuyoColor, ...]] = {}

    @classmethod
    def from_text(cls, text: str, length: int = SEQUENCE_LENGTH) -> "SequenceProvider":
        return cls(text=text, length=length)

    @property
    def loaded(self) -> bool:
        return self._lines is not None

    @property
    def line_count(self) -> int:
        return len(self._lines) if self._lines is not None else 0

    def _read_text(self) -> str:
        if self._text is not None:
            return self._text
        if self.path is not None:
            return Path(self.path).read_text(encoding="utf-8")
        return resources.files("puyo_sim.game").joinpath("data").joinpath(DEFAULT_TABLE).read_text(encoding="utf-8")

    def load(self) -> "SequenceProvider":
        if self._lines is not None:
            return self
        lines = parse_table(self._read_text())
        if not lines:
            raise ValueError("Sequence table has no entries")
        for number, line in enumerate(lines):
            if len(line) < self.length:
                raise ValueError(
                    f"Sequence line {number} has {len(line)} codes, expected {self.length}"
                )
        self._lines = [line[: self.length] for line in lines]
        return self

    def create_puyo_seq(self, seed: int) -> Result[PuyoSeq]:
        if self._lines is None:
            return err(ErrorKind.PUYO_SEQ_NOT_LOADED, "Sequence table is not loaded yet")
        index = int(seed) % len(self._lines)
        colors = self._cache.get(index)
        if colors is None:
            colors = decode_line(self._lines[index])
            self._cache[index] = colors
        return Ok(PuyoSeq(seed=int(seed), colors=colors))
