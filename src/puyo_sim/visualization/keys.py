from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Dict, Optional


@dataclass(frozen=True)
class KeyBindings:
    """Key names (as reported by ``pygame.key.name``) for each command."""

    move_left: str = "a"
    move_right: str = "d"
    move_down: str = "s"
    rotate_clockwise: str = "k"
    rotate_counter_clockwise: str = "j"
    quick_turn: str = "l"
    hard_drop: str = "space"
    undo: str = "u"
    redo: str = "r"


DEFAULT_KEY_BINDINGS = KeyBindings()

ACTIONS = tuple(f.name for f in fields(KeyBindings))


class KeyConfig:
    """Current key bindings. Changes live in memory only."""

    def __init__(self, bindings: Optional[KeyBindings] = None) -> None:
        self._bindings = bindings or DEFAULT_KEY_BINDINGS

    def get_key_bindings(self) -> KeyBindings:
        return self._bindings

    def as_dict(self) -> Dict[str, str]:
        return asdict(self._bindings)

    def get_key(self, action: str) -> str:
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        return getattr(self._bindings, action)

    def update_key_binding(self, action: str, key: str) -> None:
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        self._bindings = replace(self._bindings, **{action: key})

    def reset_to_defaults(self) -> None:
        self._bindings = DEFAULT_KEY_BINDINGS

    def get_action_for_key(self, key: str) -> Optional[str]:
        for action, bound in asdict(self._bindings).items():
            if bound == key:
                return action
        return None
