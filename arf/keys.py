"""Key-combo registry and the browse-session key map."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .session import ReviewSession


@dataclass(frozen=True)
class KeyComboBinding:
    """Mapping from one or more key tokens to a single action callback."""

    combos: tuple[str, ...]
    handler: Callable[[], bool | None]


class KeyComboRegistry:
    """Small key-dispatch table with optional key normalization strategy."""

    def __init__(self, normalize: Callable[[str], str] | None = None) -> None:
        """Initialize empty registry with optional token normalizer."""
        self._normalize = normalize if normalize is not None else self._identity
        self._handlers: dict[str, Callable[[], bool | None]] = {}

    @staticmethod
    def _identity(key: str) -> str:
        return key

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        """Register one binding, overwriting existing handlers for same combos."""
        for combo in binding.combos:
            self._handlers[self._normalize(combo)] = binding.handler
        return self

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        """Register multiple bindings and return ``self`` for fluent usage."""
        for binding in bindings:
            self.register_binding(binding)
        return self

    def dispatch(self, key: str) -> bool | None:
        """Invoke bound handler for ``key``; ``None`` means the key is unbound."""
        handler = self._handlers.get(self._normalize(key))
        if handler is None:
            return None
        return handler()


QUIT_KEYS = ("q", "ESC", "CTRL_C")
NEXT_KEYS = ("DOWN", "j")
PREVIOUS_KEYS = ("UP", "k")
CYCLE_DIFF_KEYS = ("d",)
TOGGLE_FOCUS_KEYS = ("TAB", "ENTER_CR", "ENTER_LF")
PAGE_DOWN_KEYS = ("PAGE_DOWN", "f")
PAGE_UP_KEYS = ("PAGE_UP", "b")

HELP_TEXT = " q: quit | j/k: scroll | Tab: focus | d: toggle diff | f/b: page "


def _handled(action: Callable[[], None]) -> Callable[[], bool]:
    def run() -> bool:
        action()
        return True

    return run


def build_session_registry(session: ReviewSession) -> KeyComboRegistry:
    """Bind every session input action to its key tokens."""
    return KeyComboRegistry().register_bindings(
        KeyComboBinding(QUIT_KEYS, _handled(session.request_quit)),
        KeyComboBinding(NEXT_KEYS, _handled(session.select_next)),
        KeyComboBinding(PREVIOUS_KEYS, _handled(session.select_previous)),
        KeyComboBinding(CYCLE_DIFF_KEYS, _handled(session.cycle_diff_mode)),
        KeyComboBinding(TOGGLE_FOCUS_KEYS, _handled(session.toggle_focus)),
        KeyComboBinding(PAGE_DOWN_KEYS, _handled(session.page_down)),
        KeyComboBinding(PAGE_UP_KEYS, _handled(session.page_up)),
    )
