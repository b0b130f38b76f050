"""Spoken command phrases that map to orchestrator actions."""

from __future__ import annotations

import re
from typing import Callable, Dict, Optional

CommandHandler = Callable[[], object]

_TRAILING_PUNCTUATION = ".,!?;: "
_WHITESPACE = re.compile(r"\s+")


def normalize_phrase(text: str) -> str:
    """Lower-case, collapse whitespace, and drop trailing punctuation."""
    collapsed = _WHITESPACE.sub(" ", text or "").strip().lower()
    return collapsed.rstrip(_TRAILING_PUNCTUATION)


class CommandRegistry:
    """Registers and dispatches voice commands by exact (normalized) phrase."""

    def __init__(self) -> None:
        self._commands: Dict[str, CommandHandler] = {}

    def register(self, phrase: str, handler: CommandHandler) -> None:
        """Add or replace the handler for ``phrase``."""
        key = normalize_phrase(phrase)
        if not key:
            raise ValueError("command phrase must not be empty")
        self._commands[key] = handler

    def match(self, text: str) -> Optional[CommandHandler]:
        """Return the handler whose phrase equals ``text``, if any."""
        return self._commands.get(normalize_phrase(text))

    def dispatch(self, text: str) -> bool:
        """Run the matching handler. Returns False when nothing matched."""
        handler = self.match(text)
        if handler is None:
            return False
        handler()
        return True

    def phrases(self) -> tuple:
        return tuple(sorted(self._commands))
