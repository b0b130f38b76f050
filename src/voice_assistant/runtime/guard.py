"""Duplicate suppression for finalized utterances."""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class UtteranceGuard:
    """Remembers the last accepted utterance and rejects identical repeats.

    Capture engines may report the same stabilized transcript more than once
    for a single stretch of speech. The guard turns "the finalized transcript
    changed" into "new conversational input": a repeat is rejected until
    ``clear()`` is called, which happens when a new listening session starts
    or the conversation is reset.
    """

    def __init__(self) -> None:
        self._memo: Optional[str] = None

    @property
    def memo(self) -> Optional[str]:
        """Text of the most recently accepted utterance, if any."""
        return self._memo

    def accept(self, text: str) -> bool:
        """Return True and remember ``text`` when it differs from the memo."""
        candidate = (text or "").strip()
        if not candidate:
            return False
        if candidate == self._memo:
            logger.debug("Skipping duplicate final transcript: %r", candidate)
            return False
        self._memo = candidate
        return True

    def clear(self) -> None:
        """Forget the memo so the next utterance is accepted regardless of text."""
        self._memo = None
