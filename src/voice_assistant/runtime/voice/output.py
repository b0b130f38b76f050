"""Speech output: engine facade and the single-slot output controller."""

from __future__ import annotations

import itertools
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, List, Optional, Tuple

from voice_assistant.config.defaults import SpeechConfig

logger = logging.getLogger(__name__)


class OutputState(Enum):
    SILENT = "silent"
    SPEAKING = "speaking"


SpeechCallback = Callable[[], None]
SpeechErrorCallback = Callable[[str], None]
OutputListener = Callable[[OutputState], None]


@dataclass
class _ActiveSpeech:
    text: str
    on_start: SpeechCallback
    on_end: SpeechCallback
    on_error: SpeechErrorCallback


class SpeechEngine:
    """Delegates text-to-speech playback to a synthesis backend.

    The base engine keeps a log of what it was asked to say and treats the
    current utterance as playing until ``finish()`` or ``fail()`` is called,
    which lets tests and the text demo drive engine events by hand.
    """

    def __init__(self, config: Optional[SpeechConfig] = None) -> None:
        self.config = config or SpeechConfig()
        self._spoken_log: Deque[str] = deque(maxlen=20)
        self._active: Optional[_ActiveSpeech] = None

    @property
    def speaking(self) -> bool:
        return self._active is not None

    def speak(
        self,
        text: str,
        on_start: SpeechCallback,
        on_end: SpeechCallback,
        on_error: SpeechErrorCallback,
    ) -> None:
        """Begin speaking ``text``; events are reported through the callbacks."""
        self._spoken_log.append(text)
        self._active = _ActiveSpeech(text, on_start, on_end, on_error)
        on_start()

    def cancel(self) -> None:
        """Stop the current utterance immediately without reporting an end event."""
        self._active = None

    def finish(self) -> None:
        """Complete the current utterance as if playback reached its end."""
        active, self._active = self._active, None
        if active is not None:
            active.on_end()

    def fail(self, detail: str) -> None:
        """Abort the current utterance with an engine error."""
        active, self._active = self._active, None
        if active is not None:
            active.on_error(detail)

    def get_spoken_log(self) -> Tuple[str, ...]:
        """Return the latest synthesized snippets."""
        return tuple(self._spoken_log)


class SpeechOutputController:
    """Owns the single "currently speaking" slot.

    A new ``speak`` call hard-cancels whatever is playing; output is never
    queued. Engine events carry the token of the utterance that produced
    them, so a late end or error from a cancelled utterance is ignored.
    """

    def __init__(self, engine: SpeechEngine, config: Optional[SpeechConfig] = None) -> None:
        self.engine = engine
        self.config = config or engine.config
        self._state = OutputState.SILENT
        self._active_token: Optional[int] = None
        self._tokens = itertools.count(1)
        self._listeners: List[OutputListener] = []

    @property
    def state(self) -> OutputState:
        return self._state

    @property
    def is_speaking(self) -> bool:
        return self._state is OutputState.SPEAKING

    def subscribe(self, listener: OutputListener) -> Callable[[], None]:
        """Register for state changes; returns a callable that unsubscribes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def speak(self, text: str) -> bool:
        """Speak ``text``, interrupting any active output. Returns True if started."""
        if not text or not text.strip():
            logger.warning("Speech synthesis not available or text is empty.")
            return False
        if not self.config.enable_tts:
            logger.info("Speech output disabled; dropping %r", text)
            return False
        if self._active_token is not None or self.engine.speaking:
            logger.info("Already speaking, cancelling previous utterance.")
            self._halt()

        token = next(self._tokens)
        self._active_token = token
        logger.info("Attempting to speak: %r", text)
        try:
            self.engine.speak(
                text,
                on_start=lambda: self._handle_start(token),
                on_end=lambda: self._handle_end(token),
                on_error=lambda detail: self._handle_error(token, detail),
            )
        except Exception as exc:
            logger.error("SpeechSynthesis Error: %s", exc)
            if self._active_token == token:
                self._active_token = None
                self._set_state(OutputState.SILENT)
            return False
        return True

    def cancel(self) -> None:
        """Terminate any active output and return to silence."""
        if self._active_token is None and not self.engine.speaking and not self.is_speaking:
            return
        self._halt()
        self._set_state(OutputState.SILENT)

    def _halt(self) -> None:
        self._active_token = None
        self.engine.cancel()

    def _handle_start(self, token: int) -> None:
        if token != self._active_token:
            return
        self._set_state(OutputState.SPEAKING)

    def _handle_end(self, token: int) -> None:
        if token != self._active_token:
            return
        self._active_token = None
        self._set_state(OutputState.SILENT)

    def _handle_error(self, token: int, detail: str) -> None:
        if token != self._active_token:
            logger.debug("Ignoring error from superseded utterance: %s", detail)
            return
        logger.error("SpeechSynthesis Error: %s", detail)
        self._active_token = None
        self._set_state(OutputState.SILENT)

    def _set_state(self, state: OutputState) -> None:
        if state is self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)
