"""Speech capture facade and its scripted in-memory implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from voice_assistant.config.defaults import CaptureConfig
from voice_assistant.errors import MicrophoneUnavailable

logger = logging.getLogger(__name__)


class CaptureState(Enum):
    IDLE = "idle"
    LISTENING = "listening"


@dataclass(frozen=True)
class CaptureOptions:
    """Options for one listening session."""

    continuous: bool = False
    language: str = "en-US"

    @classmethod
    def from_config(cls, config: CaptureConfig) -> "CaptureOptions":
        return cls(continuous=config.continuous, language=config.language)


@dataclass(frozen=True)
class CaptureSnapshot:
    """What the capture service currently reports."""

    listening: bool
    microphone_available: bool
    transcript: str
    final_transcript: str

    @property
    def state(self) -> CaptureState:
        return CaptureState.LISTENING if self.listening else CaptureState.IDLE


CaptureListener = Callable[[CaptureSnapshot], None]


class SpeechCapture:
    """Facade over speech-to-text engines.

    The base class is driven by script: ``hear()`` updates the live transcript
    and ``finalize()`` reports a finished utterance, which ends a one-shot
    session. Engine adapters subclass it and call the same hooks from their
    recognition callbacks.
    """

    def __init__(self, config: Optional[CaptureConfig] = None, microphone_available: bool = True) -> None:
        self.config = config or CaptureConfig()
        self._listening = False
        self._microphone_available = microphone_available
        self._transcript = ""
        self._final_transcript = ""
        self._options = CaptureOptions.from_config(self.config)
        self._listeners: List[CaptureListener] = []

    # ----------------- observable state -----------------
    @property
    def listening(self) -> bool:
        return self._listening

    @property
    def microphone_available(self) -> bool:
        return self._microphone_available

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def final_transcript(self) -> str:
        return self._final_transcript

    @property
    def options(self) -> CaptureOptions:
        return self._options

    def snapshot(self) -> CaptureSnapshot:
        return CaptureSnapshot(
            listening=self._listening,
            microphone_available=self._microphone_available,
            transcript=self._transcript,
            final_transcript=self._final_transcript,
        )

    def subscribe(self, listener: CaptureListener) -> Callable[[], None]:
        """Register for snapshot updates; returns a callable that unsubscribes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ----------------- controls -----------------
    def start_listening(self, options: Optional[CaptureOptions] = None) -> None:
        """Begin a listening session."""
        if not self._microphone_available:
            raise MicrophoneUnavailable("microphone is not available")
        self._options = options or CaptureOptions.from_config(self.config)
        if self._listening:
            return
        try:
            self._begin_session()
        except MicrophoneUnavailable:
            raise
        except Exception as exc:
            logger.warning("Could not open the microphone: %s", exc)
            raise MicrophoneUnavailable(f"microphone could not be opened: {exc}") from exc
        self._listening = True
        logger.debug("Capture started (continuous=%s, language=%s)", self._options.continuous, self._options.language)
        self._notify()

    def stop_listening(self) -> None:
        """End the current session; a pending utterance is still reported."""
        if not self._listening:
            return
        self._listening = False
        self._end_session()
        logger.debug("Capture stopped")
        self._notify()

    def reset_transcript(self) -> None:
        """Clear both the live and the finalized transcript."""
        if not self._transcript and not self._final_transcript:
            return
        self._transcript = ""
        self._final_transcript = ""
        self._notify()

    # ----------------- engine hooks -----------------
    def hear(self, partial: str) -> None:
        """Update the live (interim) transcript."""
        self._transcript = partial
        self._notify()

    def finalize(self, text: str) -> None:
        """Report a finalized utterance; one-shot sessions stop listening."""
        self._transcript = text
        self._final_transcript = text
        if self._listening and not self._options.continuous:
            self._listening = False
            self._end_session()
        self._notify()

    def _begin_session(self) -> None:
        """Start engine resources (override in subclasses)."""

    def _end_session(self) -> None:
        """Release engine resources (override in subclasses)."""

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
