"""Voice-turn orchestration: capture -> dedupe -> inference -> speech."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from voice_assistant.config.defaults import RuntimeConfig
from voice_assistant.errors import MicrophoneUnavailable
from voice_assistant.runtime.commands import CommandHandler, CommandRegistry
from voice_assistant.runtime.guard import UtteranceGuard
from voice_assistant.runtime.inference import InferenceClient, InferenceResult, Success, TransportError
from voice_assistant.runtime.telemetry import LatencyProbe
from voice_assistant.runtime.turns import ConversationTurn, TurnStatus, Utterance

from .capture import CaptureOptions, CaptureSnapshot, SpeechCapture
from .output import OutputState, SpeechOutputController

logger = logging.getLogger(__name__)


class OrchestratorState(Enum):
    IDLE = "idle"
    LISTENING = "listening"
    AWAITING_REPLY = "awaiting_reply"


@dataclass(frozen=True)
class InterfaceState:
    """Everything a UI needs to render the conversation controls."""

    state: OrchestratorState
    listening: bool
    microphone_available: bool
    transcript: str
    awaiting_reply: bool
    speaking: bool
    last_reply: str


InterfaceListener = Callable[[InterfaceState], None]


class VoiceTurnOrchestrator:
    """Turns finalized utterances into one request and one spoken reply.

    The orchestrator reacts to capture updates that report "not listening"
    together with a finalized transcript. A new utterance goes to the
    inference backend on an asyncio task, and the reply (or a spoken error
    fallback) is handed to the output controller. Only one turn may be
    awaiting a reply at a time; utterances finalized meanwhile are dropped.
    Once a newer session supersedes the pending turn, the newest utterance is
    held instead and submitted as soon as the superseded request resolves.

    Transitions::

        IDLE --start_listening--> LISTENING
        LISTENING --finalized(new text)--> AWAITING_REPLY
        AWAITING_REPLY --reply or error spoken--> IDLE
        ANY --reset--> (memo and reply cleared, confirmation spoken)
    """

    def __init__(
        self,
        config: RuntimeConfig,
        capture: SpeechCapture,
        output: SpeechOutputController,
        inference: InferenceClient,
        guard: Optional[UtteranceGuard] = None,
        telemetry: Optional[LatencyProbe] = None,
    ) -> None:
        self.config = config
        self.capture = capture
        self.output = output
        self.inference = inference
        self.guard = guard or UtteranceGuard()
        self.telemetry = telemetry or LatencyProbe()
        self.commands = CommandRegistry()
        self._register_commands(config.commands)
        self._last_reply = ""
        self._pending: Optional[ConversationTurn] = None
        self._deferred: Optional[str] = None
        self._task: Optional["asyncio.Task[ConversationTurn]"] = None
        self._listeners: List[InterfaceListener] = []
        self._detach = [
            capture.subscribe(self._on_capture_update),
            output.subscribe(self._on_output_change),
        ]

    # ----------------- observable state -----------------
    @property
    def state(self) -> OrchestratorState:
        if self.awaiting_reply:
            return OrchestratorState.AWAITING_REPLY
        if self.capture.listening:
            return OrchestratorState.LISTENING
        return OrchestratorState.IDLE

    @property
    def awaiting_reply(self) -> bool:
        if self._deferred is not None:
            return True
        return self._pending is not None and not self._pending.superseded

    @property
    def last_reply(self) -> str:
        return self._last_reply

    @property
    def pending_turn(self) -> Optional[ConversationTurn]:
        return self._pending

    def snapshot(self) -> InterfaceState:
        capture = self.capture.snapshot()
        return InterfaceState(
            state=self.state,
            listening=capture.listening,
            microphone_available=capture.microphone_available,
            transcript=capture.transcript,
            awaiting_reply=self.awaiting_reply,
            speaking=self.output.is_speaking,
            last_reply=self._last_reply,
        )

    def subscribe(self, listener: InterfaceListener) -> Callable[[], None]:
        """Register for interface snapshots; returns a callable that unsubscribes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ----------------- UI actions -----------------
    def start_listening(self) -> bool:
        """Open a fresh capture session. Returns False when the request is refused."""
        if self.capture.listening:
            logger.debug("start_listening ignored: already listening")
            return False
        self.capture.reset_transcript()
        self.guard.clear()
        self._last_reply = ""
        self._supersede_pending()
        if not self.capture.microphone_available:
            self._refuse_listening()
            return False
        self.output.cancel()
        try:
            self.capture.start_listening(CaptureOptions.from_config(self.config.capture))
        except MicrophoneUnavailable as exc:
            logger.warning("Capture refused to start: %s", exc)
            self._refuse_listening()
            return False
        self._notify()
        return True

    def stop_listening(self) -> None:
        """Ask capture to stop; any finalized utterance is handled by the capture path."""
        self.capture.stop_listening()

    def reset(self) -> None:
        """Forget the last utterance and reply, then confirm out loud."""
        self.capture.reset_transcript()
        self.guard.clear()
        self._last_reply = ""
        self._supersede_pending()
        self.output.speak(self.config.speech.reset_phrase)
        self._notify()

    def can_speak_text(self, text: str) -> bool:
        return bool(text and text.strip()) and not self.output.is_speaking

    def speak_text(self, text: str) -> bool:
        """Speak typed text directly, bypassing the guard and the backend."""
        if not self.can_speak_text(text):
            return False
        return self.output.speak(text)

    # ----------------- turn handling -----------------
    def submit(self, text: str) -> "Optional[asyncio.Task[ConversationTurn]]":
        """Handle a finalized utterance; returns the turn task when one was started."""
        candidate = (text or "").strip()
        if not candidate:
            return None
        if self._pending is not None:
            if self._pending.superseded:
                logger.info("Holding finalized utterance until the superseded turn resolves: %r", candidate)
                self._deferred = candidate
                self._notify()
            else:
                logger.info("Dropping finalized utterance while awaiting reply: %r", candidate)
            return None
        loop = asyncio.get_running_loop()
        if not self.guard.accept(candidate):
            return None
        if self.commands.dispatch(candidate):
            logger.info("Voice command handled: %r", candidate)
            return None

        turn = ConversationTurn(input=Utterance(candidate))
        self._pending = turn
        self._task = loop.create_task(self._run_turn(turn))
        self._notify()
        return self._task

    async def wait_idle(self) -> Optional[ConversationTurn]:
        """Wait until no turn is in flight; returns the last turn resolved."""
        turn = None
        task = self._task
        while task is not None:
            turn = await task
            if task is self._task:
                break
            task = self._task
        return turn

    async def _run_turn(self, turn: ConversationTurn) -> ConversationTurn:
        logger.info("Turn started: %r", turn.input.text)
        try:
            with self.telemetry.track("inference"):
                result: InferenceResult = await self.inference.request(turn.input)
        except Exception as exc:
            logger.exception("Unexpected failure while requesting a reply")
            result = TransportError(str(exc) or exc.__class__.__name__)
        finally:
            if self._pending is turn:
                self._pending = None
        turn.latency_ms = self.telemetry.last("inference")
        self._resolve(turn, result)
        deferred, self._deferred = self._deferred, None
        if deferred is not None:
            self.submit(deferred)
        self._notify()
        return turn

    def _resolve(self, turn: ConversationTurn, result: InferenceResult) -> None:
        if isinstance(result, Success):
            turn.succeed(result.reply)
        else:
            turn.fail(result.describe())
        logger.info(
            "Turn finished: status=%s latency_ms=%s",
            turn.status.value,
            f"{turn.latency_ms:.1f}" if turn.latency_ms is not None else "n/a",
        )

        if turn.superseded and self.config.discard_superseded_replies:
            logger.info("Discarding reply for superseded turn: %r", turn.input.text)
            return

        if turn.status is TurnStatus.SUCCEEDED:
            self._last_reply = turn.reply or ""
            self.output.speak(self._last_reply)
            return

        logger.warning("Error fetching AI response: %s", turn.error_detail)
        self._last_reply = ""
        self.output.speak(f"{self.config.speech.error_prefix}{turn.error_detail}")

    def _supersede_pending(self) -> None:
        self._deferred = None
        if self._pending is not None and not self._pending.superseded:
            self._pending.superseded = True
            logger.info("Superseding in-flight turn: %r", self._pending.input.text)

    def _refuse_listening(self) -> None:
        self.output.speak(self.config.speech.microphone_unavailable_phrase)
        self._notify()

    # ----------------- wiring -----------------
    def _register_commands(self, commands: Dict[str, str]) -> None:
        actions: Dict[str, CommandHandler] = {
            "stop_listening": self.stop_listening,
            "reset": self.reset,
        }
        for phrase, action in commands.items():
            handler = actions.get(action)
            if handler is None:
                raise ValueError(f"Unknown voice command action {action!r} for phrase {phrase!r}")
            self.commands.register(phrase, handler)

    def _on_capture_update(self, snapshot: CaptureSnapshot) -> None:
        if not snapshot.listening and snapshot.final_transcript:
            self.submit(snapshot.final_transcript)
        self._notify()

    def _on_output_change(self, state: OutputState) -> None:
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def close(self) -> None:
        """Detach from capture and output events."""
        for detach in self._detach:
            detach()
        self._detach = []
