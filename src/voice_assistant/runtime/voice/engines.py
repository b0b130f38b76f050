"""Adapters for a real microphone (SpeechRecognition) and a real synthesizer (pyttsx3).

Both libraries block, so the adapters do their work on background threads
and hand every event back to the asyncio loop that owns the orchestrator.
"""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from typing import Any, Callable, Optional, Tuple

import pyttsx3
import speech_recognition as sr

from voice_assistant.config.defaults import CaptureConfig, SpeechConfig
from voice_assistant.errors import SynthesisError

from .capture import CaptureOptions, SpeechCapture
from .output import SpeechCallback, SpeechEngine, SpeechErrorCallback

logger = logging.getLogger(__name__)

_Job = Tuple[int, str, SpeechCallback, SpeechCallback, SpeechErrorCallback]


class Pyttsx3SpeechEngine(SpeechEngine):
    """Speaks through the platform voice via pyttsx3 on a dedicated worker thread."""

    def __init__(self, config: Optional[SpeechConfig] = None) -> None:
        super().__init__(config)
        self._jobs: "queue.Queue[Optional[_Job]]" = queue.Queue()
        self._generation = 0
        self._lock = threading.Lock()
        self._busy = threading.Event()
        self._tts: Any = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._worker: Optional[threading.Thread] = None
        self._init_error: Optional[Exception] = None

    @property
    def speaking(self) -> bool:
        return self._busy.is_set() or not self._jobs.empty()

    def speak(
        self,
        text: str,
        on_start: SpeechCallback,
        on_end: SpeechCallback,
        on_error: SpeechErrorCallback,
    ) -> None:
        if self._init_error is not None:
            raise SynthesisError(f"speech engine failed to start: {self._init_error}")
        self._spoken_log.append(text)
        self._loop = asyncio.get_running_loop()
        with self._lock:
            generation = self._generation
        self._jobs.put((generation, text, on_start, on_end, on_error))
        self._ensure_worker()

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            tts = self._tts
        if tts is not None and self._busy.is_set():
            try:
                tts.stop()
            except RuntimeError as exc:
                logger.debug("pyttsx3 stop failed: %s", exc)

    def close(self) -> None:
        """Stop the worker thread."""
        self.cancel()
        if self._worker is not None and self._worker.is_alive():
            self._jobs.put(None)
            self._worker.join(timeout=2.0)
        self._worker = None

    def _ensure_worker(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self._run, name="voice-assistant-tts", daemon=True)
        self._worker.start()

    def _run(self) -> None:
        try:
            tts = pyttsx3.init()
            tts.setProperty("rate", self.config.rate)
            if self.config.voice:
                tts.setProperty("voice", self.config.voice)
        except Exception as exc:
            logger.error("pyttsx3 could not start: %s", exc)
            self._init_error = exc
            self._fail_queued(str(exc))
            return
        with self._lock:
            self._tts = tts
        while True:
            job = self._jobs.get()
            if job is None:
                break
            generation, text, on_start, on_end, on_error = job
            with self._lock:
                if generation != self._generation:
                    continue
                self._busy.set()
            self._post(on_start)
            try:
                tts.say(text)
                tts.runAndWait()
            except Exception as exc:
                logger.error("pyttsx3 speak failed: %s", exc)
                self._post(on_error, str(exc))
            else:
                self._post(on_end)
            finally:
                self._busy.clear()

    def _fail_queued(self, detail: str) -> None:
        while True:
            try:
                job = self._jobs.get_nowait()
            except queue.Empty:
                return
            if job is not None:
                self._post(job[4], detail)

    def _post(self, callback: Callable[..., None], *args: Any) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, *args)


class MicrophoneSpeechCapture(SpeechCapture):
    """Listens on the default microphone and transcribes with Google Web Speech."""

    def __init__(
        self,
        config: Optional[CaptureConfig] = None,
        recognizer: Optional[sr.Recognizer] = None,
    ) -> None:
        super().__init__(config, microphone_available=_microphone_present())
        self._recognizer = recognizer or sr.Recognizer()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stop: Optional[threading.Event] = None
        self._worker: Optional[threading.Thread] = None

    def _begin_session(self) -> None:
        self._loop = asyncio.get_running_loop()
        microphone = sr.Microphone()
        stop = threading.Event()
        self._stop = stop
        self._worker = threading.Thread(
            target=self._listen,
            args=(microphone, stop, self.options),
            name="voice-assistant-capture",
            daemon=True,
        )
        self._worker.start()

    def _end_session(self) -> None:
        stop, self._stop = self._stop, None
        if stop is not None:
            stop.set()

    def _listen(self, microphone: sr.Microphone, stop: threading.Event, options: CaptureOptions) -> None:
        # Runs on the capture thread until the session's stop event is set.
        try:
            with microphone as source:
                while not stop.is_set():
                    try:
                        audio = self._recognizer.listen(
                            source,
                            timeout=1.0,
                            phrase_time_limit=self.config.phrase_time_limit_s,
                        )
                    except sr.WaitTimeoutError:
                        continue
                    self._on_audio(audio, stop, options)
                    if not options.continuous:
                        break
        except Exception as exc:
            logger.error("Microphone capture failed: %s", exc)
            self._post(self._end_stale_session, stop)

    def _on_audio(self, audio: sr.AudioData, stop: threading.Event, options: CaptureOptions) -> None:
        try:
            text = self._recognizer.recognize_google(audio, language=options.language)
        except sr.UnknownValueError:
            logger.info("Could not understand speech")
            if not options.continuous:
                self._post(self._end_stale_session, stop)
            return
        except sr.RequestError as exc:
            logger.error("Speech recognition error: %s", exc)
            self._post(self._end_stale_session, stop)
            return
        self._post(self._deliver, stop, text)

    def _deliver(self, stop: threading.Event, text: str) -> None:
        if stop is self._stop:
            self.finalize(text)

    def _end_stale_session(self, stop: threading.Event) -> None:
        if stop is self._stop:
            self.stop_listening()

    def _post(self, callback: Callable[..., None], *args: Any) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, *args)


def _microphone_present() -> bool:
    try:
        return bool(sr.Microphone.list_microphone_names())
    except (AttributeError, OSError) as exc:
        logger.warning("No microphone available: %s", exc)
        return False
