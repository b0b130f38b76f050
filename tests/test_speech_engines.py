from __future__ import annotations

import asyncio
from typing import List

import pytest

pytest.importorskip("pyttsx3")
pytest.importorskip("speech_recognition")

from voice_assistant.errors import MicrophoneUnavailable, SynthesisError  # noqa: E402
from voice_assistant.runtime.voice import engines  # noqa: E402


class FakeMicrophone:
    fail_on_open = False

    def __enter__(self):
        if self.fail_on_open:
            raise OSError("No Default Input Device Available")
        return self

    def __exit__(self, *exc_info) -> None:
        return None


class FakeRecognizer:
    def __init__(self, text: str) -> None:
        self.text = text

    def listen(self, source, timeout=None, phrase_time_limit=None) -> str:
        return "audio"

    def recognize_google(self, audio, language=None) -> str:
        return self.text


@pytest.fixture
def microphone(monkeypatch: pytest.MonkeyPatch) -> type:
    monkeypatch.setattr(engines, "_microphone_present", lambda: True)
    monkeypatch.setattr(engines.sr, "Microphone", FakeMicrophone)
    monkeypatch.setattr(FakeMicrophone, "fail_on_open", False)
    return FakeMicrophone


async def _drain(thread) -> None:
    thread.join(timeout=2.0)
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_recognized_speech_is_finalized(microphone) -> None:
    capture = engines.MicrophoneSpeechCapture(recognizer=FakeRecognizer("what time is it"))

    capture.start_listening()
    await _drain(capture._worker)

    assert capture.listening is False
    assert capture.final_transcript == "what time is it"


@pytest.mark.asyncio
async def test_device_failure_on_capture_thread_stops_listening(microphone) -> None:
    microphone.fail_on_open = True
    capture = engines.MicrophoneSpeechCapture(recognizer=FakeRecognizer("ignored"))

    capture.start_listening()
    assert capture.listening is True
    await _drain(capture._worker)

    assert capture.listening is False
    assert capture.final_transcript == ""


@pytest.mark.asyncio
async def test_missing_audio_backend_refuses_to_listen(monkeypatch: pytest.MonkeyPatch) -> None:
    def no_pyaudio():
        raise AttributeError("Could not find PyAudio; check installation")

    monkeypatch.setattr(engines, "_microphone_present", lambda: True)
    monkeypatch.setattr(engines.sr, "Microphone", no_pyaudio)
    capture = engines.MicrophoneSpeechCapture(recognizer=FakeRecognizer("ignored"))

    with pytest.raises(MicrophoneUnavailable):
        capture.start_listening()

    assert capture.listening is False


@pytest.mark.asyncio
async def test_synthesizer_start_failure_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_init(*args, **kwargs):
        raise RuntimeError("no audio driver")

    monkeypatch.setattr(engines.pyttsx3, "init", broken_init)
    engine = engines.Pyttsx3SpeechEngine()
    errors: List[str] = []

    engine.speak("hello", lambda: None, lambda: None, errors.append)
    await _drain(engine._worker)

    assert errors == ["no audio driver"]
    with pytest.raises(SynthesisError):
        engine.speak("again", lambda: None, lambda: None, errors.append)
