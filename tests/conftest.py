from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import httpx
import pytest

from voice_assistant.config.defaults import RuntimeConfig
from voice_assistant.runtime.inference import InferenceClient
from voice_assistant.runtime.voice import (
    SpeechCapture,
    SpeechEngine,
    SpeechOutputController,
    VoiceTurnOrchestrator,
)


@dataclass
class FakeBackend:
    """Scriptable stand-in for the inference backend."""

    status_code: int = 200
    body: Any = field(default_factory=lambda: {"response": "ok"})
    gate: Optional[asyncio.Event] = None
    transcripts: List[str] = field(default_factory=list)

    def reply(self, text: str) -> None:
        self.status_code = 200
        self.body = {"response": text}

    def fail(self, status_code: int, error: str) -> None:
        self.status_code = status_code
        self.body = {"error": error}

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.transcripts.append(json.loads(request.content)["transcript"])
        if self.gate is not None:
            await self.gate.wait()
        return httpx.Response(self.status_code, json=self.body)


@dataclass
class Harness:
    config: RuntimeConfig
    backend: FakeBackend
    capture: SpeechCapture
    engine: SpeechEngine
    output: SpeechOutputController
    orchestrator: VoiceTurnOrchestrator

    def spoken(self) -> tuple:
        return self.engine.get_spoken_log()

    async def say(self, text: str) -> None:
        """Run one capture session that finalizes ``text`` and wait for the turn."""
        self.orchestrator.start_listening()
        self.capture.finalize(text)
        await self.orchestrator.wait_idle()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_harness(backend: FakeBackend) -> Callable[..., Harness]:
    def factory(config: Optional[RuntimeConfig] = None, microphone_available: bool = True) -> Harness:
        runtime_config = config or RuntimeConfig()
        capture = SpeechCapture(runtime_config.capture, microphone_available=microphone_available)
        engine = SpeechEngine(runtime_config.speech)
        output = SpeechOutputController(engine, runtime_config.speech)
        inference = InferenceClient(
            runtime_config.inference,
            client=httpx.AsyncClient(transport=httpx.MockTransport(backend)),
        )
        orchestrator = VoiceTurnOrchestrator(runtime_config, capture, output, inference)
        return Harness(runtime_config, backend, capture, engine, output, orchestrator)

    return factory


@pytest.fixture
def harness(make_harness: Callable[..., Harness]) -> Harness:
    return make_harness()
