from __future__ import annotations

from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from voice_assistant.config import runtime_store
from voice_assistant.config.defaults import RuntimeConfig
from voice_assistant.errors import CompletionError, ProviderError
from voice_assistant.service import inference_api
from voice_assistant.service.inference_api import INVALID_BODY, KEY_MISSING, create_app

ROUTE = "/api/ai-response"


class FakeGateway:
    def __init__(self, reply: str = "It is 3:45 PM.", error: Optional[Exception] = None, configured: bool = True):
        self.reply = reply
        self.error = error
        self.configured = configured
        self.transcripts: List[str] = []

    async def complete(self, transcript: str) -> str:
        self.transcripts.append(transcript)
        if self.error is not None:
            raise self.error
        return self.reply


def make_client(gateway: FakeGateway) -> TestClient:
    return TestClient(create_app(RuntimeConfig(), gateway=gateway))


def test_transcript_is_answered() -> None:
    gateway = FakeGateway()
    client = make_client(gateway)

    response = client.post(ROUTE, json={"transcript": "what time is it"})

    assert response.status_code == 200
    assert response.json() == {"response": "It is 3:45 PM."}
    assert gateway.transcripts == ["what time is it"]


@pytest.mark.parametrize(
    "payload",
    [{}, {"transcript": ""}, {"transcript": "   "}, {"transcript": 42}, {"text": "hello"}],
)
def test_invalid_body_is_rejected(payload) -> None:
    gateway = FakeGateway()
    client = make_client(gateway)

    response = client.post(ROUTE, json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == INVALID_BODY
    assert body["details"]
    assert gateway.transcripts == []


def test_non_json_body_is_rejected() -> None:
    client = make_client(FakeGateway())

    response = client.post(ROUTE, content=b"not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json()["error"] == INVALID_BODY


def test_wrong_method_is_rejected() -> None:
    client = make_client(FakeGateway())

    response = client.get(ROUTE)

    assert response.status_code == 405
    assert response.json() == {"error": "Please use the POST method."}
    assert "POST" in response.headers["allow"]


def test_missing_api_key_is_reported() -> None:
    gateway = FakeGateway(configured=False)
    client = make_client(gateway)

    response = client.post(ROUTE, json={"transcript": "hello"})

    assert response.status_code == 500
    assert response.json() == {"error": KEY_MISSING}
    assert gateway.transcripts == []


@pytest.mark.parametrize(
    "error",
    [
        ProviderError("OpenAI API Error: model unavailable", 503),
        CompletionError("Received an empty response from OpenAI."),
    ],
)
def test_provider_failure_is_reported(error: CompletionError) -> None:
    client = make_client(FakeGateway(error=error))

    response = client.post(ROUTE, json={"transcript": "hello"})

    assert response.status_code == 500
    assert response.json() == {"error": str(error)}


def test_route_follows_config() -> None:
    config = RuntimeConfig()
    config.backend.route = "/v1/reply"
    client = TestClient(create_app(config, gateway=FakeGateway()))

    assert client.post("/v1/reply", json={"transcript": "hi"}).status_code == 200
    assert client.post(ROUTE, json={"transcript": "hi"}).status_code == 404


def test_health() -> None:
    client = make_client(FakeGateway())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_importing_the_module_builds_no_app() -> None:
    assert not hasattr(inference_api, "app")


def test_default_app_reads_config_file_and_environment(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "voice_assistant.json"
    config_path.write_text('{"backend": {"route": "/v2/reply"}}', encoding="utf-8")
    monkeypatch.setattr(inference_api, "load_dotenv", lambda: False)
    monkeypatch.setattr(runtime_store, "CONFIG_PATH", config_path)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    client = TestClient(create_app())

    response = client.post("/v2/reply", json={"transcript": "hello"})
    assert response.status_code == 500
    assert response.json() == {"error": KEY_MISSING}
