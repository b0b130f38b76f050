"""Default configuration definitions for the voice assistant."""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class CaptureConfig:
    """Speech capture session defaults."""

    language: str = "en-US"
    continuous: bool = False
    phrase_time_limit_s: float = 15.0


@dataclass
class SpeechConfig:
    """Speech output defaults and the fixed phrases the assistant speaks."""

    enable_tts: bool = True
    voice: Optional[str] = None
    rate: int = 175
    reset_phrase: str = "Transcript reset"
    microphone_unavailable_phrase: str = "Cannot start listening, microphone is not available."
    error_prefix: str = "Sorry, I encountered an error: "


@dataclass
class InferenceConfig:
    """Where the orchestrator sends finalized utterances."""

    endpoint_url: str = "http://127.0.0.1:8080/api/ai-response"
    timeout_s: float = 30.0


@dataclass
class BackendConfig:
    """Inference backend service and model provider settings."""

    route: str = "/api/ai-response"
    model: str = "gpt-3.5-turbo"
    max_tokens: int = 100
    temperature: float = 0.7
    location: str = "Dayton, Ohio, United States"
    timezone: str = "America/New_York"
    api_key_env: str = "OPENAI_API_KEY"
    base_url: Optional[str] = None


@dataclass
class RuntimeConfig:
    """Base configuration for the orchestrator and the backend service."""

    capture: CaptureConfig = field(default_factory=CaptureConfig)
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    commands: Dict[str, str] = field(
        default_factory=lambda: {
            "stop listening": "stop_listening",
            "reset transcript": "reset",
        }
    )
    discard_superseded_replies: bool = True
