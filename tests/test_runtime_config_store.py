from __future__ import annotations

import json
from pathlib import Path

import pytest

from voice_assistant.config.defaults import RuntimeConfig
from voice_assistant.config.runtime_store import (
    apply_env_overrides,
    load_runtime_config,
    runtime_config_from_dict,
    runtime_config_to_dict,
    save_runtime_config,
)


def test_round_trip(tmp_path: Path) -> None:
    config = RuntimeConfig()
    config.capture.language = "en-GB"
    config.speech.enable_tts = False
    config.inference.timeout_s = 5.0
    config.commands["clear everything"] = "reset"
    target = tmp_path / "voice_assistant.json"

    save_runtime_config(config, target)
    loaded = load_runtime_config(target)

    assert loaded.capture.language == "en-GB"
    assert loaded.speech.enable_tts is False
    assert loaded.inference.timeout_s == 5.0
    assert loaded.commands["clear everything"] == "reset"


def test_missing_file_returns_base(tmp_path: Path) -> None:
    base = RuntimeConfig()
    base.backend.model = "gpt-4o-mini"
    path = tmp_path / "missing.json"

    loaded = load_runtime_config(path, base)

    assert loaded.backend.model == "gpt-4o-mini"


def test_dict_conversion_handles_partials() -> None:
    base = RuntimeConfig()
    payload = {
        "discard_superseded_replies": False,
        "backend": {"max_tokens": 250, "location": "Columbus, Ohio, United States"},
        "inference": {"endpoint_url": "http://backend:9000/api/ai-response"},
    }

    merged = runtime_config_from_dict(payload, base)
    assert merged.discard_superseded_replies is False
    assert merged.backend.max_tokens == 250
    assert merged.backend.location == "Columbus, Ohio, United States"
    assert merged.backend.model == base.backend.model
    assert merged.inference.endpoint_url == "http://backend:9000/api/ai-response"
    assert merged.speech.reset_phrase == base.speech.reset_phrase


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown fields for SpeechConfig: pitch"):
        runtime_config_from_dict({"speech": {"pitch": 3}})


def test_non_object_file_is_rejected(tmp_path: Path) -> None:
    target = tmp_path / "config.json"
    target.write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(ValueError):
        load_runtime_config(target)


def test_save_writes_json(tmp_path: Path) -> None:
    config = RuntimeConfig()
    target = tmp_path / "nested" / "config.json"

    save_runtime_config(config, target)

    parsed = json.loads(target.read_text())
    assert isinstance(parsed, dict)
    assert parsed["backend"]["timezone"] == config.backend.timezone
    assert parsed["commands"] == {"stop listening": "stop_listening", "reset transcript": "reset"}


def test_env_overrides_apply_to_a_copy() -> None:
    config = RuntimeConfig()
    environ = {
        "VOICE_ASSISTANT_INFERENCE_URL": "http://10.0.0.5:8080/api/ai-response",
        "VOICE_ASSISTANT_MODEL": "gpt-4o-mini",
        "VOICE_ASSISTANT_LANGUAGE": "",
    }

    updated = apply_env_overrides(config, environ)

    assert updated.inference.endpoint_url == "http://10.0.0.5:8080/api/ai-response"
    assert updated.backend.model == "gpt-4o-mini"
    assert updated.capture.language == "en-US"
    assert config.backend.model == "gpt-3.5-turbo"


def test_to_dict_does_not_alias_commands() -> None:
    config = RuntimeConfig()

    data = runtime_config_to_dict(config)
    data["commands"]["shout"] = "reset"

    assert "shout" not in config.commands


def test_merge_leaves_base_untouched() -> None:
    base = RuntimeConfig()

    merged = runtime_config_from_dict({"speech": {"rate": 140}, "capture": None}, base)
    merged.commands["louder"] = "reset"

    assert merged.speech.rate == 140
    assert merged.capture == base.capture
    assert base.speech.rate == 175
    assert "louder" not in base.commands


def test_non_object_section_is_rejected() -> None:
    with pytest.raises(ValueError, match="Section speech must be a JSON object"):
        runtime_config_from_dict({"speech": "loud"})
