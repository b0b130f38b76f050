import pytest

from voice_assistant.runtime.commands import CommandRegistry, normalize_phrase


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Stop listening.", "stop listening"),
        ("  RESET   transcript!! ", "reset transcript"),
        ("what time is it?", "what time is it"),
        ("", ""),
    ],
)
def test_normalize_phrase(raw: str, expected: str) -> None:
    assert normalize_phrase(raw) == expected


def test_dispatch_runs_matching_handler() -> None:
    calls = []
    registry = CommandRegistry()
    registry.register("Reset transcript", lambda: calls.append("reset"))

    assert registry.dispatch("reset transcript.") is True
    assert calls == ["reset"]


def test_dispatch_ignores_partial_matches() -> None:
    calls = []
    registry = CommandRegistry()
    registry.register("stop listening", lambda: calls.append("stop"))

    assert registry.dispatch("please stop listening to me") is False
    assert registry.match("stop") is None
    assert calls == []


def test_register_replaces_existing_handler() -> None:
    registry = CommandRegistry()
    registry.register("stop listening", lambda: "old")
    registry.register("Stop Listening", lambda: "new")

    assert registry.phrases() == ("stop listening",)
    assert registry.match("stop listening")() == "new"


def test_empty_phrase_is_rejected() -> None:
    registry = CommandRegistry()

    with pytest.raises(ValueError):
        registry.register(" ... ", lambda: None)
