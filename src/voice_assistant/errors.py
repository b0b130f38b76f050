"""Exception types shared across the voice assistant."""


class VoiceAssistantError(Exception):
    """Base class for voice assistant failures."""


class MicrophoneUnavailable(VoiceAssistantError):
    """Raised when speech capture cannot start because no microphone is usable."""


class SynthesisError(VoiceAssistantError):
    """Raised by speech output engines that fail to start an utterance."""


class CompletionError(VoiceAssistantError):
    """Raised when the model provider produces no usable completion."""


class ProviderError(CompletionError):
    """Model provider answered with an API error status."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code
