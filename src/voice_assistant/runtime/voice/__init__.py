"""Voice interface: speech capture, speech output, and turn orchestration."""

from .capture import (
    CaptureOptions,
    CaptureSnapshot,
    CaptureState,
    SpeechCapture,
)
from .orchestrator import (
    InterfaceState,
    OrchestratorState,
    VoiceTurnOrchestrator,
)
from .output import (
    OutputState,
    SpeechEngine,
    SpeechOutputController,
)

__all__ = [
    "CaptureOptions",
    "CaptureSnapshot",
    "CaptureState",
    "InterfaceState",
    "OrchestratorState",
    "OutputState",
    "SpeechCapture",
    "SpeechEngine",
    "SpeechOutputController",
    "VoiceTurnOrchestrator",
]
