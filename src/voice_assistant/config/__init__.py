"""Configuration defaults and persistence helpers."""

from .defaults import (
    BackendConfig,
    CaptureConfig,
    InferenceConfig,
    RuntimeConfig,
    SpeechConfig,
)
from .runtime_store import (
    apply_env_overrides,
    load_runtime_config,
    runtime_config_from_dict,
    runtime_config_to_dict,
    save_runtime_config,
)

__all__ = [
    "BackendConfig",
    "CaptureConfig",
    "InferenceConfig",
    "RuntimeConfig",
    "SpeechConfig",
    "apply_env_overrides",
    "load_runtime_config",
    "runtime_config_from_dict",
    "runtime_config_to_dict",
    "save_runtime_config",
]
