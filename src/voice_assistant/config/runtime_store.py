"""Helpers to persist, restore, and override runtime configuration."""

from __future__ import annotations

import json
import logging
import os
from copy import deepcopy
from dataclasses import asdict, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, TypeVar

from .defaults import RuntimeConfig

T = TypeVar("T")

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(os.environ.get("VOICE_ASSISTANT_CONFIG", "var/voice_assistant.json"))

_SECTIONS = frozenset({"capture", "speech", "inference", "backend"})

# environment variable -> (section, field)
_ENV_OVERRIDES = {
    "VOICE_ASSISTANT_INFERENCE_URL": ("inference", "endpoint_url"),
    "VOICE_ASSISTANT_MODEL": ("backend", "model"),
    "VOICE_ASSISTANT_LANGUAGE": ("capture", "language"),
    "VOICE_ASSISTANT_TIMEZONE": ("backend", "timezone"),
}


def runtime_config_to_dict(config: RuntimeConfig) -> Dict[str, Any]:
    """Convert a RuntimeConfig to a JSON-ready dict."""
    return asdict(config)


def runtime_config_from_dict(data: Dict[str, Any], base: Optional[RuntimeConfig] = None) -> RuntimeConfig:
    """Construct a RuntimeConfig from a dict, merging with base defaults."""
    base_config = base or RuntimeConfig()
    return _merge(base_config, data)


def save_runtime_config(config: RuntimeConfig, path: Optional[Path] = None) -> None:
    """Persist configuration to disk as JSON."""
    target = path or CONFIG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = runtime_config_to_dict(config)
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    logger.info("event=config_saved path=%s", target)


def load_runtime_config(path: Optional[Path] = None, base: Optional[RuntimeConfig] = None) -> RuntimeConfig:
    """Load configuration from disk; return defaults when file is absent."""
    source = path or CONFIG_PATH
    base_config = base or RuntimeConfig()
    if not source.exists():
        logger.debug("event=config_load_defaults path=%s", source)
        return base_config
    data = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("runtime configuration file must contain a JSON object")
    logger.info("event=config_loaded path=%s", source)
    return runtime_config_from_dict(data, base_config)


def apply_env_overrides(config: RuntimeConfig, environ: Optional[Mapping[str, str]] = None) -> RuntimeConfig:
    """Return a copy of config with VOICE_ASSISTANT_* environment overrides applied."""
    env = os.environ if environ is None else environ
    updated = deepcopy(config)
    for variable, (section, name) in _ENV_OVERRIDES.items():
        value = env.get(variable)
        if not value:
            continue
        setattr(getattr(updated, section), name, value)
        logger.debug("event=config_env_override variable=%s", variable)
    return updated


def _merge(base: T, data: Mapping[str, Any]) -> T:
    """Copy of ``base`` with the keys of ``data`` applied; sections merge recursively."""
    known = {field.name for field in fields(base)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown fields for {type(base).__name__}: {', '.join(unknown)}")
    changes: Dict[str, Any] = {}
    for name, value in data.items():
        if name in _SECTIONS:
            if value is None:
                continue
            if not isinstance(value, dict):
                raise ValueError(f"Section {name} must be a JSON object")
            value = _merge(getattr(base, name), value)
        changes[name] = value
    return replace(deepcopy(base), **changes)
