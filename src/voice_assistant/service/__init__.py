"""Inference backend service."""

from .completions import CompletionGateway

__all__ = ["CompletionGateway"]
