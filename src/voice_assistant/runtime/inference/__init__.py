"""Client side of the inference backend contract."""

from .client import InferenceClient
from .results import (
    InferenceResult,
    MalformedResponse,
    ServerError,
    Success,
    TransportError,
)

__all__ = [
    "InferenceClient",
    "InferenceResult",
    "MalformedResponse",
    "ServerError",
    "Success",
    "TransportError",
]
