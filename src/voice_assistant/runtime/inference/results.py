"""Tagged outcomes of a single inference request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Success:
    """Backend answered 200 with a usable reply."""

    reply: str
    ok = True

    def describe(self) -> str:
        return self.reply


@dataclass(frozen=True)
class ServerError:
    """Backend answered with a non-success status."""

    status_code: int
    message: str
    ok = False

    def describe(self) -> str:
        return f"Function Error ({self.status_code}): {self.message}"


@dataclass(frozen=True)
class MalformedResponse:
    """Backend answered 200 without a usable ``response`` field."""

    detail: str = "Received success status but no valid response field from function."
    ok = False

    def describe(self) -> str:
        return self.detail


@dataclass(frozen=True)
class TransportError:
    """The request never completed (connection failure, timeout)."""

    message: str
    ok = False

    def describe(self) -> str:
        return self.message


InferenceResult = Union[Success, ServerError, MalformedResponse, TransportError]
