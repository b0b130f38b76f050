"""Utterance and conversation turn records."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TurnStatus(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class Utterance:
    """One finalized segment of recognized speech."""

    text: str
    finalized_at: float = field(default_factory=time.time)


@dataclass
class ConversationTurn:
    """Tracks a single utterance through inference until its reply is spoken."""

    input: Utterance
    status: TurnStatus = TurnStatus.PENDING
    reply: Optional[str] = None
    error_detail: Optional[str] = None
    superseded: bool = False
    latency_ms: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self.status is TurnStatus.PENDING

    def succeed(self, reply: str) -> None:
        self.status = TurnStatus.SUCCEEDED
        self.reply = reply
        self.error_detail = None

    def fail(self, detail: str) -> None:
        self.status = TurnStatus.FAILED
        self.reply = None
        self.error_detail = detail
