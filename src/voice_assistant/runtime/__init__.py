"""Runtime components of the voice assistant."""

from .guard import UtteranceGuard
from .turns import ConversationTurn, TurnStatus, Utterance

__all__ = ["ConversationTurn", "TurnStatus", "Utterance", "UtteranceGuard"]
