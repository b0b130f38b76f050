"""Voice assistant: capture an utterance, ask a language model, speak the reply."""

__version__ = "0.1.0"
