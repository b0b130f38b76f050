"""Model provider gateway used by the inference backend."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Callable, Mapping, Optional
from zoneinfo import ZoneInfo

from openai import APIStatusError, AsyncOpenAI, OpenAIError

from voice_assistant.config.defaults import BackendConfig
from voice_assistant.errors import CompletionError, ProviderError

logger = logging.getLogger(__name__)

PERSONA = (
    "You are a helpful voice assistant embedded in a web application. "
    "Respond concisely and conversationally."
)


class CompletionGateway:
    """Forwards one transcript to a chat-completion model and returns its reply."""

    def __init__(
        self,
        config: BackendConfig,
        client: Optional[AsyncOpenAI] = None,
        clock: Optional[Callable[[], datetime]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.config = config
        self._clock = clock or (lambda: datetime.now(ZoneInfo(config.timezone)))
        if client is None:
            env = os.environ if environ is None else environ
            api_key = env.get(config.api_key_env)
            if api_key:
                client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)
        self._client = client

    @property
    def configured(self) -> bool:
        """True when a provider client is available (API key present or client injected)."""
        return self._client is not None

    def build_system_context(self, now: Optional[datetime] = None) -> str:
        """Persona plus the current location, date, and time."""
        moment = (now or self._clock()).astimezone(ZoneInfo(self.config.timezone))
        today = f"{moment:%A, %B} {moment.day}, {moment.year}"
        time_of_day = f"{moment:%I:%M %p}"
        return (
            f"{PERSONA} Current location is {self.config.location}. "
            f"Today is {today}. The time is {time_of_day}."
        )

    async def complete(self, transcript: str) -> str:
        """Return the trimmed text of the first choice; raise CompletionError otherwise."""
        if self._client is None:
            raise CompletionError("OpenAI API key not configured.")
        system_context = self.build_system_context()
        logger.info("Sending to OpenAI. Context: %s. Transcript: %s", system_context, transcript)
        try:
            completion = await self._client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": system_context},
                    {"role": "user", "content": transcript},
                ],
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )
        except APIStatusError as exc:
            logger.error("OpenAI Error Status: %s", exc.status_code)
            raise ProviderError(f"OpenAI API Error: {_provider_message(exc)}", exc.status_code) from exc
        except OpenAIError as exc:
            logger.error("Error calling OpenAI API: %s", exc)
            raise CompletionError(str(exc) or "Failed to get response from AI.") from exc

        text = ""
        if completion.choices:
            content = completion.choices[0].message.content
            text = (content or "").strip()
        if not text:
            raise CompletionError("Received an empty response from OpenAI.")
        logger.info("Received from OpenAI: %s", text)
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()


def _provider_message(exc: APIStatusError) -> str:
    """The provider's own ``error.message``, falling back to the SDK summary."""
    body = exc.body
    if isinstance(body, Mapping):
        if isinstance(body.get("error"), Mapping):
            body = body["error"]
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return exc.message
