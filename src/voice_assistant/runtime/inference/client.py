"""HTTP client for the remote inference backend."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from voice_assistant.config.defaults import InferenceConfig
from voice_assistant.runtime.turns import Utterance

from .results import InferenceResult, MalformedResponse, ServerError, Success, TransportError

logger = logging.getLogger(__name__)


class InferenceClient:
    """Sends one finalized utterance to the backend and classifies the outcome.

    Exactly one attempt is made per call; retries are left to the speaker's
    next utterance. Only one request may be outstanding at a time.
    """

    def __init__(self, config: InferenceConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout_s)
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def request(self, utterance: Utterance) -> InferenceResult:
        """POST the utterance text and map the response to an InferenceResult."""
        if self._in_flight:
            raise RuntimeError("an inference request is already in flight")
        self._in_flight = True
        try:
            return await self._send(utterance.text)
        finally:
            self._in_flight = False

    async def _send(self, text: str) -> InferenceResult:
        logger.info("Sending to AI function: %r", text)
        try:
            response = await self._client.post(
                self.config.endpoint_url,
                json={"transcript": text},
                timeout=self.config.timeout_s,
            )
        except httpx.TimeoutException:
            logger.warning("Inference request timed out after %.1fs", self.config.timeout_s)
            return TransportError(f"Request timed out after {self.config.timeout_s:g} seconds.")
        except httpx.HTTPError as exc:
            logger.warning("Inference request failed: %s", exc)
            return TransportError(str(exc) or exc.__class__.__name__)

        if response.status_code != httpx.codes.OK:
            message = _error_message(response)
            logger.warning("Inference backend returned %s: %s", response.status_code, message)
            return ServerError(response.status_code, message)

        try:
            payload: Any = response.json()
        except ValueError:
            return MalformedResponse("Received success status but the body was not valid JSON.")
        reply = payload.get("response") if isinstance(payload, dict) else None
        if not isinstance(reply, str) or not reply.strip():
            return MalformedResponse()
        logger.info("AI Response received: %r", reply)
        return Success(reply)

    async def aclose(self) -> None:
        """Close the underlying HTTP client when this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "InferenceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error.strip():
            return error
    return response.reason_phrase or f"HTTP {response.status_code}"
