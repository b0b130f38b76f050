"""FastAPI service that answers transcripts with a language-model reply."""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from voice_assistant import __version__
from voice_assistant.config.defaults import RuntimeConfig
from voice_assistant.config.runtime_store import apply_env_overrides, load_runtime_config
from voice_assistant.errors import CompletionError

from .completions import CompletionGateway

logger = logging.getLogger(__name__)

INVALID_BODY = "Invalid request body. Expecting JSON with a 'transcript' field."
KEY_MISSING = "OpenAI API key not configured."


class TranscriptRequest(BaseModel):
    transcript: str

    @field_validator("transcript")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Transcript is missing or invalid in request body.")
        return value


def _default_cors_origins() -> list[str]:
    return ["http://localhost:5173", "http://127.0.0.1:5173"]


def _cors_origins() -> list[str]:
    configured = os.environ.get("VOICE_ASSISTANT_CORS")
    if not configured:
        return _default_cors_origins()
    return [origin.strip() for origin in configured.split(",") if origin.strip()]


def create_app(
    config: Optional[RuntimeConfig] = None,
    gateway: Optional[CompletionGateway] = None,
) -> FastAPI:
    """Build the backend app; config and gateway default to disk/env settings.

    Serve it with uvicorn's factory mode::

        uvicorn --factory voice_assistant.service.inference_api:create_app
    """
    if config is None or gateway is None:
        load_dotenv()
    runtime_config = config or apply_env_overrides(load_runtime_config())
    app = FastAPI(title="Voice Assistant Inference Backend", version=__version__)
    app.state.config = runtime_config
    app.state.gateway = gateway or CompletionGateway(runtime_config.backend)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Please use the POST method." if exc.status_code == 405 else exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        details = str(errors[0].get("msg", "invalid body")) if errors else "invalid body"
        logger.warning("Error parsing request body: %s", details)
        return JSONResponse(status_code=400, content={"error": INVALID_BODY, "details": details})

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post(runtime_config.backend.route)
    async def ai_response(payload: TranscriptRequest, request: Request):
        """Return the model's reply to one transcript."""
        completions: CompletionGateway = request.app.state.gateway
        if not completions.configured:
            return JSONResponse(status_code=500, content={"error": KEY_MISSING})
        try:
            reply = await completions.complete(payload.transcript)
        except CompletionError as exc:
            logger.error("Error calling model provider: %s", exc)
            return JSONResponse(status_code=500, content={"error": str(exc)})
        return {"response": reply}

    return app

