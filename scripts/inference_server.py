#!/usr/bin/env python3
"""Launch the voice assistant inference backend."""

from __future__ import annotations

import argparse
import logging
import os

import uvicorn
from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s – %(message)s"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for the service.")
    parser.add_argument("--port", type=int, default=8080, help="Port to expose.")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload (only for local development).",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging.")
    return parser.parse_args()


def main() -> None:
    load_dotenv()
    args = parse_args()
    debug = args.debug or bool(os.getenv("VOICE_ASSISTANT_DEBUG"))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    uvicorn.run(
        "voice_assistant.service.inference_api:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="debug" if debug else "info",
    )


if __name__ == "__main__":
    main()
