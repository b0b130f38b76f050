#!/usr/bin/env python3
"""Interactive harness to exercise the voice-turn orchestrator."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from voice_assistant.config import apply_env_overrides, load_runtime_config
from voice_assistant.runtime.inference import InferenceClient
from voice_assistant.runtime.voice import (
    SpeechCapture,
    SpeechEngine,
    SpeechOutputController,
    VoiceTurnOrchestrator,
)

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s – %(message)s"


class ConsoleSpeechEngine(SpeechEngine):
    """Prints what would be spoken and completes immediately."""

    def speak(self, text, on_start, on_end, on_error) -> None:
        super().speak(text, on_start, on_end, on_error)
        print(f"Assistant> {text}")
        self.finish()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", help="Inference backend URL (overrides config).")
    parser.add_argument(
        "--live",
        action="store_true",
        help="Use the default microphone and the platform voice instead of typed input.",
    )
    parser.add_argument("--exit-cmd", default="/exit", help="Command to terminate the demo.")
    parser.add_argument("--debug", action="store_true", help="Verbose logging.")
    return parser.parse_args()


async def run(args: argparse.Namespace) -> None:
    config = apply_env_overrides(load_runtime_config())
    if args.url:
        config.inference.endpoint_url = args.url

    if args.live:
        from voice_assistant.runtime.voice.engines import MicrophoneSpeechCapture, Pyttsx3SpeechEngine

        capture: SpeechCapture = MicrophoneSpeechCapture(config.capture)
        engine: SpeechEngine = Pyttsx3SpeechEngine(config.speech)
    else:
        capture = SpeechCapture(config.capture)
        engine = ConsoleSpeechEngine(config.speech)

    output = SpeechOutputController(engine, config.speech)
    async with InferenceClient(config.inference) as inference:
        orchestrator = VoiceTurnOrchestrator(config, capture, output, inference)

        print("--- Voice demo ---")
        if args.live:
            print("Press Enter to start listening.")
        else:
            print("Type an utterance to simulate speech.")
        print(f"Use '/reset', '/say <text>', or '{args.exit_cmd}'.")

        while True:
            try:
                raw_input_text = (await asyncio.to_thread(input, "You> ")).strip()
            except (EOFError, KeyboardInterrupt):
                print("\nExiting.")
                break

            if not raw_input_text and not args.live:
                continue

            if raw_input_text == args.exit_cmd:
                print("Session terminated.")
                break
            if raw_input_text == "/reset":
                orchestrator.reset()
                continue
            if raw_input_text.startswith("/say "):
                if not orchestrator.speak_text(raw_input_text[5:]):
                    print("(busy speaking or empty text)")
                continue

            if not orchestrator.start_listening():
                continue
            if args.live:
                while capture.listening:
                    await asyncio.sleep(0.1)
            else:
                capture.finalize(raw_input_text)
            await orchestrator.wait_idle()

        orchestrator.close()
        if args.live:
            engine.close()


def main() -> None:
    args = parse_args()
    debug = args.debug or bool(os.getenv("VOICE_ASSISTANT_DEBUG"))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
