# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""
Command-line interface for the AI gateway.

    aigateway status
    aigateway chat "Summarize this note" --backend ollama --json
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from .credentials import resolve_credentials
from .gateway import AIGateway
from .models import DispatchSuccess
from .settings import settings
from .telemetry.logging import configure_logging

CONFIG_HINT = (
    "No AI backend is available. Start Ollama (OLLAMA_BASE_URL) or set "
    "OPENAI_API_KEY / GEMINI_API_KEY."
)


async def _status() -> int:
    credentials = resolve_credentials()
    async with AIGateway() as gateway:
        report = await gateway.probe(credentials)

    for entry in report:
        state = "available" if entry.available else "unavailable"
        print(f"- {entry.backend.value}: {state} (model: {entry.default_model})")

    if not any(entry.available for entry in report):
        print(CONFIG_HINT, file=sys.stderr)
        return 1
    return 0


async def _chat(args: argparse.Namespace) -> int:
    messages = []
    if args.system:
        messages.append({"role": "system", "content": args.system})
    messages.append({"role": "user", "content": args.prompt})
    payload = {
        "backend": args.backend,
        "model": args.model,
        "messages": messages,
        "jsonMode": args.json_mode,
    }

    async with AIGateway() as gateway:
        outcome = await gateway.dispatch_with_headers(payload)

    if args.json:
        print(outcome.model_dump_json(indent=2))
    elif isinstance(outcome, DispatchSuccess):
        print(outcome.content)
    else:
        print(f"Error: {outcome.message}", file=sys.stderr)
        for error in outcome.errors:
            print(f"  {error.backend.value}: {error.message}", file=sys.stderr)
    return 0 if outcome.ok else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aigateway", description="AI provider gateway")
    parser.add_argument("--log-level", default=settings.observability.log_level, help="Log level")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON logs")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Report which backends are available")

    chat = sub.add_parser("chat", help="Send a single prompt through the gateway")
    chat.add_argument("prompt", help="User message")
    chat.add_argument("--backend", default="auto", help="ollama, openai, gemini or auto")
    chat.add_argument("--model", help="Specific model to use")
    chat.add_argument("--system", help="Optional system prompt")
    chat.add_argument("--json-mode", action="store_true", help="Ask the backend for JSON output")
    chat.add_argument("--json", action="store_true", help="Print the full outcome as JSON")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_json or settings.observability.log_json)

    try:
        if args.command == "status":
            return asyncio.run(_status())
        return asyncio.run(_chat(args))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
