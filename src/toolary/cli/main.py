#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from toolary import __version__
from toolary.llm.errors import EngineError


def _configure_logging(verbose: bool) -> None:
    level_name = os.environ.get("TOOLARY_LOG_LEVEL", "DEBUG" if verbose else "WARNING")
    level = getattr(logging, level_name.upper(), logging.WARNING)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
    logging.getLogger("toolary").setLevel(level)
    # Suppress per-request logs from the HTTP stack
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def _run_command(args: argparse.Namespace) -> int:
    from toolary.cli.commands import ask, keys, prefs, status
    from toolary.engine import get_engine

    engine = get_engine()
    try:
        if args.command == "keys":
            return await keys.run(args.action, args.value, engine=engine)
        if args.command == "status":
            return await status.run(engine=engine)
        if args.command == "prefs":
            return await prefs.run(args.action, args.value, engine=engine)
        if args.command == "ask":
            return await ask.run(
                args.prompt,
                tool_id=args.tool,
                model=args.model,
                language=args.language,
                engine=engine,
            )
        return 1
    finally:
        await engine.aclose()


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="toolary",
        description="Toolary AI - manage Gemini API keys and run prompts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    keys_p = subparsers.add_parser("keys", help="Manage API keys")
    keys_p.add_argument("action", choices=["list", "add", "remove", "clear", "test"], default="list", nargs="?")
    keys_p.add_argument("value", nargs="?", help="Key (add/test) or index (remove)")

    subparsers.add_parser("status", help="Show key health")

    prefs_p = subparsers.add_parser("prefs", help="View/edit AI preferences")
    prefs_p.add_argument("action", choices=["show", "model", "language"], default="show", nargs="?")
    prefs_p.add_argument("value", nargs="?", help="auto|smart|lite, or a language code")

    ask_p = subparsers.add_parser("ask", help="Send a prompt")
    ask_p.add_argument("prompt", nargs="?", help="Prompt text (stdin if omitted)")
    ask_p.add_argument("--tool", default="ai-chat", help="Tool id for model mapping (default: ai-chat)")
    ask_p.add_argument("--model", help="Model override: auto, smart, lite")
    ask_p.add_argument("--language", help="Response language code")

    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args()
    load_dotenv(Path.cwd() / ".env")
    _configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "version":
        print(f"Toolary AI v{__version__}")
        return 0

    try:
        return asyncio.run(_run_command(args))
    except EngineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
