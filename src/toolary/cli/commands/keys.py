#!/usr/bin/env python
"""
Keys command - manage the stored Gemini API keys.
"""

from __future__ import annotations

import getpass
from datetime import datetime
from typing import Optional

from toolary.cli.formatting.output import ConsoleOutput, mask_secret
from toolary.engine import AIEngine, get_engine


async def run(
    action: str = "list",
    value: Optional[str] = None,
    engine: Optional[AIEngine] = None,
    console: Optional[ConsoleOutput] = None,
) -> int:
    """Run the keys command."""
    engine = engine or get_engine()
    console = console or ConsoleOutput()
    entries = await engine.get_credentials()

    if action == "list":
        if not entries:
            console.print_dim("No API keys configured. Add one with: toolary keys add")
            return 0
        rows = [
            [
                str(i),
                mask_secret(entry.secret_value),
                datetime.fromtimestamp(entry.created_at).strftime("%Y-%m-%d %H:%M"),
            ]
            for i, entry in enumerate(entries)
        ]
        console.print_table("API keys", ["#", "Key", "Added"], rows)
        return 0

    if action == "add":
        secret = (value or getpass.getpass("Gemini API key: ")).strip()
        if not secret:
            console.print_error("Empty key, nothing added")
            return 1
        if any(entry.secret_value == secret for entry in entries):
            console.print_warning("Key already configured")
            return 1
        await engine.set_credentials([*entries, secret])
        console.print_success(f"Added key #{len(entries)} ({mask_secret(secret)})")
        return 0

    if action == "remove":
        try:
            index = int(value)
        except (TypeError, ValueError):
            console.print("[yellow]Usage: toolary keys remove <index>[/yellow]")
            return 1
        if not 0 <= index < len(entries):
            console.print_error(f"No key at index {index}")
            return 1
        remaining = entries[:index] + entries[index + 1:]
        await engine.set_credentials(remaining)
        console.print_success(f"Removed key #{index}")
        return 0

    if action == "clear":
        await engine.set_credentials([])
        console.print_success("All API keys removed")
        return 0

    if action == "test":
        secret = (value or getpass.getpass("Gemini API key to test: ")).strip()
        result = await engine.test_credential(secret)
        if result.valid:
            console.print_success(f"Key is valid: {result.response}")
            return 0
        console.print_error(result.error or "Key test failed")
        return 1

    console.print_error(f"Unknown keys action: {action}")
    return 1
