#!/usr/bin/env python
"""
Prefs command - View/edit model and language preferences.
"""

from __future__ import annotations

from typing import Optional

from toolary.cli.formatting.output import ConsoleOutput
from toolary.engine import AIEngine, get_engine


async def run(
    action: str = "show",
    value: Optional[str] = None,
    engine: Optional[AIEngine] = None,
    console: Optional[ConsoleOutput] = None,
) -> int:
    """Run the prefs command."""
    engine = engine or get_engine()
    console = console or ConsoleOutput()

    if action == "show":
        prefs = await engine.get_preferences()
        console.print("[bold]AI preferences:[/bold]")
        console.print(f"  model    = {prefs['model_preference']}")
        console.print(f"  language = {prefs['language_preference']}")
        return 0

    if value is None:
        console.print(f"[yellow]Usage: toolary prefs {action} <value>[/yellow]")
        return 1

    try:
        if action == "model":
            await engine.set_model_preference(value)
        elif action == "language":
            await engine.set_language_preference(value)
        else:
            console.print_error(f"Unknown prefs action: {action}")
            return 1
    except ValueError as e:
        console.print_error(str(e))
        return 1

    console.print_success(f"{action} preference set to {value}")
    return 0
