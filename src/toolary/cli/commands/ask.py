#!/usr/bin/env python
"""
Ask command - send a one-shot prompt through the engine.
"""

from __future__ import annotations

import sys
from typing import Optional

from toolary.cli.formatting.output import ConsoleOutput
from toolary.engine import AIEngine, get_engine
from toolary.llm.errors import EngineError, ExhaustionError


async def run(
    prompt: Optional[str],
    tool_id: str = "ai-chat",
    model: Optional[str] = None,
    language: Optional[str] = None,
    engine: Optional[AIEngine] = None,
    console: Optional[ConsoleOutput] = None,
) -> int:
    """Run the ask command. Reads the prompt from stdin when not given."""
    engine = engine or get_engine()
    console = console or ConsoleOutput()

    if not prompt and not sys.stdin.isatty():
        prompt = sys.stdin.read()
    if not prompt or not prompt.strip():
        console.print("[yellow]Usage: toolary ask <prompt>[/yellow]")
        return 1

    try:
        text = await engine.execute(
            prompt,
            tool_id=tool_id,
            model_override=model,
            language_override=language,
        )
    except ExhaustionError as e:
        console.print_error(str(e))
        return 2 if e.should_wait else 1
    except EngineError as e:
        console.print_error(str(e))
        return 1

    console.print(text, markup=False)
    return 0
