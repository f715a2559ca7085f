#!/usr/bin/env python
"""
Status command - Show health of every configured key.
"""

from __future__ import annotations

from typing import Optional

from toolary.cli.formatting.output import ConsoleOutput, styled_state
from toolary.engine import AIEngine, get_engine


async def run(engine: Optional[AIEngine] = None, console: Optional[ConsoleOutput] = None) -> int:
    """Run the status command."""
    engine = engine or get_engine()
    console = console or ConsoleOutput()
    snapshot = await engine.get_credential_status_snapshot()

    if not snapshot:
        console.print_dim("No API keys configured.")
        return 0

    now = engine.pool.clock.now()
    rows = []
    for view in snapshot:
        cooldown = ""
        if view.state == "rate_limited":
            cooldown = f"{max(0, int(view.rate_limited_until - now))}s"
        rows.append([
            str(view.index),
            styled_state(view.state),
            str(view.consecutive_error_count),
            cooldown,
        ])

    console.print_table("Key status", ["#", "State", "Errors", "Cooldown"], rows)
    return 0
