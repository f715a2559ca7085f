"""Credential selection policy.

Provides:
- select_next(): Pick the least-recently-used eligible key and stamp it
- next_available_at(): Earliest time a rate-limited healthy key frees up
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from toolary.llm.pool import CredentialEntry, CredentialPool


@dataclass(frozen=True)
class Selection:
    index: int
    entry: CredentialEntry


def select_next(pool: CredentialPool, now: Optional[float] = None) -> Optional[Selection]:
    """Select the next key for a request, or None when nothing is eligible.

    Eligible keys are healthy and outside their rate-limit window. The one
    used least recently wins; keys stamped with the same time are ordered by
    when they were picked, then by index. The winner's ``last_used_at`` is
    stamped here, before any request goes out, so back-to-back selections
    rotate across keys.
    """
    now = pool.clock.now() if now is None else now

    eligible = [
        i for i, status in enumerate(pool.statuses)
        if i < len(pool.entries) and status.is_eligible(now)
    ]
    if not eligible:
        return None

    def _order(i: int) -> tuple:
        status = pool.statuses[i]
        return (status.last_used_at, status.selection_seq, i)

    index = min(eligible, key=_order)
    status = pool.statuses[index]
    status.last_used_at = now
    status.selection_seq = pool.next_selection_seq()

    return Selection(index=index, entry=pool.entries[index])


def next_available_at(pool: CredentialPool) -> Optional[float]:
    """Earliest ``rate_limited_until`` among healthy keys, or None."""
    windows = [s.rate_limited_until for s in pool.statuses if s.is_healthy]
    return min(windows) if windows else None
