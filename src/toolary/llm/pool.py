"""Credential Pool - API keys with per-key health tracking.

Provides:
- CredentialEntry: One stored API key
- CredentialStatus: Health record for one key (failures, cooldown, last use)
- RequestOutcome: Result of one attempt, fed back into the pool
- StatusView: Secret-free status row for display
- CredentialPool: Index-aligned entries + statuses with load/replace/record/snapshot
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from toolary.config.defaults import (
    HEALTH_ERROR_THRESHOLD,
    RATE_LIMIT_COOLDOWN_SECONDS,
    RATE_LIMIT_STATUS,
)
from toolary.llm.clock import Clock, system_clock
from toolary.storage import CredentialStore
from toolary.storage.secure import SecretCipher

logger = logging.getLogger(__name__)

STATE_ACTIVE = "active"
STATE_RATE_LIMITED = "rate_limited"
STATE_ERROR = "error"


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class CredentialEntry:
    """A single API key as entered by the user."""
    secret_value: str
    created_at: float

    def __repr__(self) -> str:
        return f"CredentialEntry(secret_value='***', created_at={self.created_at})"


@dataclass
class CredentialStatus:
    """Tracks health of a single API key."""
    is_healthy: bool = True
    last_used_at: float = 0.0
    consecutive_error_count: int = 0
    rate_limited_until: float = 0.0
    # Order of selection among keys stamped with the same timestamp
    selection_seq: int = 0

    def is_rate_limited(self, now: float) -> bool:
        return now < self.rate_limited_until

    def is_eligible(self, now: float) -> bool:
        return self.is_healthy and not self.is_rate_limited(now)

    def state(self, now: float) -> str:
        if not self.is_healthy:
            return STATE_ERROR
        if self.is_rate_limited(now):
            return STATE_RATE_LIMITED
        return STATE_ACTIVE


@dataclass
class RequestOutcome:
    """What happened when a request went out on a credential."""
    credential_index: int
    succeeded: bool
    http_status: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def is_rate_limited(self) -> bool:
        return not self.succeeded and self.http_status == RATE_LIMIT_STATUS


@dataclass(frozen=True)
class StatusView:
    """Read-only status row; never carries the secret."""
    index: int
    state: str
    is_healthy: bool
    consecutive_error_count: int
    rate_limited_until: float
    last_used_at: float
    created_at: float

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "state": self.state,
            "is_healthy": self.is_healthy,
            "consecutive_error_count": self.consecutive_error_count,
            "rate_limited_until": self.rate_limited_until,
            "last_used_at": self.last_used_at,
            "created_at": self.created_at,
        }


# =============================================================================
# Pool
# =============================================================================

class CredentialPool:
    """Ordered API keys with a parallel health table.

    ``entries[i]`` and ``statuses[i]`` always describe the same key. The
    store adapter only ever receives ciphertext produced by ``cipher``.
    """

    def __init__(
        self,
        store: CredentialStore,
        cipher: SecretCipher,
        clock: Clock = system_clock,
        cooldown_seconds: float = RATE_LIMIT_COOLDOWN_SECONDS,
        error_threshold: int = HEALTH_ERROR_THRESHOLD,
    ):
        self.store = store
        self.cipher = cipher
        self.clock = clock
        self.cooldown_seconds = cooldown_seconds
        self.error_threshold = error_threshold
        self.entries: list[CredentialEntry] = []
        self.statuses: list[CredentialStatus] = []
        self.is_loaded = False
        self._selection_counter = 0

    def __len__(self) -> int:
        return len(self.entries)

    def entry(self, index: int) -> CredentialEntry:
        return self.entries[index]

    def status(self, index: int) -> CredentialStatus:
        return self.statuses[index]

    def next_selection_seq(self) -> int:
        self._selection_counter += 1
        return self._selection_counter

    async def load(self) -> None:
        """Load and decrypt persisted keys.

        Keys already tracked keep their status; new indices get a fresh one.
        Any storage or decryption failure leaves an empty pool so callers see
        a uniform "no credentials configured".
        """
        try:
            raw_entries = await self.store.load_encrypted()
            now = self.clock.now()
            entries = []
            for raw in raw_entries:
                secret, created_at = self.cipher.decode_stored(raw, now=now)
                entries.append(CredentialEntry(secret_value=secret, created_at=created_at))
        except Exception:
            logger.exception("Failed to load credentials; continuing with an empty pool")
            entries = []

        self.entries = entries
        self.statuses = self.statuses[: len(entries)]
        while len(self.statuses) < len(entries):
            self.statuses.append(CredentialStatus())
        self.is_loaded = True
        logger.info(f"Loaded {len(entries)} credentials")

    async def replace_all(self, entries: Iterable[Union[str, CredentialEntry]]) -> None:
        """Persist a new key list and reset every status.

        Blank secrets are dropped. Storage errors propagate; in-memory state
        is only replaced after the save succeeded.
        """
        now = self.clock.now()
        normalized = []
        for item in entries:
            if isinstance(item, CredentialEntry):
                entry = item
            else:
                entry = CredentialEntry(secret_value=str(item), created_at=now)
            if not entry.secret_value.strip():
                continue
            normalized.append(
                CredentialEntry(
                    secret_value=entry.secret_value.strip(),
                    created_at=entry.created_at or now,
                )
            )

        encrypted = [
            self.cipher.encrypt_entry(e.secret_value, e.created_at).to_dict()
            for e in normalized
        ]
        await self.store.save_encrypted(encrypted)

        self.entries = normalized
        self.statuses = [CredentialStatus() for _ in normalized]
        self.is_loaded = True
        logger.info(f"Replaced credential list ({len(normalized)} keys)")

    def record_outcome(self, outcome: RequestOutcome) -> None:
        """Update the health of the key an attempt went out on."""
        index = outcome.credential_index
        if not 0 <= index < len(self.statuses):
            logger.warning(f"Outcome for unknown credential index {index} ignored")
            return
        status = self.statuses[index]

        if outcome.succeeded:
            status.consecutive_error_count = 0
            status.is_healthy = True
            return

        status.consecutive_error_count += 1
        if status.is_healthy and status.consecutive_error_count >= self.error_threshold:
            status.is_healthy = False
            logger.warning(
                "credential_unhealthy",
                extra={
                    "event": "credential_unhealthy",
                    "credential_index": index,
                    "error_count": status.consecutive_error_count,
                    "last_error": outcome.error_message,
                },
            )

        if outcome.is_rate_limited:
            status.rate_limited_until = self.clock.now() + self.cooldown_seconds
            logger.warning(
                "credential_rate_limited",
                extra={
                    "event": "credential_rate_limited",
                    "credential_index": index,
                    "rate_limited_until": status.rate_limited_until,
                    "cooldown_seconds": self.cooldown_seconds,
                },
            )

    def snapshot(self) -> list[StatusView]:
        now = self.clock.now()
        return [
            StatusView(
                index=i,
                state=status.state(now),
                is_healthy=status.is_healthy,
                consecutive_error_count=status.consecutive_error_count,
                rate_limited_until=status.rate_limited_until,
                last_used_at=status.last_used_at,
                created_at=entry.created_at,
            )
            for i, (entry, status) in enumerate(zip(self.entries, self.statuses))
        ]
