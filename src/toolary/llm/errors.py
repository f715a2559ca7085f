"""Error taxonomy for the AI request engine.

Callers only ever see these exceptions from ``AIEngine.execute``:

- ConfigurationError: no credentials configured at all
- ExhaustionError: every credential is unhealthy or cooling down
- TransientBackendError: rate limit, 5xx or transport failure (retried first)
- ValidationError: request rejected as malformed (never retried)
- BackendError: any other backend failure
"""

from __future__ import annotations

from typing import Optional


class EngineError(Exception):
    """Base class for all engine errors."""
    pass


class ConfigurationError(EngineError):
    """Raised when no credentials are configured."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "No API keys configured. Please add at least one Gemini API key in settings."
        )


class ExhaustionError(EngineError):
    """Raised when no credential is currently eligible for selection.

    ``retry_after`` is the number of seconds until the earliest rate-limit
    cooldown ends, or None when every credential is unhealthy and waiting
    will not help.
    """

    def __init__(self, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        if retry_after is not None:
            hint = f"All keys are rate limited; try again in {int(retry_after) + 1}s or add more keys."
        else:
            hint = "All keys are unhealthy; check or replace your API keys in settings."
        super().__init__(f"No available API keys. {hint}")

    @property
    def should_wait(self) -> bool:
        return self.retry_after is not None


class BackendError(EngineError):
    """A failed backend call. ``status`` is None for transport-level failures."""

    retryable = True

    def __init__(self, status: Optional[int], message: str, details: str = ""):
        self.status = status
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def is_rate_limited(self) -> bool:
        return self.status == 429


class TransientBackendError(BackendError):
    """Rate limiting, server-side or network failure."""
    pass


class ValidationError(BackendError):
    """The backend rejected the request as malformed."""

    retryable = False


class StorageError(EngineError):
    """Persisting credentials or preferences failed."""
    pass


# Names used by callers of the original request engine
NoCredentialsConfigured = ConfigurationError
AllCredentialsExhausted = ExhaustionError
