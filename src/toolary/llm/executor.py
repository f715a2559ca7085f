"""Request Executor - one logical AI call across the credential pool.

Provides:
- backoff_delay(): Exponential backoff with a cap
- RequestExecutor: load -> resolve -> select -> request -> record -> retry
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from toolary.config.defaults import RETRY_BASE_DELAY, RETRY_MAX_ATTEMPTS, RETRY_MAX_DELAY
from toolary.llm.errors import (
    BackendError,
    ConfigurationError,
    ExhaustionError,
    ValidationError,
)
from toolary.llm.google import Transport
from toolary.llm.pool import CredentialPool, RequestOutcome
from toolary.llm.preferences import PreferenceResolver
from toolary.llm.select import next_available_at, select_next

logger = logging.getLogger(__name__)


def backoff_delay(
    attempt: int,
    base_delay: float = RETRY_BASE_DELAY,
    max_delay: float = RETRY_MAX_DELAY,
) -> float:
    """Delay before the attempt after ``attempt`` (0-based): base * 2**attempt."""
    return min(base_delay * (2 ** attempt), max_delay)


class RequestExecutor:
    """Runs prompts against the backend, rotating keys on failure.

    Every attempt selects a key through the selection policy, so
    ``max_attempts`` bounds distinct key selections per call, and a key that
    turns unhealthy or rate limited mid-call is skipped by the next attempt.
    Health updates are never rolled back, even when the call ultimately fails.
    """

    def __init__(
        self,
        pool: CredentialPool,
        resolver: PreferenceResolver,
        transport: Transport,
        max_attempts: int = RETRY_MAX_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY,
        max_delay: float = RETRY_MAX_DELAY,
    ):
        self.pool = pool
        self.resolver = resolver
        self.transport = transport
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._load_lock = asyncio.Lock()

    async def ensure_loaded(self) -> None:
        """Lazy one-time load of keys and preferences."""
        if self.pool.is_loaded:
            await self.resolver.load()
            return
        async with self._load_lock:
            if not self.pool.is_loaded:
                await self.pool.load()
        await self.resolver.load()

    async def compose_prompt(self, prompt: str, language_override: Optional[str] = None) -> str:
        return prompt + await self.resolver.language_instruction(language_override)

    async def execute(
        self,
        prompt: str,
        tool_id: str = "unknown",
        max_attempts: Optional[int] = None,
        model_override: Optional[str] = None,
        language_override: Optional[str] = None,
    ) -> str:
        """
        Run one prompt and return the response text.

        Args:
            prompt: Prompt text from the calling tool
            tool_id: Tool identifier, used for the tool-to-model mapping
            max_attempts: Max key selections for this call (default from config)
            model_override: 'smart', 'lite', 'auto' or a model identifier
            language_override: Language code or 'auto'

        Raises:
            ConfigurationError: No keys configured
            ExhaustionError: No key eligible for the next attempt
            ValidationError: Backend rejected the request (not retried)
            BackendError: Last failure once the attempt budget is spent
        """
        await self.ensure_loaded()
        if len(self.pool) == 0:
            raise ConfigurationError()

        attempts = self.max_attempts if max_attempts is None else max_attempts
        model = self.resolver.resolve_model(tool_id, model_override)
        full_prompt = await self.compose_prompt(prompt, language_override)

        last_error: Optional[BackendError] = None
        for attempt in range(attempts):
            selection = select_next(self.pool)
            if selection is None:
                raise self._exhausted() from last_error

            try:
                result = await self.transport.generate(
                    model, selection.entry.secret_value, full_prompt
                )
            except BackendError as e:
                last_error = e
                self.pool.record_outcome(
                    RequestOutcome(
                        credential_index=selection.index,
                        succeeded=False,
                        http_status=e.status,
                        error_message=e.message,
                    )
                )
                if isinstance(e, ValidationError):
                    raise

                if attempt < attempts - 1:
                    delay = backoff_delay(attempt, self.base_delay, self.max_delay)
                    logger.warning(
                        f"Retry {attempt + 1}/{attempts} after {delay}s: {e}",
                        extra={
                            "event": "ai_retry",
                            "tool_id": tool_id,
                            "model": model,
                            "credential_index": selection.index,
                            "status": e.status,
                        },
                    )
                    await self.pool.clock.sleep(delay)
                continue

            self.pool.record_outcome(
                RequestOutcome(credential_index=selection.index, succeeded=True)
            )
            logger.debug(
                f"{tool_id} answered by {model} on key #{selection.index} (attempt {attempt + 1})"
            )
            return result.text

        if last_error:
            raise last_error
        raise BackendError(None, "API call failed after all retries")

    def _exhausted(self) -> ExhaustionError:
        now = self.pool.clock.now()
        available_at = next_available_at(self.pool)
        retry_after = available_at - now if available_at is not None and available_at > now else None
        logger.warning(
            "credentials_exhausted",
            extra={"event": "credentials_exhausted", "retry_after": retry_after},
        )
        return ExhaustionError(retry_after)
