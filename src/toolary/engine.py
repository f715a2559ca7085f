"""AIEngine - caller-facing API of the Toolary AI request engine.

One engine per process owns the credential pool, the preference cache and
the transport. Tools call ``execute``; settings surfaces use the credential
and preference methods.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from toolary.config import EngineConfig, load_config
from toolary.config.defaults import (
    CREDENTIAL_TEST_PROMPT,
    CREDENTIALS_FILENAME,
    MODEL_LITE,
    PREFERENCES_FILENAME,
)
from toolary.llm.clock import Clock, system_clock
from toolary.llm.errors import BackendError, StorageError
from toolary.llm.executor import RequestExecutor
from toolary.llm.google import GeminiTransport, Transport
from toolary.llm.pool import CredentialEntry, CredentialPool, StatusView
from toolary.llm.preferences import PreferenceResolver
from toolary.storage import (
    CredentialStore,
    FileCredentialStore,
    FilePreferenceStore,
    PreferenceStore,
    SecretCipher,
)

logger = logging.getLogger(__name__)


@dataclass
class CredentialTestResult:
    valid: bool
    error: Optional[str] = None
    response: Optional[str] = None


def _describe_test_failure(error: BackendError) -> str:
    if error.is_rate_limited:
        return "Rate limit exceeded"
    if error.status == 400:
        return "Invalid API key format"
    if error.status in (401, 403):
        return "API key is invalid or expired"
    return error.message


class AIEngine:
    """Credential pool + preference resolver + request executor."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        credential_store: Optional[CredentialStore] = None,
        preference_store: Optional[PreferenceStore] = None,
        transport: Optional[Transport] = None,
        clock: Clock = system_clock,
        cipher: Optional[SecretCipher] = None,
    ):
        self.config = config or EngineConfig()
        data_dir = self.config.data_dir
        self.credential_store = credential_store or FileCredentialStore(data_dir / CREDENTIALS_FILENAME)
        self.preference_store = preference_store or FilePreferenceStore(data_dir / PREFERENCES_FILENAME)
        self.transport = transport or GeminiTransport(
            base_url=self.config.base_url,
            timeout=self.config.request_timeout,
        )
        self.pool = CredentialPool(
            store=self.credential_store,
            cipher=cipher or SecretCipher(self.config.install_seed),
            clock=clock,
            cooldown_seconds=self.config.cooldown_seconds,
        )
        self.resolver = PreferenceResolver(
            store=self.preference_store,
            smart_model=self.config.smart_model,
            lite_model=self.config.lite_model,
        )
        self.executor = RequestExecutor(
            pool=self.pool,
            resolver=self.resolver,
            transport=self.transport,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.backoff_base_delay,
            max_delay=self.config.backoff_max_delay,
        )

    async def initialize(self) -> None:
        await self.executor.ensure_loaded()

    async def execute(
        self,
        prompt: str,
        tool_id: str = "unknown",
        max_attempts: Optional[int] = None,
        model_override: Optional[str] = None,
        language_override: Optional[str] = None,
    ) -> str:
        """Run a prompt; see ``RequestExecutor.execute``."""
        return await self.executor.execute(
            prompt,
            tool_id=tool_id,
            max_attempts=max_attempts,
            model_override=model_override,
            language_override=language_override,
        )

    async def get_credential_status_snapshot(self) -> list[StatusView]:
        await self.initialize()
        return self.pool.snapshot()

    async def get_credentials(self) -> list[CredentialEntry]:
        """Current key list, for settings surfaces that edit it."""
        await self.initialize()
        return list(self.pool.entries)

    async def set_credentials(self, credentials: Iterable[Union[str, CredentialEntry]]) -> None:
        """Replace the whole key list; every key starts healthy."""
        try:
            await self.pool.replace_all(credentials)
        except OSError as e:
            raise StorageError(f"Could not save API keys: {e}") from e

    async def set_model_preference(self, value: str) -> None:
        await self.resolver.set_model_preference(value)

    async def set_language_preference(self, value: str) -> None:
        await self.resolver.set_language_preference(value)

    async def get_preferences(self) -> dict:
        await self.resolver.load()
        return {
            "model_preference": self.resolver.model_preference,
            "language_preference": self.resolver.language_preference,
        }

    async def test_credential(self, secret: str) -> CredentialTestResult:
        """One trial request with the lite model, outside the pool."""
        model = self.resolver.model_for_tier(MODEL_LITE)
        try:
            result = await self.transport.generate(model, secret.strip(), CREDENTIAL_TEST_PROMPT)
        except BackendError as e:
            logger.info(f"Credential test failed: {e.message}")
            return CredentialTestResult(valid=False, error=_describe_test_failure(e))

        if result.text and "successful" in result.text.lower():
            return CredentialTestResult(valid=True, response=result.text)
        return CredentialTestResult(valid=True, response="API key is working")

    async def aclose(self) -> None:
        close = getattr(self.transport, "aclose", None)
        if close is not None:
            await close()


# =============================================================================
# Process-wide instance
# =============================================================================

_engine: Optional[AIEngine] = None


def get_engine() -> AIEngine:
    """Get the process-wide engine, building it from ``load_config()`` on first use."""
    global _engine
    if _engine is None:
        _engine = AIEngine(load_config())
    return _engine


def reset_engine(engine: Optional[AIEngine] = None) -> None:
    """Replace (or drop) the process-wide engine."""
    global _engine
    _engine = engine
