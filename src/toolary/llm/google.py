"""
Google Gemini transport for the Toolary AI engine.

Issues a single ``generateContent`` call per request and maps HTTP status
codes onto the engine's error taxonomy:

- 429 -> TransientBackendError (rate limited)
- 400 -> ValidationError (malformed request or key format)
- 403 -> BackendError (key invalid or lacking permission)
- 5xx -> TransientBackendError
- other non-2xx -> BackendError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from toolary.config.defaults import GEMINI_BASE_URL, REQUEST_TIMEOUT_SECONDS
from toolary.llm.errors import BackendError, TransientBackendError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


class Transport(Protocol):
    async def generate(self, model: str, secret: str, prompt: str) -> GenerateResult:
        ...


def error_for_status(status: int, body: str = "") -> BackendError:
    """Build the taxonomy error for a non-2xx Gemini response."""
    if status == 429:
        return TransientBackendError(status, "Rate limit exceeded", body)
    if status == 400:
        return ValidationError(status, "Invalid request - check your API key and prompt", body)
    if status == 403:
        return BackendError(status, "API key invalid or insufficient permissions", body)
    if status >= 500:
        return TransientBackendError(status, f"API error: {status}", body)
    return BackendError(status, f"API error: {status}", body)


def extract_text(data: dict) -> str:
    """Text of the first candidate.

    Raises:
        BackendError: If the payload has no candidate text
    """
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise BackendError(None, "Invalid response format from Gemini API", str(data)[:500])


class GeminiTransport:
    """POSTs prompts to the Gemini REST API.

    A shared ``httpx.AsyncClient`` is created on first use; pass ``client``
    to supply your own (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def generate(self, model: str, secret: str, prompt: str) -> GenerateResult:
        """
        Call ``models/{model}:generateContent`` with ``secret`` as the API key.

        Args:
            model: Gemini model identifier (e.g. 'gemini-2.5-flash')
            secret: API key sent in the ``x-goog-api-key`` header
            prompt: Full prompt text

        Returns:
            GenerateResult with the first candidate's text

        Raises:
            BackendError: On any non-2xx status or malformed payload
            TransientBackendError: On rate limiting, 5xx or network failure
        """
        url = f"{self.base_url}/models/{model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        headers = {"x-goog-api-key": secret, "Content-Type": "application/json"}

        try:
            response = await self._get_client().post(url, json=payload, headers=headers)
        except httpx.RequestError as e:
            raise TransientBackendError(None, f"Network error: {type(e).__name__}", str(e)) from e

        if not response.is_success:
            error = error_for_status(response.status_code, response.text)
            logger.debug(f"Gemini {model} returned {response.status_code}")
            raise error

        try:
            data = response.json()
        except ValueError:
            raise BackendError(None, "Invalid response format from Gemini API", response.text[:500])

        usage = data.get("usageMetadata") if isinstance(data, dict) else None
        if not isinstance(usage, dict):
            usage = {}
        return GenerateResult(
            text=extract_text(data),
            model=model,
            input_tokens=usage.get("promptTokenCount", 0),
            output_tokens=usage.get("candidatesTokenCount", 0),
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
