"""Toolary LLM package - credential pool, selection, preferences, transport and executor."""

from toolary.llm.errors import (
    AllCredentialsExhausted,
    BackendError,
    ConfigurationError,
    EngineError,
    ExhaustionError,
    NoCredentialsConfigured,
    StorageError,
    TransientBackendError,
    ValidationError,
)
from toolary.llm.executor import RequestExecutor, backoff_delay
from toolary.llm.google import GeminiTransport, GenerateResult
from toolary.llm.pool import (
    CredentialEntry,
    CredentialPool,
    CredentialStatus,
    RequestOutcome,
    StatusView,
)
from toolary.llm.preferences import PreferenceResolver
from toolary.llm.select import Selection, select_next

__all__ = [
    "AllCredentialsExhausted",
    "BackendError",
    "ConfigurationError",
    "CredentialEntry",
    "CredentialPool",
    "CredentialStatus",
    "EngineError",
    "ExhaustionError",
    "GeminiTransport",
    "GenerateResult",
    "NoCredentialsConfigured",
    "PreferenceResolver",
    "RequestExecutor",
    "RequestOutcome",
    "Selection",
    "StatusView",
    "StorageError",
    "TransientBackendError",
    "ValidationError",
    "backoff_delay",
    "select_next",
]
