"""Storage collaborators of the AI engine.

Provides:
- CredentialStore / PreferenceStore: async interfaces the engine consumes
- SecretCipher: AES-GCM encryption of credential secrets
- FileCredentialStore / FilePreferenceStore: JSON-file implementations
- MemoryCredentialStore / MemoryPreferenceStore: in-process implementations
"""

from __future__ import annotations

from typing import Optional, Protocol


class CredentialStore(Protocol):
    """Persists encrypted credential entries; never sees plaintext."""

    async def load_encrypted(self) -> list[dict]:
        ...

    async def save_encrypted(self, entries: list[dict]) -> None:
        ...


class PreferenceStore(Protocol):
    """String key/value store for user preferences."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


from toolary.storage.secure import (  # noqa: E402
    EncryptedEntry,
    FileCredentialStore,
    MemoryCredentialStore,
    SecretCipher,
)
from toolary.storage.preferences import (  # noqa: E402
    FilePreferenceStore,
    MemoryPreferenceStore,
)

__all__ = [
    "CredentialStore",
    "PreferenceStore",
    "EncryptedEntry",
    "SecretCipher",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "FilePreferenceStore",
    "MemoryPreferenceStore",
]
