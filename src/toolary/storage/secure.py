"""Encrypted-at-rest credential storage.

Secrets are encrypted with AES-GCM under a key derived from the installation
seed, so the persisted file never contains plaintext API keys. Each stored
entry has the shape::

    {"version": 1, "ciphertext": {"iv": "<b64>", "data": "<b64>"}, "created_at": 1700000000.0}
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from toolary.config.defaults import (
    AES_GCM_IV_BYTES,
    DEFAULT_INSTALL_SEED,
    ENCRYPTED_ENTRY_VERSION,
    SECRET_SEED,
)
from toolary.persistence import read_json_file, write_json_file

logger = logging.getLogger(__name__)


@dataclass
class EncryptedEntry:
    """One persisted credential, secret encrypted."""
    version: int
    iv: str
    data: str
    created_at: float

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "ciphertext": {"iv": self.iv, "data": self.data},
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "EncryptedEntry":
        ciphertext = raw.get("ciphertext") or raw.get("encryptedValue") or {}
        return cls(
            version=int(raw.get("version", ENCRYPTED_ENTRY_VERSION)),
            iv=ciphertext.get("iv", ""),
            data=ciphertext.get("data", ""),
            created_at=float(raw.get("created_at") or raw.get("createdAt") or 0.0),
        )


class SecretCipher:
    """AES-GCM encryption of secret strings.

    The 256-bit key is SHA-256 of ``"<install_seed>:<SECRET_SEED>"``; every
    encryption uses a fresh random 12-byte IV.
    """

    def __init__(self, install_seed: str = DEFAULT_INSTALL_SEED):
        key = hashlib.sha256(f"{install_seed}:{SECRET_SEED}".encode("utf-8")).digest()
        self._aesgcm = AESGCM(key)

    def encrypt(self, value: str) -> dict:
        iv = os.urandom(AES_GCM_IV_BYTES)
        data = self._aesgcm.encrypt(iv, (value or "").encode("utf-8"), None)
        return {
            "iv": base64.b64encode(iv).decode("ascii"),
            "data": base64.b64encode(data).decode("ascii"),
        }

    def decrypt(self, iv: str, data: str) -> str:
        """Decrypt one secret.

        Raises:
            ValueError: If the record is corrupt or was encrypted under another key
        """
        if not iv or not data:
            return ""
        try:
            plain = self._aesgcm.decrypt(base64.b64decode(iv), base64.b64decode(data), None)
        except (InvalidTag, binascii.Error) as exc:
            raise ValueError(f"Failed to decrypt credential: {type(exc).__name__}") from exc
        return plain.decode("utf-8")

    def encrypt_entry(self, secret: str, created_at: float) -> EncryptedEntry:
        ciphertext = self.encrypt(secret)
        return EncryptedEntry(
            version=ENCRYPTED_ENTRY_VERSION,
            iv=ciphertext["iv"],
            data=ciphertext["data"],
            created_at=created_at,
        )

    def decode_stored(self, raw: Any, now: Optional[float] = None) -> tuple[str, float]:
        """Turn one stored record into ``(secret, created_at)``.

        Accepts encrypted entries as well as legacy plaintext records
        (``{"value": ...}`` dicts or bare strings).
        """
        now = time.time() if now is None else now
        if isinstance(raw, str):
            return raw, now
        if not isinstance(raw, dict):
            raise ValueError(f"Unrecognised credential record: {type(raw).__name__}")

        if "ciphertext" in raw or "encryptedValue" in raw:
            entry = EncryptedEntry.from_dict(raw)
            return self.decrypt(entry.iv, entry.data), entry.created_at or now

        if isinstance(raw.get("value"), str):
            created_at = raw.get("created_at") or raw.get("createdAt") or now
            return raw["value"], float(created_at)

        raise ValueError("Credential record has neither ciphertext nor value")


class FileCredentialStore:
    """Credential store backed by a JSON file (mode 0600)."""

    def __init__(self, path: Path):
        self.path = path

    async def load_encrypted(self) -> list[dict]:
        document = await read_json_file(self.path)
        if document is None:
            return []
        if not isinstance(document, list):
            raise ValueError(f"Credential file {self.path} does not contain a list")
        return document

    async def save_encrypted(self, entries: list[dict]) -> None:
        await write_json_file(self.path, entries, mode=0o600)
        logger.debug(f"Saved {len(entries)} encrypted credentials to {self.path}")


class MemoryCredentialStore:
    """In-process credential store."""

    def __init__(self, entries: Optional[list] = None):
        self.entries: list = _copy_records(entries or [])

    async def load_encrypted(self) -> list:
        return _copy_records(self.entries)

    async def save_encrypted(self, entries: list[dict]) -> None:
        self.entries = _copy_records(entries)


def _copy_records(records: list) -> list:
    # Legacy records may be bare strings
    return [dict(r) if isinstance(r, dict) else r for r in records]
