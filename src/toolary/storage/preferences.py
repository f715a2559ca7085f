"""Key/value preference stores."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from toolary.persistence import read_json_file, write_json_file

logger = logging.getLogger(__name__)


class FilePreferenceStore:
    """Preferences kept in a flat JSON object on disk.

    Writes are read-modify-write under a lock so concurrent ``set`` calls
    from the same process do not drop each other's keys.
    """

    def __init__(self, path: Path):
        self.path = path
        self._lock = asyncio.Lock()

    async def _read(self) -> dict:
        document = await read_json_file(self.path)
        if document is None:
            return {}
        if not isinstance(document, dict):
            raise ValueError(f"Preference file {self.path} does not contain an object")
        return document

    async def get(self, key: str) -> Optional[str]:
        value = (await self._read()).get(key)
        return value if isinstance(value, str) else None

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            document = await self._read()
            document[key] = value
            await write_json_file(self.path, document)
        logger.debug(f"Preference {key} set to {value!r}")


class MemoryPreferenceStore:
    """In-process preference store."""

    def __init__(self, values: Optional[dict] = None):
        self.values: dict[str, str] = dict(values or {})

    async def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value
