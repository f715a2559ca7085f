"""
Atomic-write JSON persistence for Toolary stores.

Files are written to a temporary sibling, flushed, fsynced and then renamed
over the target so a crash never leaves a half-written credentials or
preferences file behind.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

import aiofiles
import aiofiles.os


async def read_json_file(path: Path) -> Optional[Any]:
    """
    Read and parse a JSON file.

    Returns:
        The parsed document, or None if the file does not exist

    Raises:
        OSError: If the file exists but cannot be read
        ValueError: If the content is not valid JSON
    """
    if not await aiofiles.os.path.exists(path):
        return None

    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        content = await f.read()

    if not content.strip():
        return None
    return json.loads(content)


async def write_json_file(path: Path, document: Any, mode: Optional[int] = None) -> None:
    """
    Write ``document`` as JSON to ``path`` atomically.

    Args:
        path: Target file path
        document: JSON-serialisable object
        mode: Optional permission bits applied before the rename (e.g. 0o600)

    Raises:
        OSError: If the write operation fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    content = json.dumps(document, indent=2, ensure_ascii=False)

    try:
        async with aiofiles.open(temp_path, "w", encoding="utf-8") as f:
            await f.write(content)
            await f.flush()
            os.fsync(f.fileno())

        if mode is not None:
            os.chmod(temp_path, mode)

        await aiofiles.os.replace(temp_path, path)
    except Exception:
        # Clean up temp file on failure
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise
