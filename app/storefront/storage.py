# app/storefront/storage.py

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import aiofiles

logger = logging.getLogger(__name__)

CART_KEY = "cart"
BUILD_KEY = "pc_build"


class SessionStorage(Protocol):
    """Key/value storage of one browsing session (the browser's localStorage)."""

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Keeps values in a dict. Values are stored as JSON to behave like real storage."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage:
    """
    One JSON file per key inside the session directory.
    A corrupt or unreadable file is treated as an absent value.
    """

    def __init__(self, base_dir: Path | str, session_id: str):
        safe_session_id = re.sub(r"[^A-Za-z0-9_.-]", "_", session_id)
        self.directory = Path(base_dir) / safe_session_id
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    async def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as in_file:
                content = await in_file.read()
            return json.loads(content)
        except (OSError, ValueError):
            logger.warning(f"Could not read stored value '{key}' from '{path}', ignoring it.", exc_info=True)
            return None

    async def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as out_file:
            await out_file.write(json.dumps(value))
        os.replace(tmp_path, path)

    async def remove(self, key: str) -> None:
        try:
            os.remove(self._path(key))
        except FileNotFoundError:
            pass
