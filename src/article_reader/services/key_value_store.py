"""JSON-file backed key/value storage for credentials and preferences."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class JsonKeyValueStore:
    """Persist string values under string keys in a single JSON file."""

    def __init__(self, path: Path):
        self._path = path
        self._cached: Optional[dict[str, str]] = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if self._cached is not None:
            return self._cached

        if self._path.exists():
            try:
                data = json.loads(self._path.read_text(encoding="utf-8"))
                if not isinstance(data, dict):
                    raise ValueError("top-level JSON value is not an object")
                self._cached = {str(k): str(v) for k, v in data.items()}
                logger.info(f"Loaded preferences from {self._path}")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load preferences: {e}, starting empty")
                self._cached = {}
        else:
            self._cached = {}

        return self._cached

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        self._cached = data

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            data = await asyncio.to_thread(self._load)
            return data.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            data = dict(await asyncio.to_thread(self._load))
            data[key] = value
            await asyncio.to_thread(self._save, data)
        logger.debug(f"Stored preference '{key}'")

    async def delete(self, key: str) -> None:
        async with self._lock:
            data = dict(await asyncio.to_thread(self._load))
            if data.pop(key, None) is None:
                return
            await asyncio.to_thread(self._save, data)
        logger.debug(f"Removed preference '{key}'")


__all__ = ["JsonKeyValueStore"]
