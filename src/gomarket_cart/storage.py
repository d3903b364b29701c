import asyncio
import json
import logging
import os
from typing import Optional, Protocol, Union

logger = logging.getLogger(__name__)

STATE_PATH = os.environ.get("GOMARKET_STATE_PATH", "/tmp/gomarket_cart_state.json")


class KeyValueStore(Protocol):
    """Durable string key-value slots. A missing key reads as None."""

    async def get(self, key: str) -> Optional[Union[str, bytes]]: ...

    async def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Process-local storage, mostly for tests and ephemeral runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStorage:
    """All keys live in a single JSON object file, replaced atomically on write."""

    def __init__(self, path: str = STATE_PATH):
        self.path = path
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read state file %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("State file %s is not a JSON object; ignoring it", self.path)
            return {}
        return data

    def _write(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data[key] = value
            await asyncio.to_thread(self._write, data)
        logger.debug("Saved %s to %s", key, self.path)
