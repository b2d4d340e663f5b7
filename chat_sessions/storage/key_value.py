"""
Key/Value Store - Minimal string store used for client-local state.

The same session and quota logic runs against whichever implementation a
platform supplies.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..errors import StorageError
from .interface import StorageInterface

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Contract for a string-to-string key/value store."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Return the stored value, or None if the key is absent.

        Raises:
            StorageError: if the key exists but could not be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove ``key``; removing an absent key is not an error."""
        pass


class MemoryKeyValueStore(KeyValueStore):
    """In-process store. State lives as long as the instance."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)


class StorageKeyValueStore(KeyValueStore):
    """
    File-backed store on top of a StorageInterface.
    Each key is one small text file under ``namespace``.
    """

    def __init__(self, storage: StorageInterface, namespace: str = "kv"):
        """
        Args:
            storage: StorageInterface implementation (typically LocalStorage)
            namespace: Directory that holds this store's keys
        """
        self.storage = storage
        self.namespace = namespace

    def _get_key_path(self, key: str) -> str:
        if not key or "/" in key or key.startswith("."):
            raise ValueError(f"Invalid key: {key!r}")
        return f"{self.namespace}/{key}"

    async def get(self, key: str) -> Optional[str]:
        path = self._get_key_path(key)
        if not await self.storage.exists(path):
            return None

        content = await self.storage.load(path)
        if content is None:
            raise StorageError(f"Failed to read key {key}")
        return content.decode('utf-8')

    async def set(self, key: str, value: str) -> None:
        if not await self.storage.save(self._get_key_path(key), value):
            raise StorageError(f"Failed to store key {key}")

    async def remove(self, key: str) -> None:
        await self.storage.delete(self._get_key_path(key))
