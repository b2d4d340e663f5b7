"""
Document Store - Keyed JSON documents grouped into collections.

Session records live here. The store is authoritative; caches in front of
it only hold derived copies.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..errors import StorageError
from .interface import StorageInterface

logger = logging.getLogger(__name__)


class DocumentStore(ABC):
    """
    Contract for a durable document store.
    Implementations assign ``createdAt``/``updatedAt`` on write.
    """

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a document.

        Returns:
            The document fields, or None if the document does not exist
        """
        pass

    @abstractmethod
    async def create_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Create (or overwrite) a document with ``fields``."""
        pass

    @abstractmethod
    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """
        Merge ``fields`` into an existing document.

        Raises:
            StorageError: if the document does not exist or the write fails
        """
        pass


class LocalDocumentStore(DocumentStore):
    """
    Document store backed by a StorageInterface.
    Each document is one JSON file at ``<collection>/<doc_id>.json``.
    """

    def __init__(self, storage: StorageInterface):
        """
        Initialize document store.

        Args:
            storage: StorageInterface implementation (typically LocalStorage)
        """
        self.storage = storage

    def _get_document_path(self, collection: str, doc_id: str) -> str:
        return f"{collection}/{doc_id}.json"

    @staticmethod
    def _server_timestamp() -> str:
        return datetime.now(timezone.utc).isoformat()

    async def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        path = self._get_document_path(collection, doc_id)
        if not await self.storage.exists(path):
            return None

        content = await self.storage.load(path)
        # The file exists, so a missing payload means the read itself failed
        if content is None:
            raise StorageError(f"Failed to read document {path}")

        try:
            return json.loads(content.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Corrupt document {path}: {e}") from e

    async def create_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        now = self._server_timestamp()
        document = {**fields, "createdAt": now, "updatedAt": now}
        await self._write(collection, doc_id, document)

    async def update_document(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        document = await self.get_document(collection, doc_id)
        if document is None:
            raise StorageError(f"Cannot update missing document {collection}/{doc_id}")

        document.update(fields)
        document["updatedAt"] = self._server_timestamp()
        await self._write(collection, doc_id, document)

    async def _write(self, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        path = self._get_document_path(collection, doc_id)
        content = json.dumps(document, indent=2, ensure_ascii=False)
        if not await self.storage.save(path, content):
            raise StorageError(f"Failed to write document {path}")
        logger.debug(f"Wrote document {path}")
