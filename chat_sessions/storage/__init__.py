"""Storage module - provides interfaces and implementations for data persistence."""

from ..errors import StorageError
from .interface import StorageInterface
from .local_storage import LocalStorage
from .document_store import DocumentStore, LocalDocumentStore
from .key_value import KeyValueStore, MemoryKeyValueStore, StorageKeyValueStore

__all__ = [
    'StorageError', 'StorageInterface', 'LocalStorage',
    'DocumentStore', 'LocalDocumentStore',
    'KeyValueStore', 'MemoryKeyValueStore', 'StorageKeyValueStore',
]
