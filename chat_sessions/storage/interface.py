"""
Storage Interface - Abstract base class for all file storage implementations.
This interface enables seamless switching between Local, S3, OSS, etc.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageInterface(ABC):
    """
    Abstract storage interface that defines the contract for all storage implementations.
    Document and key/value stores are layered on top of it.
    """

    @abstractmethod
    async def save(self, path: str, content: bytes | str) -> bool:
        """
        Save content to the specified path.

        Args:
            path: Relative path where content should be saved (e.g., "chatSessions/u1.json")
            content: Content to save (bytes for binary files or str for text)

        Returns:
            bool: True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    async def load(self, path: str) -> Optional[bytes]:
        """
        Load content from the specified path.

        Args:
            path: Relative path to load from

        Returns:
            Optional[bytes]: File content as bytes, or None if file doesn't exist
        """
        pass

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """
        Check if a file exists at the specified path.

        Args:
            path: Relative path to check

        Returns:
            bool: True if file exists, False otherwise
        """
        pass

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete file at the specified path.

        Args:
            path: Relative path to delete

        Returns:
            bool: True if deletion was successful, False otherwise
        """
        pass
