"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for document storage.
This allows us to:
1. Keep the ledgers ignorant of paths, encodings and atomic-write tricks
2. Swap the local JSON folder for another backend later
3. Keep the read/write error policy in one place

A "document" is one JSON value addressed by a relative name such as
"settings.json" or "data/2025-01.json". The interface is intentionally
simple - the ledgers do their own read-modify-write on top of it.
"""

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class DocumentStoreInterface(ABC):
    """
    Abstract interface for JSON document storage.

    Read policy: fail open. A missing, unreadable or malformed document
    yields the caller's default.

    Write policy: fail closed. Any failure raises StorageWriteError.
    """

    @property
    @abstractmethod
    def root(self) -> Path:
        """Folder that holds every document."""
        pass

    @abstractmethod
    async def ensure_dirs(self) -> None:
        """
        Create the root and data folders if they don't exist.

        Idempotent.

        Raises:
            StorageWriteError: If the folders cannot be created
        """
        pass

    @abstractmethod
    async def read(self, name: str, default: Any) -> Any:
        """
        Read a document.

        Args:
            name: Document name relative to the root
            default: Value returned when the document is absent or broken

        Returns:
            The decoded JSON value, or a copy of `default`
        """
        pass

    @abstractmethod
    async def write(self, name: str, value: Any) -> None:
        """
        Replace a document with `value`.

        Raises:
            StorageWriteError: If the document could not be saved
        """
        pass

    @abstractmethod
    async def list_documents(self, folder: str, pattern: re.Pattern) -> list[str]:
        """
        List file names in `folder` that fully match `pattern`.

        Only names are inspected, never contents.
        """
        pass

    @abstractmethod
    async def exists(self, name: str) -> bool:
        pass

    @abstractmethod
    async def rename(self, name: str, new_name: str) -> None:
        """
        Rename a document.

        Raises:
            StorageWriteError: If the rename fails
        """
        pass

    @abstractmethod
    async def clear(self) -> int:
        """
        Delete every document and recreate the empty folders.

        Returns:
            Number of files removed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageWriteError(StorageError):
    """A document could not be written; the change was not saved."""
    pass


class DocumentNameError(StorageError):
    """A document name escapes the data folder."""
    pass
