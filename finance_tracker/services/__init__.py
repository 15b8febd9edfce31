"""Services package."""

from finance_tracker.services.storage import (
    DocumentNameError,
    DocumentStoreInterface,
    JsonDocumentStore,
    StorageError,
    StorageWriteError,
)

__all__ = [
    "DocumentNameError",
    "DocumentStoreInterface",
    "JsonDocumentStore",
    "StorageError",
    "StorageWriteError",
]
