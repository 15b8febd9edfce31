"""
Storage Services Package

Provides the abstract document store interface and its local JSON folder
implementation.
"""

from finance_tracker.services.storage.interface import (
    DocumentNameError,
    DocumentStoreInterface,
    StorageError,
    StorageWriteError,
)
from finance_tracker.services.storage.json_files import (
    DATA_FOLDER,
    USE_DEFAULT,
    JsonDocumentStore,
    parse_document,
)

__all__ = [
    # Interfaces
    "DocumentStoreInterface",
    # Exceptions
    "DocumentNameError",
    "StorageError",
    "StorageWriteError",
    # JSON folder implementation
    "DATA_FOLDER",
    "USE_DEFAULT",
    "JsonDocumentStore",
    "parse_document",
]
