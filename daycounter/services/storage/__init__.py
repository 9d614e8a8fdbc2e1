"""
Storage Services Package

Provides the abstract document store interface and its implementations.
Google Sheets is the remote backend; the in-memory store serves tests
and unconfigured runs.
"""

from daycounter.services.storage.interface import (
    COUNTER_NAMES_FIELD,
    ConnectionError,
    DocumentStoreInterface,
    InvalidPathError,
    PathLocks,
    StorageError,
    TransactionConflictError,
    TransactionUpdate,
    day_path,
    days_collection_path,
    split_path,
    user_path,
)
from daycounter.services.storage.memory import InMemoryDocumentStore
from daycounter.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interface
    "DocumentStoreInterface",
    "PathLocks",
    "TransactionUpdate",
    # Paths
    "COUNTER_NAMES_FIELD",
    "day_path",
    "days_collection_path",
    "split_path",
    "user_path",
    # Exceptions
    "ConnectionError",
    "InvalidPathError",
    "StorageError",
    "TransactionConflictError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
]
