"""Services package."""

from daycounter.services.storage import (
    ConnectionError,
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    InvalidPathError,
    StorageError,
    TransactionConflictError,
)

__all__ = [
    "ConnectionError",
    "DocumentStoreInterface",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "InvalidPathError",
    "StorageError",
    "TransactionConflictError",
]
