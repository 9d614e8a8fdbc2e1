"""
Abstract Document Store Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real document database later
2. Use in-memory storage for testing
3. Keep counter logic decoupled from storage implementation

The store is a tiny document database addressed by slash-separated
paths. Counters need four things from it: point reads, merge-writes,
listing a collection, and an atomic read-modify-write.

Layout:
    users/{user}                    -> {"counter_names": [...]}
    users/{user}/days/{day_key}     -> {"<counter name>": <count>, ...}
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

# Receives the current document (None if absent) and returns the fields
# to merge into it, or None to leave the document untouched.
TransactionUpdate = Callable[[Optional[dict[str, Any]]], Optional[dict[str, Any]]]

USERS_COLLECTION = "users"
DAYS_COLLECTION = "days"
COUNTER_NAMES_FIELD = "counter_names"


class DocumentStoreInterface(ABC):
    """
    Abstract interface for the counter document store.

    Any storage implementation (Google Sheets, Firestore, etc.)
    must implement these methods. Every backend error must surface
    as a StorageError.
    """

    @abstractmethod
    async def get_document(self, path: str) -> Optional[dict[str, Any]]:
        """
        Read one document.

        Args:
            path: Document path

        Returns:
            A copy of the document's fields, or None if it doesn't exist

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def merge_document(self, path: str, fields: dict[str, Any]) -> bool:
        """
        Update-or-create a document, keeping fields not mentioned.

        Args:
            path: Document path
            fields: Fields to set

        Returns:
            True if written successfully

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def list_collection(self, path: str) -> list[tuple[str, dict[str, Any]]]:
        """
        List the documents directly inside a collection.

        Args:
            path: Collection path (e.g. users/Klara/days)

        Returns:
            (document_id, fields) pairs; empty if the collection has none

        Raises:
            StorageError: If the listing fails
        """
        pass

    @abstractmethod
    async def run_transaction(
        self,
        path: str,
        update: TransactionUpdate,
    ) -> Optional[dict[str, Any]]:
        """
        Atomically read a document, compute new fields, and merge them.

        No other write to `path` may land between the read handed to
        `update` and the merge of its result. Implementations either
        lock or detect the conflict and re-run `update`, so `update`
        must be free of side effects.

        Args:
            path: Document path
            update: Function from the current document to the fields to merge

        Returns:
            The fields that were merged, or None if `update` chose not to write

        Raises:
            StorageError: If the transaction cannot be committed
        """
        pass


# =============================================================================
# LOCKS
# =============================================================================

class PathLocks:
    """
    A fixed pool of asyncio locks shared by all document paths.

    A path always maps to the same lock, so writes to one document are
    serialized. Unrelated paths may share a lock; the pool never grows.
    """

    def __init__(self, stripes: int = 64):
        self._locks = [asyncio.Lock() for _ in range(stripes)]

    def for_path(self, path: str) -> asyncio.Lock:
        return self._locks[hash(path) % len(self._locks)]


# =============================================================================
# PATHS
# =============================================================================

def _check_segment(value: str, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidPathError(f"{what} must be a non-empty string")
    if "/" in value:
        raise InvalidPathError(f"{what} must not contain '/': {value!r}")
    return value


def user_path(user: str) -> str:
    """Path of the document holding a user's counter registry."""
    return f"{USERS_COLLECTION}/{_check_segment(user, 'User')}"


def days_collection_path(user: str) -> str:
    """Path of the collection holding a user's day documents."""
    return f"{user_path(user)}/{DAYS_COLLECTION}"


def day_path(user: str, day_key: str) -> str:
    """Path of one user's counts for one day."""
    return f"{days_collection_path(user)}/{_check_segment(day_key, 'Day key')}"


def split_path(path: str) -> tuple[str, str]:
    """Split a document path into (parent collection, document id)."""
    parent, _, doc_id = path.rpartition("/")
    if not parent or not doc_id:
        raise InvalidPathError(f"Not a document path: {path!r}")
    return parent, doc_id


# =============================================================================
# ERRORS
# =============================================================================

class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class TransactionConflictError(StorageError):
    """The document changed while a transaction was computing its update."""
    pass


class InvalidPathError(StorageError):
    """A user id or day key can't be used as a path segment."""
    pass
