"""
In-Memory Document Store

Keeps documents in a dict keyed by path. Used for tests and for
running without any Google configuration.

Every operation yields to the event loop before touching data, so
concurrent callers really do interleave, the same way they would
against a remote store. Transactions take a per-document lock for
the whole read-compute-write.
"""

import asyncio
import copy
from typing import Any, Optional

from daycounter.services.storage.interface import (
    DocumentStoreInterface,
    PathLocks,
    StorageError,
    TransactionUpdate,
    split_path,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """
    Dict-backed implementation of the document store.

    Documents are deep-copied on the way in and out so callers can't
    mutate stored state behind the store's back.
    """

    def __init__(self, latency: float = 0.0):
        """
        Args:
            latency: Seconds every operation waits before running.
        """
        self._documents: dict[str, dict[str, Any]] = {}
        self._locks = PathLocks()
        self._latency = latency

    async def _round_trip(self) -> None:
        await asyncio.sleep(self._latency)

    async def get_document(self, path: str) -> Optional[dict[str, Any]]:
        split_path(path)
        await self._round_trip()
        document = self._documents.get(path)
        return copy.deepcopy(document) if document is not None else None

    async def merge_document(self, path: str, fields: dict[str, Any]) -> bool:
        split_path(path)
        await self._round_trip()
        async with self._locks.for_path(path):
            self._merge(path, fields)
        return True

    async def list_collection(self, path: str) -> list[tuple[str, dict[str, Any]]]:
        await self._round_trip()
        prefix = path.rstrip("/") + "/"
        documents = []
        for doc_path, fields in self._documents.items():
            if not doc_path.startswith(prefix):
                continue
            doc_id = doc_path[len(prefix):]
            if "/" in doc_id:
                # Belongs to a nested collection
                continue
            documents.append((doc_id, copy.deepcopy(fields)))
        return documents

    async def run_transaction(
        self,
        path: str,
        update: TransactionUpdate,
    ) -> Optional[dict[str, Any]]:
        split_path(path)
        async with self._locks.for_path(path):
            await self._round_trip()
            current = copy.deepcopy(self._documents.get(path))
            try:
                fields = update(current)
            except Exception as e:
                raise StorageError(f"Transaction update failed for {path}: {e}") from e
            # Round trip for the commit
            await self._round_trip()
            if fields is None:
                return None
            self._merge(path, fields)
            return copy.deepcopy(fields)

    def _merge(self, path: str, fields: dict[str, Any]) -> None:
        document = self._documents.setdefault(path, {})
        document.update(copy.deepcopy(fields))
