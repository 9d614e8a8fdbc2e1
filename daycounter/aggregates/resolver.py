"""
Daily Aggregate Resolver

Turns stored day documents into the two views the service publishes:

- today: exactly the registry's counters, missing ones as zero
- history: every stored day as it was stored, no backfill

The distinction matters. A counter registered this week shows 0 today
but must not appear in last month's history.
"""

from datetime import datetime, tzinfo
from typing import Optional

from daycounter.clock import Clock, day_key_of
from daycounter.models.counters import DailyAggregate, DateEntry
from daycounter.registry import CounterRegistryService
from daycounter.services.storage import (
    DocumentStoreInterface,
    day_path,
    days_collection_path,
)


class DailyAggregateResolver:
    """Resolves today's counts and the stored history for a user."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        registry: CounterRegistryService,
        clock: Optional[Clock] = None,
        tz: Optional[tzinfo] = None,
    ):
        self._store = store
        self._registry = registry
        self._clock = clock or datetime.now
        self._tz = tz

    def today_key(self) -> str:
        return day_key_of(self._clock(), self._tz)

    async def get_aggregate(self, user: str, day_key: str) -> DailyAggregate:
        """
        Load one stored day; an absent document is an empty day.

        Raises:
            StorageError: If the read fails
        """
        document = await self._store.get_document(day_path(user, day_key))
        return DailyAggregate(user=user, day_key=day_key, counts=document or {})

    async def resolve_today(
        self,
        user: str,
        names: Optional[list[str]] = None,
    ) -> dict[str, int]:
        """
        Today's count for every registered counter.

        Args:
            user: Whose counters
            names: Registry names if the caller already fetched them

        Raises:
            StorageError: If today's document can't be read
        """
        if names is None:
            names = await self._registry.list_names(user)
        aggregate = await self.get_aggregate(user, self.today_key())
        return aggregate.resolved_for(names)

    async def resolve_history(self, user: str) -> list[DateEntry]:
        """
        Every stored day for `user`, oldest first.

        Raises:
            StorageError: If the listing fails
        """
        documents = await self._store.list_collection(days_collection_path(user))
        entries = [
            DateEntry(date=doc_id, counters=fields)
            for doc_id, fields in documents
        ]
        entries.sort(key=lambda entry: entry.date)
        return entries
