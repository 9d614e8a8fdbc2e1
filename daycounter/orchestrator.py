"""
Counter Service Orchestrator

This module ties the registry, the resolver and the document store
together behind the operations a presentation layer calls:

1. select_user     (names → today's counts)
2. adjust_counter  (transactional +/- on today's document → refresh)
3. register_counter (registry append → zero entry for today → refresh)
4. load_history    (every stored day, as stored)

DESIGN DECISION: Results are published, not returned.
The service owns four observables and every operation updates them
when it completes. Store failures are caught here and become "nothing
changed" (writes) or "empty result" (reads); they are logged and
published on the failure channel but never raised.

Several operations can be in flight at once. Every publication is
tagged with the user it was read for and a read sequence number, and
is dropped when the selection has moved to another user or a newer
read of the same value has already been published.
"""

import asyncio
import itertools
from datetime import tzinfo
from typing import Any, Awaitable, Optional
from uuid import UUID

import structlog

from daycounter.aggregates import DailyAggregateResolver
from daycounter.audit import AuditLogger, create_correlation_id
from daycounter.clock import Clock, system_clock
from daycounter.config import get_settings
from daycounter.models.counters import (
    CounterFailure,
    DateEntry,
    coerce_count,
    is_blank,
)
from daycounter.registry import CounterRegistryService
from daycounter.services.storage import (
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    StorageError,
    day_path,
)
from daycounter.state import MutableObservable, Observable

logger = structlog.get_logger(__name__)


class CounterService:
    """
    Per-session counter orchestrator.

    Observable state:
        counter_names     registry of the selected user, in order
        current_counters  today's count for each of those names
        date_history      stored days of the selected user
        last_failure      most recent swallowed store failure

    Every intent is a coroutine. Await it directly, or hand it to
    submit() to fire and forget.
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        registry: Optional[CounterRegistryService] = None,
        resolver: Optional[DailyAggregateResolver] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
        tz: Optional[tzinfo] = None,
        default_user: str = "Klara",
        starter_counter_names: Optional[list[str]] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()
        self._registry = registry or CounterRegistryService(store, self._audit_logger)
        self._resolver = resolver or DailyAggregateResolver(
            store, self._registry, clock=clock, tz=tz
        )
        self._default_user = default_user
        self._starter_counter_names = list(starter_counter_names or [])

        self._counter_names: MutableObservable[list[str]] = MutableObservable(
            "counter_names", []
        )
        self._current_counters: MutableObservable[dict[str, int]] = MutableObservable(
            "current_counters", {}
        )
        self._date_history: MutableObservable[list[DateEntry]] = MutableObservable(
            "date_history", []
        )
        self._last_failure: MutableObservable[Optional[CounterFailure]] = MutableObservable(
            "last_failure", None
        )

        self._selected_user: Optional[str] = None
        self._selection_generation = 0
        self._read_sequence = itertools.count(1)
        self._published_sequence: dict[str, int] = {}
        self._tasks: set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def counter_names(self) -> Observable[list[str]]:
        return self._counter_names

    @property
    def current_counters(self) -> Observable[dict[str, int]]:
        return self._current_counters

    @property
    def date_history(self) -> Observable[list[DateEntry]]:
        return self._date_history

    @property
    def last_failure(self) -> Observable[Optional[CounterFailure]]:
        return self._last_failure

    @property
    def selected_user(self) -> Optional[str]:
        return self._selected_user

    # -------------------------------------------------------------------------
    # Intents
    # -------------------------------------------------------------------------

    async def start(self) -> bool:
        """
        Initial load: select the default user and show their history.

        A default user without any counters gets the starter counters.
        Seeding needs a successful read: a failed read is not an empty
        registry, and registered names can never be removed.
        """
        user = self._default_user
        if self._starter_counter_names:
            correlation_id = create_correlation_id()
            try:
                registry = await self._registry.get_registry(user)
            except StorageError as e:
                self._record_failure("start", user, e, correlation_id)
                registry = None
            if registry is not None and not registry.names:
                for name in self._starter_counter_names:
                    await self._register(user, name, correlation_id, refresh=False)

        selected = await self.select_user(user)
        await self.load_history(user)
        return selected

    async def select_user(self, user: str) -> bool:
        """
        Make `user` the selected user and load their names and counts.

        Returns:
            False if the request was invalid or a later selection
            superseded this one before it finished
        """
        if is_blank(user):
            self._audit_logger.log_invalid_request("select_user", "blank user")
            return False

        correlation_id = create_correlation_id()
        self._selected_user = user
        self._selection_generation += 1
        generation = self._selection_generation

        names_sequence = next(self._read_sequence)
        names = await self._registry.list_names(user)
        if generation != self._selection_generation:
            self._audit_logger.log_stale_result(
                "counter_names", user, self._selected_user, correlation_id
            )
            return False
        self._publish(self._counter_names, user, names_sequence, list(names), correlation_id)

        counters_sequence = next(self._read_sequence)
        try:
            counters = await self._resolver.resolve_today(user, names)
        except StorageError as e:
            self._record_failure("select_user", user, e, correlation_id)
            counters = {}
        if generation != self._selection_generation:
            self._audit_logger.log_stale_result(
                "current_counters", user, self._selected_user, correlation_id
            )
            return False
        self._publish(self._current_counters, user, counters_sequence, counters, correlation_id)

        self._audit_logger.log_user_selected(user, names, correlation_id)
        return True

    async def adjust_counter(self, user: str, name: str, delta: int) -> bool:
        """
        Add `delta` to today's count of `name`.

        The read-modify-write runs as one store transaction and merges
        only this counter's field, so concurrent adjustments of the same
        or different counters are never lost.

        Returns:
            True if the new value was committed
        """
        if is_blank(user) or is_blank(name):
            self._audit_logger.log_invalid_request(
                "adjust_counter", "blank user or counter name", user=user, counter_name=name
            )
            return False
        if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
            self._audit_logger.log_invalid_request(
                "adjust_counter", f"delta must be a non-zero integer, got {delta!r}",
                user=user, counter_name=name,
            )
            return False

        correlation_id = create_correlation_id()
        day_key = self._resolver.today_key()

        def apply_delta(document: Optional[dict[str, Any]]) -> dict[str, int]:
            return {name: coerce_count((document or {}).get(name)) + delta}

        try:
            written = await self._store.run_transaction(day_path(user, day_key), apply_delta)
        except StorageError as e:
            self._record_failure("adjust_counter", user, e, correlation_id, counter_name=name)
            return False

        self._audit_logger.log_counter_adjusted(
            user=user,
            counter_name=name,
            day_key=day_key,
            delta=delta,
            new_value=written[name],
            correlation_id=correlation_id,
        )
        await self._refresh_counters(user, correlation_id)
        return True

    async def register_counter(self, user: str, name: str) -> bool:
        """
        Start tracking a new counter for `user`.

        Adds the name to the registry, gives today's document a zero
        entry for it if it has none, then refreshes names and counts.
        Registering a name twice is the same as registering it once.

        Returns:
            True if both writes succeeded
        """
        if is_blank(user) or is_blank(name):
            self._audit_logger.log_invalid_request(
                "register_counter", "blank user or counter name", user=user, counter_name=name
            )
            return False
        return await self._register(user, name, create_correlation_id(), refresh=True)

    async def load_history(self, user: str) -> bool:
        """
        Publish every stored day for `user`.

        A failed listing publishes an empty history.
        """
        if is_blank(user):
            self._audit_logger.log_invalid_request("load_history", "blank user")
            return False

        correlation_id = create_correlation_id()
        sequence = next(self._read_sequence)
        try:
            entries = await self._resolver.resolve_history(user)
        except StorageError as e:
            self._record_failure("load_history", user, e, correlation_id)
            entries = []

        published = self._publish(self._date_history, user, sequence, entries, correlation_id)
        if published:
            self._audit_logger.log_history_loaded(user, len(entries), correlation_id)
        return published

    # -------------------------------------------------------------------------
    # Fire and forget
    # -------------------------------------------------------------------------

    def submit(self, intent: Awaitable[Any]) -> asyncio.Task:
        """
        Run an intent in the background.

        Usage:
            service.submit(service.adjust_counter("Klara", "Wedding", 1))
        """
        task = asyncio.ensure_future(intent)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until every submitted intent has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _register(
        self,
        user: str,
        name: str,
        correlation_id: UUID,
        refresh: bool,
    ) -> bool:
        day_key = self._resolver.today_key()
        try:
            added = await self._registry.ensure_name(user, name)
        except StorageError as e:
            self._record_failure("register_counter", user, e, correlation_id, counter_name=name)
            return False

        def seed_zero(document: Optional[dict[str, Any]]) -> Optional[dict[str, int]]:
            if document and name in document:
                return None
            return {name: 0}

        succeeded = True
        try:
            await self._store.run_transaction(day_path(user, day_key), seed_zero)
        except StorageError as e:
            # The registry already has the name; today still reads it as 0
            self._record_failure("register_counter", user, e, correlation_id, counter_name=name)
            succeeded = False

        if succeeded:
            self._audit_logger.log_counter_registered(
                user=user,
                counter_name=name,
                day_key=day_key,
                already_registered=not added,
                correlation_id=correlation_id,
            )
        if refresh:
            await self._refresh_all(user, correlation_id)
        return succeeded

    async def _refresh_all(self, user: str, correlation_id: UUID) -> None:
        if user != self._selected_user:
            return
        sequence = next(self._read_sequence)
        names = await self._registry.list_names(user)
        self._publish(self._counter_names, user, sequence, list(names), correlation_id)
        await self._refresh_counters(user, correlation_id, names)

    async def _refresh_counters(
        self,
        user: str,
        correlation_id: UUID,
        names: Optional[list[str]] = None,
    ) -> bool:
        if user != self._selected_user:
            return False
        sequence = next(self._read_sequence)
        try:
            counters = await self._resolver.resolve_today(user, names)
        except StorageError as e:
            self._record_failure("refresh_counters", user, e, correlation_id)
            return False
        return self._publish(self._current_counters, user, sequence, counters, correlation_id)

    def _publish(
        self,
        observable: MutableObservable,
        user: str,
        sequence: int,
        value: Any,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Publish `value` unless it is stale for the current selection."""
        if user != self._selected_user or sequence < self._published_sequence.get(observable.name, 0):
            self._audit_logger.log_stale_result(
                observable.name, user, self._selected_user, correlation_id
            )
            return False
        self._published_sequence[observable.name] = sequence
        observable.publish(value)
        return True

    def _record_failure(
        self,
        operation: str,
        user: Optional[str],
        error: Exception,
        correlation_id: Optional[UUID] = None,
        counter_name: Optional[str] = None,
    ) -> None:
        self._audit_logger.log_store_failure(
            operation=operation,
            user=user,
            error_message=str(error),
            correlation_id=correlation_id,
            counter_name=counter_name,
        )
        self._last_failure.publish(CounterFailure(
            operation=operation,
            user=user,
            counter_name=counter_name,
            error_message=str(error),
        ))


def create_counter_service(
    use_storage: bool = True,
) -> CounterService:
    """
    Factory function to create the counter service.

    Args:
        use_storage: Whether to use the configured remote store.
                    Set to False to run on the in-memory store.

    Returns:
        A CounterService; call start() on it for the initial load
    """
    app_settings = get_settings().app
    store: Optional[DocumentStoreInterface] = None

    if use_storage and app_settings.storage_backend == "google_sheets":
        try:
            store = GoogleSheetsDocumentStore(GoogleSheetsClient())
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            store = None

    if store is None:
        store = InMemoryDocumentStore()

    tz = app_settings.day_key_tzinfo
    return CounterService(
        store,
        clock=system_clock(tz),
        tz=tz,
        default_user=app_settings.default_user,
        starter_counter_names=app_settings.starter_counters_list,
    )
