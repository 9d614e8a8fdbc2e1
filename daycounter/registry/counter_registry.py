"""
Counter Registry

Each user has an ordered list of counter names stored on their user
document. The list decides which counters exist and in what order they
are shown. It only ever grows.

GUARANTEES:
- Reads never raise; an unreachable store reads as an empty registry
- Registration appends inside a store transaction, so two people
  registering different names at the same time both keep their name
"""

from typing import Optional

from daycounter.audit import AuditLogger
from daycounter.models.counters import CounterRegistry, is_blank
from daycounter.services.storage import (
    COUNTER_NAMES_FIELD,
    DocumentStoreInterface,
    StorageError,
    user_path,
)


class CounterRegistryService:
    """Reads and extends users' counter registries."""

    def __init__(
        self,
        store: DocumentStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()

    async def get_registry(self, user: str) -> CounterRegistry:
        """
        Load a user's registry.

        Raises:
            StorageError: If the user document can't be read
        """
        document = await self._store.get_document(user_path(user))
        names = (document or {}).get(COUNTER_NAMES_FIELD, [])
        return CounterRegistry(user=user, names=names)

    async def list_names(self, user: str) -> list[str]:
        """
        Counter names for `user`, in registration order.

        Empty if the user has no registry yet or the store can't be read.
        """
        try:
            registry = await self.get_registry(user)
        except StorageError as e:
            self._audit_logger.log_store_failure(
                operation="list_names",
                user=user,
                error_message=str(e),
            )
            return []
        return list(registry.names)

    async def ensure_name(self, user: str, name: str) -> bool:
        """
        Append `name` to the user's registry unless it is already there.

        Returns:
            True if the name was added, False if it was already registered

        Raises:
            StorageError: If the registry transaction fails
        """
        def append_name(document):
            registry = CounterRegistry(
                user=user,
                names=(document or {}).get(COUNTER_NAMES_FIELD),
            )
            updated = registry.with_name(name)
            if updated is registry:
                return None
            return {COUNTER_NAMES_FIELD: list(updated.names)}

        written = await self._store.run_transaction(user_path(user), append_name)
        return written is not None

    async def register_name(self, user: str, name: str) -> bool:
        """
        Register `name` for `user`; a name already present is left alone.

        Returns:
            True if the name is registered afterwards, False if the name
            was blank or the store write failed
        """
        if is_blank(name):
            return False

        try:
            await self.ensure_name(user, name)
        except StorageError as e:
            self._audit_logger.log_store_failure(
                operation="register_name",
                user=user,
                counter_name=name,
                error_message=str(e),
            )
            return False
        return True
