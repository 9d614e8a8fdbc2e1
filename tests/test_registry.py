"""Tests for the counter registry."""

import asyncio

import pytest

from daycounter.registry import CounterRegistryService
from daycounter.services.storage import InMemoryDocumentStore, StorageError


class UnreachableStore(InMemoryDocumentStore):
    """In-memory store that fails every read and transaction."""

    async def get_document(self, path):
        raise StorageError("store unreachable")

    async def run_transaction(self, path, update):
        raise StorageError("store unreachable")


@pytest.fixture
def registry(store):
    """Registry service over the in-memory store."""
    return CounterRegistryService(store)


class TestListNames:
    """Tests for reading a user's counter names."""

    async def test_missing_registry_is_empty(self, registry):
        """Test that a user without a registry has no names."""
        assert await registry.list_names("Klara") == []

    async def test_reads_stored_order(self, registry, store):
        """Test that names come back in registration order."""
        await store.merge_document("users/Klara", {"counter_names": ["Wedding", "Fatness"]})
        assert await registry.list_names("Klara") == ["Wedding", "Fatness"]

    async def test_malformed_entries_dropped(self, registry, store):
        """Test that non-strings and repeats are dropped."""
        await store.merge_document("users/Klara", {"counter_names": ["Wedding", 7, "Wedding"]})
        assert await registry.list_names("Klara") == ["Wedding"]

    async def test_store_failure_reads_as_empty(self):
        """Test that a store failure reads as no names."""
        registry = CounterRegistryService(UnreachableStore())
        assert await registry.list_names("Klara") == []

    async def test_invalid_user_reads_as_empty(self, registry):
        """Test that an unusable user id reads as no names."""
        assert await registry.list_names("a/b") == []


class TestRegisterName:
    """Tests for registering counter names."""

    async def test_appends_in_order(self, registry):
        """Test that new names are appended in order."""
        assert await registry.register_name("Klara", "Wedding")
        assert await registry.register_name("Klara", "Fatness")
        assert await registry.list_names("Klara") == ["Wedding", "Fatness"]

    async def test_existing_name_is_noop(self, registry):
        """Test that registering a known name changes nothing."""
        await registry.register_name("Klara", "Wedding")
        assert await registry.register_name("Klara", "Wedding")
        assert await registry.list_names("Klara") == ["Wedding"]

    async def test_ensure_name_reports_new_names(self, registry):
        """Test that ensure_name reports whether it added the name."""
        assert await registry.ensure_name("Klara", "Wedding") is True
        assert await registry.ensure_name("Klara", "Wedding") is False

    async def test_blank_name_rejected(self, registry, store):
        """Test that a blank name is never stored."""
        assert not await registry.register_name("Klara", "  ")
        assert await store.get_document("users/Klara") is None

    async def test_users_are_independent(self, registry):
        """Test that each user has their own registry."""
        await registry.register_name("Klara", "Wedding")
        await registry.register_name("Zoltan", "Steps")
        assert await registry.list_names("Klara") == ["Wedding"]
        assert await registry.list_names("Zoltan") == ["Steps"]

    async def test_concurrent_registrations_keep_every_name(self):
        """Test that concurrent registrations lose no name."""
        registry = CounterRegistryService(InMemoryDocumentStore(latency=0.001))
        names = [f"Counter {i}" for i in range(10)]

        await asyncio.gather(*[registry.register_name("Klara", name) for name in names])

        assert sorted(await registry.list_names("Klara")) == sorted(names)

    async def test_store_failure_returns_false(self):
        """Test that a failed write reports False."""
        registry = CounterRegistryService(UnreachableStore())
        assert not await registry.register_name("Klara", "Wedding")
