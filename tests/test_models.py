"""
Tests for Day Counter models

Test strategy:
1. Unit tests for individual components (models, clock, registry, resolver)
2. Service tests on the in-memory store
3. No real API calls in tests (Google Sheets is faked)
"""

import pytest
from uuid import uuid4

from daycounter.models.counters import (
    CounterFailure,
    CounterRegistry,
    DailyAggregate,
    DateEntry,
    coerce_count,
    coerce_counts,
    coerce_names,
    is_blank,
)
from daycounter.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestCoercion:
    """Tests for reading malformed stored values."""

    def test_integers_are_kept(self):
        assert coerce_count(3) == 3
        assert coerce_count(-2) == -2
        assert coerce_count(0) == 0

    def test_wrong_types_read_as_zero(self):
        for value in ("3", 2.5, 1.0, None, [], {}, True, False):
            assert coerce_count(value) == 0

    def test_coerce_counts_handles_missing_document(self):
        assert coerce_counts(None) == {}
        assert coerce_counts({}) == {}

    def test_coerce_counts_per_field(self):
        assert coerce_counts({"Wedding": 2, "Fatness": "x"}) == {"Wedding": 2, "Fatness": 0}

    def test_coerce_names_drops_junk_and_repeats(self):
        assert coerce_names(["Wedding", 3, "Fatness", "Wedding", "", "  "]) == ["Wedding", "Fatness"]

    def test_coerce_names_rejects_non_lists(self):
        assert coerce_names("Wedding") == []
        assert coerce_names(None) == []

    def test_is_blank(self):
        assert is_blank("")
        assert is_blank("   ")
        assert is_blank(None)
        assert not is_blank("Wedding")


class TestCounterRegistry:
    """Tests for the CounterRegistry model."""

    def test_names_keep_order(self):
        registry = CounterRegistry(user="Klara", names=["Wedding", "Fatness"])
        assert registry.names == ["Wedding", "Fatness"]

    def test_names_are_case_sensitive(self):
        registry = CounterRegistry(user="Klara", names=["wedding", "Wedding"])
        assert registry.names == ["wedding", "Wedding"]

    def test_with_name_appends(self):
        registry = CounterRegistry(user="Klara", names=["Wedding"])
        assert registry.with_name("Fatness").names == ["Wedding", "Fatness"]
        assert registry.names == ["Wedding"]

    def test_with_name_existing_is_noop(self):
        registry = CounterRegistry(user="Klara", names=["Wedding"])
        assert registry.with_name("Wedding") is registry

    def test_contains(self):
        registry = CounterRegistry(user="Klara", names=["Wedding"])
        assert "Wedding" in registry
        assert "Fatness" not in registry

    def test_user_required(self):
        with pytest.raises(ValueError):
            CounterRegistry(user="", names=[])


class TestDailyAggregate:
    """Tests for resolving a stored day against a registry."""

    def test_resolved_for_fills_missing_with_zero(self):
        aggregate = DailyAggregate(user="Klara", day_key="2024-06-01", counts={})
        assert aggregate.resolved_for(["Wedding", "Fatness"]) == {"Wedding": 0, "Fatness": 0}

    def test_resolved_for_drops_unregistered(self):
        aggregate = DailyAggregate(
            user="Klara",
            day_key="2024-06-01",
            counts={"Wedding": 2, "Old": 7},
        )
        assert aggregate.resolved_for(["Wedding"]) == {"Wedding": 2}

    def test_resolved_for_follows_registry_order(self):
        aggregate = DailyAggregate(
            user="Klara",
            day_key="2024-06-01",
            counts={"Fatness": -1, "Wedding": 2},
        )
        assert list(aggregate.resolved_for(["Wedding", "Fatness"])) == ["Wedding", "Fatness"]

    def test_malformed_counts_read_as_zero(self):
        aggregate = DailyAggregate(
            user="Klara",
            day_key="2024-06-01",
            counts={"Wedding": "two"},
        )
        assert aggregate.count_of("Wedding") == 0

    def test_day_key_format_enforced(self):
        with pytest.raises(ValueError):
            DailyAggregate(user="Klara", day_key="01/06/2024")


class TestDateEntry:
    """Tests for history entries."""

    def test_counters_are_kept_verbatim(self):
        entry = DateEntry(date="2024-06-01", counters={"Wedding": 1})
        assert entry.counters == {"Wedding": 1}

    def test_entries_compare_by_value(self):
        assert DateEntry(date="2024-06-01", counters={"A": 1}) == DateEntry(
            date="2024-06-01", counters={"A": 1}
        )


class TestCounterFailure:
    def test_failure_creation(self):
        failure = CounterFailure(
            operation="adjust_counter",
            user="Klara",
            counter_name="Wedding",
            error_message="unreachable",
        )
        assert failure.operation == "adjust_counter"
        assert failure.occurred_at is not None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_defaults(self):
        event = AuditEvent(
            event_type=AuditEventType.COUNTER_ADJUSTED,
            description="Wedding adjusted",
        )
        assert event.severity == AuditSeverity.INFO
        assert event.correlation_id is None

    def test_audit_event_to_log_dict(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.counter_adjusted(
            user="Klara",
            counter_name="Wedding",
            day_key="2024-06-01",
            delta=1,
            new_value=3,
            correlation_id=correlation_id,
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "counter_adjusted"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"] == {"delta": 1, "new_value": 3}
        assert log_dict["description"] == "Wedding adjusted by +1 to 3"

    def test_store_failure_is_an_error(self):
        event = AuditEventBuilder.store_failure(
            operation="load_history",
            user="Zoltan",
            error_message="timeout",
        )
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "timeout"

    def test_counter_registered_description(self):
        new = AuditEventBuilder.counter_registered("Klara", "Steps", "2024-06-01", False, uuid4())
        again = AuditEventBuilder.counter_registered("Klara", "Steps", "2024-06-01", True, uuid4())
        assert new.description == "Registered new counter Steps"
        assert again.details == {"already_registered": True}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
