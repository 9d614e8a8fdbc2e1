"""
Data Models Package

This package contains all Pydantic models used in the Day Counter system.
"""

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

__all__ = [
    # Counter models
    "CounterFailure",
    "CounterRegistry",
    "DailyAggregate",
    "DateEntry",
    "coerce_count",
    "coerce_counts",
    "coerce_names",
    "is_blank",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
