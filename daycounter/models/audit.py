"""
Audit Models for Day Counter

Every counter change and every swallowed failure is logged.
Since the service deliberately hides store failures from its caller,
the audit trail is the only place they become visible.

DESIGN DECISION: Audit events are written to the structured log only.
They are not stored next to the counters.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Selection and loading
    USER_SELECTED = "user_selected"
    HISTORY_LOADED = "history_loaded"

    # Counter changes
    COUNTER_ADJUSTED = "counter_adjusted"
    COUNTER_REGISTERED = "counter_registered"

    # Requests the service refused or dropped
    INVALID_REQUEST = "invalid_request"
    STALE_RESULT_DISCARDED = "stale_result_discarded"

    # Failures
    STORE_FAILURE = "store_failure"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every counter change or swallowed failure creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred (local time)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - whose counters, which counter, which day
    user: Optional[str] = None
    counter_name: Optional[str] = None
    day_key: Optional[str] = None

    # Correlation - ties the events of one service call together
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g. an adjustment and its refresh)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user": self.user,
            "counter_name": self.counter_name,
            "day_key": self.day_key,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.counter_adjusted("Klara", "Wedding", "2024-06-01", 1, 3, cid)
        event = AuditEventBuilder.store_failure("load_history", "Klara", "timeout", cid)
    """

    @staticmethod
    def user_selected(
        user: str,
        counter_names: list[str],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SELECTED,
            severity=AuditSeverity.DEBUG,
            user=user,
            correlation_id=correlation_id,
            description=f"Selected user {user}",
            details={"counter_names": counter_names},
        )

    @staticmethod
    def counter_adjusted(
        user: str,
        counter_name: str,
        day_key: str,
        delta: int,
        new_value: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COUNTER_ADJUSTED,
            user=user,
            counter_name=counter_name,
            day_key=day_key,
            correlation_id=correlation_id,
            description=f"{counter_name} adjusted by {delta:+d} to {new_value}",
            details={"delta": delta, "new_value": new_value},
        )

    @staticmethod
    def counter_registered(
        user: str,
        counter_name: str,
        day_key: str,
        already_registered: bool,
        correlation_id: UUID,
    ) -> AuditEvent:
        if already_registered:
            description = f"{counter_name} was already registered"
        else:
            description = f"Registered new counter {counter_name}"
        return AuditEvent(
            event_type=AuditEventType.COUNTER_REGISTERED,
            user=user,
            counter_name=counter_name,
            day_key=day_key,
            correlation_id=correlation_id,
            description=description,
            details={"already_registered": already_registered},
        )

    @staticmethod
    def history_loaded(
        user: str,
        day_count: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HISTORY_LOADED,
            severity=AuditSeverity.DEBUG,
            user=user,
            correlation_id=correlation_id,
            description=f"Loaded {day_count} day(s) of history",
            details={"day_count": day_count},
        )

    @staticmethod
    def invalid_request(
        operation: str,
        reason: str,
        user: Optional[str] = None,
        counter_name: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVALID_REQUEST,
            severity=AuditSeverity.WARNING,
            user=user,
            counter_name=counter_name,
            description=f"Ignored {operation}: {reason}",
            details={"operation": operation},
        )

    @staticmethod
    def stale_result_discarded(
        field: str,
        user: str,
        selected_user: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STALE_RESULT_DISCARDED,
            severity=AuditSeverity.DEBUG,
            user=user,
            correlation_id=correlation_id,
            description=f"Dropped stale {field} result for {user}",
            details={"field": field, "selected_user": selected_user},
        )

    @staticmethod
    def store_failure(
        operation: str,
        user: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None,
        counter_name: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_FAILURE,
            severity=AuditSeverity.ERROR,
            user=user,
            counter_name=counter_name,
            correlation_id=correlation_id,
            description=f"Store failure during {operation}",
            details={"operation": operation},
            error_message=error_message,
        )
