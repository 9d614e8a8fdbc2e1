"""
Audit Logger

DESIGN DECISION: Every counter change and every swallowed store failure
is logged. The counter service never raises store errors to its caller,
so this log is where failures surface for debugging.

The audit logger:
- Never raises (a logging problem must not break a counter update)
- Supports correlation IDs to trace an operation and its refresh
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from daycounter.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Writes each event as one structured log line at the event's severity.
    """

    def __init__(self, logger_name: str = "daycounter.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    def log_user_selected(
        self,
        user: str,
        counter_names: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a completed user selection."""
        self.log(AuditEventBuilder.user_selected(
            user=user,
            counter_names=counter_names,
            correlation_id=correlation_id,
        ))

    def log_counter_adjusted(
        self,
        user: str,
        counter_name: str,
        day_key: str,
        delta: int,
        new_value: int,
        correlation_id: UUID,
    ) -> None:
        """Log a committed counter adjustment."""
        self.log(AuditEventBuilder.counter_adjusted(
            user=user,
            counter_name=counter_name,
            day_key=day_key,
            delta=delta,
            new_value=new_value,
            correlation_id=correlation_id,
        ))

    def log_counter_registered(
        self,
        user: str,
        counter_name: str,
        day_key: str,
        already_registered: bool,
        correlation_id: UUID,
    ) -> None:
        """Log a counter registration."""
        self.log(AuditEventBuilder.counter_registered(
            user=user,
            counter_name=counter_name,
            day_key=day_key,
            already_registered=already_registered,
            correlation_id=correlation_id,
        ))

    def log_history_loaded(
        self,
        user: str,
        day_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a history listing."""
        self.log(AuditEventBuilder.history_loaded(
            user=user,
            day_count=day_count,
            correlation_id=correlation_id,
        ))

    def log_invalid_request(
        self,
        operation: str,
        reason: str,
        user: Optional[str] = None,
        counter_name: Optional[str] = None,
    ) -> None:
        """Log a request the service ignored."""
        self.log(AuditEventBuilder.invalid_request(
            operation=operation,
            reason=reason,
            user=user,
            counter_name=counter_name,
        ))

    def log_stale_result(
        self,
        field: str,
        user: str,
        selected_user: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a result dropped because the selection moved on."""
        self.log(AuditEventBuilder.stale_result_discarded(
            field=field,
            user=user,
            selected_user=selected_user,
            correlation_id=correlation_id,
        ))

    def log_store_failure(
        self,
        operation: str,
        user: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None,
        counter_name: Optional[str] = None,
    ) -> None:
        """Log a store failure that was swallowed."""
        self.log(AuditEventBuilder.store_failure(
            operation=operation,
            user=user,
            error_message=error_message,
            correlation_id=correlation_id,
            counter_name=counter_name,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a service operation and pass it through
    the refresh that follows.
    """
    return uuid4()
