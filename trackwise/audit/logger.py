"""
Audit Logger

Every state change and every model flow outcome is logged.
This provides:
1. Traceability of what the user did and what the model answered
2. Debugging capability when a view shows an error
3. An activity history the user can look at

The audit logger:
- Is async so it can sit next to the model calls
- Gracefully handles storage failures (logging never breaks a flow)
- Supports correlation IDs to trace related events
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from trackwise.models.audit import AuditEvent, AuditEventBuilder
from trackwise.services.storage import AuditStorageInterface


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

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for the in-app activity history)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for the audit trail.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("trackwise.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def recent_events(self, limit: int = 50) -> list[AuditEvent]:
        """Newest-first audit events, empty when no storage is configured."""
        if self._storage is None:
            return []
        return await self._storage.get_recent_events(limit=limit)

    async def log_income_updated(
        self,
        income: float,
        previous: Optional[float],
    ) -> None:
        await self.log(AuditEventBuilder.income_updated(income, previous))

    async def log_expense_added(
        self,
        expense_id: str,
        description: str,
        amount: float,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_added(
            expense_id=expense_id,
            description=description,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_expense_categorized(
        self,
        expense_id: str,
        category: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_categorized(
            expense_id=expense_id,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_categorization_failed(
        self,
        expense_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.expense_categorization_failed(
            expense_id=expense_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_expense_updated(
        self,
        expense_id: str,
        changes: dict[str, Any],
    ) -> None:
        await self.log(AuditEventBuilder.expense_updated(expense_id, changes))

    async def log_expense_deleted(
        self,
        expense_id: str,
        description: str,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(expense_id, description))

    async def log_validation_failed(
        self,
        form: str,
        issues: list[dict],
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(form, issues))

    async def log_flow_completed(
        self,
        flow: str,
        correlation_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> None:
        await self.log(AuditEventBuilder.flow_completed(
            flow=flow,
            correlation_id=correlation_id,
            details=details,
        ))

    async def log_flow_failed(
        self,
        flow: str,
        error: Exception,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.flow_failed(
            flow=flow,
            error_type=type(error).__name__,
            error_message=str(error),
            correlation_id=correlation_id,
        ))

    async def log_response_discarded(
        self,
        flow: str,
        sequence: int,
        latest: int,
    ) -> None:
        await self.log(AuditEventBuilder.response_discarded(flow, sequence, latest))

    async def log_paths_explored(
        self,
        action_count: int,
        path_count: int,
    ) -> None:
        await self.log(AuditEventBuilder.paths_explored(action_count, path_count))

    async def log_path_limit_exceeded(
        self,
        action_count: int,
        limit: int,
    ) -> None:
        await self.log(AuditEventBuilder.path_limit_exceeded(action_count, limit))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., adding an expense).
    Pass it through all subsequent operations.
    """
    return uuid4()
