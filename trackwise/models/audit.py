"""
Audit Models for TrackWise

Every state change and every language-model flow leaves an audit event.
This provides:
1. A per-session activity history the user can look at
2. Debugging information when a flow fails
3. A record of which model replies were discarded as stale

Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Income
    INCOME_UPDATED = "income_updated"

    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_CATEGORIZED = "expense_categorized"
    EXPENSE_CATEGORIZATION_FAILED = "expense_categorization_failed"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Form validation
    VALIDATION_FAILED = "validation_failed"

    # Language-model flows
    FLOW_COMPLETED = "flow_completed"
    FLOW_FAILED = "flow_failed"
    RESPONSE_DISCARDED = "response_discarded"

    # Path exploration
    PATHS_EXPLORED = "paths_explored"
    PATH_LIMIT_EXCEEDED = "path_limit_exceeded"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
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

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'income', 'flow')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., add + categorize)"
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

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_added(expense_id, "Coffee", 4.5, cid)
        event = AuditEventBuilder.flow_failed("predict_budget", "timeout", cid)
    """

    @staticmethod
    def income_updated(
        income: float,
        previous: Optional[float],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_UPDATED,
            entity_type="income",
            description=f"Income set to {income:,.2f}",
            details={
                "income": income,
                "previous": previous,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_added(
        expense_id: str,
        description: str,
        amount: float,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense added: {description}",
            details={
                "description": description,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_categorized(
        expense_id: str,
        category: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CATEGORIZED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense auto-categorized as {category}",
            details={
                "category": category,
            },
        )

    @staticmethod
    def expense_categorization_failed(
        expense_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CATEGORIZATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description="Could not auto-categorize expense",
            error_message=error_message,
        )

    @staticmethod
    def expense_updated(
        expense_id: str,
        changes: dict[str, Any],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            description="Expense updated",
            details={
                "changes": changes,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        description: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            description=f"Expense deleted: {description}",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        form: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="form",
            entity_id=form,
            description=f"{form.capitalize()} form rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def flow_completed(
        flow: str,
        correlation_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FLOW_COMPLETED,
            entity_type="flow",
            entity_id=flow,
            correlation_id=correlation_id,
            description=f"Flow completed: {flow}",
            details=details or {},
        )

    @staticmethod
    def flow_failed(
        flow: str,
        error_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FLOW_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="flow",
            entity_id=flow,
            correlation_id=correlation_id,
            description=f"Flow failed: {flow}",
            error_code=error_type,
            error_message=error_message,
        )

    @staticmethod
    def response_discarded(
        flow: str,
        sequence: int,
        latest: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RESPONSE_DISCARDED,
            severity=AuditSeverity.WARNING,
            entity_type="flow",
            entity_id=flow,
            description=f"Stale {flow} response discarded (#{sequence}, latest #{latest})",
            details={
                "sequence": sequence,
                "latest": latest,
            },
        )

    @staticmethod
    def paths_explored(
        action_count: int,
        path_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PATHS_EXPLORED,
            entity_type="paths",
            description=f"Explored {path_count} paths over {action_count} actions",
            details={
                "action_count": action_count,
                "path_count": path_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def path_limit_exceeded(
        action_count: int,
        limit: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PATH_LIMIT_EXCEEDED,
            severity=AuditSeverity.WARNING,
            entity_type="paths",
            description=f"Rejected {action_count} actions (limit {limit})",
            details={
                "action_count": action_count,
                "limit": limit,
            },
            is_user_action=True,
        )
