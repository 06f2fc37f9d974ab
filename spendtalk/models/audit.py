"""
Audit Models for SpendTalk

Every command the user submits, and every state change it causes, is
recorded as an audit event. This gives:
1. A trail of what the interpreter understood for each sentence
2. Debugging information when a sentence is misread
3. Visibility into persistence failures

DESIGN DECISION: Audit events are append-only. We never modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Interpretation
    COMMAND_RECEIVED = "command_received"
    COMMAND_PARSED = "command_parsed"

    # Application to state
    COMMAND_APPLIED = "command_applied"
    COMMAND_NOOP = "command_noop"
    UNDO_APPLIED = "undo_applied"

    # Persistence
    STATE_LOADED = "state_loaded"
    STATE_SAVED = "state_saved"
    STATE_CORRUPTED = "state_corrupted"
    SAVE_FAILED = "save_failed"

    # System events
    SYSTEM_ERROR = "system_error"


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

    Related events (one submitted sentence) share a correlation id.
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

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'budget', 'state')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one submitted command"
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
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.command_received(text, correlation_id)
        event = AuditEventBuilder.state_saved(path, expense_count, correlation_id)
    """

    @staticmethod
    def command_received(
        text: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_RECEIVED,
            entity_type="command",
            correlation_id=correlation_id,
            description="Command text submitted",
            details={
                "text": text[:200],
            },
            is_user_action=True,
        )

    @staticmethod
    def command_parsed(
        kind: str,
        command: dict,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_PARSED,
            entity_type="command",
            correlation_id=correlation_id,
            description=f"Interpreted as {kind}",
            details={
                "kind": kind,
                "command": command,
            },
        )

    @staticmethod
    def command_applied(
        kind: str,
        message: str,
        entity_id: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_APPLIED,
            entity_type="state",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=message[:500],
            details={
                "kind": kind,
            },
        )

    @staticmethod
    def command_noop(
        kind: str,
        message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_NOOP,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            correlation_id=correlation_id,
            description=message[:500],
            details={
                "kind": kind,
            },
        )

    @staticmethod
    def undo_applied(
        remaining_depth: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNDO_APPLIED,
            entity_type="state",
            correlation_id=correlation_id,
            description="Restored previous snapshot",
            details={
                "remaining_depth": remaining_depth,
            },
            is_user_action=True,
        )

    @staticmethod
    def state_loaded(
        location: str,
        expense_count: int,
        budget_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            entity_type="state",
            description=f"State loaded with {expense_count} expenses",
            details={
                "location": location,
                "expense_count": expense_count,
                "budget_count": budget_count,
            },
        )

    @staticmethod
    def state_saved(
        location: str,
        expense_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SAVED,
            entity_type="state",
            correlation_id=correlation_id,
            description=f"State saved with {expense_count} expenses",
            details={
                "location": location,
                "expense_count": expense_count,
            },
        )

    @staticmethod
    def state_corrupted(
        location: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_CORRUPTED,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            description="Stored state could not be read; starting empty",
            error_message=error_message,
            details={
                "location": location,
            },
        )

    @staticmethod
    def save_failed(
        location: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="state",
            correlation_id=correlation_id,
            description="State could not be saved",
            error_message=error_message,
            details={
                "location": location,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
