"""
Audit Logger

DESIGN DECISION: Every submitted command is logged.
This provides:
1. Traceability of what each sentence was understood as
2. Debugging capability when a sentence is misread
3. Visibility into persistence problems

The audit logger:
- Is async so it fits the async command flow
- Never crashes the app if logging fails
- Supports correlation IDs to trace the events of one submission
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from spendtalk.models.audit import AuditEvent, AuditEventBuilder


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


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output through the standard library at ``level``.

    Call once at application startup.
    """
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Writes every event to the structured local log.
    """

    def __init__(self, logger_name: str = "spendtalk.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            elif event.severity.value == "debug":
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            # Logging must never take the command flow down with it
            logging.getLogger(__name__).error(
                "audit log write failed for %s: %s", event.event_id, e
            )
            return False

        return True

    async def log_command_received(
        self,
        text: str,
        correlation_id: UUID,
    ) -> None:
        """Log the raw text of a submission."""
        await self.log(AuditEventBuilder.command_received(
            text=text,
            correlation_id=correlation_id,
        ))

    async def log_command_parsed(
        self,
        kind: str,
        command: dict,
        correlation_id: UUID,
    ) -> None:
        """Log what the interpreter produced."""
        await self.log(AuditEventBuilder.command_parsed(
            kind=kind,
            command=command,
            correlation_id=correlation_id,
        ))

    async def log_command_applied(
        self,
        kind: str,
        message: str,
        entity_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log a command that changed state."""
        await self.log(AuditEventBuilder.command_applied(
            kind=kind,
            message=message,
            entity_id=entity_id,
            correlation_id=correlation_id,
        ))

    async def log_command_noop(
        self,
        kind: str,
        message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a state-changing command that had nothing to act on."""
        await self.log(AuditEventBuilder.command_noop(
            kind=kind,
            message=message,
            correlation_id=correlation_id,
        ))

    async def log_undo_applied(
        self,
        remaining_depth: int,
        correlation_id: UUID,
    ) -> None:
        """Log an undo."""
        await self.log(AuditEventBuilder.undo_applied(
            remaining_depth=remaining_depth,
            correlation_id=correlation_id,
        ))

    async def log_state_loaded(
        self,
        location: str,
        expense_count: int,
        budget_count: int,
    ) -> None:
        """Log a state load."""
        await self.log(AuditEventBuilder.state_loaded(
            location=location,
            expense_count=expense_count,
            budget_count=budget_count,
        ))

    async def log_state_saved(
        self,
        location: str,
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a state save."""
        await self.log(AuditEventBuilder.state_saved(
            location=location,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    async def log_state_corrupted(
        self,
        location: str,
        error_message: str,
    ) -> None:
        """Log a stored state that could not be read."""
        await self.log(AuditEventBuilder.state_corrupted(
            location=location,
            error_message=error_message,
        ))

    async def log_save_failed(
        self,
        location: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a save that exhausted its retries."""
        await self.log(AuditEventBuilder.save_failed(
            location=location,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use one per submitted sentence and pass it through every step.
    """
    return uuid4()
