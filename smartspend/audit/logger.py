"""
Audit Logger

DESIGN DECISION: Every ledger mutation and boundary call is logged.
This provides:
1. A trail of what changed the ledger and when
2. Visibility into failed saves and syncs, which the UI only shows as notices
3. A record of what was sent to the advisor

The audit logger:
- Is async so it can share the storage event loop
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from smartspend.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from smartspend.models.transaction import Transaction
from smartspend.services.storage import AuditStorageInterface


def configure_logging(debug: bool = False) -> None:
    """Configure structlog for local JSON logging."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )
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


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (Google Sheets)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("smartspend.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
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

    async def log_ledger_loaded(
        self,
        count: int,
        source: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a ledger load."""
        await self.log(AuditEventBuilder.ledger_loaded(count, source, correlation_id))

    async def log_migration_applied(
        self,
        repaired: int,
        dropped: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log load-time record repairs."""
        await self.log(AuditEventBuilder.migration_applied(repaired, dropped, correlation_id))

    async def log_transaction_added(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_added(
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=str(transaction.amount),
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(transaction_id, correlation_id))

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(transaction_id, correlation_id))

    async def log_ledger_saved(
        self,
        count: int,
        target: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a successful save (``target`` is "local" or "cloud")."""
        await self.log(AuditEventBuilder.ledger_saved(count, target, correlation_id))

    async def log_save_failed(
        self,
        target: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed save or cloud sync."""
        await self.log(AuditEventBuilder.save_failed(target, error_message, correlation_id))

    async def log_validation_failed(
        self,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an entry rejected by the validator."""
        await self.log(AuditEventBuilder.validation_failed(issues, correlation_id))

    async def log_advice_requested(
        self,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.advice_requested(transaction_count, correlation_id))

    async def log_advice_generated(
        self,
        length: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.advice_generated(length, correlation_id))

    async def log_advice_failed(
        self,
        placeholder: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.advice_failed(placeholder, correlation_id))

    async def log_category_suggested(
        self,
        description: str,
        category: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.category_suggested(description, category, correlation_id))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving an entry).
    Pass it through all subsequent operations.
    """
    return uuid4()
