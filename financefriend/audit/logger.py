"""
Audit Logger

DESIGN DECISION: Every user action that touches money is logged.
This provides:
1. Complete traceability of balance changes
2. Debugging capability
3. User can see history of their actions

The audit logger:
- Always logs locally through structlog
- Persists to audit storage when one is configured
- Gracefully handles storage failures (doesn't break the user action)
- Supports correlation IDs to trace related events
"""

from decimal import Decimal
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from financefriend.models.audit import AuditEvent, AuditEventBuilder
from financefriend.services.storage import AuditStorageInterface


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
    2. Audit storage (for persistence and user visibility)
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
        self._logger = structlog.get_logger("financefriend.audit")

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

    async def log_account_created(
        self,
        account_id: UUID,
        name: str,
        account_type: str,
        balance: Decimal,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log account creation."""
        await self.log(AuditEventBuilder.account_created(
            account_id=account_id,
            name=name,
            account_type=account_type,
            balance=balance,
            correlation_id=correlation_id,
        ))

    async def log_account_updated(
        self,
        account_id: UUID,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a direct account edit."""
        await self.log(AuditEventBuilder.account_updated(
            account_id=account_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_account_deleted(
        self,
        account_id: UUID,
        name: str,
        cascaded_transactions: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log account deletion."""
        await self.log(AuditEventBuilder.account_deleted(
            account_id=account_id,
            name=name,
            cascaded_transactions=cascaded_transactions,
            correlation_id=correlation_id,
        ))

    async def log_transaction_created(
        self,
        transaction_id: UUID,
        transaction_type: str,
        title: str,
        amount: Decimal,
        account_ids: list[UUID],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log transaction creation."""
        await self.log(AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            title=title,
            amount=amount,
            account_ids=account_ids,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: UUID,
        transaction_type: str,
        amount: Decimal,
        cascade: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log transaction deletion (direct or as part of an account cascade)."""
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            cascade=cascade,
            correlation_id=correlation_id,
        ))

    async def log_balance_adjusted(
        self,
        account_id: UUID,
        delta: Decimal,
        new_balance: Decimal,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a ledger balance adjustment."""
        await self.log(AuditEventBuilder.balance_adjusted(
            account_id=account_id,
            delta=delta,
            new_balance=new_balance,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    async def log_form_rejected(
        self,
        form_name: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a blocked save."""
        await self.log(AuditEventBuilder.form_rejected(
            form_name=form_name,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_transfer_rejected(
        self,
        from_account_id: Optional[UUID],
        to_account_id: Optional[UUID],
        amount: Decimal,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected transfer."""
        await self.log(AuditEventBuilder.transfer_rejected(
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_save_failed(
        self,
        entity_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a storage failure during a user action."""
        await self.log(AuditEventBuilder.save_failed(
            entity_type=entity_type,
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

    Use this at the start of a new user action (e.g., deleting an account).
    Pass it through all subsequent operations.
    """
    return uuid4()
