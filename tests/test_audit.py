"""Tests for the audit logger."""

from decimal import Decimal
from uuid import uuid4

import pytest

from financefriend.audit import AuditLogger, create_correlation_id
from financefriend.models.audit import AuditEvent, AuditEventType, AuditSeverity
from financefriend.models.forms import TransactionForm
from financefriend.models.transaction import Transaction, TransactionType
from financefriend.orchestrator import (
    FormRejectedError,
    TransactionFlow,
    TransferRejectedError,
)
from financefriend.services.storage import AuditStorageInterface, StorageError


class FailingAuditStorage(AuditStorageInterface):
    """Audit storage whose writes always fail."""

    async def append_event(self, event):
        raise StorageError("audit table unavailable")

    async def get_events_by_correlation_id(self, correlation_id):
        return []

    async def get_events_by_entity(self, entity_type, entity_id):
        return []

    async def get_recent_events(self, limit=100):
        return []


class TestAuditLogger:

    async def test_persists_events(self, audit_storage, audit_logger):
        correlation_id = create_correlation_id()
        await audit_logger.log_error("ValueError", "bad input", correlation_id=correlation_id)

        [event] = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.severity == AuditSeverity.ERROR

    async def test_without_storage_only_logs(self):
        audit_logger = AuditLogger()
        event = AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            description="Account created",
        )
        assert await audit_logger.log(event) is True

    async def test_storage_failure_does_not_raise(self):
        audit_logger = AuditLogger(FailingAuditStorage())
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Expense recorded",
        )
        assert await audit_logger.log(event) is False

    async def test_recent_events(self, audit_storage, audit_logger):
        first, second = uuid4(), uuid4()
        await audit_logger.log_account_deleted(first, "Old", cascaded_transactions=0)
        await audit_logger.log_account_deleted(second, "Older", cascaded_transactions=2)

        recent = await audit_storage.get_recent_events(limit=10)
        assert len(recent) == 2
        assert {e.entity_id for e in recent} == {first, second}


class TestFlowAuditing:

    async def test_failing_audit_storage_does_not_block_user_action(
        self, storage, make_account
    ):
        checking = await make_account("Checking", "1000")
        flow = TransactionFlow(storage=storage, audit_logger=AuditLogger(FailingAuditStorage()))

        await flow.create_transaction(Transaction(
            title="Coffee",
            amount=Decimal("5"),
            type=TransactionType.EXPENSE,
            account_id=checking.id,
        ))

        assert (await storage.get_account_by_id(checking.id)).balance == Decimal("995")

    async def test_rejected_form_is_audited(self, audit_storage, transaction_flow, make_account):
        checking = await make_account("Checking", "1000")
        correlation_id = create_correlation_id()

        with pytest.raises(FormRejectedError):
            await transaction_flow.submit_form(
                TransactionForm(title="", amount_text="5", account_id=checking.id),
                correlation_id=correlation_id,
            )

        [event] = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert event.event_type == AuditEventType.FORM_REJECTED
        assert event.severity == AuditSeverity.WARNING

    async def test_rejected_transfer_is_audited(
        self, audit_storage, transaction_flow, make_account
    ):
        checking = await make_account("Checking", "10")
        savings = await make_account("Savings", "0")
        correlation_id = create_correlation_id()

        with pytest.raises(TransferRejectedError) as excinfo:
            await transaction_flow.create_transaction(
                Transaction(
                    title="Move",
                    amount=Decimal("20"),
                    type=TransactionType.TRANSFER,
                    from_account_id=checking.id,
                    to_account_id=savings.id,
                ),
                correlation_id=correlation_id,
            )

        assert "exceeds" in excinfo.value.reasons[0]
        [event] = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert event.event_type == AuditEventType.TRANSFER_REJECTED
        assert event.details["amount"] == "20"
