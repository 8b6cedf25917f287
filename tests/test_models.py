"""
Tests for FinanceFriend

Test strategy:
1. Unit tests for individual components (models, validators, ledger)
2. Flow tests against in-memory storage
3. SQLite tests against a temporary database file
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from financefriend.models.account import (
    Account,
    AccountColor,
    AccountType,
    DEFAULT_ACCOUNT_COLOR,
    format_money,
    normalize_color,
)
from financefriend.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from financefriend.models.forms import FormValidationResult, ValidationIssue
from financefriend.models.summary import MonthlySummary
from financefriend.models.transaction import Transaction, TransactionType


class TestAccountModels:
    """Tests for account models."""

    def test_account_creation(self):
        """Test Account model creation."""
        account = Account(
            name="Checking",
            type=AccountType.CHECKING,
            balance=Decimal("1000.00"),
        )
        assert account.name == "Checking"
        assert account.balance == Decimal("1000.00")
        assert account.color == DEFAULT_ACCOUNT_COLOR.value

    def test_account_strips_whitespace(self):
        """Test that whitespace is stripped from the account name."""
        account = Account(name="  Savings  ")
        assert account.name == "Savings"

    def test_account_rejects_empty_name(self):
        with pytest.raises(ValueError):
            Account(name="   ")

    def test_account_allows_negative_balance(self):
        """Credit cards and checking accounts may go negative."""
        account = Account(
            name="Visa",
            type=AccountType.CREDIT_CARD,
            balance=Decimal("-250.50"),
        )
        assert account.is_overdrawn is True
        assert account.formatted_balance() == "-$250.50"

    def test_formatted_balance(self):
        account = Account(name="Checking", balance=Decimal("1234.5"))
        assert account.formatted_balance() == "$1,234.50"
        assert account.formatted_balance("€") == "€1,234.50"

    def test_account_type_labels_and_icons(self):
        assert AccountType.CREDIT_CARD.label == "Credit Card"
        assert AccountType.SAVINGS.icon == "piggybank"
        assert AccountType("checking") is AccountType.CHECKING


class TestAccountColor:
    """The colour is an opaque display attribute."""

    def test_palette_member_accepted(self):
        account = Account(name="Checking", color=AccountColor.GREEN)
        assert account.color == AccountColor.GREEN.value

    def test_six_digit_hex_gets_alpha(self):
        assert normalize_color("#ff0000") == "#FF0000FF"

    def test_unreadable_color_falls_back_to_blue(self):
        assert normalize_color("not-a-color") == AccountColor.BLUE.value
        assert normalize_color(None) == AccountColor.BLUE.value

    def test_format_money_zero(self):
        assert format_money(Decimal("0")) == "$0.00"


class TestTransactionModels:
    """Tests for transaction models."""

    def test_expense_creation(self):
        account_id = uuid4()
        tx = Transaction(
            title="Coffee",
            amount=Decimal("5"),
            type=TransactionType.EXPENSE,
            account_id=account_id,
        )
        assert tx.account_ids == [account_id]
        assert tx.references(account_id)
        assert tx.details is None
        assert isinstance(tx.date, datetime)

    def test_amount_must_be_positive(self):
        """Direction comes from the type, so the amount is a magnitude."""
        with pytest.raises(ValueError):
            Transaction(
                title="Refund",
                amount=Decimal("-5"),
                type=TransactionType.INCOME,
                account_id=uuid4(),
            )
        with pytest.raises(ValueError):
            Transaction(
                title="Nothing",
                amount=Decimal("0"),
                type=TransactionType.EXPENSE,
                account_id=uuid4(),
            )

    def test_expense_requires_account(self):
        with pytest.raises(ValueError, match="Expense requires an account"):
            Transaction(title="Coffee", amount=Decimal("5"), type=TransactionType.EXPENSE)

    def test_transfer_requires_both_accounts(self):
        with pytest.raises(ValueError, match="source and a destination"):
            Transaction(
                title="Move",
                amount=Decimal("5"),
                type=TransactionType.TRANSFER,
                from_account_id=uuid4(),
            )

    def test_transfer_accounts_must_differ(self):
        same = uuid4()
        with pytest.raises(ValueError, match="must be different"):
            Transaction(
                title="Move",
                amount=Decimal("5"),
                type=TransactionType.TRANSFER,
                from_account_id=same,
                to_account_id=same,
            )

    def test_income_cannot_have_transfer_accounts(self):
        with pytest.raises(ValueError):
            Transaction(
                title="Salary",
                amount=Decimal("5"),
                type=TransactionType.INCOME,
                account_id=uuid4(),
                to_account_id=uuid4(),
            )

    def test_blank_details_become_none(self):
        tx = Transaction(
            title="Coffee",
            details="   ",
            amount=Decimal("5"),
            type=TransactionType.EXPENSE,
            account_id=uuid4(),
        )
        assert tx.details is None

    def test_transfer_account_ids(self):
        source, destination = uuid4(), uuid4()
        tx = Transaction(
            title="Savings",
            amount=Decimal("100"),
            type=TransactionType.TRANSFER,
            from_account_id=source,
            to_account_id=destination,
        )
        assert tx.account_ids == [source, destination]
        assert not tx.references(uuid4())

    def test_aware_date_becomes_device_local(self):
        """Dates are stored naive so they sort against datetime.now() defaults."""
        moment = datetime(2025, 8, 1, 12, 0, tzinfo=timezone(timedelta(hours=3)))
        tx = Transaction(
            title="Coffee",
            amount=Decimal("5"),
            type=TransactionType.EXPENSE,
            account_id=uuid4(),
            date=moment,
        )
        assert tx.date.tzinfo is None
        assert tx.date == moment.astimezone().replace(tzinfo=None)


class TestSummaryModels:

    def test_net(self):
        summary = MonthlySummary(
            year=2025,
            month=8,
            income_total=Decimal("100"),
            expense_total=Decimal("40"),
        )
        assert summary.net == Decimal("60")
        assert summary.label == "August 2025"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            description="Account created",
        )
        assert event.event_type == AuditEventType.ACCOUNT_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Expense recorded",
            details={"title": "Coffee", "amount": "5"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_created"
        assert log_dict["details"]["title"] == "Coffee"

    def test_audit_event_row_round_trip(self):
        """Test conversion to and from a storage row."""
        event = AuditEventBuilder.account_created(
            account_id=uuid4(),
            name="Checking",
            account_type="checking",
            balance=Decimal("1000"),
            correlation_id=uuid4(),
        )
        row = event.to_row()
        assert len(row) == 11
        assert row[2] == "account_created"
        assert row[10] == "True"

        restored = AuditEvent.from_row(row)
        assert restored.event_id == event.event_id
        assert restored.entity_id == event.entity_id
        assert restored.details["opening_balance"] == "1000"

    def test_builder_cascade_delete(self):
        event = AuditEventBuilder.transaction_deleted(
            transaction_id=uuid4(),
            transaction_type="income",
            amount=Decimal("10"),
            cascade=True,
        )
        assert event.event_type == AuditEventType.CASCADE_DELETED
        assert event.is_user_action is False

    def test_builder_transfer_rejected(self):
        event = AuditEventBuilder.transfer_rejected(
            from_account_id=uuid4(),
            to_account_id=None,
            amount=Decimal("10"),
            reason="Choose the account to transfer to",
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.details["to_account_id"] is None


class TestFormValidationResult:
    """Tests for FormValidationResult model."""

    def test_has_errors(self):
        result = FormValidationResult(
            can_save=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message="Amount must be a number",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert len(result.errors_for("amount")) == 1

    def test_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = FormValidationResult(
            can_save=True,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="suspicious_value",
                    message="Amount seems unusually high",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_severity_pattern(self):
        with pytest.raises(ValueError):
            ValidationIssue(field="x", issue_type="y", message="z", severity="fatal")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
