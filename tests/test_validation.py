"""Tests for amount parsing, form validation and the transfer validator."""

from decimal import Decimal
from uuid import uuid4

import pytest

from financefriend.models.account import Account
from financefriend.models.forms import AccountForm, TransactionForm
from financefriend.models.transaction import TransactionType
from financefriend.validation import FormValidator, TransferValidator, parse_amount


@pytest.fixture
def validator():
    return FormValidator()


@pytest.fixture
def checking():
    return Account(name="Checking", balance=Decimal("1000"))


@pytest.fixture
def savings():
    return Account(name="Savings", balance=Decimal("50"))


class TestParseAmount:

    @pytest.mark.parametrize("text,expected", [
        ("5", Decimal("5")),
        ("12.50", Decimal("12.50")),
        ("  7.25 ", Decimal("7.25")),
        ("-40", Decimal("-40")),
    ])
    def test_parses_numbers(self, text, expected):
        assert parse_amount(text) == expected

    @pytest.mark.parametrize("text", [
        "", "   ", "abc", "$5", "5,00", "1,000", "1_000", "1_000.50", "NaN", "Infinity", None,
    ])
    def test_rejects_non_numbers(self, text):
        assert parse_amount(text) is None


class TestAccountForm:

    def test_valid_form(self, validator):
        result = validator.validate_account_form(
            AccountForm(name="Checking", balance_text="1000")
        )
        assert result.can_save is True
        assert result.parsed_amount == Decimal("1000")

    def test_negative_balance_allowed(self, validator):
        result = validator.validate_account_form(
            AccountForm(name="Visa", balance_text="-120.40")
        )
        assert result.can_save is True

    def test_blank_name_blocks_save(self, validator):
        result = validator.validate_account_form(
            AccountForm(name="   ", balance_text="10")
        )
        assert result.can_save is False
        assert result.errors_for("name")

    def test_non_numeric_balance_blocks_save(self, validator):
        result = validator.validate_account_form(
            AccountForm(name="Checking", balance_text="lots")
        )
        assert result.can_save is False
        assert result.parsed_amount is None
        assert result.errors_for("balance")

    def test_large_balance_is_only_a_warning(self, validator):
        result = validator.validate_account_form(
            AccountForm(name="Checking", balance_text="5000000")
        )
        assert result.can_save is True
        assert len(result.warnings) == 1


class TestTransactionForm:

    def test_valid_expense(self, validator, checking):
        form = TransactionForm(
            title="Coffee",
            amount_text="5",
            type=TransactionType.EXPENSE,
            account_id=checking.id,
        )
        result = validator.validate_transaction_form(form, [checking])
        assert result.can_save is True
        assert result.parsed_amount == Decimal("5")

    def test_expense_may_exceed_balance(self, validator, savings):
        """No sufficiency check for expenses: accounts may go negative."""
        form = TransactionForm(
            title="Rent",
            amount_text="900",
            type=TransactionType.EXPENSE,
            account_id=savings.id,
        )
        assert validator.validate_transaction_form(form, [savings]).can_save is True

    def test_missing_title(self, validator, checking):
        form = TransactionForm(
            title="  ",
            amount_text="5",
            account_id=checking.id,
        )
        result = validator.validate_transaction_form(form, [checking])
        assert result.can_save is False
        assert result.errors_for("title")

    @pytest.mark.parametrize("amount_text", ["", "five", "0", "-5"])
    def test_bad_amount(self, validator, checking, amount_text):
        form = TransactionForm(
            title="Coffee",
            amount_text=amount_text,
            account_id=checking.id,
        )
        result = validator.validate_transaction_form(form, [checking])
        assert result.can_save is False
        assert result.errors_for("amount")
        assert result.parsed_amount is None

    def test_income_without_account(self, validator, checking):
        form = TransactionForm(
            title="Salary",
            amount_text="2000",
            type=TransactionType.INCOME,
        )
        result = validator.validate_transaction_form(form, [checking])
        assert result.can_save is False
        assert result.errors_for("account_id")

    def test_selected_account_no_longer_exists(self, validator, checking):
        form = TransactionForm(
            title="Salary",
            amount_text="2000",
            type=TransactionType.INCOME,
            account_id=uuid4(),
        )
        result = validator.validate_transaction_form(form, [checking])
        assert result.can_save is False
        assert result.errors_for("account_id")[0].issue_type == "not_found"

    def test_valid_transfer(self, validator, checking, savings):
        form = TransactionForm(
            title="Move to savings",
            amount_text="1000",
            type=TransactionType.TRANSFER,
            from_account_id=checking.id,
            to_account_id=savings.id,
        )
        result = validator.validate_transaction_form(form, [checking, savings])
        assert result.can_save is True

    def test_transfer_exceeding_source_balance(self, validator, checking, savings):
        form = TransactionForm(
            title="Move to checking",
            amount_text="50.01",
            type=TransactionType.TRANSFER,
            from_account_id=savings.id,
            to_account_id=checking.id,
        )
        result = validator.validate_transaction_form(form, [checking, savings])
        assert result.can_save is False
        [issue] = result.errors_for("amount")
        assert issue.issue_type == "insufficient_funds"
        assert "$50.00" in issue.message

    def test_transfer_same_account(self, validator, checking):
        form = TransactionForm(
            title="Loop",
            amount_text="1",
            type=TransactionType.TRANSFER,
            from_account_id=checking.id,
            to_account_id=checking.id,
        )
        result = validator.validate_transaction_form(form, [checking])
        assert result.can_save is False
        assert result.errors_for("to_account_id")[0].issue_type == "same_account"

    def test_transfer_unselected_accounts(self, validator, checking):
        form = TransactionForm(
            title="Move",
            amount_text="1",
            type=TransactionType.TRANSFER,
        )
        result = validator.validate_transaction_form(form, [checking])
        assert result.can_save is False
        assert result.errors_for("from_account_id")
        assert result.errors_for("to_account_id")

    def test_transfer_deleted_source_reported_once(self, validator, checking):
        form = TransactionForm(
            title="Move",
            amount_text="1",
            type=TransactionType.TRANSFER,
            from_account_id=uuid4(),
            to_account_id=checking.id,
        )
        result = validator.validate_transaction_form(form, [checking])
        [issue] = result.errors_for("from_account_id")
        assert issue.issue_type == "not_found"


class TestTransferValidator:

    def test_amount_equal_to_balance_is_allowed(self, checking, savings):
        assert TransferValidator().is_allowed(savings, checking, Decimal("50")) is True

    def test_amount_above_balance_is_rejected(self, checking, savings):
        assert TransferValidator().is_allowed(savings, checking, Decimal("50.01")) is False

    def test_identical_accounts_rejected_regardless_of_amount(self, checking):
        assert TransferValidator().is_allowed(checking, checking, Decimal("1")) is False

    def test_unselected_rejected(self, checking):
        assert TransferValidator().is_allowed(None, checking, Decimal("1")) is False
        assert TransferValidator().is_allowed(checking, None, Decimal("1")) is False


class TestUserFriendlySummary:

    def test_ready(self, validator):
        result = validator.validate_account_form(
            AccountForm(name="Checking", balance_text="1")
        )
        assert validator.get_user_friendly_summary(result) == "✅ Ready to save."

    def test_lists_errors(self, validator):
        result = validator.validate_account_form(AccountForm(name="", balance_text="x"))
        summary = validator.get_user_friendly_summary(result)
        assert "Account name is required" in summary
        assert "Balance must be a number" in summary
