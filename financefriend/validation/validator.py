"""
Form and Transfer Validation

DESIGN DECISION: Validation happens before anything is written:

AMOUNT PARSING:
- Raw text from the form is trimmed and parsed as a Decimal
- Non-numeric and non-finite input (NaN, Infinity) is rejected

FORM CHECKS:
- Account: name present after trimming, balance parses (may be negative)
- Transaction: title present, amount parses and is positive,
  an account is selected for expense/income

TRANSFER CHECKS:
- Source and destination both selected
- Source and destination differ
- Amount does not exceed the source's current balance

IMPORTANT: A failed check disables the save. It never silently fixes
the input. The transfer balance check is advisory: it only gates the
save at creation time and is not an invariant of stored data. Later
edits to an account balance may leave an old transfer "exceeding" the
balance; that is accepted and never corrected.

Expense and income have no sufficiency check. Accounts may go negative.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional
from uuid import UUID

from financefriend.config import get_settings
from financefriend.models.account import Account, format_money
from financefriend.models.forms import (
    AccountForm,
    FormValidationResult,
    TransactionForm,
    ValidationIssue,
)
from financefriend.models.transaction import TransactionType


# Plain decimal notation only: no separators, underscores or currency symbols
_AMOUNT_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse a user-entered amount.

    Returns None for anything that is not a finite decimal number.
    """
    if text is None:
        return None
    candidate = text.strip()
    if not _AMOUNT_PATTERN.match(candidate):
        return None
    try:
        value = Decimal(candidate)
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def _result(
    issues: list[ValidationIssue],
    parsed_amount: Optional[Decimal],
) -> FormValidationResult:
    return FormValidationResult(
        can_save=not any(issue.severity == "error" for issue in issues),
        issues=issues,
        warnings=[issue.message for issue in issues if issue.severity == "warning"],
        parsed_amount=parsed_amount,
    )


class TransferValidator:
    """
    Gates transfer creation.

    Works on resolved accounts: None means "not selected" (or selected
    but no longer present, which the caller reports separately).
    """

    def check(
        self,
        source: Optional[Account],
        destination: Optional[Account],
        amount: Optional[Decimal],
        currency_symbol: str = "$",
    ) -> list[ValidationIssue]:
        issues = []

        if source is None:
            issues.append(ValidationIssue(
                field="from_account_id",
                issue_type="missing",
                message="Choose the account to transfer from",
                severity="error",
            ))
        if destination is None:
            issues.append(ValidationIssue(
                field="to_account_id",
                issue_type="missing",
                message="Choose the account to transfer to",
                severity="error",
            ))

        if source is not None and destination is not None and source.id == destination.id:
            issues.append(ValidationIssue(
                field="to_account_id",
                issue_type="same_account",
                message="Source and destination must be different accounts",
                severity="error",
                suggested_fix="Pick a different destination account",
            ))

        if source is not None and amount is not None and amount > source.balance:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="insufficient_funds",
                message=(
                    f"Transfer amount exceeds the {source.name} balance of "
                    f"{format_money(source.balance, currency_symbol)}"
                ),
                severity="error",
                suggested_fix="Lower the amount or transfer from another account",
            ))

        return issues

    def is_allowed(
        self,
        source: Optional[Account],
        destination: Optional[Account],
        amount: Optional[Decimal],
    ) -> bool:
        return not any(
            issue.severity == "error"
            for issue in self.check(source, destination, amount)
        )


class FormValidator:
    """
    Validates raw form input from the presentation layer.
    """

    def __init__(self, transfer_validator: Optional[TransferValidator] = None):
        self._transfer_validator = transfer_validator or TransferValidator()
        self._settings = get_settings().app

    def _check_large_amount(self, amount: Optional[Decimal]) -> list[ValidationIssue]:
        threshold = Decimal(str(self._settings.large_amount_warning_threshold))
        if amount is not None and abs(amount) > threshold:
            return [ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=(
                    f"Amount ({format_money(amount, self._settings.currency_symbol)}) "
                    "seems unusually high"
                ),
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            )]
        return []

    def validate_account_form(self, form: AccountForm) -> FormValidationResult:
        """Check the add/edit account form."""
        issues = []

        if not form.name.strip():
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Account name is required",
                severity="error",
            ))
        elif len(form.name.strip()) > 100:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message="Account name must be at most 100 characters",
                severity="error",
            ))

        balance = parse_amount(form.balance_text)
        if balance is None:
            issues.append(ValidationIssue(
                field="balance",
                issue_type="invalid_format",
                message="Balance must be a number",
                severity="error",
                suggested_fix="Enter digits only, e.g. 1250.00",
            ))
        else:
            issues.extend(self._check_large_amount(balance))

        return _result(issues, balance)

    def validate_transaction_form(
        self,
        form: TransactionForm,
        accounts: Iterable[Account],
    ) -> FormValidationResult:
        """
        Check the add transaction form against the current accounts.

        Args:
            form: Raw form input
            accounts: All current accounts (for lookups and balances)
        """
        by_id = {account.id: account for account in accounts}
        issues = []

        if not form.title.strip():
            issues.append(ValidationIssue(
                field="title",
                issue_type="missing",
                message="Title is required",
                severity="error",
            ))
        elif len(form.title.strip()) > 200:
            issues.append(ValidationIssue(
                field="title",
                issue_type="too_long",
                message="Title must be at most 200 characters",
                severity="error",
            ))

        amount = parse_amount(form.amount_text)
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a number",
                severity="error",
                suggested_fix="Enter digits only, e.g. 12.50",
            ))
        elif amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="The transaction type sets the direction; enter the amount without a sign",
            ))
            amount = None
        else:
            issues.extend(self._check_large_amount(amount))

        if form.type == TransactionType.TRANSFER:
            gone = self._missing_account_issues(
                by_id, form.from_account_id, "from_account_id"
            ) + self._missing_account_issues(
                by_id, form.to_account_id, "to_account_id"
            )
            issues.extend(gone)
            gone_fields = {issue.field for issue in gone}
            issues.extend(
                issue for issue in self._transfer_validator.check(
                    by_id.get(form.from_account_id) if form.from_account_id else None,
                    by_id.get(form.to_account_id) if form.to_account_id else None,
                    amount,
                    currency_symbol=self._settings.currency_symbol,
                )
                if not (issue.issue_type == "missing" and issue.field in gone_fields)
            )
        else:
            if form.account_id is None:
                issues.append(ValidationIssue(
                    field="account_id",
                    issue_type="missing",
                    message="Choose an account",
                    severity="error",
                ))
            else:
                issues.extend(self._missing_account_issues(
                    by_id, form.account_id, "account_id"
                ))

        return _result(issues, amount)

    def _missing_account_issues(
        self,
        by_id: dict[UUID, Account],
        account_id: Optional[UUID],
        field: str,
    ) -> list[ValidationIssue]:
        """Selected, but the account is gone (e.g. deleted meanwhile)."""
        if account_id is not None and account_id not in by_id:
            return [ValidationIssue(
                field=field,
                issue_type="not_found",
                message="The selected account no longer exists",
                severity="error",
                suggested_fix="Pick another account",
            )]
        return []

    def get_user_friendly_summary(
        self,
        result: FormValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.can_save and not result.warnings:
            return "✅ Ready to save."

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following before saving:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
