"""
Form and Validation Models

The presentation layer hands us raw strings exactly as the user typed
them. These models carry that raw input to the validators, and carry the
verdict back.

CRITICAL: A form that fails validation creates nothing. The UI simply
keeps the save action disabled and shows the issues.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from financefriend.models.account import AccountType, DEFAULT_ACCOUNT_COLOR
from financefriend.models.transaction import TransactionType


class AccountForm(BaseModel):
    """Raw input from the add/edit account screen."""

    name: str = ""
    balance_text: str = ""
    type: AccountType = AccountType.CHECKING
    color: str = DEFAULT_ACCOUNT_COLOR.value


class TransactionForm(BaseModel):
    """Raw input from the add transaction screen."""

    title: str = ""
    details: str = ""
    amount_text: str = ""
    type: TransactionType = TransactionType.EXPENSE

    # Selections (None = nothing picked yet)
    account_id: Optional[UUID] = None
    from_account_id: Optional[UUID] = None
    to_account_id: Optional[UUID] = None

    # None means "now" at save time
    date: Optional[datetime] = None


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'insufficient_funds')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class FormValidationResult(BaseModel):
    """
    Verdict on a submitted form.

    can_save mirrors the state of the save button: False whenever any
    error-level issue exists.
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    can_save: bool = Field(
        ...,
        description="Should the save action be enabled?"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )
    parsed_amount: Optional[Decimal] = Field(
        default=None,
        description="Amount or balance parsed from the form, if it parsed"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    def errors_for(self, field: str) -> list[ValidationIssue]:
        return [
            issue for issue in self.issues
            if issue.field == field and issue.severity == "error"
        ]
