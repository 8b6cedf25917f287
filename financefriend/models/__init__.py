"""
Data Models Package

This package contains all Pydantic models used in FinanceFriend.
All data flowing through the system must conform to these schemas.
"""

from financefriend.models.account import (
    Account,
    AccountColor,
    AccountType,
    DEFAULT_ACCOUNT_COLOR,
    format_money,
    normalize_color,
)
from financefriend.models.transaction import (
    Transaction,
    TransactionType,
)
from financefriend.models.forms import (
    AccountForm,
    FormValidationResult,
    TransactionForm,
    ValidationIssue,
)
from financefriend.models.summary import (
    BalanceOverview,
    MonthlySummary,
)
from financefriend.models.audit import (
    AUDIT_COLUMNS,
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Account models
    "Account",
    "AccountColor",
    "AccountType",
    "DEFAULT_ACCOUNT_COLOR",
    "format_money",
    "normalize_color",
    # Transaction models
    "Transaction",
    "TransactionType",
    # Forms
    "AccountForm",
    "FormValidationResult",
    "TransactionForm",
    "ValidationIssue",
    # Aggregates
    "BalanceOverview",
    "MonthlySummary",
    # Audit models
    "AUDIT_COLUMNS",
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
