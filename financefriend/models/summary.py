"""Aggregate views derived from the transaction set."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from financefriend.models.account import AccountType


class MonthlySummary(BaseModel):
    """
    Income and expense totals for one calendar month.

    Transfers never count towards either total.
    """

    year: int = Field(..., ge=1)
    month: int = Field(..., ge=1, le=12)
    income_total: Decimal = Decimal("0")
    expense_total: Decimal = Decimal("0")
    transaction_count: int = Field(
        default=0,
        ge=0,
        description="Income and expense transactions counted"
    )
    computed_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def net(self) -> Decimal:
        return self.income_total - self.expense_total

    @property
    def label(self) -> str:
        return datetime(self.year, self.month, 1).strftime("%B %Y")


class BalanceOverview(BaseModel):
    """Balance totals across all accounts."""

    total_balance: Decimal = Decimal("0")
    by_type: dict[AccountType, Decimal] = Field(default_factory=dict)
    account_count: int = 0
    overdrawn_count: int = 0
