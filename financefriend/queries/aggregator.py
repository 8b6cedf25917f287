"""
Aggregation Engine

Derives the overview figures from stored data:
- Monthly summary: income, expense and net for one calendar month
- Recent transactions: newest first, caller picks how many
- Balance overview: totals across accounts

DESIGN DECISION: Nothing here is cached. Every call recomputes from the
full transaction set. At personal-finance scale this is cheap and it
means the figures can never go stale after a create or delete.

Read-only: the aggregator never writes to storage.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from financefriend.models.account import Account
from financefriend.models.summary import BalanceOverview, MonthlySummary
from financefriend.models.transaction import Transaction, TransactionType
from financefriend.services.storage import LedgerStorageInterface, sort_newest_first


def summarize_month(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> MonthlySummary:
    """
    Sum income and expense amounts dated within the given month.

    Transfers are skipped. Month membership is a plain year/month
    comparison on the (device-local) transaction date.
    """
    income = Decimal("0")
    expense = Decimal("0")
    count = 0

    for tx in transactions:
        if tx.date.year != year or tx.date.month != month:
            continue
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        elif tx.type == TransactionType.EXPENSE:
            expense += tx.amount
        else:
            continue
        count += 1

    return MonthlySummary(
        year=year,
        month=month,
        income_total=income,
        expense_total=expense,
        transaction_count=count,
    )


def summarize_balances(accounts: Iterable[Account]) -> BalanceOverview:
    """Total balance overall and per account type."""
    total = Decimal("0")
    by_type = {}
    count = 0
    overdrawn = 0

    for account in accounts:
        total += account.balance
        by_type[account.type] = by_type.get(account.type, Decimal("0")) + account.balance
        count += 1
        if account.is_overdrawn:
            overdrawn += 1

    return BalanceOverview(
        total_balance=total,
        by_type=by_type,
        account_count=count,
        overdrawn_count=overdrawn,
    )


class TransactionAggregator:
    """
    Computes display aggregates from storage.
    """

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    async def monthly_summary(
        self,
        reference: Optional[datetime] = None,
    ) -> MonthlySummary:
        """
        Summary for the month containing `reference` (default: now).
        """
        reference = reference or datetime.now()
        transactions = await self._storage.list_transactions()
        return summarize_month(transactions, reference.year, reference.month)

    async def recent_transactions(
        self,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        """
        All transactions sorted by date descending; the first `limit`
        when a limit is given.
        """
        transactions = sort_newest_first(await self._storage.list_transactions())
        if limit is not None:
            return transactions[:limit]
        return transactions

    async def balance_overview(self) -> BalanceOverview:
        return summarize_balances(await self._storage.list_accounts())
