"""Shared fixtures: in-memory storage and fully wired flows."""

from decimal import Decimal

import pytest

from financefriend.audit import AuditLogger
from financefriend.ledger import BalanceLedgerUpdater
from financefriend.models.account import Account, AccountType
from financefriend.orchestrator import AccountFlow, OverviewFlow, TransactionFlow
from financefriend.services.storage import InMemoryAuditStorage, InMemoryLedgerStorage


@pytest.fixture
def storage():
    return InMemoryLedgerStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def updater(storage):
    return BalanceLedgerUpdater(storage)


@pytest.fixture
def account_flow(storage, audit_logger):
    return AccountFlow(storage=storage, audit_logger=audit_logger)


@pytest.fixture
def transaction_flow(storage, audit_logger):
    return TransactionFlow(storage=storage, audit_logger=audit_logger)


@pytest.fixture
def overview_flow(storage):
    return OverviewFlow(storage=storage)


@pytest.fixture
def make_account(storage):
    """Save an account straight into storage and return it."""
    async def _make(
        name: str = "Checking",
        balance: str = "1000",
        account_type: AccountType = AccountType.CHECKING,
    ) -> Account:
        account = Account(name=name, balance=Decimal(balance), type=account_type)
        await storage.save_account(account)
        return account
    return _make
