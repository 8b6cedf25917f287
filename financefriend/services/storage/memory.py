"""
In-Memory Storage Implementation

Used by the test suite and for throwaway sessions (backend = "memory").

Records are copied on the way in and on the way out, so callers can
never mutate stored state by holding on to a returned model.

atomic() snapshots both tables when the outermost block starts and
restores them if the block raises.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional
from uuid import UUID

from financefriend.models.account import Account
from financefriend.models.audit import AuditEvent
from financefriend.models.transaction import Transaction, TransactionType
from financefriend.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    sort_newest_first,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dictionary-backed ledger storage."""

    def __init__(self):
        self._accounts: dict[UUID, Account] = {}
        self._transactions: dict[UUID, Transaction] = {}
        self._depth = 0

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[None]:
        """
        Snapshot on the outermost block, restore if it raises.

        Nesting is tracked per storage instance, so one instance must not
        run atomic() blocks from concurrent tasks: they would join one unit.
        """
        if self._depth > 0:
            # Join the outer unit
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        accounts_snapshot = {k: v.model_copy(deep=True) for k, v in self._accounts.items()}
        transactions_snapshot = {k: v.model_copy(deep=True) for k, v in self._transactions.items()}
        self._depth = 1
        try:
            yield
        except BaseException:
            self._accounts = accounts_snapshot
            self._transactions = transactions_snapshot
            raise
        finally:
            self._depth = 0

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def save_account(self, account: Account) -> bool:
        if account.id in self._accounts:
            raise DuplicateError(f"Account already exists: {account.id}")
        self._accounts[account.id] = account.model_copy(deep=True)
        return True

    async def get_account_by_id(self, account_id: UUID) -> Optional[Account]:
        account = self._accounts.get(account_id)
        return account.model_copy(deep=True) if account else None

    async def update_account(self, account: Account) -> bool:
        if account.id not in self._accounts:
            raise NotFoundError(f"Account not found: {account.id}")
        account.updated_at = datetime.utcnow()
        self._accounts[account.id] = account.model_copy(deep=True)
        return True

    async def delete_account(self, account_id: UUID) -> bool:
        if account_id not in self._accounts:
            return False
        if any(tx.references(account_id) for tx in self._transactions.values()):
            raise StorageError(
                f"Account {account_id} is still referenced by transactions"
            )
        del self._accounts[account_id]
        return True

    async def list_accounts(self) -> list[Account]:
        accounts = sorted(self._accounts.values(), key=lambda a: a.created_at)
        return [a.model_copy(deep=True) for a in accounts]

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def save_transaction(self, transaction: Transaction) -> bool:
        if transaction.id in self._transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        missing = [a for a in transaction.account_ids if a not in self._accounts]
        if missing:
            raise StorageError(
                f"Transaction references unknown account(s): {', '.join(map(str, missing))}"
            )
        self._transactions[transaction.id] = transaction.model_copy(deep=True)
        return True

    async def get_transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        tx = self._transactions.get(transaction_id)
        return tx.model_copy(deep=True) if tx else None

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    async def list_transactions(
        self,
        account_id: Optional[UUID] = None,
        transaction_type: Optional[TransactionType] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        transactions = []
        for tx in self._transactions.values():
            if account_id and not tx.references(account_id):
                continue
            if transaction_type and tx.type != transaction_type:
                continue
            if date_from and tx.date < date_from:
                continue
            if date_to and tx.date > date_to:
                continue
            transactions.append(tx.model_copy(deep=True))

        transactions = sort_newest_first(transactions)
        end = offset + limit if limit is not None else None
        return transactions[offset:end]


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed, append-only audit storage."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy(deep=True))
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
