"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap SQLite for another embedded store later
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations the ledger needs.

CRITICAL: Accounts and transactions live behind ONE interface because a
transaction write and its balance write must commit together. atomic()
is the only way to get that guarantee.

CRITICAL: Storage never cascades on its own. Deleting an account that is
still referenced by transactions is an error; the caller must remove the
transactions first.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Optional
from uuid import UUID

from financefriend.models.account import Account
from financefriend.models.audit import AuditEvent
from financefriend.models.transaction import Transaction, TransactionType


class LedgerStorageInterface(ABC):
    """
    Abstract interface for account and transaction storage.

    Any storage implementation (SQLite, in-memory, etc.)
    must implement these methods.
    """

    # -------------------------------------------------------------------------
    # Units of work
    # -------------------------------------------------------------------------

    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager[None]:
        """
        Group writes into one all-or-nothing unit.

        Usage:
            async with storage.atomic():
                await storage.save_transaction(tx)
                await storage.update_account(account)

        If the block raises, every write inside it is undone.
        Nested atomic() blocks join the outermost one. Implementations
        assume a single writer: blocks from concurrent tasks on the same
        storage would be joined too.
        """
        pass

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    @abstractmethod
    async def save_account(self, account: Account) -> bool:
        """
        Save a new account.

        Raises:
            DuplicateError: If an account with this ID exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_account_by_id(self, account_id: UUID) -> Optional[Account]:
        """
        Retrieve an account by its ID.

        Returns:
            The account if found, None otherwise
        """
        pass

    @abstractmethod
    async def update_account(self, account: Account) -> bool:
        """
        Update an existing account (name, colour, type, balance).

        Raises:
            NotFoundError: If account doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_account(self, account_id: UUID) -> bool:
        """
        Delete an account by ID.

        Returns:
            True if deleted, False if it did not exist

        Raises:
            StorageError: If transactions still reference the account
        """
        pass

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        """
        List all accounts, oldest first.
        """
        pass

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """
        Save a new transaction record.

        This does NOT touch balances. Balance changes belong to the
        ledger updater, inside the same atomic() block.

        Raises:
            DuplicateError: If a transaction with this ID exists
            StorageError: If save fails or a referenced account is missing
        """
        pass

    @abstractmethod
    async def get_transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction record by ID. Balances are not touched.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        account_id: Optional[UUID] = None,
        transaction_type: Optional[TransactionType] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        """
        List transactions with optional filters, newest first.

        Args:
            account_id: Only transactions referencing this account
                        (as account, source or destination)
            transaction_type: Filter by type
            date_from: Only transactions on or after this moment
            date_to: Only transactions on or before this moment
            limit: Maximum number of results (None = all)
            offset: Number of results to skip

        Returns:
            Matching transactions sorted by date descending
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one account deletion).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


def sort_newest_first(transactions: list[Transaction]) -> list[Transaction]:
    """Order transactions by date descending, newest record first on ties."""
    return sorted(
        transactions,
        key=lambda t: (t.date, t.created_at),
        reverse=True,
    )


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
