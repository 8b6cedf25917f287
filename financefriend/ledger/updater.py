"""
Balance Ledger Updater

Keeps account balances consistent with the set of recorded transactions.

On creation:
- EXPENSE  (A, X):    A.balance -= X
- INCOME   (A, X):    A.balance += X
- TRANSFER (S, D, X): S.balance -= X; D.balance += X

On deletion the exact inverse is applied.

CRITICAL: The updater does not open its own unit of work. Callers run
apply()/reverse() inside the same storage.atomic() block as the record
write, so the pair is applied exactly once or not at all.
"""

from decimal import Decimal
from uuid import UUID

import structlog

from financefriend.models.account import Account
from financefriend.models.transaction import Transaction, TransactionType
from financefriend.services.storage import LedgerStorageInterface, NotFoundError


logger = structlog.get_logger(__name__)


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class BalanceLedgerUpdater:
    """
    Applies and reverses balance deltas for transactions.

    The delta computations are pure; apply() and reverse() load each
    affected account, add its delta and write it back.
    """

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    @staticmethod
    def creation_deltas(transaction: Transaction) -> dict[UUID, Decimal]:
        """Balance change per account caused by recording the transaction."""
        amount = transaction.amount

        if transaction.type == TransactionType.EXPENSE:
            return {transaction.account_id: -amount}
        if transaction.type == TransactionType.INCOME:
            return {transaction.account_id: amount}
        if transaction.type == TransactionType.TRANSFER:
            return {
                transaction.from_account_id: -amount,
                transaction.to_account_id: amount,
            }
        raise LedgerError(f"Unknown transaction type: {transaction.type}")

    @classmethod
    def reversal_deltas(cls, transaction: Transaction) -> dict[UUID, Decimal]:
        """Exact inverse of creation_deltas."""
        return {
            account_id: -delta
            for account_id, delta in cls.creation_deltas(transaction).items()
        }

    async def apply(self, transaction: Transaction) -> list[Account]:
        """Apply the creation-time effect. Returns the updated accounts."""
        return await self._apply_deltas(transaction, self.creation_deltas(transaction))

    async def reverse(self, transaction: Transaction) -> list[Account]:
        """Undo the creation-time effect. Returns the updated accounts."""
        return await self._apply_deltas(transaction, self.reversal_deltas(transaction))

    async def _apply_deltas(
        self,
        transaction: Transaction,
        deltas: dict[UUID, Decimal],
    ) -> list[Account]:
        updated = []
        for account_id, delta in deltas.items():
            account = await self._storage.get_account_by_id(account_id)
            if account is None:
                raise NotFoundError(
                    f"Account {account_id} referenced by transaction "
                    f"{transaction.id} does not exist"
                )

            account.balance += delta
            await self._storage.update_account(account)
            updated.append(account)

            logger.debug(
                "balance_adjusted",
                account_id=str(account_id),
                transaction_id=str(transaction.id),
                delta=str(delta),
                new_balance=str(account.balance),
            )
        return updated
