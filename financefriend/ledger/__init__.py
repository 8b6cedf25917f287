"""Balance ledger package."""

from financefriend.ledger.updater import BalanceLedgerUpdater, LedgerError

__all__ = ["BalanceLedgerUpdater", "LedgerError"]
