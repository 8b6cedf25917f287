"""
SQLite Storage Implementation

DESIGN DECISION: SQLite is the local store because:
1. It is embedded - no server, one file on the device
2. Real transactions, so a record write and its balance write commit together
3. Foreign keys, so a dangling account reference is impossible

Money is stored as decimal TEXT, never REAL, so balances round-trip
exactly. Datetimes are stored as ISO-8601 TEXT with fixed microsecond
precision so that string order is chronological order.

CRITICAL: Foreign keys are declared WITHOUT "ON DELETE CASCADE".
Deleting a referenced account fails; cascading is the orchestrator's job.
"""

import json
import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import AsyncIterator, Optional
from uuid import UUID

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from financefriend.config import get_settings
from financefriend.models.account import Account, AccountType
from financefriend.models.audit import AUDIT_COLUMNS, AuditEvent
from financefriend.models.transaction import Transaction, TransactionType
from financefriend.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Column mappings for the accounts table
ACCOUNT_COLUMNS = [
    "id",
    "name",
    "color",
    "type",
    "balance",
    "created_at",
    "updated_at",
]

# Column mappings for the transactions table
TRANSACTION_COLUMNS = [
    "id",
    "title",
    "details",
    "amount",
    "date",
    "type",
    "account_id",
    "from_account_id",
    "to_account_id",
    "created_at",
]

SCHEMA = """
CREATE TABLE IF NOT EXISTS accounts (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    color TEXT NOT NULL,
    type TEXT NOT NULL,
    balance TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    details TEXT,
    amount TEXT NOT NULL,
    date TEXT NOT NULL,
    type TEXT NOT NULL,
    account_id TEXT REFERENCES accounts(id),
    from_account_id TEXT REFERENCES accounts(id),
    to_account_id TEXT REFERENCES accounts(id),
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);

CREATE TABLE IF NOT EXISTS audit_events (
    event_id TEXT PRIMARY KEY,
    timestamp TEXT NOT NULL,
    event_type TEXT NOT NULL,
    severity TEXT NOT NULL,
    entity_type TEXT,
    entity_id TEXT,
    correlation_id TEXT,
    description TEXT NOT NULL,
    details_json TEXT,
    error_message TEXT,
    is_user_action TEXT NOT NULL
);
"""


def _ts(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


class SQLiteClient:
    """
    Low-level SQLite connection wrapper.

    Owns the single connection shared by the ledger and audit storages,
    creates the schema on first connect, and tracks the current
    transaction depth for atomic().
    """

    def __init__(self, database_path: Optional[str] = None):
        self._settings = get_settings().storage
        self._database_path = database_path or self._settings.database_path
        self._connection: Optional[sqlite3.Connection] = None
        self._depth = 0

    @property
    def database_path(self) -> str:
        return self._database_path

    @retry(
        retry=retry_if_exception_type(sqlite3.OperationalError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _open(self) -> sqlite3.Connection:
        # isolation_level=None: we issue BEGIN/COMMIT ourselves
        connection = sqlite3.connect(
            self._database_path,
            isolation_level=None,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        connection.executescript(SCHEMA)
        return connection

    def connect(self) -> sqlite3.Connection:
        """Open the database (once) and make sure the schema exists."""
        if self._connection is None:
            if self._database_path != ":memory:":
                Path(self._database_path).expanduser().parent.mkdir(
                    parents=True, exist_ok=True
                )
            try:
                self._connection = self._open()
            except sqlite3.Error as e:
                raise ConnectionError(
                    f"Failed to open database {self._database_path}: {e}"
                )
            logger.info("sqlite_connected", database_path=self._database_path)
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[sqlite3.Connection]:
        """
        BEGIN/COMMIT around the outermost block, ROLLBACK on error.

        Depth is tracked per client and the connection is shared, so a
        client must not run transaction() blocks from concurrent tasks.
        """
        connection = self.connect()
        if self._depth > 0:
            self._depth += 1
            try:
                yield connection
            finally:
                self._depth -= 1
            return

        connection.execute("BEGIN")
        self._depth = 1
        try:
            yield connection
        except BaseException:
            connection.execute("ROLLBACK")
            raise
        else:
            connection.execute("COMMIT")
        finally:
            self._depth = 0


class SQLiteLedgerStorage(LedgerStorageInterface):
    """
    SQLite implementation of ledger storage.
    """

    def __init__(self, client: Optional[SQLiteClient] = None):
        self._client = client or SQLiteClient()

    def atomic(self):
        return self._client.transaction()

    # -------------------------------------------------------------------------
    # Row mapping
    # -------------------------------------------------------------------------

    def _account_to_row(self, account: Account) -> list:
        return [
            str(account.id),
            account.name,
            account.color,
            account.type.value,
            str(account.balance),
            _ts(account.created_at),
            _ts(account.updated_at),
        ]

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        return Account(
            id=UUID(row["id"]),
            name=row["name"],
            color=row["color"],
            type=AccountType(row["type"]),
            balance=Decimal(row["balance"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def _transaction_to_row(self, tx: Transaction) -> list:
        return [
            str(tx.id),
            tx.title,
            tx.details,
            str(tx.amount),
            _ts(tx.date),
            tx.type.value,
            str(tx.account_id) if tx.account_id else None,
            str(tx.from_account_id) if tx.from_account_id else None,
            str(tx.to_account_id) if tx.to_account_id else None,
            _ts(tx.created_at),
        ]

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        def optional_uuid(value: Optional[str]) -> Optional[UUID]:
            return UUID(value) if value else None

        return Transaction(
            id=UUID(row["id"]),
            title=row["title"],
            details=row["details"],
            amount=Decimal(row["amount"]),
            date=datetime.fromisoformat(row["date"]),
            type=TransactionType(row["type"]),
            account_id=optional_uuid(row["account_id"]),
            from_account_id=optional_uuid(row["from_account_id"]),
            to_account_id=optional_uuid(row["to_account_id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    async def save_account(self, account: Account) -> bool:
        placeholders = ", ".join("?" for _ in ACCOUNT_COLUMNS)
        try:
            self._client.connect().execute(
                f"INSERT INTO accounts ({', '.join(ACCOUNT_COLUMNS)}) VALUES ({placeholders})",
                self._account_to_row(account),
            )
            return True
        except sqlite3.IntegrityError as e:
            raise DuplicateError(f"Account already exists: {account.id}") from e
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save account: {e}") from e

    async def get_account_by_id(self, account_id: UUID) -> Optional[Account]:
        try:
            row = self._client.connect().execute(
                "SELECT * FROM accounts WHERE id = ?",
                (str(account_id),),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to get account: {e}") from e
        return self._row_to_account(row) if row else None

    async def update_account(self, account: Account) -> bool:
        account.updated_at = datetime.utcnow()
        try:
            cursor = self._client.connect().execute(
                """
                UPDATE accounts
                SET name = ?, color = ?, type = ?, balance = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    account.name,
                    account.color,
                    account.type.value,
                    str(account.balance),
                    _ts(account.updated_at),
                    str(account.id),
                ),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to update account: {e}") from e

        if cursor.rowcount == 0:
            raise NotFoundError(f"Account not found: {account.id}")
        return True

    async def delete_account(self, account_id: UUID) -> bool:
        try:
            cursor = self._client.connect().execute(
                "DELETE FROM accounts WHERE id = ?",
                (str(account_id),),
            )
        except sqlite3.IntegrityError as e:
            raise StorageError(
                f"Account {account_id} is still referenced by transactions"
            ) from e
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete account: {e}") from e
        return cursor.rowcount > 0

    async def list_accounts(self) -> list[Account]:
        try:
            rows = self._client.connect().execute(
                "SELECT * FROM accounts ORDER BY created_at ASC"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list accounts: {e}") from e
        return [self._row_to_account(row) for row in rows]

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def save_transaction(self, transaction: Transaction) -> bool:
        placeholders = ", ".join("?" for _ in TRANSACTION_COLUMNS)
        try:
            self._client.connect().execute(
                f"INSERT INTO transactions ({', '.join(TRANSACTION_COLUMNS)}) VALUES ({placeholders})",
                self._transaction_to_row(transaction),
            )
            return True
        except sqlite3.IntegrityError as e:
            if "FOREIGN KEY" in str(e).upper():
                raise StorageError(
                    f"Transaction {transaction.id} references an unknown account"
                ) from e
            raise DuplicateError(f"Transaction already exists: {transaction.id}") from e
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save transaction: {e}") from e

    async def get_transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        try:
            row = self._client.connect().execute(
                "SELECT * FROM transactions WHERE id = ?",
                (str(transaction_id),),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to get transaction: {e}") from e
        return self._row_to_transaction(row) if row else None

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        try:
            cursor = self._client.connect().execute(
                "DELETE FROM transactions WHERE id = ?",
                (str(transaction_id),),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete transaction: {e}") from e
        return cursor.rowcount > 0

    async def list_transactions(
        self,
        account_id: Optional[UUID] = None,
        transaction_type: Optional[TransactionType] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Transaction]:
        clauses = []
        params: list = []

        if account_id:
            clauses.append("(account_id = ? OR from_account_id = ? OR to_account_id = ?)")
            params.extend([str(account_id)] * 3)
        if transaction_type:
            clauses.append("type = ?")
            params.append(transaction_type.value)
        if date_from:
            clauses.append("date >= ?")
            params.append(_ts(date_from))
        if date_to:
            clauses.append("date <= ?")
            params.append(_ts(date_to))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.extend([limit if limit is not None else -1, offset])

        try:
            rows = self._client.connect().execute(
                f"""
                SELECT * FROM transactions
                {where}
                ORDER BY date DESC, created_at DESC
                LIMIT ? OFFSET ?
                """,
                params,
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list transactions: {e}") from e
        return [self._row_to_transaction(row) for row in rows]


class SQLiteAuditStorage(AuditStorageInterface):
    """
    SQLite implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[SQLiteClient] = None):
        self._client = client or SQLiteClient()

    def _query(self, sql: str, params: tuple = ()) -> list[AuditEvent]:
        try:
            rows = self._client.connect().execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

        events = []
        for row in rows:
            try:
                events.append(AuditEvent.from_row([row[c] for c in AUDIT_COLUMNS]))
            except (ValueError, json.JSONDecodeError):
                continue  # Skip malformed rows
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        placeholders = ", ".join("?" for _ in AUDIT_COLUMNS)
        try:
            self._client.connect().execute(
                f"INSERT INTO audit_events ({', '.join(AUDIT_COLUMNS)}) VALUES ({placeholders})",
                event.to_row(),
            )
            return True
        except sqlite3.Error as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning("audit_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return self._query(
            "SELECT * FROM audit_events WHERE correlation_id = ? ORDER BY timestamp ASC",
            (str(correlation_id),),
        )

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return self._query(
            "SELECT * FROM audit_events WHERE entity_type = ? AND entity_id = ? "
            "ORDER BY timestamp ASC",
            (entity_type, str(entity_id)),
        )

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return self._query(
            "SELECT * FROM audit_events ORDER BY timestamp DESC LIMIT ?",
            (limit,),
        )
