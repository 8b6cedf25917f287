"""
Main Orchestrator for FinanceFriend

This module ties together all the components and defines the
end-to-end flows for each user action:
1. Accounts (form → validate → save / edit / delete with cascade)
2. Transactions (form → validate → record + balance / delete + reverse)
3. Overview (monthly summary, recent transactions, balances)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written unless validation allows the save
- A transaction record and its balance change commit together
- Account deletion removes dependent transactions first, explicitly
- Every action is audited

The storage layer never cascades and never touches balances on its own.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from financefriend.audit import AuditLogger, create_correlation_id
from financefriend.config import get_settings
from financefriend.ledger import BalanceLedgerUpdater, LedgerError
from financefriend.models.account import Account
from financefriend.models.forms import (
    AccountForm,
    FormValidationResult,
    TransactionForm,
)
from financefriend.models.summary import BalanceOverview, MonthlySummary
from financefriend.models.transaction import Transaction, TransactionType
from financefriend.queries import TransactionAggregator
from financefriend.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    SQLiteAuditStorage,
    SQLiteClient,
    SQLiteLedgerStorage,
    StorageError,
)
from financefriend.validation import FormValidator, TransferValidator


class FormRejectedError(LedgerError):
    """The form did not pass validation; nothing was saved."""

    def __init__(self, result: FormValidationResult, message: str = "Form rejected"):
        super().__init__(message)
        self.result = result


class TransferRejectedError(LedgerError):
    """The transfer failed the transfer checks; nothing was saved."""

    def __init__(self, reasons: list[str]):
        super().__init__("; ".join(reasons))
        self.reasons = reasons


def _issues_for_audit(result: FormValidationResult) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in result.issues
        if i.severity == "error"
    ]


async def _log_adjustments(
    audit_logger: AuditLogger,
    transaction: Transaction,
    accounts: list[Account],
    correlation_id: UUID,
    reversal: bool,
) -> None:
    """One balance_adjusted event per account the ledger touched."""
    deltas = (
        BalanceLedgerUpdater.reversal_deltas(transaction)
        if reversal
        else BalanceLedgerUpdater.creation_deltas(transaction)
    )
    for account in accounts:
        await audit_logger.log_balance_adjusted(
            account_id=account.id,
            delta=deltas[account.id],
            new_balance=account.balance,
            transaction_id=transaction.id,
            correlation_id=correlation_id,
        )


class AccountFlow:
    """
    Orchestrates account actions.

    Flow for create/edit:
    1. Validate the raw form
    2. Reject (save disabled) or build the Account
    3. Save

    Flow for delete:
    1. Find every transaction referencing the account
    2. Reverse and delete each one
    3. Delete the account
    All three steps form one atomic unit.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[FormValidator] = None,
        updater: Optional[BalanceLedgerUpdater] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or FormValidator()
        self._updater = updater or BalanceLedgerUpdater(storage)
        self._audit_logger = audit_logger

    def validate_form(self, form: AccountForm) -> FormValidationResult:
        """Live check for the save button; writes nothing."""
        return self._validator.validate_account_form(form)

    async def _reject(
        self,
        result: FormValidationResult,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_form_rejected(
                form_name="account",
                issues=_issues_for_audit(result),
                correlation_id=correlation_id,
            )
        raise FormRejectedError(result, self._validator.get_user_friendly_summary(result))

    async def create_account(
        self,
        form: AccountForm,
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Create an account from the add account form.

        Raises:
            FormRejectedError: If the form is invalid (nothing is saved)
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self.validate_form(form)
        if not result.can_save:
            await self._reject(result, correlation_id)

        account = Account(
            name=form.name.strip(),
            color=form.color,
            type=form.type,
            balance=result.parsed_amount,
        )

        try:
            await self._storage.save_account(account)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed("account", str(e), correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_account_created(
                account_id=account.id,
                name=account.name,
                account_type=account.type.value,
                balance=account.balance,
                correlation_id=correlation_id,
            )

        return account

    async def update_account(
        self,
        account_id: UUID,
        form: AccountForm,
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Apply a direct user edit (name, colour, type, balance).

        A balance edit is taken as-is; it is not routed through the
        ledger and existing transfers are not re-validated.

        Raises:
            NotFoundError: If the account doesn't exist
            FormRejectedError: If the form is invalid (nothing is saved)
        """
        correlation_id = correlation_id or create_correlation_id()

        account = await self._storage.get_account_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")

        result = self.validate_form(form)
        if not result.can_save:
            await self._reject(result, correlation_id)

        edited = account.model_copy(update={
            "name": form.name.strip(),
            "color": form.color,
            "type": form.type,
            "balance": result.parsed_amount,
        })
        # Re-run field validators (colour normalization)
        edited = Account.model_validate(edited.model_dump())

        before = account.model_dump(mode="json")
        after = edited.model_dump(mode="json")
        changes = {
            field: after[field]
            for field in ("name", "color", "type", "balance")
            if after[field] != before[field]
        }

        await self._storage.update_account(edited)

        if self._audit_logger:
            await self._audit_logger.log_account_updated(
                account_id=edited.id,
                changes=changes,
                correlation_id=correlation_id,
            )

        return edited

    async def delete_account(
        self,
        account_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Delete an account and every transaction that references it.

        Each dependent transaction is reversed before it is removed, so
        the surviving counterpart accounts of transfers stay consistent
        with the remaining ledger.

        Returns:
            The transactions removed by the cascade

        Raises:
            NotFoundError: If the account doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        account = await self._storage.get_account_by_id(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")

        async with self._storage.atomic():
            dependents = await self._storage.list_transactions(account_id=account_id)
            reversed_accounts = []
            for tx in dependents:
                reversed_accounts.append(await self._updater.reverse(tx))
                await self._storage.delete_transaction(tx.id)
            await self._storage.delete_account(account_id)

        if self._audit_logger:
            for tx, accounts in zip(dependents, reversed_accounts):
                await self._audit_logger.log_transaction_deleted(
                    transaction_id=tx.id,
                    transaction_type=tx.type.value,
                    amount=tx.amount,
                    cascade=True,
                    correlation_id=correlation_id,
                )
                await _log_adjustments(
                    self._audit_logger, tx, accounts, correlation_id, reversal=True
                )
            await self._audit_logger.log_account_deleted(
                account_id=account_id,
                name=account.name,
                cascaded_transactions=len(dependents),
                correlation_id=correlation_id,
            )

        return dependents

    async def get_account(self, account_id: UUID) -> Optional[Account]:
        return await self._storage.get_account_by_id(account_id)

    async def list_accounts(self) -> list[Account]:
        return await self._storage.list_accounts()


class TransactionFlow:
    """
    Orchestrates transaction actions.

    Create:
    1. Validate (form checks, transfer checks)
    2. Inside one atomic unit: save the record, apply the balance deltas

    Delete:
    1. Inside one atomic unit: reverse the balance deltas, delete the record
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[FormValidator] = None,
        transfer_validator: Optional[TransferValidator] = None,
        updater: Optional[BalanceLedgerUpdater] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._transfer_validator = transfer_validator or TransferValidator()
        self._validator = validator or FormValidator(self._transfer_validator)
        self._updater = updater or BalanceLedgerUpdater(storage)
        self._audit_logger = audit_logger

    async def validate_form(self, form: TransactionForm) -> FormValidationResult:
        """Live check for the save button; writes nothing."""
        accounts = await self._storage.list_accounts()
        return self._validator.validate_transaction_form(form, accounts)

    async def submit_form(
        self,
        form: TransactionForm,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Save the add transaction form.

        Raises:
            FormRejectedError: If the form is invalid (nothing is saved)
        """
        correlation_id = correlation_id or create_correlation_id()

        result = await self.validate_form(form)
        if not result.can_save:
            if self._audit_logger:
                await self._audit_logger.log_form_rejected(
                    form_name="transaction",
                    issues=_issues_for_audit(result),
                    correlation_id=correlation_id,
                )
            raise FormRejectedError(result, self._validator.get_user_friendly_summary(result))

        is_transfer = form.type == TransactionType.TRANSFER
        transaction = Transaction(
            title=form.title.strip(),
            details=form.details.strip() or None,
            amount=result.parsed_amount,
            date=form.date or datetime.now(),
            type=form.type,
            account_id=None if is_transfer else form.account_id,
            from_account_id=form.from_account_id if is_transfer else None,
            to_account_id=form.to_account_id if is_transfer else None,
        )
        return await self.create_transaction(transaction, correlation_id)

    async def create_transaction(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Record a transaction and apply its balance effect.

        Raises:
            NotFoundError: If a referenced account doesn't exist
            TransferRejectedError: If a transfer fails the transfer checks
        """
        correlation_id = correlation_id or create_correlation_id()

        for account_id in transaction.account_ids:
            if await self._storage.get_account_by_id(account_id) is None:
                raise NotFoundError(f"Account not found: {account_id}")

        if transaction.type == TransactionType.TRANSFER:
            await self._check_transfer(transaction, correlation_id)

        try:
            async with self._storage.atomic():
                await self._storage.save_transaction(transaction)
                updated = await self._updater.apply(transaction)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed("transaction", str(e), correlation_id)
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_created(
                transaction_id=transaction.id,
                transaction_type=transaction.type.value,
                title=transaction.title,
                amount=transaction.amount,
                account_ids=transaction.account_ids,
                correlation_id=correlation_id,
            )
            await _log_adjustments(
                self._audit_logger, transaction, updated, correlation_id, reversal=False
            )

        return transaction

    async def _check_transfer(
        self,
        transaction: Transaction,
        correlation_id: UUID,
    ) -> None:
        source = await self._storage.get_account_by_id(transaction.from_account_id)
        destination = await self._storage.get_account_by_id(transaction.to_account_id)
        issues = [
            issue for issue in self._transfer_validator.check(
                source, destination, transaction.amount
            )
            if issue.severity == "error"
        ]
        if not issues:
            return

        reasons = [issue.message for issue in issues]
        if self._audit_logger:
            await self._audit_logger.log_transfer_rejected(
                from_account_id=transaction.from_account_id,
                to_account_id=transaction.to_account_id,
                amount=transaction.amount,
                reason="; ".join(reasons),
                correlation_id=correlation_id,
            )
        raise TransferRejectedError(reasons)

    async def delete_transaction(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Reverse a transaction's balance effect and delete it.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        transaction = await self._storage.get_transaction_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        async with self._storage.atomic():
            updated = await self._updater.reverse(transaction)
            await self._storage.delete_transaction(transaction.id)

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=transaction.id,
                transaction_type=transaction.type.value,
                amount=transaction.amount,
                correlation_id=correlation_id,
            )
            await _log_adjustments(
                self._audit_logger, transaction, updated, correlation_id, reversal=True
            )

        return transaction

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return await self._storage.get_transaction_by_id(transaction_id)

    async def list_transactions(
        self,
        account_id: Optional[UUID] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        return await self._storage.list_transactions(
            account_id=account_id,
            transaction_type=transaction_type,
        )


class OverviewFlow:
    """
    Read-only figures for the overview screen.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        aggregator: Optional[TransactionAggregator] = None,
    ):
        self._aggregator = aggregator or TransactionAggregator(storage)
        self._settings = get_settings().app

    async def monthly_summary(
        self,
        reference: Optional[datetime] = None,
    ) -> MonthlySummary:
        return await self._aggregator.monthly_summary(reference)

    async def recent_transactions(
        self,
        limit: Optional[int] = None,
    ) -> list[Transaction]:
        """Newest transactions; defaults to the configured overview size."""
        return await self._aggregator.recent_transactions(
            limit if limit is not None else self._settings.recent_transactions_limit
        )

    async def balance_overview(self) -> BalanceOverview:
        return await self._aggregator.balance_overview()


def create_app_components(
    use_storage: bool = True,
) -> tuple[AccountFlow, TransactionFlow, OverviewFlow]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured persistent backend.
                    Set to False for an in-memory session.

    Returns:
        (account_flow, transaction_flow, overview_flow)
    """
    settings = get_settings()
    logging.basicConfig(level=settings.app.log_level, format="%(message)s")

    ledger_storage: LedgerStorageInterface
    audit_storage: Optional[AuditStorageInterface] = None

    if use_storage and settings.storage.backend == "sqlite":
        client = SQLiteClient(settings.storage.database_path)
        client.connect()
        ledger_storage = SQLiteLedgerStorage(client)
        if settings.storage.audit_enabled:
            audit_storage = SQLiteAuditStorage(client)
    else:
        ledger_storage = InMemoryLedgerStorage()
        if settings.storage.audit_enabled:
            audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)
    updater = BalanceLedgerUpdater(ledger_storage)
    transfer_validator = TransferValidator()
    validator = FormValidator(transfer_validator)

    account_flow = AccountFlow(
        storage=ledger_storage,
        validator=validator,
        updater=updater,
        audit_logger=audit_logger,
    )
    transaction_flow = TransactionFlow(
        storage=ledger_storage,
        validator=validator,
        transfer_validator=transfer_validator,
        updater=updater,
        audit_logger=audit_logger,
    )
    overview_flow = OverviewFlow(storage=ledger_storage)

    return account_flow, transaction_flow, overview_flow
