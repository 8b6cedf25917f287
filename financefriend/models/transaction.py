"""
Transaction Models for FinanceFriend

A transaction is a single recorded financial event:
- EXPENSE: money leaves one account
- INCOME: money enters one account
- TRANSFER: money moves from a source account to a destination account

DESIGN DECISION: The amount is always stored as a positive magnitude.
Direction comes from the type, never from the sign.

DESIGN DECISION: Transactions reference accounts by ID only.
They do not own their accounts, and resolving an ID always goes through
the storage layer, so deleting an account can never leave a live pointer
behind.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


class TransactionType(str, Enum):
    """Kinds of financial events."""
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"


class Transaction(BaseModel):
    """
    A recorded transaction.

    Expense and income reference exactly one account (account_id).
    Transfers reference a source (from_account_id) and a destination
    (to_account_id), which must differ.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Short title, e.g. 'Coffee'"
    )
    details: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Optional free-text details"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive magnitude; direction comes from type"
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the event happened (device-local time)"
    )
    type: TransactionType

    # Account references
    account_id: Optional[UUID] = Field(
        default=None,
        description="Account for expense/income"
    )
    from_account_id: Optional[UUID] = Field(
        default=None,
        description="Source account for transfers"
    )
    to_account_id: Optional[UUID] = Field(
        default=None,
        description="Destination account for transfers"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the record was saved"
    )

    @field_validator('details')
    @classmethod
    def empty_details_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator('date')
    @classmethod
    def to_device_local(cls, v: datetime) -> datetime:
        """Stored dates are naive device-local time."""
        if v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v

    @model_validator(mode='after')
    def validate_account_references(self) -> 'Transaction':
        """Check the account references match the transaction type."""
        if self.type == TransactionType.TRANSFER:
            if self.from_account_id is None or self.to_account_id is None:
                raise ValueError("Transfer requires both a source and a destination account")
            if self.from_account_id == self.to_account_id:
                raise ValueError("Transfer source and destination must be different accounts")
            if self.account_id is not None:
                raise ValueError("Transfer cannot reference a single account")
        else:
            if self.account_id is None:
                raise ValueError(f"{self.type.value.capitalize()} requires an account")
            if self.from_account_id is not None or self.to_account_id is not None:
                raise ValueError(
                    f"{self.type.value.capitalize()} cannot have a source or destination account"
                )
        return self

    @property
    def account_ids(self) -> list[UUID]:
        """All account IDs this transaction touches."""
        if self.type == TransactionType.TRANSFER:
            return [self.from_account_id, self.to_account_id]
        return [self.account_id]

    def references(self, account_id: UUID) -> bool:
        return account_id in self.account_ids
