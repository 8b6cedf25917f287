"""
Account Models for FinanceFriend

An account is a named store of money with a type and a running balance.

DESIGN DECISION: The balance is a signed Decimal. Checking and credit card
accounts are allowed to go negative; nothing here blocks that.

The colour is a display attribute only. It is stored as an opaque
"#RRGGBBAA" hex string and never takes part in balance logic.
"""

import re
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-F]{8}$")


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    Supported account types.

    Each type carries a display label and an icon name for the
    presentation layer.
    """
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"

    @property
    def label(self) -> str:
        return {
            AccountType.CHECKING: "Checking",
            AccountType.SAVINGS: "Savings",
            AccountType.CREDIT_CARD: "Credit Card",
        }[self]

    @property
    def icon(self) -> str:
        return {
            AccountType.CHECKING: "banknote",
            AccountType.SAVINGS: "piggybank",
            AccountType.CREDIT_CARD: "creditcard",
        }[self]


class AccountColor(str, Enum):
    """The palette offered when creating an account, as RGBA hex."""
    BLUE = "#007AFFFF"
    GREEN = "#34C759FF"
    ORANGE = "#FF9500FF"
    RED = "#FF3B30FF"
    PURPLE = "#AF52DEFF"
    PINK = "#FF2D55FF"
    YELLOW = "#FFCC00FF"
    INDIGO = "#5856D6FF"
    MINT = "#00C7BEFF"
    TEAL = "#30B0C7FF"


DEFAULT_ACCOUNT_COLOR = AccountColor.BLUE


def normalize_color(value: object) -> str:
    """
    Normalize a stored colour value to "#RRGGBBAA".

    Accepts palette members, 6-digit hex (alpha added) and 8-digit hex.
    Anything unreadable falls back to the default colour.
    """
    if isinstance(value, AccountColor):
        return value.value
    if not isinstance(value, str):
        return DEFAULT_ACCOUNT_COLOR.value

    candidate = value.strip().upper()
    if not candidate.startswith("#"):
        candidate = f"#{candidate}"
    if len(candidate) == 7:
        candidate = f"{candidate}FF"

    if HEX_COLOR_PATTERN.match(candidate):
        return candidate
    return DEFAULT_ACCOUNT_COLOR.value


def format_money(amount: Decimal, symbol: str = "$") -> str:
    """Format a signed amount for display, e.g. "$1,000.00" or "-$5.00"."""
    quantized = abs(amount).quantize(Decimal("0.01"))
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{quantized:,.2f}"


# =============================================================================
# CORE ACCOUNT MODEL
# =============================================================================

class Account(BaseModel):
    """
    A user account.

    Created by user action, mutated by the balance ledger updater and by
    direct user edits, destroyed by explicit user deletion (which first
    removes every transaction that references it).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    color: str = Field(
        default=DEFAULT_ACCOUNT_COLOR.value,
        description="Display colour as #RRGGBBAA"
    )
    type: AccountType = Field(
        default=AccountType.CHECKING,
        description="Account type"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Current balance (signed)"
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the account was created"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    @field_validator('color', mode='before')
    @classmethod
    def validate_color(cls, v: object) -> str:
        """Store every colour in one canonical form."""
        return normalize_color(v)

    @field_validator('balance')
    @classmethod
    def validate_balance(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Balance must be a finite number")
        return v

    @property
    def is_overdrawn(self) -> bool:
        return self.balance < 0

    def formatted_balance(self, symbol: str = "$") -> str:
        return format_money(self.balance, symbol)
