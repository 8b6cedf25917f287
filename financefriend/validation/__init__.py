"""Validation package."""

from financefriend.validation.validator import (
    FormValidator,
    TransferValidator,
    parse_amount,
)

__all__ = ["FormValidator", "TransferValidator", "parse_amount"]
