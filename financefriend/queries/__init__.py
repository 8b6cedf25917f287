"""Aggregation package."""

from financefriend.queries.aggregator import (
    TransactionAggregator,
    summarize_balances,
    summarize_month,
)

__all__ = ["TransactionAggregator", "summarize_balances", "summarize_month"]
