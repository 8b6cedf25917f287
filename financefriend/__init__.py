"""
FinanceFriend - Source Package

A personal finance ledger: accounts, transactions, balances and
monthly summaries for a single user on a single device.

DESIGN PRINCIPLES:
1. Balances always follow the recorded transactions
2. Record write and balance write are one unit
3. Invalid input blocks the save, never half-saves
4. Every user action is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinanceFriend Team"
