"""
Finance Tracker - Core Package

The data layer of a personal finance tracker: transactions, savings goals,
fixed bills and installment debts, persisted as JSON documents on local disk.

DESIGN PRINCIPLES:
1. Reads fail open, writes fail loudly
2. One document per concern, one document per month of transactions
3. Every mutation goes through a ledger, never through the files directly
4. Every data change is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
