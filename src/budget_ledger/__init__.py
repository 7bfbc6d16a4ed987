"""
Budget Ledger - Minimal personal-finance ledger service.

Accounts hold a currency label, a running balance and an ordered list of
transactions, exposed over HTTP and persisted to a single JSON file.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
