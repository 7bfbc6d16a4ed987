"""Budget Ledger Client SDK.

Provides async and sync interfaces for the ledger HTTP API.

Example:
    >>> from budget_ledger_client import LedgerClient
    >>> async with LedgerClient("http://localhost:5000") as client:
    ...     account = await client.get_account("test")
"""

from .client import (
    Account,
    LedgerBadRequestError,
    LedgerClient,
    LedgerClientConfig,
    LedgerClientError,
    LedgerClientSync,
    LedgerConflictError,
    LedgerConnectionError,
    LedgerNotFoundError,
    Transaction,
)

__all__ = [
    "Account",
    "LedgerBadRequestError",
    "LedgerClient",
    "LedgerClientConfig",
    "LedgerClientError",
    "LedgerClientSync",
    "LedgerConflictError",
    "LedgerConnectionError",
    "LedgerNotFoundError",
    "Transaction",
]
__version__ = "0.1.0"
