"""Ledger service layer - domain logic, FastAPI application and HTTP interfaces."""

from .config import LedgerConfig
from .errors import LedgerError
from .models import Account, Transaction

__all__ = ["LedgerConfig", "LedgerError", "Account", "Transaction"]
