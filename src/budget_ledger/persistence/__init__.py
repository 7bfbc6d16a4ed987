"""Persistence layer - JSON file storage for the ledger."""

from .store import JsonLedgerStore, seed_accounts

__all__ = ["JsonLedgerStore", "seed_accounts"]
