"""Ledger error kinds.

Every error is request-scoped: the app factory renders it as
``{"error": message}`` with the matching status code.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base exception for ledger operations."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingParameter(LedgerError):
    """A mandatory request parameter is absent or empty."""

    status_code = 400

    def __init__(self, message: str = "Missing parameters"):
        super().__init__(message)


class InvalidAmount(LedgerError):
    """A balance or amount could not be read as a number."""

    status_code = 400


class Conflict(LedgerError):
    """The account or transaction already exists."""

    status_code = 409


class NotFound(LedgerError):
    """The account or transaction does not exist."""

    status_code = 404


class PersistenceFailure(LedgerError):
    """Writing the ledger file failed.

    The in-memory mutation that triggered the save has already been applied,
    so the caller should treat the state as uncertain.
    """

    status_code = 500

    def __init__(self, message: str = "Failed to persist ledger"):
        super().__init__(message)


__all__ = [
    "LedgerError",
    "MissingParameter",
    "InvalidAmount",
    "Conflict",
    "NotFound",
    "PersistenceFailure",
]
