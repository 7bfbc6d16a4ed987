"""Pydantic models backing the ledger API and its persisted file."""

from __future__ import annotations

from pydantic import (
    BaseModel,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
)


# ---------------------------------------------------------------------------
# Entity Models
# ---------------------------------------------------------------------------


class Transaction(BaseModel):
    """A dated, labeled, signed monetary entry belonging to one account.

    The ``id`` is derived from the content fields and doubles as the
    de-duplication key within an account.
    """

    id: str
    date: str
    object: str
    amount: float


class Account(BaseModel):
    """A named ledger with a currency label, running balance and history."""

    user: str
    currency: str
    description: str
    balance: float = 0.0
    transactions: list[Transaction] = Field(default_factory=list)

    def find_transaction(self, transaction_id: str) -> int | None:
        """Return the index of a transaction by id, or None."""
        for index, transaction in enumerate(self.transactions):
            if transaction.id == transaction_id:
                return index
        return None


# Whole-ledger document as written to disk: user -> Account
LedgerDocument = TypeAdapter(dict[str, Account])


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------


class AccountCreateRequest(BaseModel):
    """Body of ``POST /accounts``.

    Every field is optional at the schema level; presence and numeric checks
    happen in the service so they answer with the ledger's own error body.
    Numeric fields are strict so a JSON boolean stays a boolean and is
    rejected by the service rather than silently read as 1.
    """

    user: str | None = None
    currency: str | None = None
    description: str | None = None
    balance: StrictInt | StrictFloat | StrictStr | StrictBool | None = None


class TransactionCreateRequest(BaseModel):
    """Body of ``POST /accounts/{user}/transactions``.

    ``amount`` keeps the caller's original form (number or string) because
    the transaction id is derived from it before numeric coercion.
    """

    date: str | None = None
    object: str | None = None
    amount: StrictInt | StrictFloat | StrictStr | StrictBool | None = None


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str


class HealthResponse(BaseModel):
    """Response from the health endpoint."""

    status: str
    service: str
    version: str
    accounts: int
