"""Core ledger service - validation, mutation and balance maintenance."""

from __future__ import annotations

import hashlib
import math
import re
import threading
from decimal import Decimal
from typing import Any

from .. import __version__
from ..persistence.store import JsonLedgerStore
from .config import LedgerConfig
from .errors import Conflict, InvalidAmount, MissingParameter, NotFound
from .logging import get_logger
from .models import (
    Account,
    AccountCreateRequest,
    Transaction,
    TransactionCreateRequest,
)

logger = get_logger(__name__)

# Leading numeric prefix of a string, e.g. "  12.5abc" -> "12.5"
_NUMBER_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_number(value: int | float | str) -> float:
    """Coerce a caller-supplied number or numeric string to a float.

    Strings are read from their leading numeric prefix, so ``"12.5 EUR"``
    gives 12.5. Returns NaN when no number can be read, including booleans
    and integers too large for a float.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return math.nan
    match = _NUMBER_PREFIX.match(str(value))
    if match is None:
        return math.nan
    return float(match.group(1))


def canonical_amount(value: int | float | str) -> str:
    """Render an amount the way transaction ids have always been derived.

    Strings are used verbatim. Numbers use their shortest round-trip digits
    without a trailing ``.0``, switching to exponent form only below 1e-6 or
    from 1e21 upward (``20``, ``0.5``, ``1e-7``, ``1e+21``).
    """
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = k + exponent  # position of the decimal point

    if k <= n <= 21:
        body = digits + "0" * (n - k)
    elif 0 < n <= 21:
        body = digits[:n] + "." + digits[n:]
    elif -6 < n <= 0:
        body = "0." + "0" * (-n) + digits
    else:
        e = n - 1
        mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
        body = f"{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"
    return sign + body


def transaction_id(date: str, label: str, amount: int | float | str) -> str:
    """Derive the deterministic id of a transaction.

    MD5 hex digest of date, label and amount concatenated in that order.
    Identical triples share an id, which is what rejects duplicates.
    """
    content = f"{date}{label}{canonical_amount(amount)}"
    return hashlib.md5(content.encode("utf-8")).hexdigest()


class LedgerService:
    """Owner of the in-memory ledger.

    Provides:
    - Account creation, lookup and deletion
    - Transaction add/delete with balance maintenance
    - Persistence of the full ledger after every mutation

    Mutations hold a re-entrant lock across validate, mutate and save, so
    concurrent requests never lose updates or interleave file writes.
    Reads take the lock only to copy the account they return.
    """

    def __init__(
        self,
        config: LedgerConfig,
        *,
        store: JsonLedgerStore | None = None,
    ) -> None:
        self.config = config
        self._store = store or JsonLedgerStore(config.db_path)
        self._accounts = self._store.load()
        self._lock = threading.RLock()

    @property
    def store(self) -> JsonLedgerStore:
        return self._store

    # -----------------------------------------------------------------------
    # Service Info
    # -----------------------------------------------------------------------

    def describe(self) -> str:
        """Banner served at the API root."""
        return f"{self.config.description} v{__version__}"

    def account_count(self) -> int:
        with self._lock:
            return len(self._accounts)

    def _persist(self) -> None:
        self._store.save(self._accounts)

    # -----------------------------------------------------------------------
    # Accounts
    # -----------------------------------------------------------------------

    def create_account(self, request: AccountCreateRequest) -> Account:
        """Create an account with an empty history.

        Raises:
            MissingParameter: ``user`` or ``currency`` is absent
            Conflict: the user already has an account
            InvalidAmount: ``balance`` is not a number
        """
        if not request.user or not request.currency:
            raise MissingParameter()

        with self._lock:
            if request.user in self._accounts:
                raise Conflict("User already exists")

            balance = request.balance
            if balance:
                balance = parse_number(balance)
                if not math.isfinite(balance):
                    raise InvalidAmount("Balance must be a number")

            account = Account(
                user=request.user,
                currency=request.currency,
                description=request.description or f"{request.user}'s budget",
                balance=balance or 0,
                transactions=[],
            )
            self._accounts[account.user] = account
            self._persist()

            logger.info("account_created", user=account.user, balance=account.balance)
            return account.model_copy(deep=True)

    def get_account(self, user: str) -> Account:
        """Return a snapshot of an account including its transactions.

        Raises:
            NotFound: no such account
        """
        with self._lock:
            account = self._accounts.get(user)
            if account is None:
                raise NotFound("Username or password does not exist")
            return account.model_copy(deep=True)

    def delete_account(self, user: str) -> None:
        """Remove an account and its history.

        Raises:
            NotFound: no such account
        """
        with self._lock:
            if user not in self._accounts:
                raise NotFound("User does not exist")
            del self._accounts[user]
            self._persist()

        logger.info("account_deleted", user=user)

    # -----------------------------------------------------------------------
    # Transactions
    # -----------------------------------------------------------------------

    def add_transaction(
        self, user: str, request: TransactionCreateRequest
    ) -> Transaction:
        """Append a transaction and move the balance by its amount.

        An ``amount`` of 0 counts as missing.

        Raises:
            NotFound: no such account
            MissingParameter: ``date``, ``object`` or ``amount`` is absent
            InvalidAmount: ``amount`` is not a number
            Conflict: a transaction with the same date, object and amount exists
        """
        with self._lock:
            account = self._accounts.get(user)
            if account is None:
                raise NotFound("User does not exist")

            if not request.date or not request.object or not request.amount:
                raise MissingParameter()

            amount = parse_number(request.amount)
            if not math.isfinite(amount):
                raise InvalidAmount("Amount must be a number")

            tx_id = transaction_id(request.date, request.object, request.amount)
            if account.find_transaction(tx_id) is not None:
                raise Conflict("Transaction already exists")

            transaction = Transaction(
                id=tx_id,
                date=request.date,
                object=request.object,
                amount=amount,
            )
            account.transactions.append(transaction)
            account.balance += transaction.amount
            self._persist()

            logger.info(
                "transaction_added",
                user=user,
                transaction_id=tx_id,
                amount=amount,
                balance=account.balance,
            )
            return transaction.model_copy()

    def delete_transaction(self, user: str, transaction_id: str) -> None:
        """Remove a transaction and take its amount back out of the balance.

        Raises:
            NotFound: no such account, or no such transaction on it
        """
        with self._lock:
            account = self._accounts.get(user)
            if account is None:
                raise NotFound("User does not exist")

            index = account.find_transaction(transaction_id)
            if index is None:
                raise NotFound("Transaction does not exist")

            removed = account.transactions.pop(index)
            account.balance -= removed.amount
            self._persist()

        logger.info(
            "transaction_deleted",
            user=user,
            transaction_id=transaction_id,
            amount=removed.amount,
        )

    def snapshot(self) -> dict[str, Any]:
        """Return the whole ledger as plain JSON-ready data."""
        with self._lock:
            return {
                user: account.model_dump(mode="json")
                for user, account in self._accounts.items()
            }


__all__ = ["LedgerService", "parse_number", "canonical_amount", "transaction_id"]
