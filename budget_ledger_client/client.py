"""Ledger client implementation with async/sync interfaces."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response Models (mirrors server models for type safety)
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Transaction:
    """A dated, labeled, signed monetary entry."""

    id: str
    date: str
    object: str
    amount: float


@dataclass(slots=True)
class Account:
    """An account with its balance and transaction history."""

    user: str
    currency: str
    description: str
    balance: float = 0.0
    transactions: list[Transaction] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Account:
        return cls(
            user=data["user"],
            currency=data["currency"],
            description=data["description"],
            balance=data.get("balance", 0.0),
            transactions=[Transaction(**t) for t in data.get("transactions", [])],
        )


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LedgerClientError(Exception):
    """Base exception for ledger client errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LedgerConnectionError(LedgerClientError):
    """Connection to the ledger service failed."""
    pass


class LedgerBadRequestError(LedgerClientError):
    """Missing or invalid parameters."""
    pass


class LedgerNotFoundError(LedgerClientError):
    """Account or transaction not found."""
    pass


class LedgerConflictError(LedgerClientError):
    """Account or transaction already exists."""
    pass


_STATUS_ERRORS: dict[int, type[LedgerClientError]] = {
    400: LedgerBadRequestError,
    404: LedgerNotFoundError,
    409: LedgerConflictError,
}


def _raise_for_status(response: httpx.Response) -> None:
    """Translate an error response into a LedgerClientError."""
    if response.status_code < 400:
        return
    try:
        message = response.json().get("error") or response.text
    except ValueError:
        message = response.text
    error_cls = _STATUS_ERRORS.get(response.status_code, LedgerClientError)
    raise error_cls(message, response.status_code)


# ---------------------------------------------------------------------------
# Client Configuration
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class LedgerClientConfig:
    """Configuration for LedgerClient."""

    base_url: str
    api_prefix: str = "/api"
    timeout: float = 30.0
    max_retries: int = 3
    retry_backoff: float = 1.0

    @classmethod
    def from_env(cls) -> LedgerClientConfig:
        """Load configuration from environment variables."""
        return cls(
            base_url=os.environ.get("LEDGER_URL", "http://localhost:5000"),
            timeout=float(os.environ.get("LEDGER_TIMEOUT", "30.0")),
            max_retries=int(os.environ.get("LEDGER_MAX_RETRIES", "3")),
        )


def _segment(value: str) -> str:
    """Percent-encode one URL path segment, slashes included."""
    return quote(value, safe="")


def _account_payload(
    user: str,
    currency: str,
    description: str | None,
    balance: float | str | None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"user": user, "currency": currency}
    if description is not None:
        payload["description"] = description
    if balance is not None:
        payload["balance"] = balance
    return payload


# ---------------------------------------------------------------------------
# Async Client
# ---------------------------------------------------------------------------


class LedgerClient:
    """Async client for the ledger service.

    Example:
        >>> async with LedgerClient("http://localhost:5000") as client:
        ...     account = await client.create_account("alice", "$")
        ...     await client.add_transaction("alice", "2021-01-01", "Gift", 20)
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_prefix: str = "/api",
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = LedgerClientConfig(
            base_url=base_url.rstrip("/"),
            api_prefix=api_prefix.rstrip("/"),
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> LedgerClient:
        await self._ensure_client()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> httpx.Response:
        """Make request with retry on connection failures."""
        client = await self._ensure_client()
        headers = {"X-Correlation-ID": correlation_id} if correlation_id else {}

        last_error: LedgerClientError | None = None
        for attempt in range(self._config.max_retries):
            try:
                response = await client.request(
                    method,
                    self._config.api_prefix + path,
                    json=json,
                    headers=headers,
                )
                _raise_for_status(response)
                return response
            except httpx.ConnectError as e:
                last_error = LedgerConnectionError(f"Connection failed: {e}")
            except httpx.TimeoutException as e:
                last_error = LedgerConnectionError(f"Request timed out: {e}")

            if attempt < self._config.max_retries - 1:
                delay = self._config.retry_backoff * (2 ** attempt)
                logger.debug(f"Retry {attempt + 1}/{self._config.max_retries} after {delay}s")
                await asyncio.sleep(delay)

        if last_error:
            raise last_error
        raise LedgerConnectionError("Request failed after retries")

    # -----------------------------------------------------------------------
    # Ledger API
    # -----------------------------------------------------------------------

    async def info(self) -> str:
        """Get the server banner."""
        response = await self._request("GET", "/")
        return response.text

    async def create_account(
        self,
        user: str,
        currency: str,
        *,
        description: str | None = None,
        balance: float | str | None = None,
        correlation_id: str | None = None,
    ) -> Account:
        """Create an account.

        Raises:
            LedgerBadRequestError: Missing parameters or invalid balance
            LedgerConflictError: The user already exists
        """
        response = await self._request(
            "POST",
            "/accounts",
            json=_account_payload(user, currency, description, balance),
            correlation_id=correlation_id,
        )
        return Account.from_dict(response.json())

    async def get_account(
        self, user: str, *, correlation_id: str | None = None
    ) -> Account:
        """Get an account with its transactions."""
        response = await self._request(
            "GET", f"/accounts/{_segment(user)}", correlation_id=correlation_id
        )
        return Account.from_dict(response.json())

    async def delete_account(
        self, user: str, *, correlation_id: str | None = None
    ) -> None:
        """Delete an account."""
        await self._request("DELETE", f"/accounts/{_segment(user)}", correlation_id=correlation_id)

    async def add_transaction(
        self,
        user: str,
        date: str,
        object: str,
        amount: float | str,
        *,
        correlation_id: str | None = None,
    ) -> Transaction:
        """Add a transaction to an account.

        Raises:
            LedgerNotFoundError: The account does not exist
            LedgerBadRequestError: Missing parameters or invalid amount
            LedgerConflictError: The same date, object and amount already exist
        """
        response = await self._request(
            "POST",
            f"/accounts/{_segment(user)}/transactions",
            json={"date": date, "object": object, "amount": amount},
            correlation_id=correlation_id,
        )
        return Transaction(**response.json())

    async def delete_transaction(
        self,
        user: str,
        transaction_id: str,
        *,
        correlation_id: str | None = None,
    ) -> None:
        """Delete a transaction from an account."""
        await self._request(
            "DELETE",
            f"/accounts/{_segment(user)}/transactions/{_segment(transaction_id)}",
            correlation_id=correlation_id,
        )

    async def health(self) -> dict[str, Any]:
        """Get service health status."""
        client = await self._ensure_client()
        response = await client.get("/healthz")
        _raise_for_status(response)
        return response.json()


# ---------------------------------------------------------------------------
# Sync Client
# ---------------------------------------------------------------------------


class LedgerClientSync:
    """Synchronous client for the ledger service.

    Use this when you need to call the ledger from synchronous code.

    Example:
        >>> client = LedgerClientSync("http://localhost:5000")
        >>> client.get_account("test").balance
        75.0
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_prefix: str = "/api",
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._config = LedgerClientConfig(
            base_url=base_url.rstrip("/"),
            api_prefix=api_prefix.rstrip("/"),
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
        )
        self._client = httpx.Client(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            transport=transport,
        )

    def __enter__(self) -> LedgerClientSync:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Close the client."""
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        last_error: LedgerClientError | None = None
        for attempt in range(self._config.max_retries):
            try:
                response = self._client.request(
                    method, self._config.api_prefix + path, json=json
                )
                _raise_for_status(response)
                return response
            except httpx.ConnectError as e:
                last_error = LedgerConnectionError(f"Connection failed: {e}")
            except httpx.TimeoutException as e:
                last_error = LedgerConnectionError(f"Request timed out: {e}")

            if attempt < self._config.max_retries - 1:
                time.sleep(self._config.retry_backoff * (2 ** attempt))

        if last_error:
            raise last_error
        raise LedgerConnectionError("Request failed after retries")

    def info(self) -> str:
        """Get the server banner."""
        return self._request("GET", "/").text

    def create_account(
        self,
        user: str,
        currency: str,
        *,
        description: str | None = None,
        balance: float | str | None = None,
    ) -> Account:
        """Create an account."""
        response = self._request(
            "POST",
            "/accounts",
            json=_account_payload(user, currency, description, balance),
        )
        return Account.from_dict(response.json())

    def get_account(self, user: str) -> Account:
        """Get an account with its transactions."""
        return Account.from_dict(self._request("GET", f"/accounts/{_segment(user)}").json())

    def delete_account(self, user: str) -> None:
        """Delete an account."""
        self._request("DELETE", f"/accounts/{_segment(user)}")

    def add_transaction(
        self, user: str, date: str, object: str, amount: float | str
    ) -> Transaction:
        """Add a transaction to an account."""
        response = self._request(
            "POST",
            f"/accounts/{_segment(user)}/transactions",
            json={"date": date, "object": object, "amount": amount},
        )
        return Transaction(**response.json())

    def delete_transaction(self, user: str, transaction_id: str) -> None:
        """Delete a transaction from an account."""
        self._request("DELETE", f"/accounts/{_segment(user)}/transactions/{_segment(transaction_id)}")

    def health(self) -> dict[str, Any]:
        """Get service health status."""
        response = self._client.get("/healthz")
        _raise_for_status(response)
        return response.json()
