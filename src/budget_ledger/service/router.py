"""FastAPI router for the ledger service.

Implements the ledger API endpoints:
- Service banner (/)
- Accounts (/accounts/*)
- Transactions (/accounts/{user}/transactions/*)

Handlers are synchronous; FastAPI runs them in its worker thread pool and
the LedgerService serializes mutations.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ValidationError

from .models import (
    Account,
    AccountCreateRequest,
    ErrorResponse,
    Transaction,
    TransactionCreateRequest,
)

if TYPE_CHECKING:
    from .core import LedgerService


BodyT = TypeVar("BodyT", bound=BaseModel)

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def request_body(model: type[BodyT]) -> Callable[[Request], Awaitable[BodyT]]:
    """Build a dependency reading ``model`` from a JSON or form body.

    Form fields arrive as strings. An empty body yields an empty model so the
    service answers with its own missing-parameter error.
    """

    async def dependency(request: Request) -> BodyT:
        content_type = request.headers.get("content-type", "").lower()
        if content_type.startswith(_FORM_TYPES):
            form = await request.form()
            data = {key: value for key, value in form.items() if isinstance(value, str)}
        else:
            raw = await request.body()
            if not raw.strip():
                return model()
            try:
                data = json.loads(raw)
            except ValueError as e:
                raise RequestValidationError(
                    [{"type": "json_invalid", "loc": ("body",), "msg": str(e)}]
                ) from e
            if data is None:
                return model()
            if not isinstance(data, dict):
                raise RequestValidationError(
                    [{"type": "model_type", "loc": ("body",), "msg": "Expected an object"}]
                )
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise RequestValidationError(e.errors()) from e

    return dependency


def build_router(service: LedgerService, prefix: str = "/api") -> APIRouter:
    """Build the ledger API router.

    Args:
        service: The LedgerService instance
        prefix: Route prefix shared by every endpoint

    Returns:
        Configured APIRouter
    """
    router = APIRouter(prefix=prefix)

    @router.get("/", response_class=PlainTextResponse)
    def info() -> str:
        """Get server info."""
        return service.describe()

    # -----------------------------------------------------------------------
    # Account Endpoints
    # -----------------------------------------------------------------------

    @router.post(
        "/accounts",
        response_model=Account,
        status_code=status.HTTP_201_CREATED,
        responses={
            400: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
        },
    )
    def create_account(
        request: AccountCreateRequest = Depends(request_body(AccountCreateRequest)),
    ) -> Account:
        """Create an account."""
        return service.create_account(request)

    @router.get(
        "/accounts/{user}",
        response_model=Account,
        responses={404: {"model": ErrorResponse}},
    )
    def get_account(user: str) -> Account:
        """Get all data for the specified account."""
        return service.get_account(user)

    @router.delete(
        "/accounts/{user}",
        status_code=status.HTTP_204_NO_CONTENT,
        responses={404: {"model": ErrorResponse}},
    )
    def delete_account(user: str) -> Response:
        """Remove the specified account."""
        service.delete_account(user)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # -----------------------------------------------------------------------
    # Transaction Endpoints
    # -----------------------------------------------------------------------

    @router.post(
        "/accounts/{user}/transactions",
        response_model=Transaction,
        status_code=status.HTTP_201_CREATED,
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
        },
    )
    def add_transaction(
        user: str,
        request: TransactionCreateRequest = Depends(
            request_body(TransactionCreateRequest)
        ),
    ) -> Transaction:
        """Add a transaction to the specified account."""
        return service.add_transaction(user, request)

    @router.delete(
        "/accounts/{user}/transactions/{transaction_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        responses={404: {"model": ErrorResponse}},
    )
    def delete_transaction(user: str, transaction_id: str) -> Response:
        """Remove the specified transaction from the account."""
        service.delete_transaction(user, transaction_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


__all__ = ["build_router"]
