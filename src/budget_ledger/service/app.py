"""FastAPI application factory for the ledger service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..persistence.store import JsonLedgerStore
from .config import LedgerConfig
from .core import LedgerService
from .errors import LedgerError
from .logging import SERVICE_NAME, get_logger
from .middleware import CorrelationIdMiddleware
from .models import HealthResponse
from .router import build_router

logger = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup/shutdown."""
    service: LedgerService = app.state.ledger_service
    logger.info(
        "ledger_started",
        db_path=str(service.store.db_path),
        accounts=service.account_count(),
    )
    yield
    logger.info("ledger_stopped")


async def _ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render ledger errors as ``{"error": message}``."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "ledger_error",
        error=exc.message,
        error_kind=type(exc).__name__,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Answer malformed bodies with 400 in the ledger's error shape."""
    logger.warning("invalid_request_body", errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"error": "Invalid parameters"})


def create_ledger_app(
    config: LedgerConfig,
    *,
    store: JsonLedgerStore | None = None,
) -> FastAPI:
    """Create and configure the ledger FastAPI application.

    The ledger is loaded from the store here, once per application.

    Args:
        config: LedgerConfig instance
        store: Optional store override (defaults to one at config.db_path)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Budget Ledger",
        description=config.description,
        version=__version__,
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_origin_regex=r"^http://(localhost|127(\.\d+){3})(:\d+)?$",
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.add_exception_handler(LedgerError, _ledger_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    ledger_service = LedgerService(config, store=store)

    app.include_router(build_router(ledger_service, prefix=config.api_prefix))

    app.state.ledger_service = ledger_service
    app.state.config = config

    @app.get("/healthz", response_model=HealthResponse)
    def healthz() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="ok",
            service=SERVICE_NAME,
            version=__version__,
            accounts=ledger_service.account_count(),
        )

    return app


def create_app_from_env() -> FastAPI:
    """Create app using environment variable configuration."""
    config = LedgerConfig.from_env()
    return create_ledger_app(config)


__all__ = ["create_ledger_app", "create_app_from_env"]
