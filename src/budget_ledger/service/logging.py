"""Logging setup for the ledger service.

All output goes through structlog: ledger events from the service layer,
stdlib records from the store and uvicorn alike. Every entry carries the
service name and the ledger file it works on, so lines from several
ledger processes can share one sink.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

SERVICE_NAME = "budget-ledger"

# uvicorn's access log repeats what CorrelationIdMiddleware already logs
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "multipart")


def add_service_fields(
    service_name: str = SERVICE_NAME,
    db_path: str | None = None,
) -> structlog.types.Processor:
    """Build a processor stamping service and ledger file on each entry."""
    fields: dict[str, Any] = {"service": service_name}
    if db_path is not None:
        fields["db_path"] = db_path

    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return processor


def configure_logging(
    level: str = "INFO",
    json_output: bool | None = None,
    db_path: str | None = None,
) -> None:
    """Route structlog and stdlib logging to one stderr handler.

    Args:
        level: Root log level name
        json_output: JSON lines if True, console if False. None picks JSON
            unless stderr is a terminal or LEDGER_LOG_JSON=1 is set
        db_path: Ledger file to stamp on every entry
    """
    if json_output is None:
        json_output = not sys.stderr.isatty() or os.getenv("LEDGER_LOG_JSON") == "1"

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_service_fields(db_path=db_path),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    # uvicorn installs its own handlers unless told otherwise; keep one sink
    for name in ("uvicorn", "uvicorn.error"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach request-scoped fields (correlation id, path) to later entries."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "SERVICE_NAME",
    "add_service_fields",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
