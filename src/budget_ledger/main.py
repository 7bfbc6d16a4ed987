"""Ledger service entry point."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn

from budget_ledger.service.config import LedgerConfig
from budget_ledger.service.logging import configure_logging


def main() -> int:
    """Main entry point for the ledger service."""
    parser = argparse.ArgumentParser(
        prog="budget-ledger",
        description="Budget Ledger - minimal personal-finance ledger service",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: $LEDGER_PORT, $PORT or 5000)",
    )
    parser.add_argument(
        "--db-file",
        default=None,
        help="Ledger JSON file (default: $LEDGER_DB_FILE or db.json)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Force JSON log output (default: auto-detect)",
    )

    args = parser.parse_args()

    # The app factory reads its configuration from the environment
    if args.port is not None:
        os.environ["LEDGER_PORT"] = str(args.port)
    if args.db_file is not None:
        os.environ["LEDGER_DB_FILE"] = args.db_file
    config = LedgerConfig.from_env()

    configure_logging(
        level=args.log_level.upper(),
        json_output=args.json_logs if args.json_logs else None,
        db_path=config.db_path,
    )

    try:
        uvicorn.run(
            "budget_ledger.service.app:create_app_from_env",
            host=args.host,
            port=config.port,
            reload=args.reload,
            log_level=args.log_level,
            log_config=None,
            factory=True,
        )
        return 0
    except KeyboardInterrupt:
        print("\nShutting down...")
        return 0


if __name__ == "__main__":
    sys.exit(main())
