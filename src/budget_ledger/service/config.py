"""Configuration primitives for the ledger service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


DEFAULT_CORS_ORIGINS = [
    "https://banka-chi.vercel.app",
    "https://kigombo.live",
    "https://kigombo.vercel.app",
    "https://kigombo.gohimma.xyz",
]


@dataclass(slots=True)
class LedgerConfig:
    """Runtime configuration for the ledger service.

    Configuration Sources (priority order):
    1. Direct constructor arguments
    2. Environment variables (LEDGER_*)
    3. Default values

    Attributes:
        db_path: JSON file holding the whole ledger (default: db.json)
        port: Service port (default: 5000)
        api_prefix: Prefix for every ledger route (default: /api)
        description: Banner text served at the API root
        cors_origins: Allowed browser origins, localhost is always allowed
    """

    db_path: str = "db.json"
    port: int = 5000
    api_prefix: str = "/api"
    description: str = "Minimal personal-finance ledger API"
    cors_origins: list[str] = field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS)
    )

    @classmethod
    def from_env(cls) -> LedgerConfig:
        """Create configuration from environment variables.

        Optional:
            LEDGER_DB_FILE: Path of the ledger JSON file
            LEDGER_PORT: Service port (falls back to PORT, then 5000)
            LEDGER_API_PREFIX: Route prefix (default: /api)
            LEDGER_CORS_ORIGINS: Comma-separated list of allowed origins
        """
        port = os.environ.get("LEDGER_PORT") or os.environ.get("PORT") or "5000"

        config = cls(
            db_path=os.environ.get("LEDGER_DB_FILE", "db.json"),
            port=int(port),
            api_prefix=os.environ.get("LEDGER_API_PREFIX", "/api").rstrip("/"),
        )

        origins_str = os.environ.get("LEDGER_CORS_ORIGINS", "")
        if origins_str:
            config.cors_origins = [
                origin.strip() for origin in origins_str.split(",") if origin.strip()
            ]

        return config
