"""JSON Ledger Store - whole-file persistence for the ledger.

The entire ledger (a mapping of user id to account) lives in one
pretty-printed JSON document that is rewritten after every mutation.
Reads never touch the file after startup.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ..service.errors import PersistenceFailure
from ..service.models import Account, LedgerDocument, Transaction

logger = logging.getLogger(__name__)


def seed_accounts() -> dict[str, Account]:
    """Build the example ledger used when no usable file exists."""
    return {
        "test": Account(
            user="test",
            currency="$",
            description="Test account",
            balance=75,
            transactions=[
                Transaction(id="1", date="2020-10-01", object="Pocket money", amount=50),
                Transaction(id="2", date="2020-10-03", object="Book", amount=-10),
                Transaction(id="3", date="2020-10-04", object="Sandwich", amount=-5),
            ],
        )
    }


class JsonLedgerStore:
    """File-backed store for the full ledger state.

    The store does no locking of its own; callers serialize ``save`` calls.

    Example:
        store = JsonLedgerStore("data/db.json")
        accounts = store.load()
        accounts["alice"] = Account(user="alice", currency="$", description="...")
        store.save(accounts)
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        """Initialize the store.

        Args:
            db_path: Path to the JSON file. Defaults to ./db.json
        """
        if db_path is None:
            db_path = Path.cwd() / "db.json"
        self._db_path = Path(db_path)

    @property
    def db_path(self) -> Path:
        """Get the ledger file path."""
        return self._db_path

    def load(self) -> dict[str, Account]:
        """Load the ledger, falling back to the seed state.

        A missing file is normal on first start. An unreadable or corrupt
        file is logged and replaced in memory by the seed; it is only
        overwritten on disk by the next successful save.
        """
        if not self._db_path.exists():
            logger.info(f"No ledger file at {self._db_path}, using default data")
            return seed_accounts()

        try:
            raw = self._db_path.read_text(encoding="utf-8")
            accounts = LedgerDocument.validate_python(json.loads(raw))
        except (OSError, ValueError, ValidationError) as e:
            logger.error(
                f"Error reading ledger file {self._db_path}, using default data: {e}"
            )
            return seed_accounts()

        logger.info(f"Loaded {len(accounts)} accounts from {self._db_path}")
        return accounts

    def save(self, accounts: dict[str, Account]) -> None:
        """Overwrite the ledger file with the full state.

        The document is written to a sibling temp file and moved into place,
        so readers never observe a partial write.

        Raises:
            PersistenceFailure: If the file could not be written
        """
        payload = json.dumps(
            LedgerDocument.dump_python(accounts, mode="json"), indent=2
        )

        tmp_name: str | None = None
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._db_path.parent,
                prefix=f".{self._db_path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._db_path)
            tmp_name = None
        except OSError as e:
            logger.error(f"Failed to save ledger to {self._db_path}: {e}")
            raise PersistenceFailure() from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug(f"Ledger saved: {len(accounts)} accounts")


__all__ = ["JsonLedgerStore", "seed_accounts"]
