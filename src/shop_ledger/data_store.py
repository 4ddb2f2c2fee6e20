"""Data persistence for Shop Ledger.

This module provides data persistence with support for JSON (default) or SQLite backends.
Use create_data_store() to get the appropriate backend based on configuration.
"""

import json
import logging
import os
from collections.abc import Sequence
from datetime import date, datetime, time
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from .errors import PersistenceError, StorageReadError
from .models import Item, LedgerModel, Shop, Transaction

logger = logging.getLogger(__name__)

COLLECTIONS: dict[str, type[LedgerModel]] = {
    "items": Item,
    "shops": Shop,
    "transactions": Transaction,
}


class BackendType(str, Enum):
    """Data storage backend types."""

    JSON = "json"
    SQLITE = "sqlite"


class StorageBackend(Protocol):
    """Protocol defining the persistence interface used by the ledger."""

    def load(self) -> dict[str, list[Any] | None]: ...
    def save(
        self,
        items: Sequence[Item] | None = None,
        transactions: Sequence[Transaction] | None = None,
        shops: Sequence[Shop] | None = None,
    ) -> None: ...
    def has_data(self) -> bool: ...


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for our data types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, time):
            return obj.isoformat()
        return super().default(obj)


def dump_records(records: Sequence[LedgerModel]) -> list[dict[str, Any]]:
    """Serialize records to their persisted camelCase shape."""
    return [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in records]


def parse_records(name: str, data: Any) -> list[Any]:
    """Validate raw persisted records for a collection.

    Raises:
        StorageReadError: If the data is not a list of valid records
    """
    if not isinstance(data, list):
        raise StorageReadError(f"Collection '{name}' is not a list")
    model = COLLECTIONS[name]
    try:
        return [model.model_validate(record) for record in data]
    except ModelValidationError as e:
        raise StorageReadError(f"Collection '{name}' has invalid records: {e}") from e


class DataStore:
    """Manages JSON file persistence for the ledger collections."""

    def __init__(self, data_dir: Path | None = None):
        """Initialize data store.

        Args:
            data_dir: Directory for data files. Defaults to ./data
        """
        self.data_dir = data_dir or Path.cwd() / "data"
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create the data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _collection_path(self, name: str) -> Path:
        """Path to a collection file."""
        return self.data_dir / f"{name}.json"

    def _staging_path(self, name: str) -> Path:
        """Path a collection is written to before being swapped in."""
        return self.data_dir / f".{name}.json.tmp"

    # --- Read Operations ---

    def load_collection(self, name: str) -> list[Any] | None:
        """Load one collection.

        Args:
            name: One of "items", "shops", "transactions"

        Returns:
            List of records, or None if the collection was never written

        Raises:
            StorageReadError: If the file is unreadable or corrupt
        """
        path = self._collection_path(name)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageReadError(f"Could not read {path.name}: {e}") from e

        return parse_records(name, data)

    def load(self) -> dict[str, list[Any] | None]:
        """Load all collections.

        Returns:
            Dict mapping collection name -> records (None if absent)
        """
        return {name: self.load_collection(name) for name in COLLECTIONS}

    def has_data(self) -> bool:
        """Whether any collection file exists."""
        return any(self._collection_path(name).exists() for name in COLLECTIONS)

    # --- Write Operations ---

    def save(
        self,
        items: Sequence[Item] | None = None,
        transactions: Sequence[Transaction] | None = None,
        shops: Sequence[Shop] | None = None,
    ) -> None:
        """Persist the given collections together.

        Every collection is first written to a staging file. Only when all of
        them are written are they swapped in. If a swap fails, collections
        already swapped are restored to their previous content.

        Raises:
            PersistenceError: If any collection could not be written
        """
        staged = {
            name: records
            for name, records in (
                ("items", items),
                ("transactions", transactions),
                ("shops", shops),
            )
            if records is not None
        }
        if not staged:
            return

        try:
            for name, records in staged.items():
                with open(self._staging_path(name), "w", encoding="utf-8") as f:
                    json.dump(dump_records(records), f, cls=JSONEncoder, indent=2)
            previous = {
                name: self._collection_path(name).read_bytes()
                if self._collection_path(name).exists()
                else None
                for name in staged
            }
        except OSError as e:
            self._discard_staged(staged)
            raise PersistenceError(f"Could not write ledger: {e}") from e

        swapped: list[str] = []
        try:
            for name in staged:
                os.replace(self._staging_path(name), self._collection_path(name))
                swapped.append(name)
        except OSError as e:
            self._restore(previous, swapped)
            self._discard_staged(staged)
            raise PersistenceError(f"Could not write ledger: {e}") from e

        logger.debug("Saved collections %s to %s", ", ".join(staged), self.data_dir)

    def _discard_staged(self, names) -> None:
        for name in names:
            self._staging_path(name).unlink(missing_ok=True)

    def _restore(self, previous: dict[str, bytes | None], swapped: list[str]) -> None:
        """Put swapped collections back to their content before a failed save."""
        for name in swapped:
            path = self._collection_path(name)
            try:
                if previous[name] is None:
                    path.unlink(missing_ok=True)
                else:
                    path.write_bytes(previous[name])
            except OSError:
                logger.exception("Could not restore %s after failed save", path.name)


def create_data_store(
    backend: BackendType = BackendType.JSON,
    data_dir: Path | None = None,
    db_path: Path | None = None,
) -> StorageBackend:
    """Create a data store with the specified backend.

    Args:
        backend: Which backend to use (json or sqlite)
        data_dir: Directory for data files (used by JSON backend, also used
                  as base path for SQLite if db_path not specified)
        db_path: Path to SQLite database file (only used by SQLite backend)

    Returns:
        A DataStore or SQLiteStore instance

    Example:
        # Use JSON backend (default)
        store = create_data_store()

        # Use SQLite with custom path
        store = create_data_store(
            BackendType.SQLITE,
            db_path=Path("./my_data/ledger.db")
        )
    """
    if backend == BackendType.SQLITE:
        from .sqlite_store import SQLiteStore

        if db_path is None and data_dir is not None:
            db_path = data_dir / "ledger.db"

        return SQLiteStore(db_path=db_path)
    else:
        return DataStore(data_dir=data_dir)
