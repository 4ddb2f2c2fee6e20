"""SQLite-based data persistence for Shop Ledger.

This module provides SQLite database storage as an alternative to JSON files.
It implements the same interface as DataStore for seamless switching.
"""

import logging
import sqlite3
from collections.abc import Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .data_store import COLLECTIONS, parse_records
from .errors import PersistenceError, StorageReadError
from .models import Item, Shop, Transaction

logger = logging.getLogger(__name__)

_COLUMNS = {
    "items": ("id", "name", "unit", "last_price", "last_purchased_date", "category"),
    "shops": ("id", "name"),
    "transactions": (
        "id",
        "date",
        "item_id",
        "item_name",
        "shop_id",
        "shop_name",
        "price_per_unit",
        "quantity",
        "total_cost",
        "unit",
        "price_trend",
    ),
}


class SQLiteStore:
    """Manages SQLite database persistence for the ledger collections."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | None = None):
        """Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file. Defaults to ./data/ledger.db
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "ledger.db"
        self.db_path = db_path
        self._schema_ready = False
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper cleanup.

        The schema is created on the first connection.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            if not self._schema_ready:
                self._init_database(conn)
                self._schema_ready = True
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self, conn: sqlite3.Connection) -> None:
        """Initialize database schema if not exists."""
        conn.executescript("""
            -- Schema version tracking
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );

            -- Collections that have been written at least once
            CREATE TABLE IF NOT EXISTS collections (
                name TEXT PRIMARY KEY
            );

            CREATE TABLE IF NOT EXISTS items (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                unit TEXT NOT NULL,
                last_price REAL NOT NULL,
                last_purchased_date TEXT NOT NULL,
                category TEXT NOT NULL DEFAULT 'General'
            );

            CREATE TABLE IF NOT EXISTS shops (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                name TEXT NOT NULL
            );

            -- Item and shop names are denormalized onto each transaction
            CREATE TABLE IF NOT EXISTS transactions (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                date TEXT NOT NULL,
                item_id TEXT NOT NULL,
                item_name TEXT NOT NULL,
                shop_id TEXT,
                shop_name TEXT,
                price_per_unit REAL NOT NULL,
                quantity REAL NOT NULL,
                total_cost REAL NOT NULL,
                unit TEXT NOT NULL,
                price_trend TEXT NOT NULL DEFAULT 'stable'
            );

            CREATE INDEX IF NOT EXISTS idx_transactions_item ON transactions(item_id);
            CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);

            INSERT OR IGNORE INTO schema_version (version) VALUES (1);
        """)

    # --- Read Operations ---

    def load(self) -> dict[str, list[Any] | None]:
        """Load all collections.

        Returns:
            Dict mapping collection name -> records (None if absent)

        Raises:
            StorageReadError: If the database is unreadable or holds invalid rows
        """
        result: dict[str, list[Any] | None] = {}
        try:
            with self._get_connection() as conn:
                present = {
                    row["name"] for row in conn.execute("SELECT name FROM collections")
                }
                for name in COLLECTIONS:
                    if name not in present:
                        result[name] = None
                        continue
                    columns = ", ".join(_COLUMNS[name])
                    rows = conn.execute(
                        f"SELECT {columns} FROM {name} ORDER BY position"
                    ).fetchall()
                    result[name] = [
                        {k: row[k] for k in row.keys() if row[k] is not None}
                        for row in rows
                    ]
        except sqlite3.Error as e:
            raise StorageReadError(f"Could not read {self.db_path.name}: {e}") from e

        return {
            name: parse_records(name, rows) if rows is not None else None
            for name, rows in result.items()
        }

    def has_data(self) -> bool:
        """Whether any collection has been written.

        Raises:
            StorageReadError: If the database is unreadable
        """
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT COUNT(*) AS n FROM collections").fetchone()
        except sqlite3.Error as e:
            raise StorageReadError(f"Could not read {self.db_path.name}: {e}") from e
        return row["n"] > 0

    # --- Write Operations ---

    def save(
        self,
        items: Sequence[Item] | None = None,
        transactions: Sequence[Transaction] | None = None,
        shops: Sequence[Shop] | None = None,
    ) -> None:
        """Persist the given collections in a single database transaction.

        Raises:
            PersistenceError: If the transaction could not be committed
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
            with self._get_connection() as conn:
                for name, records in staged.items():
                    self._replace_collection(conn, name, records)
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not write ledger: {e}") from e

        logger.debug("Saved collections %s to %s", ", ".join(staged), self.db_path)

    def _replace_collection(self, conn, name: str, records) -> None:
        columns = _COLUMNS[name]
        placeholders = ", ".join("?" * (len(columns) + 1))
        rows = []
        for position, record in enumerate(records):
            data = record.model_dump(mode="json")
            rows.append((position, *(data[c] for c in columns)))

        conn.execute(f"DELETE FROM {name}")
        conn.executemany(
            f"INSERT INTO {name} (position, {', '.join(columns)}) VALUES ({placeholders})",
            rows,
        )
        conn.execute("INSERT OR IGNORE INTO collections (name) VALUES (?)", (name,))
