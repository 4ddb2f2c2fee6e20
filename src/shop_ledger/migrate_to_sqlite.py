"""Migration from JSON to SQLite ledger storage.

Copies the items, shops and transactions collections from a JSON data
directory into a SQLite database. It can be run safely multiple times: if the
database already holds data it is left alone unless forced.
"""

import logging
from pathlib import Path

from .data_store import COLLECTIONS, DataStore
from .errors import LedgerError
from .sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


class MigrationError(LedgerError):
    """Raised when migration encounters an error."""


class JSONToSQLiteMigrator:
    """Migrates ledger collections from JSON files to a SQLite database."""

    def __init__(
        self,
        json_data_dir: Path | None = None,
        sqlite_db_path: Path | None = None,
    ):
        """Initialize migrator.

        Args:
            json_data_dir: Directory containing JSON data files.
                          Defaults to ./data
            sqlite_db_path: Path to SQLite database file.
                           Defaults to <json_data_dir>/ledger.db
        """
        self.json_data_dir = json_data_dir or Path.cwd() / "data"
        self.sqlite_db_path = sqlite_db_path or (self.json_data_dir / "ledger.db")

        self.json_store = DataStore(data_dir=self.json_data_dir)
        self.sqlite_store = SQLiteStore(db_path=self.sqlite_db_path)

        self.stats = {name: 0 for name in COLLECTIONS}

    def run_migration(self, force: bool = False) -> dict[str, int]:
        """Run the full migration.

        Args:
            force: If True, migrate even if SQLite already has data

        Returns:
            Dict mapping collection name -> records migrated

        Raises:
            MigrationError: If verification of the copied data fails
            StorageReadError: If the JSON data is unreadable
            PersistenceError: If the database could not be written
        """
        if not self.json_store.has_data():
            logger.info("No JSON data found in %s", self.json_data_dir)
            return self.stats

        if self.sqlite_store.has_data() and not force:
            logger.warning(
                "%s already contains data; use force to overwrite", self.sqlite_db_path
            )
            return self.stats

        logger.info("Migrating %s to %s", self.json_data_dir, self.sqlite_db_path)
        source = {
            name: records for name, records in self.json_store.load().items() if records is not None
        }
        self.sqlite_store.save(**source)

        for name, records in source.items():
            self.stats[name] = len(records)

        self.verify_migration(source)
        logger.info("Migration complete: %s", self.stats)
        return self.stats

    def verify_migration(self, source: dict[str, list]) -> None:
        """Check that the database now holds exactly the source records.

        Raises:
            MigrationError: If any collection differs
        """
        migrated = self.sqlite_store.load()
        failed = [name for name, records in source.items() if migrated[name] != records]
        if failed:
            raise MigrationError(f"Migration verification failed for: {failed}")


def migrate(
    data_dir: Path | None = None,
    db_path: Path | None = None,
    force: bool = False,
) -> dict[str, int]:
    """Convenience function to run migration.

    Args:
        data_dir: Directory containing JSON data files
        db_path: Path to SQLite database file
        force: If True, overwrite existing SQLite data

    Returns:
        Migration statistics
    """
    migrator = JSONToSQLiteMigrator(
        json_data_dir=data_dir,
        sqlite_db_path=db_path,
    )
    return migrator.run_migration(force=force)
