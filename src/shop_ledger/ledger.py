"""Ledger store: the single owner of items, shops and transactions."""

import logging
import threading
from collections.abc import Sequence

from .data_store import StorageBackend
from .errors import (
    DuplicateItemError,
    ItemNotFoundError,
    PersistenceError,
    ShopNotFoundError,
    StorageReadError,
    ValidationError,
)
from .models import Item, LedgerSnapshot, Shop, Transaction
from .seed import SEED_SNAPSHOT

logger = logging.getLogger(__name__)


class LedgerStore:
    """Holds the committed ledger state and is the only writer of it.

    Readers get the current snapshot, an immutable value that is replaced
    wholesale after each successful commit, so a reader never sees a
    half-applied mutation. Writers serialize on write_lock().
    """

    def __init__(self, backend: StorageBackend, seed: LedgerSnapshot = SEED_SNAPSHOT):
        """Initialize the ledger.

        Args:
            backend: Persistence backend (DataStore or SQLiteStore)
            seed: Collections used when nothing has been persisted yet
        """
        self.backend = backend
        self.seed = seed
        self._snapshot = LedgerSnapshot()
        self._lock = threading.RLock()

    # --- Reads ---

    @property
    def snapshot(self) -> LedgerSnapshot:
        """The last committed state."""
        return self._snapshot

    @property
    def items(self) -> tuple[Item, ...]:
        return self._snapshot.items

    @property
    def shops(self) -> tuple[Shop, ...]:
        return self._snapshot.shops

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._snapshot.transactions

    def get_item(self, item_id: str) -> Item | None:
        """Get an item by ID."""
        return next((i for i in self._snapshot.items if i.id == item_id), None)

    def get_shop(self, shop_id: str) -> Shop | None:
        """Get a shop by ID."""
        return next((s for s in self._snapshot.shops if s.id == shop_id), None)

    def find_items(self, query: str = "") -> list[Item]:
        """Items whose name contains query, case-insensitively."""
        key = query.strip().casefold()
        return [i for i in self._snapshot.items if key in i.name.casefold()]

    # --- Loading ---

    def load_all(self) -> LedgerSnapshot:
        """Load persisted state, seeding any collection that was never written.

        Unreadable state is logged and replaced by the seed data in memory;
        the ledger stays usable either way.

        Returns:
            The loaded snapshot
        """
        with self._lock:
            try:
                loaded = self.backend.load()
            except StorageReadError:
                logger.exception("Could not read ledger, falling back to seed data")
                self._snapshot = self.seed
                return self._snapshot

            missing = {
                name: getattr(self.seed, name)
                for name, records in loaded.items()
                if records is None
            }
            if missing:
                logger.info("Seeding collections: %s", ", ".join(missing))
                try:
                    self.backend.save(**missing)
                except PersistenceError:
                    logger.warning("Could not persist seed data", exc_info=True)

            self._snapshot = LedgerSnapshot(
                items=tuple(loaded["items"] if loaded["items"] is not None else self.seed.items),
                shops=tuple(loaded["shops"] if loaded["shops"] is not None else self.seed.shops),
                transactions=tuple(
                    loaded["transactions"]
                    if loaded["transactions"] is not None
                    else self.seed.transactions
                ),
            )
            return self._snapshot

    # --- Writes ---

    def write_lock(self) -> threading.RLock:
        """Lock that must be held across a read-resolve-commit sequence."""
        return self._lock

    def commit(
        self,
        items: Sequence[Item] | None = None,
        transactions: Sequence[Transaction] | None = None,
        shops: Sequence[Shop] | None = None,
    ) -> LedgerSnapshot:
        """Persist the given collections, then publish them.

        Collections passed as None are left unchanged. If persisting fails
        the published snapshot is untouched.

        Raises:
            PersistenceError: If the backend could not write
        """
        with self._lock:
            self.backend.save(items=items, transactions=transactions, shops=shops)
            current = self._snapshot
            self._snapshot = LedgerSnapshot(
                items=tuple(items) if items is not None else current.items,
                shops=tuple(shops) if shops is not None else current.shops,
                transactions=(
                    tuple(transactions) if transactions is not None else current.transactions
                ),
            )
            return self._snapshot

    def delete_item(self, item_id: str) -> list[Transaction]:
        """Delete an item and every transaction referencing it.

        Returns:
            The transactions removed with it

        Raises:
            ItemNotFoundError: If no item has this ID
            PersistenceError: If the change could not be written
        """
        with self._lock:
            snapshot = self._snapshot
            if self.get_item(item_id) is None:
                raise ItemNotFoundError(item_id)

            removed = [t for t in snapshot.transactions if t.item_id == item_id]
            self.commit(
                items=[i for i in snapshot.items if i.id != item_id],
                transactions=[t for t in snapshot.transactions if t.item_id != item_id],
            )
            logger.info("Deleted item %s and %d transactions", item_id, len(removed))
            return removed

    def delete_shop(self, shop_id: str) -> Shop:
        """Delete a shop record. Its transactions keep their shop name.

        Raises:
            ShopNotFoundError: If no shop has this ID
            PersistenceError: If the change could not be written
        """
        with self._lock:
            shop = self.get_shop(shop_id)
            if shop is None:
                raise ShopNotFoundError(shop_id)

            self.commit(shops=[s for s in self._snapshot.shops if s.id != shop_id])
            logger.info("Deleted shop %s", shop_id)
            return shop

    def rename_item(self, item_id: str, name: str) -> Item:
        """Rename a catalog item.

        Past transactions keep the item name they were recorded with.

        Raises:
            ValidationError: If the name is empty
            ItemNotFoundError: If no item has this ID
            DuplicateItemError: If another item already uses this name
        """
        name = name.strip()
        if not name:
            raise ValidationError("Item name must not be empty", field="name")

        with self._lock:
            item = self.get_item(item_id)
            if item is None:
                raise ItemNotFoundError(item_id)
            for other in self._snapshot.items:
                if other.id != item_id and other.name.casefold() == name.casefold():
                    raise DuplicateItemError(name, other.id)

            renamed = item.model_copy(update={"name": name})
            self.commit(
                items=[renamed if i.id == item_id else i for i in self._snapshot.items]
            )
            return renamed
