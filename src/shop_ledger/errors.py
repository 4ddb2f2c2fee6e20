"""Error types raised by the purchase ledger."""


class LedgerError(Exception):
    """Base class for ledger errors."""


class ValidationError(LedgerError):
    """Raised when a purchase payload or query argument is malformed."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class StorageReadError(LedgerError):
    """Raised when persisted ledger state is unreadable or corrupt."""


class PersistenceError(LedgerError):
    """Raised when ledger state could not be durably written."""


class ItemNotFoundError(LedgerError):
    """Raised when an item is not found."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item with ID '{item_id}' not found")


class ShopNotFoundError(LedgerError):
    """Raised when a shop is not found."""

    def __init__(self, shop_id: str):
        self.shop_id = shop_id
        super().__init__(f"Shop with ID '{shop_id}' not found")


class DuplicateItemError(LedgerError):
    """Raised when renaming an item onto another item's name."""

    def __init__(self, name: str, existing_id: str):
        self.name = name
        self.existing_id = existing_id
        super().__init__(f"Item '{name}' already exists (ID: {existing_id})")
