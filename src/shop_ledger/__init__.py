"""Shop Ledger - Personal shopping diary with price trends and spending views."""

from .analytics import Analytics
from .config import ConfigError, ConfigManager
from .data_store import BackendType, create_data_store, DataStore
from .errors import (
    DuplicateItemError,
    ItemNotFoundError,
    LedgerError,
    PersistenceError,
    ShopNotFoundError,
    StorageReadError,
    ValidationError,
)
from .helpers import classify_trend, format_currency, format_date, generate_id
from .ledger import LedgerStore
from .models import (
    ExpenseTotal,
    Item,
    ItemPriceStats,
    ItemRef,
    LedgerSnapshot,
    MonthComparison,
    PriceTrend,
    PurchasePayload,
    Shop,
    ShopDay,
    ShopGroup,
    ShopRef,
    Transaction,
)
from .output_formatter import OutputFormatter
from .purchases import PurchaseProcessor
from .resolver import EntityResolver
from .seed import SEED_SNAPSHOT
from .sqlite_store import SQLiteStore

__version__ = "0.1.0"

__all__ = [
    "Analytics",
    "BackendType",
    "classify_trend",
    "ConfigError",
    "ConfigManager",
    "create_data_store",
    "DataStore",
    "DuplicateItemError",
    "EntityResolver",
    "ExpenseTotal",
    "format_currency",
    "format_date",
    "generate_id",
    "Item",
    "ItemNotFoundError",
    "ItemPriceStats",
    "ItemRef",
    "LedgerError",
    "LedgerSnapshot",
    "LedgerStore",
    "MonthComparison",
    "OutputFormatter",
    "PersistenceError",
    "PriceTrend",
    "PurchasePayload",
    "PurchaseProcessor",
    "SEED_SNAPSHOT",
    "Shop",
    "ShopDay",
    "ShopGroup",
    "ShopNotFoundError",
    "ShopRef",
    "SQLiteStore",
    "StorageReadError",
    "Transaction",
    "ValidationError",
]
