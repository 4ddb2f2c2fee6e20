"""Shared test fixtures for Shop Ledger."""

from datetime import timezone

import pytest

from shop_ledger.analytics import Analytics
from shop_ledger.data_store import DataStore
from shop_ledger.errors import PersistenceError
from shop_ledger.ledger import LedgerStore
from shop_ledger.purchases import PurchaseProcessor
from shop_ledger.seed import EMPTY_SNAPSHOT


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def data_store(temp_data_dir):
    """Create a DataStore with temporary directory."""
    return DataStore(data_dir=temp_data_dir)


@pytest.fixture
def ledger(data_store):
    """A ledger loaded with the seed data."""
    store = LedgerStore(data_store)
    store.load_all()
    return store


@pytest.fixture
def empty_ledger(data_store):
    """A ledger that starts with no items, shops or transactions."""
    store = LedgerStore(data_store, seed=EMPTY_SNAPSHOT)
    store.load_all()
    return store


@pytest.fixture
def processor(ledger):
    """A PurchaseProcessor over the seeded ledger."""
    return PurchaseProcessor(ledger)


@pytest.fixture
def empty_processor(empty_ledger):
    """A PurchaseProcessor over the empty ledger."""
    return PurchaseProcessor(empty_ledger)


@pytest.fixture
def analytics(ledger):
    """Analytics over the seeded ledger, calendar in UTC."""
    return Analytics(ledger, tz=timezone.utc)


@pytest.fixture
def empty_analytics(empty_ledger):
    """Analytics over the empty ledger, calendar in UTC."""
    return Analytics(empty_ledger, tz=timezone.utc)


@pytest.fixture
def milk_purchase():
    """The Milk purchase following the seed data."""
    return {
        "item": {"name": "Milk"},
        "pricePerUnit": 28,
        "quantity": 2,
        "unit": "ltr",
        "date": "2026-02-10",
    }


class FlakyBackend:
    """Backend wrapper whose saves fail while ``failing`` is set."""

    def __init__(self, inner):
        self.inner = inner
        self.failing = False
        self.saves = 0

    def load(self):
        return self.inner.load()

    def has_data(self):
        return self.inner.has_data()

    def save(self, items=None, transactions=None, shops=None):
        if self.failing:
            raise PersistenceError("disk full")
        self.saves += 1
        self.inner.save(items=items, transactions=transactions, shops=shops)


@pytest.fixture
def flaky_backend(data_store):
    """A JSON backend that can be made to fail on demand."""
    return FlakyBackend(data_store)


@pytest.fixture
def flaky_ledger(flaky_backend):
    """A seeded ledger over the flaky backend."""
    store = LedgerStore(flaky_backend)
    store.load_all()
    return store
